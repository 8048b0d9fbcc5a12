"""
fsdbg - Authentication Audit Checklist

Everything needed for secure login, password management, privilege
escalation and account security.

Critical components:
    usr/sbin/unix_chkpwd   pam_unix.so hardcodes this path; without it
                           password checks fail silently
    etc/pam.d/system-auth  main authentication stack
    etc/security/*         lockout and password quality policy

This checklist covers every PAM-related requirement of the other checklists
(PAM modules, etc/pam.d, etc/security), so auditing an image with it alone
never misses a PAM problem another checklist would catch.
"""

from typing import Iterable, List, Tuple

from ..core.checklist_engine import (
    CheckCategory,
    Criticality,
    Requirement,
    executable,
    regular,
    exists,
    symlink_to,
)
from .components import (
    AUTH_BIN,
    AUTH_SBIN,
    PAM_CONFIGS,
    PAM_MODULE_DIR,
    PAM_MODULES,
    SECURITY_FILES,
    SHADOW_SBIN,
    SUDO_LIBS,
)
from .rootfs import INIT_TARGETS

CRITICAL_AUTH_BINARIES = (
    ("usr/sbin/unix_chkpwd", "pam_unix.so hardcoded path, password auth WILL FAIL without it"),
    ("usr/bin/passwd", "password changes impossible"),
    ("usr/sbin/chpasswd", "batch password setting broken"),
    ("usr/bin/sudo", "privilege escalation unavailable"),
    ("usr/bin/su", "user switching unavailable"),
    ("usr/sbin/login", "console login broken"),
    ("usr/sbin/agetty", "getty service broken"),
)

CRITICAL_PAM_MODULES = (
    ("pam_unix.so", "core Unix password authentication, login WILL FAIL"),
    ("pam_permit.so", "required for PAM stack ordering"),
    ("pam_deny.so", "required for secure fallback"),
    ("pam_systemd.so", "session registration with logind"),
    ("pam_env.so", "environment setup for sessions"),
    ("pam_limits.so", "resource limits enforcement"),
)

CRITICAL_PAM_CONFIGS = (
    ("etc/pam.d/system-auth", "main auth stack, ALL authentication uses this"),
    ("etc/pam.d/password-auth", "password-based auth (SSH, etc)"),
    ("etc/pam.d/login", "console login"),
    ("etc/pam.d/sshd", "SSH login"),
    ("etc/pam.d/sudo", "sudo privilege escalation"),
    ("etc/pam.d/su", "su command"),
    ("etc/pam.d/passwd", "password change"),
    ("etc/pam.d/other", "fallback, should deny all"),
)

CRITICAL_SECURITY_FILES = (
    ("etc/security/limits.conf", "resource limits (ulimit)"),
    ("etc/security/faillock.conf", "account lockout after failed attempts"),
    ("etc/security/pam_env.conf", "PAM environment variables"),
    ("etc/security/access.conf", "access control rules"),
    ("etc/security/pwquality.conf", "password quality requirements"),
)

CRITICAL_ETC_FILES = (
    ("etc/passwd", "user database"),
    ("etc/shadow", "password hashes"),
    ("etc/group", "group database"),
    ("etc/gshadow", "group password hashes"),
    ("etc/login.defs", "password aging, UID ranges, encryption"),
    ("etc/sudoers", "sudo configuration"),
    ("etc/sudo.conf", "sudo runtime config"),
    ("etc/shells", "valid login shells"),
    ("etc/nsswitch.conf", "passwd/group resolution"),
)

# Hardening: reported, never fatal
RECOMMENDED_SECURITY_FILES = (
    ("etc/securetty", "restrict root login to secure terminals"),
    ("etc/security/namespace.conf", "per-user /tmp isolation"),
    ("etc/security/time.conf", "time-based access control"),
    ("etc/security/group.conf", "group-based access control"),
)

RECOMMENDED_PAM_MODULES = (
    ("pam_faillock.so", "account lockout after failed login attempts"),
    ("pam_pwquality.so", "password strength enforcement"),
    ("pam_wheel.so", "restrict su to wheel group"),
    ("pam_securetty.so", "restrict root to secure terminals"),
    ("pam_nologin.so", "honor /etc/nologin"),
    ("pam_loginuid.so", "audit login UID tracking"),
    ("pam_namespace.so", "polyinstantiated directories"),
)


def _unique(requirements: Iterable[Requirement]) -> Tuple[Requirement, ...]:
    """Drop requirements whose key was already listed; first one wins"""
    seen = set()
    result: List[Requirement] = []
    for req in requirements:
        if req.key not in seen:
            seen.add(req.key)
            result.append(req)
    return tuple(result)


def _build() -> Tuple[Requirement, ...]:
    critical = Criticality.CRITICAL
    optional = Criticality.OPTIONAL
    reqs: List[Requirement] = []

    # Binaries
    reqs += [executable(path, reason=f"CRITICAL: {why}") for path, why in CRITICAL_AUTH_BINARIES]
    reqs += [executable(f"usr/bin/{name}", reason="authentication binary missing")
             for name in AUTH_BIN]
    reqs += [executable(f"usr/sbin/{name}", reason="authentication sbin missing")
             for name in AUTH_SBIN]
    reqs += [executable(f"usr/sbin/{name}", reason="shadow-utils binary missing")
             for name in SHADOW_SBIN]

    # PAM modules
    reqs += [exists(f"{PAM_MODULE_DIR}/{module}", CheckCategory.LIBRARY, critical,
                    f"CRITICAL: {why}")
             for module, why in CRITICAL_PAM_MODULES]
    reqs += [exists(f"{PAM_MODULE_DIR}/{module}", CheckCategory.LIBRARY, critical,
                    "PAM module missing")
             for module in PAM_MODULES]

    # PAM stacks and security policy
    reqs += [exists(path, CheckCategory.ETC_FILE, critical, f"CRITICAL: {why}")
             for path, why in CRITICAL_PAM_CONFIGS]
    reqs += [exists(path, CheckCategory.ETC_FILE, critical, "PAM config missing")
             for path in PAM_CONFIGS]
    reqs += [exists(path, CheckCategory.ETC_FILE, critical, f"security policy missing: {why}")
             for path, why in CRITICAL_SECURITY_FILES]
    reqs += [exists(path, CheckCategory.ETC_FILE, critical, "security file missing")
             for path in SECURITY_FILES]
    reqs += [exists(path, CheckCategory.ETC_FILE, critical, f"CRITICAL: {why}")
             for path, why in CRITICAL_ETC_FILES]

    reqs += [exists(f"usr/libexec/sudo/{lib}", CheckCategory.LIBRARY, critical,
                    "sudo may malfunction")
             for lib in SUDO_LIBS]

    reqs += [exists(path, CheckCategory.ETC_FILE, optional, f"hardening: {why}")
             for path, why in RECOMMENDED_SECURITY_FILES]
    reqs += [exists(f"{PAM_MODULE_DIR}/{module}", CheckCategory.LIBRARY, optional,
                    f"hardening: {why}")
             for module, why in RECOMMENDED_PAM_MODULES]

    # password-auth is either a copy of system-auth or a symlink to it
    reqs.append(regular("etc/pam.d/password-auth", criticality=optional,
                        reason="should be a copy of or a symlink to system-auth"))
    reqs.append(symlink_to("usr/sbin/init", INIT_TARGETS, reason="system won't boot"))

    # Session management
    reqs.append(executable("usr/lib/systemd/systemd-logind",
                           reason="CRITICAL: no seat/session tracking"))
    reqs.append(exists("usr/lib/systemd/system/systemd-logind.service", CheckCategory.UNIT,
                       reason="systemd-logind service missing"))

    return _unique(reqs)


REQUIREMENTS = _build()
