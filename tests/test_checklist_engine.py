import pytest

from fsdbg.core.checklist_engine import (
    CheckCategory,
    CheckResult,
    Criticality,
    Predicate,
    VerificationReport,
    absent,
    directory,
    executable,
    exists,
    glob_at_least,
    regular,
    symlink_resolves,
    symlink_to,
    symlinks_resolve_under,
    verify,
)


def check(index, requirement):
    report = verify(index, [requirement])
    assert report.total == 1
    return report.results[0]


@pytest.fixture
def index(fs):
    return fs.index(
        fs.dir("usr/bin"),
        fs.exe("usr/bin/sh"),
        fs.file("usr/bin/notes.txt"),
        fs.link("bin", "usr/bin"),
        fs.file("etc/passwd"),
        fs.link("etc/pam.d/password-auth", "system-auth"),
        fs.file("etc/pam.d/system-auth"),
        fs.link("usr/sbin/init", "../lib/systemd/systemd"),
        fs.link("a", "b"),
        fs.link("b", "a"),
        fs.link("c", "d"),
        fs.file("usr/lib/modules/6.1.0/kernel/ext4.ko"),
    )


def test_requirement_normalizes_path():
    req = exists("/etc//passwd")
    assert req.path == "etc/passwd"
    assert req.id == "/etc/passwd"
    assert req.key == (Predicate.EXISTS, "etc/passwd", None)
    assert req.is_critical


def test_exists(index):
    assert check(index, exists("etc/passwd")).passed
    assert check(index, exists("/bin")).passed
    result = check(index, exists("etc/shadow"))
    assert not result.passed
    assert result.message == "missing"


def test_reason_is_appended(index):
    result = check(index, exists("etc/shadow", reason="password hashes"))
    assert result.message == "missing (password hashes)"


def test_exists_does_not_accept_implicit_directory(index):
    assert not check(index, exists("usr/lib/modules")).passed


def test_executable(index):
    assert check(index, executable("usr/bin/sh")).passed
    assert check(index, executable("bin/sh")).passed

    result = check(index, executable("usr/bin/notes.txt"))
    assert not result.passed
    assert result.message == "not executable (-rw-r--r--)"

    assert check(index, executable("usr/bin/bash")).message == "missing"
    assert check(index, executable("usr/bin")).message == "not a regular file (directory)"
    assert check(index, executable("usr/sbin/init")).message.startswith("symlink dangling")


def test_regular(index):
    assert check(index, regular("etc/passwd")).passed
    assert check(index, regular("etc/pam.d/password-auth")).passed
    assert not check(index, regular("usr/bin")).passed
    assert not check(index, regular("etc/shadow")).passed


def test_directory(index):
    assert check(index, directory("usr/bin")).passed
    assert check(index, directory("bin")).passed
    assert check(index, directory("usr/lib/modules")).passed
    assert check(index, directory("etc/passwd")).message == "not a directory (regular)"
    assert check(index, directory("opt")).message == "missing"


def test_glob_count(index):
    assert check(index, glob_at_least("usr/lib/modules/*/kernel/*", 1)).passed
    result = check(index, glob_at_least("usr/lib/modules/*/kernel/*", 3))
    assert result.message == "found 1, expected at least 3"
    assert result.requirement.id == "/usr/lib/modules/*/kernel/* (>= 3)"


def test_symlink_resolves(index):
    assert check(index, symlink_resolves("bin")).passed
    assert check(index, symlink_resolves("etc/pam.d/password-auth")).passed
    assert check(index, symlink_resolves("a")).message == "symlink cycle at /a"
    assert check(index, symlink_resolves("c")).message == "dangling symlink: /d does not exist"
    assert check(index, symlink_resolves("lib")).message == "missing"


def test_symlink_target(index):
    accepted = ("system-auth", "/etc/pam.d/system-auth")
    assert check(index, symlink_to("etc/pam.d/password-auth", accepted)).passed
    assert check(index, symlink_to("usr/sbin/init", ("/usr/lib/systemd/systemd",
                                                     "../lib/systemd/systemd"))).passed

    result = check(index, symlink_to("bin", ("/usr/sbin",)))
    assert result.message == "points to usr/bin, expected /usr/sbin"
    assert check(index, symlink_to("etc/passwd", ("x",))).message == "not a symlink (regular)"
    assert check(index, symlink_to("sbin", ("usr/sbin",))).message == "missing"
    assert symlink_to("bin", ("usr/bin", "/usr/bin")).id == "/bin -> usr/bin"


def test_absent(index):
    assert check(index, absent("usr/bin/busybox")).passed
    assert check(index, absent("usr/bin/sh")).message == "present but must not be"
    assert check(index, absent("usr/bin/busy*")).passed
    assert check(index, absent("usr/bin/*.txt")).message == "present: /usr/bin/notes.txt"


def test_symlinks_resolve_under(index):
    assert check(index, symlinks_resolve_under("etc")).passed
    assert check(index, symlinks_resolve_under("usr/sbin")).message == \
        "1 broken symlinks: /usr/sbin/init"

    result = check(index, symlinks_resolve_under(""))
    assert not result.passed
    assert result.message.startswith("4 broken symlinks")


def test_optional_failure_is_not_fatal(index):
    report = verify(index, [
        exists("etc/passwd"),
        exists("etc/securetty", criticality=Criticality.OPTIONAL),
    ])
    assert report.passed == 1
    assert report.failed == 1
    assert not report.has_critical_failures()
    assert report.is_success()
    assert [r.requirement.path for r in report.optional_failures()] == ["etc/securetty"]


def test_critical_failure_fails_report(index):
    report = verify(index, [exists("etc/shadow"), exists("etc/passwd")])
    assert report.has_critical_failures()
    assert not report.is_success()
    assert [r.requirement.path for r in report.critical_failures()] == ["etc/shadow"]


def test_empty_report_succeeds():
    assert VerificationReport("empty").is_success()


def test_by_category_follows_display_order(index):
    report = verify(index, [
        absent("usr/bin/busybox"),
        exists("etc/passwd", CheckCategory.ETC_FILE),
        executable("usr/bin/sh"),
        exists("etc/group", CheckCategory.ETC_FILE),
    ], name="demo")

    groups = report.by_category()
    assert [category for category, _ in groups] == [
        CheckCategory.BINARY, CheckCategory.ETC_FILE, CheckCategory.FORBIDDEN]
    assert [r.requirement.path for r in groups[1][1]] == ["etc/passwd", "etc/group"]
    assert report.name == "demo"


def test_check_result_category():
    result = CheckResult(executable("usr/bin/sh"), True)
    assert result.category == CheckCategory.BINARY
    assert result.message is None
