"""
fsdbg - Checklist Engine

Evaluates a fixed set of Requirements against an EntryIndex and collects a
VerificationReport. Evaluation never raises for an unmet requirement; every
failure is recorded with the reason the requirement exists.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .entry import EntryKind, normalize_path
from .entry_index import EntryIndex
from .symlink_resolver import MAX_HOPS, Cycle, Dangling, Resolved, SymlinkResolver

GLOB_CHARS = set('*?[')


class Predicate(Enum):
    """What a requirement asserts about its path"""
    EXISTS = "exists"
    EXECUTABLE = "exists-and-executable"
    REGULAR = "exists-and-regular"
    GLOB_COUNT_AT_LEAST = "glob-count-at-least"
    SYMLINK_RESOLVES = "symlink-resolves"
    DIRECTORY = "directory"
    SYMLINK_TARGET = "symlink-target"
    ABSENT = "absent"
    SYMLINKS_RESOLVE_UNDER = "symlinks-resolve-under"


class Criticality(Enum):
    CRITICAL = "critical"
    OPTIONAL = "optional"


class CheckCategory(Enum):
    """Report grouping; definition order is display order"""
    BINARY = "Binaries"
    UNIT = "Systemd Units"
    SYMLINK = "Symlinks"
    ETC_FILE = "/etc Files"
    UDEV_RULE = "Udev Rules"
    DIRECTORY = "Directories"
    LIBRARY = "Libraries"
    KERNEL_MODULE = "Kernel Modules"
    LICENSE = "Licenses"
    FORBIDDEN = "FORBIDDEN (must NOT exist)"
    OTHER = "Other"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass(frozen=True)
class Requirement:
    """A single expectation about archive content"""
    id: str
    path: str
    predicate: Predicate
    criticality: Criticality = Criticality.CRITICAL
    category: CheckCategory = CheckCategory.OTHER
    argument: Any = None
    reason: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'path', normalize_path(self.path))

    @property
    def key(self) -> Tuple[Predicate, str, Any]:
        """Identity used to compare requirements across checklists"""
        return (self.predicate, self.path, self.argument)

    @property
    def is_critical(self) -> bool:
        return self.criticality == Criticality.CRITICAL


@dataclass(frozen=True)
class CheckResult:
    requirement: Requirement
    passed: bool
    message: Optional[str] = None

    @property
    def category(self) -> CheckCategory:
        return self.requirement.category


@dataclass
class VerificationReport:
    """Outcome of one checklist run"""
    name: str
    results: List[CheckResult] = field(default_factory=list)

    def add(self, result: CheckResult):
        self.results.append(result)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def total(self) -> int:
        return len(self.results)

    def critical_failures(self) -> List[CheckResult]:
        return [r for r in self.results if not r.passed and r.requirement.is_critical]

    def optional_failures(self) -> List[CheckResult]:
        return [r for r in self.results if not r.passed and not r.requirement.is_critical]

    def has_critical_failures(self) -> bool:
        return any(not r.passed and r.requirement.is_critical for r in self.results)

    def is_success(self) -> bool:
        return not self.has_critical_failures()

    def by_category(self) -> List[Tuple[CheckCategory, List[CheckResult]]]:
        """
        Group results by category.

        Returns:
            (category, results) pairs in CheckCategory order, empty groups omitted
        """
        groups: Dict[CheckCategory, List[CheckResult]] = {}
        for result in self.results:
            groups.setdefault(result.category, []).append(result)
        return [(category, groups[category]) for category in CheckCategory if category in groups]


# Requirement constructors used by the named checklists

def exists(path: str, category: CheckCategory = CheckCategory.OTHER,
           criticality: Criticality = Criticality.CRITICAL, reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(path)}", path, Predicate.EXISTS,
                       criticality, category, None, reason)


def executable(path: str, category: CheckCategory = CheckCategory.BINARY,
               criticality: Criticality = Criticality.CRITICAL, reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(path)}", path, Predicate.EXECUTABLE,
                       criticality, category, None, reason)


def regular(path: str, category: CheckCategory = CheckCategory.ETC_FILE,
            criticality: Criticality = Criticality.CRITICAL, reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(path)}", path, Predicate.REGULAR,
                       criticality, category, None, reason)


def directory(path: str, category: CheckCategory = CheckCategory.DIRECTORY,
              criticality: Criticality = Criticality.CRITICAL, reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(path)}", path, Predicate.DIRECTORY,
                       criticality, category, None, reason)


def glob_at_least(pattern: str, count: int, category: CheckCategory = CheckCategory.OTHER,
                  criticality: Criticality = Criticality.CRITICAL,
                  reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(pattern)} (>= {count})", pattern,
                       Predicate.GLOB_COUNT_AT_LEAST, criticality, category, count, reason)


def symlink_resolves(path: str, category: CheckCategory = CheckCategory.SYMLINK,
                     criticality: Criticality = Criticality.CRITICAL,
                     reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(path)}", path, Predicate.SYMLINK_RESOLVES,
                       criticality, category, None, reason)


def symlink_to(path: str, targets: Iterable[str], category: CheckCategory = CheckCategory.SYMLINK,
               criticality: Criticality = Criticality.CRITICAL,
               reason: str = "") -> Requirement:
    accepted = tuple(targets)
    return Requirement(f"/{normalize_path(path)} -> {accepted[0]}", path,
                       Predicate.SYMLINK_TARGET, criticality, category, accepted, reason)


def absent(path: str, category: CheckCategory = CheckCategory.FORBIDDEN,
           criticality: Criticality = Criticality.CRITICAL, reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(path)}", path, Predicate.ABSENT,
                       criticality, category, None, reason)


def symlinks_resolve_under(prefix: str, category: CheckCategory = CheckCategory.SYMLINK,
                           criticality: Criticality = Criticality.CRITICAL,
                           reason: str = "") -> Requirement:
    return Requirement(f"/{normalize_path(prefix)}/* symlinks", prefix,
                       Predicate.SYMLINKS_RESOLVE_UNDER, criticality, category, None, reason)


class ChecklistEngine:
    """
    Evaluates requirements against an index.

    Holds no state between runs; the resolver is rebuilt per index.
    """

    def __init__(self, max_hops: int = MAX_HOPS):
        self.max_hops = max_hops
        self.logger = logging.getLogger(__name__)

    def verify(self, index: EntryIndex, requirements: Iterable[Requirement],
               name: str = "") -> VerificationReport:
        """
        Evaluate every requirement.

        Args:
            index: Archive to check
            requirements: Requirements in display order
            name: Checklist name for the report

        Returns:
            Report with one CheckResult per requirement
        """
        resolver = SymlinkResolver(index, self.max_hops)
        report = VerificationReport(name)
        for requirement in requirements:
            report.add(self._evaluate(index, resolver, requirement))

        self.logger.info(f"{name or 'checklist'}: {report.passed}/{report.total} passed, "
                         f"{len(report.critical_failures())} critical failures")
        return report

    def _evaluate(self, index: EntryIndex, resolver: SymlinkResolver,
                  req: Requirement) -> CheckResult:
        passed, message = self._check(index, resolver, req)
        if not passed and req.reason:
            message = f"{message} ({req.reason})"
        return CheckResult(req, passed, None if passed else message)

    def _check(self, index: EntryIndex, resolver: SymlinkResolver,
               req: Requirement) -> Tuple[bool, str]:
        path = req.path
        predicate = req.predicate

        if predicate == Predicate.EXISTS:
            return index.exists(path), "missing"

        if predicate in (Predicate.EXECUTABLE, Predicate.REGULAR):
            outcome = resolver.resolve(path)
            if isinstance(outcome, Dangling) and outcome.path == path:
                return False, "missing"
            if not isinstance(outcome, Resolved):
                return False, f"symlink {outcome.describe()}"
            entry = outcome.entry
            if entry is None or entry.kind != EntryKind.REGULAR:
                kind = 'directory' if entry is None else entry.kind.value
                return False, f"not a regular file ({kind})"
            if predicate == Predicate.EXECUTABLE and not entry.is_executable:
                return False, f"not executable ({entry.mode_string()})"
            return True, ""

        if predicate == Predicate.DIRECTORY:
            outcome = resolver.resolve(path)
            if isinstance(outcome, Resolved) and (outcome.entry is None or outcome.entry.is_dir):
                return True, ""
            if isinstance(outcome, Resolved):
                return False, f"not a directory ({outcome.entry.kind.value})"
            return False, "missing"

        if predicate == Predicate.GLOB_COUNT_AT_LEAST:
            count = len(index.glob(path))
            return count >= req.argument, f"found {count}, expected at least {req.argument}"

        if predicate == Predicate.SYMLINK_RESOLVES:
            outcome = resolver.resolve(path)
            if isinstance(outcome, Resolved):
                return True, ""
            if isinstance(outcome, Cycle):
                return False, f"symlink cycle at /{outcome.path}"
            if outcome.path == path:
                return False, "missing"
            return False, f"dangling symlink: /{outcome.path} does not exist"

        if predicate == Predicate.SYMLINK_TARGET:
            entry = index.get(path)
            if entry is None:
                return False, "missing"
            if not entry.is_symlink:
                return False, f"not a symlink ({entry.kind.value})"
            if entry.link_target not in req.argument:
                return False, f"points to {entry.link_target}, expected {req.argument[0]}"
            return True, ""

        if predicate == Predicate.ABSENT:
            if GLOB_CHARS.intersection(path):
                found = index.glob(path)
                return not found, f"present: /{found[0]}" if found else ""
            return not index.exists(path), "present but must not be"

        if predicate == Predicate.SYMLINKS_RESOLVE_UNDER:
            prefix = f"{path}/" if path else ""
            broken = [link.path for link in index.symlinks()
                      if link.path.startswith(prefix)
                      and not resolver.resolve(link.path).ok]
            if broken:
                shown = ', '.join(f"/{p}" for p in broken[:5])
                more = f" and {len(broken) - 5} more" if len(broken) > 5 else ""
                return False, f"{len(broken)} broken symlinks: {shown}{more}"
            return True, ""

        raise ValueError(f"Unknown predicate: {predicate}")


def verify(index: EntryIndex, requirements: Iterable[Requirement], name: str = "",
           max_hops: int = MAX_HOPS) -> VerificationReport:
    """Evaluate requirements against index; see ChecklistEngine.verify"""
    return ChecklistEngine(max_hops).verify(index, requirements, name)
