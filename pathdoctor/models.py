"""
Value objects shared by every pathdoctor component.

Everything a diagnostic run produces is frozen once built. The only mutable
type here is ReportBuilder, which the engine uses while assembling a report.
"""

from __future__ import annotations

import stat
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    """How serious a finding is."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class FileKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"
    MISSING = "missing"


class AccessClass(Enum):
    """Which permission triple decided the principal's access."""

    OWNER = "owner"
    GROUP = "group"
    OTHER = "other"
    SUPERUSER = "superuser"
    NOT_APPLICABLE = "not_applicable"


class TargetHint(Enum):
    AUTO = "auto"
    COMMAND = "command"
    PATH = "path"


class LinkStatus(Enum):
    NOT_A_LINK = "not_a_link"
    RESOLVED_FILE = "resolved_file"
    RESOLVED_DIRECTORY = "resolved_directory"
    RESOLVED_OTHER = "resolved_other"
    BROKEN = "broken"
    CYCLE = "cycle"


ACCESS_BITS = ("read", "write", "execute")

_TRIPLE_MASKS = {
    AccessClass.OWNER: (stat.S_IRUSR, stat.S_IWUSR, stat.S_IXUSR),
    AccessClass.GROUP: (stat.S_IRGRP, stat.S_IWGRP, stat.S_IXGRP),
    AccessClass.OTHER: (stat.S_IROTH, stat.S_IWOTH, stat.S_IXOTH),
}


@dataclass(frozen=True)
class PathEntry:
    """
    One directory string from a search path.

    exists/is_directory are looked up lazily through the probe the entry
    was parsed with, so building a SearchPath never touches the disk.
    """

    raw_value: str
    probe: Callable[[str], tuple[bool, bool]] | None = field(
        default=None, compare=False, repr=False
    )

    @property
    def is_empty(self) -> bool:
        return self.raw_value == ""

    @property
    def directory(self) -> str:
        """Directory this entry refers to; empty means the current directory."""
        return self.raw_value or "."

    @property
    def exists(self) -> bool:
        return self._probe()[0]

    @property
    def is_directory(self) -> bool:
        return self._probe()[1]

    def _probe(self) -> tuple[bool, bool]:
        if self.probe is None:
            return False, False
        return self.probe(self.directory)


@dataclass(frozen=True)
class SearchPath:
    """Ordered search path. Order is significant and duplicates are kept."""

    entries: tuple[PathEntry, ...] = ()
    separator: str = ":"

    @property
    def raw_values(self) -> list[str]:
        return [entry.raw_value for entry in self.entries]

    def render(self) -> str:
        return self.separator.join(self.raw_values)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


@dataclass(frozen=True)
class ResolvedLocation:
    """Where a command name was found on the search path."""

    entry: PathEntry
    index: int
    path: str


@dataclass(frozen=True)
class AccessRequest:
    """
    What the caller wants diagnosed.

    access names the operations the caller intends to perform; a missing
    bit the caller asked for is an error rather than a warning. None means
    "pick a default from the kind of target".
    """

    target: str
    hint: TargetHint = TargetHint.AUTO
    access: frozenset[str] | None = None


@dataclass(frozen=True)
class Principal:
    """Snapshot of the invoking identity."""

    username: str
    uid: int
    primary_group: str
    gid: int
    groups: frozenset[str] = frozenset()

    @property
    def is_superuser(self) -> bool:
        return self.uid == 0

    def in_group(self, group: str | None) -> bool:
        if group is None:
            return False
        return group == self.primary_group or group in self.groups


@dataclass(frozen=True)
class FileState:
    """
    Metadata of one filesystem entry, as seen by lstat.

    For kind == MISSING the owner, group and mode fields are None: "not
    applicable" is never encoded as zero.
    """

    path: str
    kind: FileKind
    owner: str | None = None
    group: str | None = None
    uid: int | None = None
    gid: int | None = None
    mode: int | None = None
    nlink: int | None = None
    link_target: str | None = None
    link_resolves: bool | None = None

    @classmethod
    def missing(cls, path: str) -> FileState:
        return cls(path=path, kind=FileKind.MISSING)

    @property
    def is_missing(self) -> bool:
        return self.kind is FileKind.MISSING

    def triple(self, access_class: AccessClass) -> tuple[bool, bool, bool]:
        """Return (read, write, execute) bits for owner, group or other."""
        if self.mode is None or access_class not in _TRIPLE_MASKS:
            return False, False, False
        r, w, x = _TRIPLE_MASKS[access_class]
        return bool(self.mode & r), bool(self.mode & w), bool(self.mode & x)

    @property
    def any_execute(self) -> bool:
        if self.mode is None:
            return False
        return bool(self.mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))

    @property
    def mode_string(self) -> str | None:
        if self.mode is None:
            return None
        chars = []
        for access_class in (AccessClass.OWNER, AccessClass.GROUP, AccessClass.OTHER):
            for flag, letter in zip(self.triple(access_class), "rwx"):
                chars.append(letter if flag else "-")
        return "".join(chars)

    @property
    def octal(self) -> str | None:
        if self.mode is None:
            return None
        return format(self.mode & 0o7777, "03o")


@dataclass(frozen=True)
class AccessCapabilities:
    can_read: bool
    can_write: bool
    can_execute: bool
    via: AccessClass

    @classmethod
    def not_applicable(cls) -> AccessCapabilities:
        return cls(False, False, False, AccessClass.NOT_APPLICABLE)

    def allows(self, bit: str) -> bool:
        return {
            "read": self.can_read,
            "write": self.can_write,
            "execute": self.can_execute,
        }[bit]


@dataclass(frozen=True)
class LinkHop:
    path: str
    target: str
    exists: bool


@dataclass(frozen=True)
class LinkChain:
    origin: str
    status: LinkStatus
    hops: tuple[LinkHop, ...] = ()
    final_path: str | None = None

    @property
    def is_link(self) -> bool:
        return self.status is not LinkStatus.NOT_A_LINK

    @property
    def is_healthy(self) -> bool:
        return self.status not in (LinkStatus.BROKEN, LinkStatus.CYCLE)


@dataclass(frozen=True)
class Finding:
    """One diagnostic observation. Ordered as the checks ran."""

    severity: Severity
    code: str
    message: str
    subject: str = ""
    details: tuple[tuple[str, str], ...] = ()

    @classmethod
    def make(
        cls,
        severity: Severity,
        code: str,
        message: str,
        subject: str = "",
        **details: object,
    ) -> Finding:
        pairs = tuple(sorted((key, str(value)) for key, value in details.items()))
        return cls(severity, code, message, subject, pairs)

    def detail(self, key: str, default: str | None = None) -> str | None:
        return dict(self.details).get(key, default)


@dataclass(frozen=True)
class Suggestion:
    """A remediation step tied to the finding that produced it."""

    finding_code: str
    summary: str
    commands: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiagnosticReport:
    target: str
    hint: TargetHint
    principal: Principal
    resolved_path: str | None = None
    file_state: FileState | None = None
    link_chain: LinkChain | None = None
    findings: tuple[Finding, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()
    platform: str = ""
    security_modules: tuple[tuple[str, str], ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(f.severity is Severity.ERROR for f in self.findings)

    @property
    def exit_status(self) -> int:
        return 1 if self.has_errors else 0

    @property
    def codes(self) -> list[str]:
        return [f.code for f in self.findings]

    def counts(self) -> dict[str, int]:
        totals = {severity.value: 0 for severity in Severity}
        for finding in self.findings:
            totals[finding.severity.value] += 1
        return totals


class ReportBuilder:
    """Collects findings during a run; build() freezes them into a report."""

    def __init__(self, target: str, hint: TargetHint, principal: Principal):
        self.target = target
        self.hint = hint
        self.principal = principal
        self.resolved_path: str | None = None
        self.file_state: FileState | None = None
        self.link_chain: LinkChain | None = None
        self.platform = ""
        self.security_modules: tuple[tuple[str, str], ...] = ()
        self._findings: list[Finding] = []
        self._suggestions: list[Suggestion] = []
        self._built = False

    @property
    def findings(self) -> list[Finding]:
        return list(self._findings)

    def add(self, finding: Finding) -> Finding:
        if self._built:
            raise RuntimeError("report already built")
        self._findings.append(finding)
        return finding

    def extend(self, findings) -> None:
        for finding in findings:
            self.add(finding)

    def suggest(self, suggestion: Suggestion) -> None:
        if self._built:
            raise RuntimeError("report already built")
        self._suggestions.append(suggestion)

    def build(self) -> DiagnosticReport:
        self._built = True
        return DiagnosticReport(
            target=self.target,
            hint=self.hint,
            principal=self.principal,
            resolved_path=self.resolved_path,
            file_state=self.file_state,
            link_chain=self.link_chain,
            findings=tuple(self._findings),
            suggestions=tuple(self._suggestions),
            platform=self.platform,
            security_modules=self.security_modules,
        )
