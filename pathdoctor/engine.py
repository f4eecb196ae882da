"""
Diagnostics engine.

Runs the checks in a fixed order and freezes the result into a
DiagnosticReport. The order of the checks is also the order of findings in
the report and of the remediation suggestions:

    resolution -> existence -> ownership -> permissions -> parent
    directory -> link health -> script

The principal and the search path are captured once at the top of
diagnose() and handed down; no helper looks at the live environment.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import replace

from pathdoctor import pathmodel
from pathdoctor.config import DoctorConfig
from pathdoctor.exceptions import UsageError
from pathdoctor.filesystem import HostFilesystem
from pathdoctor.links import LinkResolver
from pathdoctor.models import (
    ACCESS_BITS,
    AccessCapabilities,
    AccessClass,
    AccessRequest,
    DiagnosticReport,
    FileKind,
    FileState,
    Finding,
    LinkChain,
    LinkStatus,
    Principal,
    ReportBuilder,
    SearchPath,
    Severity,
    TargetHint,
)
from pathdoctor.permissions import PermissionInspector, applicable_class, default_policy
from pathdoctor.platform import security_modules
from pathdoctor.principal import capture_principal
from pathdoctor.remediation import RemediationPlanner
from pathdoctor.script import ScriptInspector

logger = logging.getLogger(__name__)


def default_access(hint: TargetHint, kind: FileKind) -> frozenset[str]:
    """What a caller most likely wants when they did not say."""
    if hint is TargetHint.COMMAND:
        return frozenset({"execute"})
    if kind is FileKind.DIRECTORY:
        return frozenset({"read", "execute"})
    return frozenset({"read"})


def parse_access(spec: str) -> frozenset[str]:
    """
    Parse "r", "rx", "read,execute" style access specs.

    Raises:
        UsageError: On unknown letters or words
    """
    letters = {"r": "read", "w": "write", "x": "execute"}
    spec = spec.strip().lower()
    if not spec:
        raise UsageError("Access spec must not be empty")
    if "," in spec or spec in ACCESS_BITS:
        words = [w.strip() for w in spec.split(",") if w.strip()]
        unknown = [w for w in words if w not in ACCESS_BITS]
        if unknown:
            raise UsageError(f"Unknown access: {', '.join(unknown)}")
        return frozenset(words)
    unknown = [c for c in spec if c not in letters]
    if unknown:
        raise UsageError(f"Unknown access letters: {''.join(unknown)}")
    return frozenset(letters[c] for c in spec)


def looks_like_command(target: str, filesystem) -> bool:
    """A bare name with no separator that is not a path in the cwd."""
    return os.sep not in target and not filesystem.is_link(target) and not filesystem.exists(target)


class _Stop(Exception):
    """Raised internally when a structural finding ends the run."""


class DiagnosticsEngine:
    """
    Composes PathModel, PermissionInspector, LinkResolver and the script
    checks into one report per target.

    Every collaborator can be injected; by default the engine looks at the
    real host.
    """

    def __init__(
        self,
        config: DoctorConfig | None = None,
        filesystem=None,
        principal_provider: Callable[[], Principal] | None = None,
        environ: Mapping[str, str] | None = None,
        inspector: PermissionInspector | None = None,
    ):
        self.config = config or DoctorConfig()
        self.filesystem = filesystem or HostFilesystem()
        self.principal_provider = principal_provider or capture_principal
        self.environ = os.environ if environ is None else environ
        self.inspector = inspector or PermissionInspector(
            default_policy(self.config.platform, self.config.root_bypass)
        )
        self.links = LinkResolver(self.filesystem, self.config.max_link_depth)
        self.scripts = ScriptInspector(self.filesystem, self.inspector)

    def diagnose(self, request: AccessRequest) -> DiagnosticReport:
        """
        Diagnose one target.

        Raises:
            UsageError: If the target string is empty. Any other problem
                becomes a finding; the engine always returns a report.
        """
        target = request.target
        if not target or not target.strip():
            raise UsageError("Target must be a non-empty path or command name")

        # Snapshot once; every check below uses these values.
        principal = self.principal_provider()
        search_path = pathmodel.parse(
            self.environ.get("PATH", ""), self.config.path_separator, self.filesystem
        )

        hint = request.hint
        if hint is TargetHint.AUTO:
            hint = (
                TargetHint.COMMAND
                if looks_like_command(target, self.filesystem)
                else TargetHint.PATH
            )

        builder = ReportBuilder(target, hint, principal)
        builder.platform = self.config.platform.value
        builder.security_modules = security_modules(self.config.platform)
        logger.debug("Diagnosing %s as %s for %s", target, hint.value, principal.username)

        try:
            path = target
            if hint is TargetHint.COMMAND:
                path = self._resolve_command(builder, target, search_path)
            builder.resolved_path = path
            self._run_checks(builder, request, hint, path, principal)
        except _Stop:
            logger.debug("Structural finding ended the run: %s", builder.findings[-1].code)

        planner = RemediationPlanner(principal, search_path)
        for suggestion in planner.plan(builder.findings):
            builder.suggest(suggestion)
        return builder.build()

    # -- steps --------------------------------------------------------------

    def _resolve_command(
        self, builder: ReportBuilder, command: str, search_path: SearchPath
    ) -> str:
        matches = pathmodel.find_all(search_path, command, self.filesystem)
        if not matches:
            builder.add(
                Finding.make(
                    Severity.ERROR,
                    "COMMAND_NOT_FOUND",
                    f"'{command}' was not found in any of the {len(search_path)} PATH entries",
                    subject=command,
                )
            )
            raise _Stop()

        builder.extend(pathmodel.hygiene_findings(search_path))

        first = matches[0]
        shadowed = list(dict.fromkeys(m.path for m in matches[1:] if m.path != first.path))
        if shadowed:
            others = ", ".join(shadowed)
            builder.add(
                Finding.make(
                    Severity.INFO,
                    "COMMAND_SHADOWED",
                    f"{first.path} shadows {len(shadowed)} other '{command}': {others}",
                    subject=first.path,
                    shadowed=others,
                )
            )
        return first.path

    def _run_checks(
        self,
        builder: ReportBuilder,
        request: AccessRequest,
        hint: TargetHint,
        path: str,
        principal: Principal,
    ) -> None:
        state = self._check_existence(builder, path, principal)

        chain = None
        target_state = state
        if state.kind is FileKind.SYMLINK:
            chain = self._check_cycle(builder, path)
            builder.link_chain = chain
            if chain.status is not LinkStatus.BROKEN:
                target_state = self._stat_target(builder, path)
                if target_state.is_missing:
                    chain = replace(chain, status=LinkStatus.BROKEN)
                    builder.link_chain = chain

        # A dangling link has nothing behind it to check permissions on.
        broken = chain is not None and chain.status is LinkStatus.BROKEN
        access = request.access or default_access(hint, target_state.kind)
        can_execute = False
        if not broken:
            self._check_ownership(builder, target_state, principal)
            caps = self._check_permissions(builder, target_state, principal, access)
            can_execute = caps.can_execute

        if self.config.check_parent:
            self._check_parent(builder, path, principal)

        self._check_link_health(builder, path, chain)

        if (
            self.config.check_shebang
            and not broken
            and target_state.kind is FileKind.FILE
            and ("execute" in access or can_execute)
        ):
            builder.extend(self.scripts.inspect(path, principal))

    def _check_existence(self, builder: ReportBuilder, path: str, principal: Principal) -> FileState:
        try:
            state = self.filesystem.state(path)
        except OSError as e:
            builder.add(
                Finding.make(
                    Severity.ERROR,
                    "UNKNOWN_STATE",
                    f"Cannot read metadata for {path}: {e.strerror or e}",
                    subject=path,
                    errno=e.errno,
                )
            )
            # Usually a closed directory above the target; say which one.
            if self.config.check_parent:
                self._check_parent(builder, path, principal)
            raise _Stop() from e

        builder.file_state = state
        if state.is_missing:
            builder.add(
                Finding.make(
                    Severity.ERROR,
                    "TARGET_MISSING",
                    f"{path} does not exist",
                    subject=path,
                )
            )
            raise _Stop()
        return state

    def _check_cycle(self, builder: ReportBuilder, path: str) -> LinkChain:
        chain = self.links.resolve(path)
        if chain.status is LinkStatus.CYCLE:
            builder.add(
                Finding.make(
                    Severity.ERROR,
                    "LINK_CYCLE",
                    f"Symlink chain from {path} loops or exceeds {self.links.max_depth} hops",
                    subject=path,
                    hops=len(chain.hops),
                )
            )
            raise _Stop()
        return chain

    def _stat_target(self, builder: ReportBuilder, path: str) -> FileState:
        try:
            return self.filesystem.target_state(path)
        except OSError as e:
            builder.add(
                Finding.make(
                    Severity.ERROR,
                    "UNKNOWN_STATE",
                    f"Cannot read metadata for the target of {path}: {e.strerror or e}",
                    subject=path,
                    errno=e.errno,
                )
            )
            raise _Stop() from e

    def _check_ownership(self, builder: ReportBuilder, state: FileState, principal: Principal) -> None:
        access_class = applicable_class(state, principal)
        if access_class is AccessClass.OWNER:
            return
        membership = (
            f"you are a member of group '{state.group}'"
            if access_class is AccessClass.GROUP
            else f"you ({principal.username}) are not in group '{state.group}'"
        )
        builder.add(
            Finding.make(
                Severity.INFO,
                "NOT_OWNER",
                f"Owned by {state.owner}:{state.group}; {membership}",
                subject=state.path,
                owner=state.owner,
                group=state.group,
                access_class=access_class.value,
            )
        )

    def _check_permissions(
        self,
        builder: ReportBuilder,
        state: FileState,
        principal: Principal,
        access: frozenset[str],
    ) -> AccessCapabilities:
        caps = self.inspector.inspect(state, principal)
        if caps.via is AccessClass.NOT_APPLICABLE:
            return caps
        group_grants = dict(zip(ACCESS_BITS, state.triple(AccessClass.GROUP)))

        for bit in ACCESS_BITS:
            if caps.allows(bit):
                continue
            requested = bit in access
            who = caps.via.value
            builder.add(
                Finding.make(
                    Severity.ERROR if requested else Severity.WARNING,
                    f"{who.upper()}_NO_{bit.upper()}",
                    f"{_describe_class(caps.via, principal)} has no {bit} permission "
                    f"on {state.path} ({state.mode_string}, {state.owner}:{state.group})",
                    subject=state.path,
                    bit=bit,
                    access_class=who,
                    owner=state.owner,
                    group=state.group,
                    mode=state.octal,
                    requested=requested,
                    group_grants=group_grants[bit],
                )
            )
        return caps

    def _check_parent(self, builder: ReportBuilder, path: str, principal: Principal) -> None:
        parent = os.path.dirname(os.path.abspath(path))
        try:
            parent_state = self.filesystem.target_state(parent)
        except OSError as e:
            blocker = self._blocking_ancestor(parent, principal)
            if blocker is None:
                builder.add(
                    Finding.make(
                        Severity.WARNING,
                        "UNKNOWN_STATE",
                        f"Cannot read metadata for parent directory {parent}: {e.strerror or e}",
                        subject=parent,
                        errno=e.errno,
                    )
                )
                return
            parent, parent_state = blocker
        else:
            if parent_state.is_missing:
                return
            if self.inspector.can_traverse(parent_state, principal):
                return

        access_class = applicable_class(parent_state, principal)
        builder.add(
            Finding.make(
                Severity.ERROR,
                "PARENT_NOT_TRAVERSABLE",
                f"Parent directory {parent} ({parent_state.mode_string}, "
                f"{parent_state.owner}:{parent_state.group}) has no search (x) permission "
                f"for {principal.username}",
                subject=path,
                parent=parent,
                access_class=access_class.value,
                owner=parent_state.owner,
                group=parent_state.group,
            )
        )

    def _blocking_ancestor(
        self, directory: str, principal: Principal
    ) -> tuple[str, FileState] | None:
        """First directory from / down to directory that principal cannot search."""
        ancestors = [directory]
        while True:
            up = os.path.dirname(ancestors[-1])
            if up == ancestors[-1]:
                break
            ancestors.append(up)

        for candidate in reversed(ancestors):
            try:
                state = self.filesystem.target_state(candidate)
            except OSError:
                return None
            if state.is_missing:
                return None
            if not self.inspector.can_traverse(state, principal):
                return candidate, state
        return None

    def _check_link_health(self, builder: ReportBuilder, path: str, chain: LinkChain | None) -> None:
        if chain is not None:
            if chain.status is LinkStatus.BROKEN:
                builder.add(
                    Finding.make(
                        Severity.ERROR,
                        "BROKEN_SYMLINK",
                        f"Symlink {path} points to {chain.final_path}, which does not exist",
                        subject=path,
                        final_path=chain.final_path,
                        hops=len(chain.hops),
                    )
                )
            else:
                builder.add(
                    Finding.make(
                        Severity.INFO,
                        "SYMLINK_RESOLVED",
                        f"Symlink {path} resolves to {chain.final_path} in {len(chain.hops)} hop(s)",
                        subject=path,
                        final_path=chain.final_path,
                        hops=len(chain.hops),
                    )
                )

        if self.config.check_hard_links and self.links.distinguish_hard_link(path):
            builder.add(
                Finding.make(
                    Severity.INFO,
                    "HARD_LINK_PRESENT",
                    f"{path} has other names (hard links); changing its mode changes them all",
                    subject=path,
                )
            )


def _describe_class(access_class: AccessClass, principal: Principal) -> str:
    if access_class is AccessClass.OWNER:
        return f"Owner ({principal.username})"
    if access_class is AccessClass.GROUP:
        return "Your group"
    if access_class is AccessClass.SUPERUSER:
        return "Superuser"
    return f"Others (including {principal.username})"


def diagnose(target: str, hint: TargetHint = TargetHint.AUTO, **engine_kwargs) -> DiagnosticReport:
    """Convenience wrapper: diagnose target with a default engine."""
    return DiagnosticsEngine(**engine_kwargs).diagnose(AccessRequest(target, hint))
