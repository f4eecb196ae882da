"""
Remediation suggestions.

One suggestion per actionable finding, in finding order, each phrased as the
smallest privilege change that would clear it. Nothing here runs a command.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Callable

from pathdoctor import pathmodel
from pathdoctor.models import Finding, Principal, SearchPath, Suggestion

logger = logging.getLogger(__name__)

BIT_LETTERS = {"read": "r", "write": "w", "execute": "x"}


class RemediationPlanner:
    """Turns findings into suggestions for one principal and search path."""

    def __init__(self, principal: Principal, search_path: SearchPath | None = None):
        self.principal = principal
        self.search_path = search_path
        self._templates: dict[str, Callable[[Finding], Suggestion | None]] = {
            "COMMAND_NOT_FOUND": self._command_not_found,
            "TARGET_MISSING": self._target_missing,
            "UNKNOWN_STATE": self._unknown_state,
            "LINK_CYCLE": self._link_cycle,
            "BROKEN_SYMLINK": self._broken_symlink,
            "PARENT_NOT_TRAVERSABLE": self._parent_not_traversable,
            "EMPTY_PATH_SEGMENT": self._clean_path,
            "DUPLICATE_PATH_ENTRY": self._clean_path,
            "MISSING_PATH_ENTRY": self._drop_path_entry,
            "PATH_ENTRY_NOT_DIRECTORY": self._drop_path_entry,
            "RELATIVE_PATH_ENTRY": self._relative_path_entry,
            "WRITABLE_PATH_ENTRY": self._writable_path_entry,
            "SHEBANG_CRLF": self._shebang_crlf,
            "SHEBANG_INTERPRETER_MISSING": self._interpreter_missing,
            "SHEBANG_INTERPRETER_NOT_EXECUTABLE": self._interpreter_not_executable,
        }

    def plan(self, findings: list[Finding]) -> list[Suggestion]:
        suggestions = []
        for finding in findings:
            suggestion = self.suggest(finding)
            if suggestion is not None:
                suggestions.append(suggestion)
        logger.debug("%d suggestions for %d findings", len(suggestions), len(findings))
        return suggestions

    def suggest(self, finding: Finding) -> Suggestion | None:
        template = self._templates.get(finding.code)
        if template is None and finding.detail("bit") is not None:
            template = self._missing_bit
        if template is None:
            return None
        return template(finding)

    # -- permission bits ----------------------------------------------------

    def _missing_bit(self, finding: Finding) -> Suggestion:
        path = shlex.quote(finding.subject)
        bit = finding.detail("bit", "read")
        letter = BIT_LETTERS[bit]
        via = finding.detail("access_class")
        owner = finding.detail("owner")
        group = finding.detail("group")
        user = self.principal.username

        if via == "owner":
            return Suggestion(
                finding.code,
                f"You own this file; grant yourself {bit} permission",
                (f"chmod u+{letter} {path}",),
            )
        if via == "group":
            return Suggestion(
                finding.code,
                f"You reach this file through group '{group}'; the owner ({owner}) "
                f"can grant the group {bit} permission",
                (f"sudo chmod g+{letter} {path}",),
            )
        if via == "superuser":
            return Suggestion(
                finding.code,
                "No execute bit is set for anyone; even root needs one to run a file",
                (f"sudo chmod u+x {path}",),
            )

        commands = [f"sudo chmod o+{letter} {path}"]
        if finding.detail("group_grants") == "True":
            commands.append(f"sudo usermod -aG {shlex.quote(group or '')} {shlex.quote(user)}")
        commands.append(f"sudo chown {shlex.quote(user)} {path}")
        return Suggestion(
            finding.code,
            f"You are neither the owner ({owner}) nor in group '{group}'; grant {bit} "
            "to others, join the group, or take ownership",
            tuple(commands),
        )

    def _parent_not_traversable(self, finding: Finding) -> Suggestion:
        parent = shlex.quote(finding.detail("parent", finding.subject))
        via = finding.detail("access_class")
        if via == "owner":
            return Suggestion(
                finding.code,
                "You own the parent directory but cannot enter it; restore your search bit",
                (f"chmod u+x {parent}",),
            )
        if via == "group":
            return Suggestion(
                finding.code,
                f"The parent directory is closed to group '{finding.detail('group')}'; "
                "its owner must grant search permission",
                (f"sudo chmod g+x {parent}",),
            )
        return Suggestion(
            finding.code,
            "The parent directory cannot be entered by you; grant search (x) permission "
            "to others or fix its ownership. This blocks access regardless of the "
            "target's own mode",
            (f"sudo chmod o+x {parent}",),
        )

    # -- structural ---------------------------------------------------------

    def _command_not_found(self, finding: Finding) -> Suggestion:
        name = shlex.quote(finding.subject)
        return Suggestion(
            finding.code,
            f"'{finding.subject}' is not on PATH; install it or add its directory to PATH",
            (f"type -a {name}", 'export PATH="/path/to/dir:$PATH"'),
        )

    def _target_missing(self, finding: Finding) -> Suggestion:
        parent = os.path.dirname(finding.subject) or "."
        return Suggestion(
            finding.code,
            "Check the spelling and the directory contents; the target does not exist",
            (f"ls -la {shlex.quote(parent)}",),
        )

    def _unknown_state(self, finding: Finding) -> Suggestion:
        return Suggestion(
            finding.code,
            "Metadata could not be read; re-run with privileges that can stat the path",
            (f"sudo pathdoctor diagnose {shlex.quote(finding.subject)}",),
        )

    def _link_cycle(self, finding: Finding) -> Suggestion:
        path = shlex.quote(finding.subject)
        return Suggestion(
            finding.code,
            "The symlink chain loops; point the link at a real file",
            (f"ls -l {path}", f"ln -sfn /path/to/real/target {path}"),
        )

    def _broken_symlink(self, finding: Finding) -> Suggestion:
        path = shlex.quote(finding.subject)
        target = finding.detail("final_path", "")
        return Suggestion(
            finding.code,
            f"Restore {target} or repoint the link at an existing target",
            (f"ln -sfn /path/to/real/target {path}",),
        )

    # -- search path --------------------------------------------------------

    def _cleaned_path_command(self) -> tuple[str, ...]:
        if self.search_path is None:
            return ()
        cleaned = pathmodel.clean(self.search_path).render()
        return (f"export PATH={shlex.quote(cleaned)}",)

    def _clean_path(self, finding: Finding) -> Suggestion:
        return Suggestion(
            finding.code,
            "Remove empty and repeated PATH entries",
            self._cleaned_path_command(),
        )

    def _drop_path_entry(self, finding: Finding) -> Suggestion:
        return Suggestion(
            finding.code,
            f"Remove '{finding.subject}' from PATH in your shell startup file",
        )

    def _relative_path_entry(self, finding: Finding) -> Suggestion:
        return Suggestion(
            finding.code,
            f"Replace '{finding.subject}' with an absolute directory in PATH",
        )

    def _writable_path_entry(self, finding: Finding) -> Suggestion:
        return Suggestion(
            finding.code,
            "Remove group/other write permission from the PATH directory",
            (f"sudo chmod go-w {shlex.quote(finding.subject)}",),
        )

    # -- scripts ------------------------------------------------------------

    def _shebang_crlf(self, finding: Finding) -> Suggestion:
        return Suggestion(
            finding.code,
            "Convert the script to Unix line endings",
            (f"sed -i 's/\\r$//' {shlex.quote(finding.subject)}",),
        )

    def _interpreter_missing(self, finding: Finding) -> Suggestion:
        interpreter = finding.detail("interpreter", "")
        name = os.path.basename(interpreter) or "interpreter"
        return Suggestion(
            finding.code,
            f"Install {name} or change the #! line to use env lookup: "
            f"#!/usr/bin/env {name}",
            (f"type -a {shlex.quote(name)}",),
        )

    def _interpreter_not_executable(self, finding: Finding) -> Suggestion:
        interpreter = shlex.quote(finding.detail("interpreter", ""))
        return Suggestion(
            finding.code,
            "The interpreter itself cannot be run; check its mode and ownership",
            (f"ls -l {interpreter}",),
        )
