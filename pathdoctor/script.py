"""
Shebang checks for executable scripts.

Covers the classic "bad interpreter: No such file or directory" failures:
an interpreter path that does not exist, one that is not executable, and a
first line ending in a carriage return from a Windows editor.
"""

from __future__ import annotations

import logging
import os

from pathdoctor.models import FileKind, Finding, Principal, Severity

logger = logging.getLogger(__name__)

ELF_MAGIC = b"\x7fELF"
MACHO_MAGICS = (b"\xcf\xfa\xed\xfe", b"\xce\xfa\xed\xfe", b"\xca\xfe\xba\xbe")


def parse_shebang(head: bytes) -> tuple[str, list[str], bool] | None:
    """
    Split the first line of a script into (interpreter, args, has_crlf).

    Returns:
        None when the data does not start with "#!"
    """
    if not head.startswith(b"#!"):
        return None
    line = head[2:].split(b"\n", 1)[0]
    has_crlf = line.endswith(b"\r")
    text = line.rstrip(b"\r").decode("utf-8", errors="replace").strip()
    parts = text.split()
    if not parts:
        return "", [], has_crlf
    return parts[0], parts[1:], has_crlf


class ScriptInspector:
    """Checks the interpreter line of a file the principal wants to execute."""

    def __init__(self, filesystem, permission_inspector):
        self.filesystem = filesystem
        self.permission_inspector = permission_inspector

    def inspect(self, path: str, principal: Principal) -> list[Finding]:
        try:
            head = self.filesystem.read_head(path)
        except OSError as e:
            logger.debug("Cannot read %s for shebang check: %s", path, e)
            return []

        if head.startswith(ELF_MAGIC) or head.startswith(MACHO_MAGICS):
            return []

        parsed = parse_shebang(head)
        if parsed is None:
            return [
                Finding.make(
                    Severity.INFO,
                    "NO_SHEBANG",
                    "File has no #! line; the calling shell decides how to run it",
                    subject=path,
                )
            ]

        interpreter, args, has_crlf = parsed
        findings: list[Finding] = []

        if has_crlf:
            findings.append(
                Finding.make(
                    Severity.ERROR,
                    "SHEBANG_CRLF",
                    "The #! line ends with a carriage return (Windows line endings); "
                    "the kernel looks for an interpreter whose name ends in '\\r'",
                    subject=path,
                    interpreter=interpreter,
                )
            )

        if not interpreter or not os.path.isabs(interpreter):
            findings.append(
                Finding.make(
                    Severity.ERROR,
                    "SHEBANG_INTERPRETER_MISSING",
                    f"The #! line names '{interpreter}', which is not an absolute interpreter path",
                    subject=path,
                    interpreter=interpreter,
                )
            )
            return findings

        if not self.filesystem.exists(interpreter):
            findings.append(
                Finding.make(
                    Severity.ERROR,
                    "SHEBANG_INTERPRETER_MISSING",
                    f"Interpreter {interpreter} does not exist (bad interpreter)",
                    subject=path,
                    interpreter=interpreter,
                    args=" ".join(args),
                )
            )
            return findings

        try:
            state = self.filesystem.target_state(interpreter)
        except OSError as e:
            logger.debug("Cannot stat interpreter %s: %s", interpreter, e)
            return findings

        if state.kind is not FileKind.FILE:
            reason = f"is a {state.kind.value}, not a regular file"
        elif not self.permission_inspector.inspect(state, principal).can_execute:
            reason = f"is not executable by {principal.username} ({state.mode_string})"
        else:
            return findings

        findings.append(
            Finding.make(
                Severity.ERROR,
                "SHEBANG_INTERPRETER_NOT_EXECUTABLE",
                f"Interpreter {interpreter} {reason}",
                subject=path,
                interpreter=interpreter,
            )
        )
        return findings
