"""
Search path model: parsing, command resolution and PATH hygiene.

Resolution only answers "where is it?". Whether the match can actually be
run is PermissionInspector's job, so a report can tell "not found anywhere"
apart from "found but not runnable".
"""

from __future__ import annotations

import logging
import os
import stat

from pathdoctor.models import (
    Finding,
    PathEntry,
    Principal,
    ResolvedLocation,
    SearchPath,
    Severity,
)

logger = logging.getLogger(__name__)


def parse(raw: str, separator: str = os.pathsep, filesystem=None) -> SearchPath:
    """
    Split a PATH-style string into entries.

    Empty segments are preserved: "::", a leading or a trailing separator
    each yield an empty entry, which the shell treats as the current
    directory.

    Args:
        raw: Separator-delimited search path
        separator: Path separator (":" on Unix)
        filesystem: Optional filesystem used for lazy exists/is_directory

    Returns:
        SearchPath in authored order, duplicates kept
    """
    if raw == "":
        return SearchPath((), separator)
    probe = filesystem.probe if filesystem is not None else None
    entries = tuple(PathEntry(segment, probe) for segment in raw.split(separator))
    return SearchPath(entries, separator)


def _candidate(entry: PathEntry, command: str) -> str:
    return os.path.join(entry.directory, command)


def find_all(search_path: SearchPath, command: str, filesystem) -> list[ResolvedLocation]:
    """Every entry providing command as a regular file, in search order."""
    matches = []
    for index, entry in enumerate(search_path.entries):
        candidate = _candidate(entry, command)
        if filesystem.is_file(candidate):
            matches.append(ResolvedLocation(entry=entry, index=index, path=candidate))
    return matches


def resolve(search_path: SearchPath, command: str, filesystem) -> ResolvedLocation | None:
    """
    Resolve a bare command name, first match wins.

    Returns:
        ResolvedLocation of the first regular file named command, or None
    """
    for index, entry in enumerate(search_path.entries):
        candidate = _candidate(entry, command)
        if filesystem.is_file(candidate):
            logger.debug("Resolved %s to %s (entry %d)", command, candidate, index)
            return ResolvedLocation(entry=entry, index=index, path=candidate)
    logger.debug("%s not found on a %d-entry search path", command, len(search_path))
    return None


def find_duplicates(search_path: SearchPath) -> list[str]:
    """Entries appearing more than once, ordered by first occurrence."""
    seen: set[str] = set()
    duplicates: dict[str, None] = {}
    for value in search_path.raw_values:
        if value in seen:
            duplicates.setdefault(value, None)
        seen.add(value)
    return list(duplicates)


def clean(search_path: SearchPath) -> SearchPath:
    """
    Return a new SearchPath without duplicates or empty segments.

    First-seen order is kept; the input is left untouched.
    """
    seen: set[str] = set()
    kept = []
    for entry in search_path.entries:
        if entry.is_empty or entry.raw_value in seen:
            continue
        seen.add(entry.raw_value)
        kept.append(entry)
    return SearchPath(tuple(kept), search_path.separator)


def hygiene_findings(search_path: SearchPath) -> list[Finding]:
    """Findings that need no filesystem access: empty, relative, duplicate entries."""
    findings: list[Finding] = []

    for index, entry in enumerate(search_path.entries):
        if entry.is_empty:
            findings.append(
                Finding.make(
                    Severity.INFO,
                    "EMPTY_PATH_SEGMENT",
                    f"PATH entry {index} is empty, so the current directory is searched",
                    subject=search_path.render(),
                    index=index,
                )
            )
        elif not os.path.isabs(entry.raw_value):
            findings.append(
                Finding.make(
                    Severity.WARNING,
                    "RELATIVE_PATH_ENTRY",
                    f"PATH entry '{entry.raw_value}' is relative and depends on the working directory",
                    subject=entry.raw_value,
                    index=index,
                )
            )

    for value in find_duplicates(search_path):
        positions = [i for i, v in enumerate(search_path.raw_values) if v == value]
        shown = value or "<empty>"
        findings.append(
            Finding.make(
                Severity.INFO,
                "DUPLICATE_PATH_ENTRY",
                f"'{shown}' appears {len(positions)} times in PATH",
                subject=value,
                positions=",".join(str(p) for p in positions),
            )
        )
    return findings


def audit(search_path: SearchPath, principal: Principal, filesystem) -> list[Finding]:
    """
    Full PATH hygiene audit.

    Adds filesystem checks to hygiene_findings(): entries that do not exist,
    are not directories, or are writable by others than the principal.
    """
    findings = hygiene_findings(search_path)
    checked: set[str] = set()

    for index, entry in enumerate(search_path.entries):
        directory = entry.directory
        if directory in checked:
            continue
        checked.add(directory)

        try:
            state = filesystem.target_state(directory)
        except OSError as e:
            findings.append(
                Finding.make(
                    Severity.WARNING,
                    "UNKNOWN_STATE",
                    f"Cannot read metadata for PATH entry '{directory}': {e}",
                    subject=directory,
                    index=index,
                )
            )
            continue

        if state.is_missing:
            findings.append(
                Finding.make(
                    Severity.INFO,
                    "MISSING_PATH_ENTRY",
                    f"PATH entry '{directory}' does not exist",
                    subject=directory,
                    index=index,
                )
            )
            continue

        if not filesystem.is_dir(directory):
            findings.append(
                Finding.make(
                    Severity.WARNING,
                    "PATH_ENTRY_NOT_DIRECTORY",
                    f"PATH entry '{directory}' is not a directory",
                    subject=directory,
                    index=index,
                )
            )
            continue

        mode = state.mode or 0
        writable_by_others = bool(mode & (stat.S_IWGRP | stat.S_IWOTH))
        sticky = bool(mode & stat.S_ISVTX)
        if writable_by_others and not sticky and state.owner != principal.username:
            findings.append(
                Finding.make(
                    Severity.WARNING,
                    "WRITABLE_PATH_ENTRY",
                    f"PATH entry '{directory}' ({state.mode_string}, {state.owner}:{state.group}) "
                    "is writable by other users who could plant commands in it",
                    subject=directory,
                    index=index,
                    mode=state.octal,
                )
            )

    return findings
