"""
Host file-metadata facility.

HostFilesystem is the only component that talks to the operating system
about files. The engine, PathModel and LinkResolver receive an instance, so
tests can hand them a fake with the same methods.
"""

from __future__ import annotations

import logging
import os
import stat

from pathdoctor.models import FileKind, FileState
from pathdoctor.principal import group_name, user_name

logger = logging.getLogger(__name__)

# lstat errors meaning "nothing there" rather than "cannot tell"
_MISSING_ERRORS = (FileNotFoundError, NotADirectoryError)


def kind_from_mode(mode: int) -> FileKind:
    if stat.S_ISLNK(mode):
        return FileKind.SYMLINK
    if stat.S_ISDIR(mode):
        return FileKind.DIRECTORY
    if stat.S_ISREG(mode):
        return FileKind.FILE
    return FileKind.OTHER


class HostFilesystem:
    """Read-only view of the real filesystem."""

    def state(self, path: str) -> FileState:
        """
        Describe path without following a final symlink.

        Returns:
            FileState; kind MISSING when the path does not exist

        Raises:
            OSError: If metadata cannot be read for another reason
                (e.g. PermissionError on a parent directory)
        """
        try:
            st = os.lstat(path)
        except _MISSING_ERRORS:
            return FileState.missing(path)
        return self._from_stat(path, st, follow=False)

    def target_state(self, path: str) -> FileState:
        """Describe what path ultimately points at (follows symlinks)."""
        try:
            st = os.stat(path)
        except _MISSING_ERRORS:
            return FileState.missing(path)
        return self._from_stat(path, st, follow=True)

    def _from_stat(self, path: str, st: os.stat_result, follow: bool) -> FileState:
        kind = kind_from_mode(st.st_mode)
        link_target = None
        link_resolves = None
        if kind is FileKind.SYMLINK:
            link_target = self.readlink(path)
            link_resolves = self.exists(path)
        return FileState(
            path=path,
            kind=kind,
            owner=user_name(st.st_uid),
            group=group_name(st.st_gid),
            uid=st.st_uid,
            gid=st.st_gid,
            mode=stat.S_IMODE(st.st_mode),
            nlink=st.st_nlink,
            link_target=link_target,
            link_resolves=link_resolves,
        )

    def readlink(self, path: str) -> str:
        return os.readlink(path)

    def realpath(self, path: str) -> str:
        """Canonical path with every symlink component followed."""
        return os.path.realpath(path)

    def is_link(self, path: str) -> bool:
        return os.path.islink(path)

    def exists(self, path: str) -> bool:
        """True when path resolves (a dangling symlink does not exist)."""
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def probe(self, path: str) -> tuple[bool, bool]:
        """(exists, is_directory) pair used by lazily evaluated PathEntry."""
        return os.path.exists(path), os.path.isdir(path)

    def read_head(self, path: str, size: int = 256) -> bytes:
        """
        Read the first bytes of a file.

        Raises:
            OSError: If the file cannot be opened
        """
        with open(path, "rb") as f:
            return f.read(size)

    def cwd(self) -> str:
        return os.getcwd()
