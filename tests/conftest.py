"""Pytest configuration and shared fixtures for the pathdoctor suite.

FakeFilesystem mirrors HostFilesystem's methods over an in-memory tree so
ownership and modes that need root to create on disk (root-owned
directories, foreign users) can be tested as any user.
"""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass

import pytest

from pathdoctor.config import DoctorConfig
from pathdoctor.models import FileKind, FileState, Principal
from pathdoctor.platform import Platform

UIDS = {"root": 0, "alice": 1000, "bob": 1001, "carol": 1002}
GIDS = {"root": 0, "alice": 1000, "bob": 1001, "staff": 50, "wheel": 10}


@dataclass
class Node:
    kind: FileKind
    owner: str = "root"
    group: str = "root"
    mode: int = 0o755
    nlink: int = 1
    target: str | None = None
    content: bytes = b""


class FakeFilesystem:
    """In-memory stand-in for HostFilesystem."""

    def __init__(self):
        self.nodes: dict[str, Node] = {"/": Node(FileKind.DIRECTORY)}
        self.denied: set[str] = set()

    # -- building ------------------------------------------------------------

    @staticmethod
    def _norm(path: str) -> str:
        return os.path.normpath(os.path.join("/", path))

    def _ensure_parents(self, path: str) -> None:
        parent = os.path.dirname(path)
        if parent not in self.nodes:
            self._ensure_parents(parent)
            self.nodes[parent] = Node(FileKind.DIRECTORY)

    def add_dir(self, path, owner="root", group="root", mode=0o755):
        path = self._norm(path)
        self._ensure_parents(path)
        self.nodes[path] = Node(FileKind.DIRECTORY, owner, group, mode, nlink=2)
        return path

    def add_file(self, path, owner="root", group="root", mode=0o644, content=b"", nlink=1):
        path = self._norm(path)
        self._ensure_parents(path)
        self.nodes[path] = Node(FileKind.FILE, owner, group, mode, nlink, content=content)
        return path

    def add_link(self, path, target):
        path = self._norm(path)
        self._ensure_parents(path)
        self.nodes[path] = Node(FileKind.SYMLINK, mode=0o777, target=target)
        return path

    def deny(self, path):
        self.denied.add(self._norm(path))

    # -- lookups ---------------------------------------------------------------

    def _check(self, path: str) -> None:
        if path in self.denied:
            raise PermissionError(errno.EACCES, "Permission denied", path)

    def _walk(self, path: str, budget: list[int], follow_last: bool) -> str:
        """Resolve path component by component, following links like the kernel."""
        resolved = "/"
        parts = [p for p in path.split("/") if p not in ("", ".")]
        for i, part in enumerate(parts):
            if part == "..":
                resolved = os.path.dirname(resolved)
                continue
            candidate = os.path.join(resolved, part)
            node = self.nodes.get(candidate)
            last = i == len(parts) - 1
            if node is None or node.kind is not FileKind.SYMLINK or (last and not follow_last):
                resolved = candidate
                continue
            self._check(candidate)
            if budget[0] == 0:
                raise OSError(errno.ELOOP, "Too many levels of symbolic links", path)
            budget[0] -= 1
            resolved = self._walk(os.path.join(resolved, node.target), budget, True)
        return resolved

    def realpath(self, path):
        try:
            return self._walk(os.path.join("/", path), [40], True)
        except OSError:
            return self._norm(path)

    def _locate(self, path: str) -> str:
        """Where lstat would look: every component but the last is followed."""
        return self._walk(os.path.join("/", path), [40], False)

    def _follow(self, path: str) -> str:
        final = self._walk(os.path.join("/", path), [40], True)
        self._check(final)
        return final

    def _state(self, requested: str, node: Node | None) -> FileState:
        if node is None:
            return FileState.missing(requested)
        link_target = node.target if node.kind is FileKind.SYMLINK else None
        return FileState(
            path=requested,
            kind=node.kind,
            owner=node.owner,
            group=node.group,
            uid=UIDS.get(node.owner, 4242),
            gid=GIDS.get(node.group, 4242),
            mode=node.mode,
            nlink=node.nlink,
            link_target=link_target,
            link_resolves=self.exists(requested) if link_target is not None else None,
        )

    def state(self, path):
        located = self._locate(path)
        self._check(located)
        return self._state(path, self.nodes.get(located))

    def target_state(self, path):
        final = self._follow(path)
        return self._state(path, self.nodes.get(final))

    def _link_node(self, path) -> Node | None:
        try:
            node = self.nodes.get(self._locate(path))
        except OSError:
            return None
        if node is None or node.kind is not FileKind.SYMLINK:
            return None
        return node

    def readlink(self, path):
        node = self._link_node(path)
        if node is None:
            raise OSError(errno.EINVAL, "Invalid argument", path)
        return node.target

    def is_link(self, path):
        return self._link_node(path) is not None

    def _final_node(self, path) -> Node | None:
        try:
            return self.nodes.get(self._follow(path))
        except OSError:
            return None

    def exists(self, path):
        return self._final_node(path) is not None

    def is_file(self, path):
        node = self._final_node(path)
        return node is not None and node.kind is FileKind.FILE

    def is_dir(self, path):
        node = self._final_node(path)
        return node is not None and node.kind is FileKind.DIRECTORY

    def probe(self, path):
        return self.exists(path), self.is_dir(path)

    def read_head(self, path, size=256):
        final = self._follow(path)
        node = self.nodes.get(final)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return node.content[:size]

    def cwd(self):
        return "/"


def make_principal(username: str, *groups: str) -> Principal:
    primary = groups[0] if groups else username
    return Principal(
        username=username,
        uid=UIDS.get(username, 4242),
        primary_group=primary,
        gid=GIDS.get(primary, 4242),
        groups=frozenset(groups or (username,)),
    )


@pytest.fixture
def fake_fs():
    return FakeFilesystem()


@pytest.fixture
def alice():
    return make_principal("alice", "alice")


@pytest.fixture
def bob():
    """bob's supplementary groups include staff but not root."""
    return make_principal("bob", "bob", "staff")


@pytest.fixture
def root():
    return make_principal("root", "root")


@pytest.fixture
def config():
    return DoctorConfig(platform=Platform.POSIX)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep the user's real config file and PATHDOCTOR_* variables out of tests."""
    monkeypatch.setattr("pathdoctor.config.DEFAULT_CONFIG_FILE", tmp_path / "no-config.yaml")
    for name in list(os.environ):
        if name.startswith("PATHDOCTOR_"):
            monkeypatch.delenv(name)
