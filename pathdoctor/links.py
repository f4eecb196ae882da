"""
Symbolic and hard link resolution.
"""

from __future__ import annotations

import logging
import os

from pathdoctor.config import MAX_LINK_DEPTH
from pathdoctor.models import FileKind, LinkChain, LinkHop, LinkStatus

logger = logging.getLogger(__name__)


class LinkResolver:
    """
    Follows symlink hops one readlink at a time.

    The hop count is bounded by max_depth, so cyclic chains end in a CYCLE
    result instead of looping.
    """

    def __init__(self, filesystem, max_depth: int = MAX_LINK_DEPTH):
        self.filesystem = filesystem
        self.max_depth = max_depth

    def resolve(self, path: str) -> LinkChain:
        """
        Resolve path hop by hop.

        Args:
            path: Path that may be a symlink

        Returns:
            LinkChain with every hop and the terminal status
        """
        if not self.filesystem.is_link(path):
            return LinkChain(origin=path, status=LinkStatus.NOT_A_LINK, final_path=path)

        hops: list[LinkHop] = []
        visited = {self._locate(os.path.abspath(path))}
        current = path

        for _ in range(self.max_depth):
            try:
                raw_target = self.filesystem.readlink(current)
            except OSError as e:
                logger.debug("readlink failed on %s: %s", current, e)
                return LinkChain(path, LinkStatus.BROKEN, tuple(hops), current)

            base = self.filesystem.realpath(os.path.dirname(os.path.abspath(current)))
            next_path = self._locate(os.path.join(base, raw_target))
            hop_exists = self.filesystem.is_link(next_path) or self.filesystem.exists(next_path)
            hops.append(LinkHop(path=current, target=raw_target, exists=hop_exists))

            if next_path in visited:
                logger.debug("Link cycle at %s", next_path)
                return LinkChain(path, LinkStatus.CYCLE, tuple(hops), next_path)
            visited.add(next_path)

            if self.filesystem.is_link(next_path):
                current = next_path
                continue

            if not hop_exists:
                return LinkChain(path, LinkStatus.BROKEN, tuple(hops), next_path)
            return LinkChain(path, self._terminal_status(next_path), tuple(hops), next_path)

        logger.debug("Link depth %d exceeded from %s", self.max_depth, path)
        return LinkChain(path, LinkStatus.CYCLE, tuple(hops), current)

    def _locate(self, path: str) -> str:
        """
        Canonical name of path without following its last component.

        "a/.." is only the directory holding a when a is not itself a link,
        so directories are resolved on disk rather than by normpath.
        """
        head, tail = os.path.split(path)
        if tail in ("", ".", ".."):
            return self.filesystem.realpath(path)
        return os.path.join(self.filesystem.realpath(head), tail)

    def _terminal_status(self, path: str) -> LinkStatus:
        try:
            kind = self.filesystem.target_state(path).kind
        except OSError as e:
            logger.debug("Cannot stat link target %s: %s", path, e)
            return LinkStatus.RESOLVED_OTHER
        if kind is FileKind.DIRECTORY:
            return LinkStatus.RESOLVED_DIRECTORY
        if kind is FileKind.FILE:
            return LinkStatus.RESOLVED_FILE
        if kind is FileKind.MISSING:
            return LinkStatus.BROKEN
        return LinkStatus.RESOLVED_OTHER

    def distinguish_hard_link(self, path: str) -> bool:
        """
        True when a non-directory has more than one name (st_nlink > 1).

        Directories always have several links ("." and children's ".."),
        so they never count.
        """
        try:
            state = self.filesystem.state(path)
        except OSError:
            return False
        if state.kind in (FileKind.DIRECTORY, FileKind.MISSING):
            return False
        return (state.nlink or 0) > 1
