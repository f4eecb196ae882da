"""
Permission resolution for a principal against a file's mode bits.

Standard Unix semantics: the first class the principal belongs to decides,
owner before group before other. A restrictive owner triple is not rescued
by a more generous group or other triple.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pathdoctor.models import (
    AccessCapabilities,
    AccessClass,
    FileKind,
    FileState,
    Principal,
)
from pathdoctor.platform import Platform

logger = logging.getLogger(__name__)


def applicable_class(state: FileState, principal: Principal) -> AccessClass:
    """Which triple governs principal's access to state."""
    if state.is_missing:
        return AccessClass.NOT_APPLICABLE
    if principal.username == state.owner:
        return AccessClass.OWNER
    if principal.in_group(state.group):
        return AccessClass.GROUP
    return AccessClass.OTHER


class PermissionPolicy(Protocol):
    """Strategy computing the capability set; swap it per platform."""

    def capabilities(self, state: FileState, principal: Principal) -> AccessCapabilities: ...


class StandardPolicy:
    """Plain owner/group/other resolution, no privileged identities."""

    def capabilities(self, state: FileState, principal: Principal) -> AccessCapabilities:
        access_class = applicable_class(state, principal)
        if access_class is AccessClass.NOT_APPLICABLE:
            return AccessCapabilities.not_applicable()
        read, write, execute = state.triple(access_class)
        return AccessCapabilities(read, write, execute, access_class)


class SuperuserPolicy:
    """
    Root bypass on top of another policy.

    Read and write are always granted. Execute on a directory (search) is
    always granted; on anything else it needs at least one x bit in any of
    the three triples, as with CAP_DAC_OVERRIDE on Linux.
    """

    def __init__(self, base: PermissionPolicy | None = None):
        self.base = base or StandardPolicy()

    def capabilities(self, state: FileState, principal: Principal) -> AccessCapabilities:
        if state.is_missing or not principal.is_superuser:
            return self.base.capabilities(state, principal)
        can_execute = state.kind is FileKind.DIRECTORY or state.any_execute
        return AccessCapabilities(True, True, can_execute, AccessClass.SUPERUSER)


def default_policy(platform: Platform, root_bypass: bool = True) -> PermissionPolicy:
    """Policy for a platform variant; root_bypass=False evaluates root like anyone else."""
    if root_bypass:
        return SuperuserPolicy(StandardPolicy())
    logger.debug("Root bypass disabled for %s", platform.value)
    return StandardPolicy()


class PermissionInspector:
    """Computes what a principal may do with a file."""

    def __init__(self, policy: PermissionPolicy | None = None):
        self.policy = policy or SuperuserPolicy()

    def inspect(self, state: FileState, principal: Principal) -> AccessCapabilities:
        """
        Capability summary for principal on state.

        A missing file yields AccessCapabilities.not_applicable() rather than
        an exception; callers are expected to check for MISSING first.
        """
        if state.is_missing:
            return AccessCapabilities.not_applicable()
        return self.policy.capabilities(state, principal)

    def can_traverse(self, directory: FileState, principal: Principal) -> bool:
        """Execute (search) permission on a directory, nothing else."""
        return self.inspect(directory, principal).can_execute
