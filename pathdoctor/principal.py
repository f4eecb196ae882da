"""
Capture of the invoking identity.

The snapshot is taken once per diagnostic run and passed down explicitly, so
a group membership change halfway through a run cannot produce a report
that mixes two identities.
"""

from __future__ import annotations

import grp
import logging
import os
import pwd

import psutil

from pathdoctor.models import Principal

logger = logging.getLogger(__name__)


def user_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def capture_principal(process: psutil.Process | None = None) -> Principal:
    """
    Snapshot the effective identity of a process (the current one by default).

    Supplementary groups come from os.getgroups(), which always describes
    the calling process.
    """
    proc = process or psutil.Process()
    uid = proc.uids().effective
    gid = proc.gids().effective

    groups = {group_name(gid)}
    try:
        supplementary = os.getgroups()
    except OSError as e:
        logger.debug("Cannot read supplementary groups: %s", e)
        supplementary = []
    groups.update(group_name(g) for g in supplementary)

    principal = Principal(
        username=user_name(uid),
        uid=uid,
        primary_group=group_name(gid),
        gid=gid,
        groups=frozenset(groups),
    )
    logger.debug("Principal snapshot: %s", principal)
    return principal


def principal_for_user(username: str) -> Principal:
    """
    Build a principal for another account from the user and group databases.

    Used to answer "could user X reach this?" without switching identity.

    Raises:
        KeyError: If the user does not exist
    """
    entry = pwd.getpwnam(username)
    primary = group_name(entry.pw_gid)
    groups = {primary}
    groups.update(g.gr_name for g in grp.getgrall() if username in g.gr_mem)
    return Principal(
        username=entry.pw_name,
        uid=entry.pw_uid,
        primary_group=primary,
        gid=entry.pw_gid,
        groups=frozenset(groups),
    )
