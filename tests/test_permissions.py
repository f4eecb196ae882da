"""Tests for owner/group/other resolution and the superuser policy."""

import pytest

from pathdoctor.models import AccessClass, FileKind, FileState
from pathdoctor.permissions import (
    PermissionInspector,
    StandardPolicy,
    SuperuserPolicy,
    applicable_class,
    default_policy,
)
from pathdoctor.platform import Platform


def _file(mode, owner="root", group="root", kind=FileKind.FILE):
    return FileState("/f", kind, owner, group, mode=mode)


class TestApplicableClass:
    def test_owner_first(self, alice):
        assert applicable_class(_file(0o644, "alice", "alice"), alice) is AccessClass.OWNER

    def test_supplementary_group(self, bob):
        assert applicable_class(_file(0o640, "root", "staff"), bob) is AccessClass.GROUP

    def test_other(self, bob):
        assert applicable_class(_file(0o644), bob) is AccessClass.OTHER

    def test_missing(self, bob):
        assert applicable_class(FileState.missing("/f"), bob) is AccessClass.NOT_APPLICABLE


class TestStandardPolicy:
    def test_owner_triple_wins_even_when_more_restrictive(self, alice):
        # rw- --- rwx: "other" would allow execute, the owner triple does not
        state = _file(0o607, "alice", "alice")
        caps = PermissionInspector(StandardPolicy()).inspect(state, alice)
        assert caps.via is AccessClass.OWNER
        assert (caps.can_read, caps.can_write, caps.can_execute) == (True, True, False)

    def test_group_triple_wins_over_other(self, bob):
        state = _file(0o604, "root", "staff")
        caps = PermissionInspector(StandardPolicy()).inspect(state, bob)
        assert caps.via is AccessClass.GROUP
        assert not caps.can_read

    def test_deterministic(self, bob):
        inspector = PermissionInspector()
        state = _file(0o751, "root", "staff")
        assert inspector.inspect(state, bob) == inspector.inspect(state, bob)

    def test_missing_is_not_applicable(self, bob):
        caps = PermissionInspector().inspect(FileState.missing("/f"), bob)
        assert caps.via is AccessClass.NOT_APPLICABLE
        assert not caps.can_read


class TestSuperuserPolicy:
    def test_read_write_bypass(self, root):
        caps = PermissionInspector(SuperuserPolicy()).inspect(_file(0o000, "alice", "alice"), root)
        assert caps.via is AccessClass.SUPERUSER
        assert caps.can_read and caps.can_write
        assert not caps.can_execute

    @pytest.mark.parametrize("mode", [0o100, 0o010, 0o001])
    def test_execute_needs_some_x_bit(self, root, mode):
        caps = PermissionInspector(SuperuserPolicy()).inspect(_file(mode, "alice", "alice"), root)
        assert caps.can_execute

    def test_directories_always_searchable(self, root):
        state = FileState("/d", FileKind.DIRECTORY, "alice", "alice", mode=0o000)
        assert PermissionInspector(SuperuserPolicy()).can_traverse(state, root)

    def test_non_root_uses_base_policy(self, bob):
        caps = PermissionInspector(SuperuserPolicy()).inspect(_file(0o600), bob)
        assert caps.via is AccessClass.OTHER
        assert not caps.can_read

    def test_bypass_can_be_disabled(self, root):
        policy = default_policy(Platform.LINUX, root_bypass=False)
        caps = PermissionInspector(policy).inspect(_file(0o600, "alice", "alice"), root)
        assert caps.via is AccessClass.OTHER
        assert not caps.can_read


class TestCanTraverse:
    def test_needs_execute_only(self, bob):
        inspector = PermissionInspector()
        searchable = FileState("/d", FileKind.DIRECTORY, "root", "root", mode=0o711)
        closed = FileState("/d", FileKind.DIRECTORY, "root", "root", mode=0o744)
        assert inspector.can_traverse(searchable, bob)
        assert not inspector.can_traverse(closed, bob)
