"""Tests for shebang parsing and interpreter checks."""

import pytest

from pathdoctor.models import Severity
from pathdoctor.permissions import PermissionInspector
from pathdoctor.script import ScriptInspector, parse_shebang


class TestParseShebang:
    @pytest.mark.parametrize(
        "head, expected",
        [
            (b"#!/bin/sh\necho", ("/bin/sh", [], False)),
            (b"#!/usr/bin/env python3 -u\n", ("/usr/bin/env", ["python3", "-u"], False)),
            (b"#! /bin/bash\r\n", ("/bin/bash", [], True)),
            (b"#!\n", ("", [], False)),
        ],
    )
    def test_parse(self, head, expected):
        assert parse_shebang(head) == expected

    def test_no_shebang(self):
        assert parse_shebang(b"echo hi\n") is None


@pytest.fixture
def inspector(fake_fs):
    return ScriptInspector(fake_fs, PermissionInspector())


class TestScriptInspector:
    def test_valid_script(self, fake_fs, inspector, bob):
        fake_fs.add_file("/bin/sh", mode=0o755)
        fake_fs.add_file("/opt/run", mode=0o755, content=b"#!/bin/sh\necho ok\n")
        assert inspector.inspect("/opt/run", bob) == []

    def test_binary_is_skipped(self, fake_fs, inspector, bob):
        fake_fs.add_file("/opt/bin", mode=0o755, content=b"\x7fELF\x02\x01")
        assert inspector.inspect("/opt/bin", bob) == []

    def test_no_shebang_is_info(self, fake_fs, inspector, bob):
        fake_fs.add_file("/opt/run", mode=0o755, content=b"echo ok\n")
        [finding] = inspector.inspect("/opt/run", bob)
        assert finding.code == "NO_SHEBANG"
        assert finding.severity is Severity.INFO

    def test_relative_interpreter(self, fake_fs, inspector, bob):
        fake_fs.add_file("/opt/run", mode=0o755, content=b"#!bash\n")
        [finding] = inspector.inspect("/opt/run", bob)
        assert finding.code == "SHEBANG_INTERPRETER_MISSING"
        assert finding.detail("interpreter") == "bash"

    def test_missing_interpreter(self, fake_fs, inspector, bob):
        fake_fs.add_file("/opt/run", mode=0o755, content=b"#!/usr/bin/python2 -E\n")
        [finding] = inspector.inspect("/opt/run", bob)
        assert finding.code == "SHEBANG_INTERPRETER_MISSING"
        assert finding.detail("args") == "-E"

    def test_interpreter_not_executable(self, fake_fs, inspector, bob):
        fake_fs.add_file("/opt/interp", mode=0o644)
        fake_fs.add_file("/opt/run", mode=0o755, content=b"#!/opt/interp\n")
        [finding] = inspector.inspect("/opt/run", bob)
        assert finding.code == "SHEBANG_INTERPRETER_NOT_EXECUTABLE"
        assert finding.severity is Severity.ERROR

    def test_interpreter_is_directory(self, fake_fs, inspector, bob):
        fake_fs.add_dir("/opt/interp")
        fake_fs.add_file("/opt/run", mode=0o755, content=b"#!/opt/interp\n")
        [finding] = inspector.inspect("/opt/run", bob)
        assert "directory" in finding.message

    def test_interpreter_through_symlink(self, fake_fs, inspector, bob):
        fake_fs.add_file("/usr/bin/python3.12", mode=0o755)
        fake_fs.add_link("/usr/bin/python3", "python3.12")
        fake_fs.add_file("/opt/run", mode=0o755, content=b"#!/usr/bin/python3\n")
        assert inspector.inspect("/opt/run", bob) == []

    def test_unreadable_script(self, fake_fs, inspector, bob):
        fake_fs.add_file("/opt/run", mode=0o711)
        fake_fs.deny("/opt/run")
        assert inspector.inspect("/opt/run", bob) == []
