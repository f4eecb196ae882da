"""Tests for configuration loading and platform detection."""

import pytest

from pathdoctor.config import DoctorConfig, load_config, read_config_file
from pathdoctor.exceptions import ConfigError
from pathdoctor.platform import Platform, security_modules


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(environ={})
        assert config.max_link_depth == 40
        assert config.root_bypass is True
        assert config.check_parent is True
        assert config.check_hard_links is True
        assert config.default_format == "rich"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("max_link_depth: 8\ncheck_hard_links: false\ndefault_format: text\n")
        config = load_config(path, environ={})
        assert config.max_link_depth == 8
        assert config.check_hard_links is False
        assert config.default_format == "text"

    def test_pathdoctor_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pathdoctor:\n  platform: darwin\n  root_bypass: no\n")
        config = load_config(path, environ={})
        assert config.platform is Platform.DARWIN
        assert config.root_bypass is False

    def test_config_from_environment_variable(self, tmp_path):
        path = tmp_path / "env.yaml"
        path.write_text("check_shebang: false\n")
        config = load_config(environ={"PATHDOCTOR_CONFIG": str(path)})
        assert config.check_shebang is False

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("max_link_depth: 8\n")
        config = load_config(path, environ={"PATHDOCTOR_MAX_LINK_DEPTH": "3", "PATHDOCTOR_FORMAT": "YAML"})
        assert config.max_link_depth == 3
        assert config.default_format == "yaml"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert read_config_file(path) == {}

    @pytest.mark.parametrize(
        "content",
        [
            "unknown_key: 1\n",
            "max_link_depth: 0\n",
            "max_link_depth: many\n",
            "check_parent: maybe\n",
            "default_format: html\n",
            "platform: plan9\n",
            "path_separator: '::'\n",
            "- just\n- a list\n",
            "key: [unclosed\n",
        ],
    )
    def test_invalid_file(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)
        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_invalid_env(self):
        with pytest.raises(ConfigError):
            load_config(environ={"PATHDOCTOR_ROOT_BYPASS": "sometimes"})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.yaml", environ={})

    def test_as_dict(self):
        data = DoctorConfig(platform=Platform.LINUX).as_dict()
        assert data["platform"] == "linux"
        assert data["max_link_depth"] == 40


class TestPlatform:
    @pytest.mark.parametrize(
        "system, expected",
        [("Linux", Platform.LINUX), ("Darwin", Platform.DARWIN), ("FreeBSD", Platform.POSIX)],
    )
    def test_detect(self, system, expected):
        assert Platform.detect(system) is expected

    def test_from_name(self):
        assert Platform.from_name(" Linux ") is Platform.LINUX
        with pytest.raises(ValueError):
            Platform.from_name("windows")

    def test_no_security_modules_off_linux(self):
        assert security_modules(Platform.DARWIN) == ()

    def test_security_modules_read_status_files(self, tmp_path, monkeypatch):
        enforce = tmp_path / "enforce"
        enforce.write_text("1\n")
        apparmor = tmp_path / "enabled"
        apparmor.write_text("Y\n")
        monkeypatch.setattr("pathdoctor.platform.SELINUX_ENFORCE", enforce)
        monkeypatch.setattr("pathdoctor.platform.APPARMOR_ENABLED", apparmor)
        assert security_modules(Platform.LINUX) == (("selinux", "enforcing"), ("apparmor", "enabled"))

    def test_security_modules_absent(self, tmp_path, monkeypatch):
        monkeypatch.setattr("pathdoctor.platform.SELINUX_ENFORCE", tmp_path / "nope")
        monkeypatch.setattr("pathdoctor.platform.APPARMOR_ENABLED", tmp_path / "nope2")
        assert security_modules(Platform.LINUX) == ()
