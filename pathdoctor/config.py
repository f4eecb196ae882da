"""
Configuration for pathdoctor.

Loading order: built-in defaults, then a YAML file, then PATHDOCTOR_*
environment variables. The result is a frozen DoctorConfig that is passed
to the engine; nothing below the CLI reads the environment for settings.

Environment variables:
- PATHDOCTOR_CONFIG              (path to a YAML config file)
- PATHDOCTOR_MAX_LINK_DEPTH      (int, default 40)
- PATHDOCTOR_ROOT_BYPASS         ("1"/"true"/"yes" -> True)
- PATHDOCTOR_CHECK_PARENT        (bool)
- PATHDOCTOR_CHECK_HARD_LINKS    (bool)
- PATHDOCTOR_CHECK_SHEBANG       (bool)
- PATHDOCTOR_FORMAT              (rich | text | structured | json | yaml)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from pathdoctor.exceptions import ConfigError
from pathdoctor.platform import Platform

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path.home() / ".pathdoctor" / "config.yaml"
OUTPUT_FORMATS = ("rich", "text", "structured", "json", "yaml")
MAX_LINK_DEPTH = 40

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class DoctorConfig:
    platform: Platform = field(default_factory=Platform.detect)
    max_link_depth: int = MAX_LINK_DEPTH
    root_bypass: bool = True
    check_parent: bool = True
    check_hard_links: bool = True
    check_shebang: bool = True
    default_format: str = "rich"
    path_separator: str = os.pathsep

    def as_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["platform"] = self.platform.value
        return data


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r}")


def _parse_depth(key: str, value: Any) -> int:
    try:
        depth = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid integer for {key}: {value!r}") from None
    if depth < 1:
        raise ConfigError(f"{key} must be at least 1, got {depth}")
    return depth


def _parse_format(key: str, value: Any) -> str:
    fmt = str(value).strip().lower()
    if fmt not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid {key}: {value!r} (expected one of {', '.join(OUTPUT_FORMATS)})")
    return fmt


def _parse_platform(key: str, value: Any) -> Platform:
    try:
        return Platform.from_name(str(value))
    except ValueError as e:
        raise ConfigError(str(e)) from None


def _parse_separator(key: str, value: Any) -> str:
    sep = str(value)
    if len(sep) != 1:
        raise ConfigError(f"{key} must be a single character, got {value!r}")
    return sep


_PARSERS = {
    "platform": _parse_platform,
    "max_link_depth": _parse_depth,
    "root_bypass": _parse_bool,
    "check_parent": _parse_bool,
    "check_hard_links": _parse_bool,
    "check_shebang": _parse_bool,
    "default_format": _parse_format,
    "path_separator": _parse_separator,
}

_ENV_KEYS = {
    "PATHDOCTOR_MAX_LINK_DEPTH": "max_link_depth",
    "PATHDOCTOR_ROOT_BYPASS": "root_bypass",
    "PATHDOCTOR_CHECK_PARENT": "check_parent",
    "PATHDOCTOR_CHECK_HARD_LINKS": "check_hard_links",
    "PATHDOCTOR_CHECK_SHEBANG": "check_shebang",
    "PATHDOCTOR_FORMAT": "default_format",
}


def _apply(config: DoctorConfig, values: dict[str, Any], source: str) -> DoctorConfig:
    changes: dict[str, Any] = {}
    for key, value in values.items():
        parser = _PARSERS.get(key)
        if parser is None:
            raise ConfigError(f"Unknown configuration key in {source}: {key}")
        changes[key] = parser(key, value)
    return replace(config, **changes) if changes else config


def read_config_file(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML config file.

    Keys may live at the top level or under a "pathdoctor:" section.

    Raises:
        ConfigError: If the file cannot be read or is not a mapping
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    section = data.get("pathdoctor", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'pathdoctor' section in {path} must be a mapping")
    return section


def load_config(
    config_file: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> DoctorConfig:
    """
    Build the effective configuration.

    Args:
        config_file: Explicit YAML file; falls back to $PATHDOCTOR_CONFIG and
            then ~/.pathdoctor/config.yaml when it exists
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Frozen DoctorConfig
    """
    env = os.environ if environ is None else environ
    config = DoctorConfig()

    if config_file is None:
        config_file = env.get("PATHDOCTOR_CONFIG") or None
        if config_file is None and DEFAULT_CONFIG_FILE.is_file():
            config_file = DEFAULT_CONFIG_FILE

    if config_file is not None:
        logger.debug("Loading config file %s", config_file)
        config = _apply(config, read_config_file(config_file), str(config_file))

    overrides = {key: env[name] for name, key in _ENV_KEYS.items() if env.get(name)}
    if overrides:
        config = _apply(config, overrides, "environment")

    return config
