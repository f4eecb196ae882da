"""
Host platform variant and mandatory access control status.

The platform is detected once at startup and carried in DoctorConfig; no
other module inspects sys.platform on its own.
"""

from __future__ import annotations

import logging
import platform as _platform
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

SELINUX_ENFORCE = Path("/sys/fs/selinux/enforce")
APPARMOR_ENABLED = Path("/sys/module/apparmor/parameters/enabled")


class Platform(Enum):
    LINUX = "linux"
    DARWIN = "darwin"
    POSIX = "posix"

    @classmethod
    def detect(cls, system: str | None = None) -> Platform:
        """Map platform.system() to a variant. Unknown Unix-likes become POSIX."""
        name = (system if system is not None else _platform.system()).lower()
        if name == "linux":
            return cls.LINUX
        if name == "darwin":
            return cls.DARWIN
        return cls.POSIX

    @classmethod
    def from_name(cls, name: str) -> Platform:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown platform: {name!r}") from None

    @property
    def has_security_modules(self) -> bool:
        """Whether SELinux/AppArmor status files can exist on this platform."""
        return self is Platform.LINUX


def _read_flag(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return None


def security_modules(platform: Platform) -> tuple[tuple[str, str], ...]:
    """
    Report the status of mandatory access control layers.

    Only reads status files; policies themselves are never evaluated.

    Returns:
        Tuple of (module, status) pairs, empty when nothing is detectable.
    """
    if not platform.has_security_modules:
        return ()

    modules: list[tuple[str, str]] = []

    selinux = _read_flag(SELINUX_ENFORCE)
    if selinux is not None:
        modules.append(("selinux", "enforcing" if selinux == "1" else "permissive"))

    apparmor = _read_flag(APPARMOR_ENABLED)
    if apparmor is not None:
        modules.append(("apparmor", "enabled" if apparmor.upper() == "Y" else "disabled"))

    logger.debug("Security modules: %s", modules or "none")
    return tuple(modules)
