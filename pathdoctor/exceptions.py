"""
Custom exceptions for pathdoctor.
"""


class DoctorError(Exception):
    """Base exception for pathdoctor errors."""

    exit_code = 1


class UsageError(DoctorError):
    """Raised when the caller supplies malformed input (e.g. an empty target)."""

    exit_code = 2


class ConfigError(DoctorError):
    """Raised when a configuration file or override is invalid."""

    pass
