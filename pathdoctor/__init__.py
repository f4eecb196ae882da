"""
pathdoctor: explain why a file, directory or command cannot be accessed or run.
"""

from pathdoctor.branding import VERSION
from pathdoctor.engine import DiagnosticsEngine, diagnose
from pathdoctor.models import (
    AccessRequest,
    DiagnosticReport,
    Finding,
    Severity,
    TargetHint,
)
from pathdoctor.reporter import render

__version__ = VERSION

__all__ = [
    "AccessRequest",
    "DiagnosticReport",
    "DiagnosticsEngine",
    "Finding",
    "Severity",
    "TargetHint",
    "diagnose",
    "render",
    "__version__",
]
