"""
Permission inspection for pathdoctor.
"""

from .inspector import (
    PermissionInspector,
    PermissionPolicy,
    StandardPolicy,
    SuperuserPolicy,
    applicable_class,
    default_policy,
)

__all__ = [
    "PermissionInspector",
    "PermissionPolicy",
    "StandardPolicy",
    "SuperuserPolicy",
    "applicable_class",
    "default_policy",
]
