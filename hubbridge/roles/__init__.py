"""
Device roles: classification rules and the handlers that materialize them.
"""

from .base import Role, RoleHandler
from .catalog import build_default_registry, default_roles
from .registry import RoleRegistry

__all__ = [
    "Role",
    "RoleHandler",
    "RoleRegistry",
    "build_default_registry",
    "default_roles",
]
