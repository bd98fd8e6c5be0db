"""
Role registry: the ordered table of role definitions.

Declaration order matters only for exclusion: a role listed in another
role's ``exclude_roles`` must be declared before it to take effect.
"""

import logging
from typing import Dict, Iterator, List, Optional

from .base import Role

logger = logging.getLogger(__name__)


class RoleRegistry:
    """Ordered, name-indexed collection of roles."""

    def __init__(self, roles: Optional[List[Role]] = None):
        self._roles: List[Role] = []
        self._by_name: Dict[str, Role] = {}
        for role in roles or []:
            self.register(role)

    def register(self, role: Role, before: Optional[str] = None) -> Role:
        """Add a role at the end of the table, or ahead of an existing one."""
        if role.name in self._by_name:
            raise ValueError(f"Role already registered: {role.name}")
        if before is None:
            self._roles.append(role)
        else:
            anchor = self.get(before)
            if anchor is None:
                raise KeyError(before)
            self._roles.insert(self._roles.index(anchor), role)
        self._by_name[role.name] = role
        return role

    def get(self, name: str) -> Optional[Role]:
        return self._by_name.get(name)

    def __getitem__(self, name: str) -> Role:
        return self._by_name[name]

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Role]:
        return iter(self._roles)

    def __len__(self) -> int:
        return len(self._roles)

    def names(self) -> List[str]:
        return [role.name for role in self._roles]

    def enabled(self) -> List[Role]:
        return [role for role in self._roles if not role.disabled]

    def set_enabled(self, name: str, enabled: bool = True) -> None:
        self[name].disabled = not enabled
        logger.debug(f"Role {name} {'enabled' if enabled else 'disabled'}")

    def signature(self) -> str:
        """Identifies the enabled role table; part of the classification cache key."""
        return ",".join(role.name for role in self._roles if not role.disabled)
