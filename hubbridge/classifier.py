"""
Classifier: multi-label role matching over the role registry.

Walks the registry in declaration order. A role is skipped when one of
its excluded capabilities/attributes is present; otherwise it is
accepted when its predicate holds and no already-accepted role appears
in its ``exclude_roles``. Results are cached on the accessory under the
device fingerprint.
"""

import logging
from typing import List

from .capabilities import CapabilitySet
from .protocol.objects import Accessory
from .roles.base import Role
from .roles.registry import RoleRegistry

logger = logging.getLogger(__name__)


class Classifier:
    """Determines which roles an accessory plays."""

    def __init__(self, registry: RoleRegistry):
        self.registry = registry
        self.cache_hits = 0
        self.cache_misses = 0

    def cache_key(self, caps: CapabilitySet) -> str:
        return f"{caps.fingerprint()}|{self.registry.signature()}"

    def classify(self, accessory: Accessory, caps: CapabilitySet) -> List[Role]:
        key = self.cache_key(caps)
        cached = accessory.classification_cache
        if cached is not None and cached[0] == key:
            roles = [self.registry.get(name) for name in cached[1]]
            if all(role is not None for role in roles):
                self.cache_hits += 1
                return roles

        self.cache_misses += 1
        matched = self.match(caps, label=accessory.display_name)
        accessory.classification_cache = (key, [role.name for role in matched])
        return matched

    def match(self, caps: CapabilitySet, label: str = "") -> List[Role]:
        """Uncached classification."""
        label = label or caps.name
        matched: List[Role] = []
        accepted = set()

        for role in self.registry:
            if role.disabled:
                continue

            reason = role.exclusion_reason(caps)
            if reason:
                logger.debug(f"{label} excluded from {role.name} due to {reason}")
                continue

            if not role.is_supported(caps):
                continue

            blocking = [name for name in role.exclude_roles if name in accepted]
            if blocking:
                logger.debug(f"{label} excluded from {role.name} by role {blocking[0]}")
                continue

            matched.append(role)
            accepted.add(role.name)

        if not matched:
            logger.warning(f"No device roles matched for {label}")
        return matched
