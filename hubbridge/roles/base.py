"""
Role definition and the handler contract.

A Role pairs a classification rule (predicate plus exclusions) with the
handler that materializes the role's services. Handlers are plain
strategy objects; shared characteristic wiring lives in ``common``.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

from ..capabilities import CapabilitySet
from ..materializer import PassContext


class RoleHandler(Protocol):
    """Configures the services for one role on one accessory."""

    def configure(self, ctx: PassContext) -> None:
        ...


@dataclass
class Role:
    """One entry of the role registry."""
    name: str
    predicate: Callable[[CapabilitySet], bool]
    handler: RoleHandler
    exclude_capabilities: Tuple[str, ...] = ()
    exclude_attributes: Tuple[str, ...] = ()
    # Roles that preclude this one once they have matched
    exclude_roles: Tuple[str, ...] = ()
    disabled: bool = False
    description: str = ""

    def is_supported(self, caps: CapabilitySet) -> bool:
        return bool(self.predicate(caps))

    def exclusion_reason(self, caps: CapabilitySet) -> Optional[str]:
        """Name the capability or attribute that rules this role out, if any."""
        for cap in self.exclude_capabilities:
            if caps.has_capability(cap):
                return f"capability {cap}"
        for attr in self.exclude_attributes:
            if caps.has_attribute(attr):
                return f"attribute {attr}"
        return None

    def configure(self, ctx: PassContext) -> None:
        self.handler.configure(ctx)
