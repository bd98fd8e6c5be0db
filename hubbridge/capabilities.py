"""
Capability set: a read-only view over a device's capabilities,
attributes and commands.

Computed once per classification pass and handed to the classifier and
every role handler by reference.
"""

import json
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional

from .models import Device


@dataclass(frozen=True)
class CapabilitySet:
    """Set-membership queries plus the name-based heuristics."""
    name: str
    capabilities: FrozenSet[str]
    attributes: FrozenSet[str]
    commands: FrozenSet[str]
    flags: FrozenSet[str] = frozenset()
    consider_light_by_name: bool = False
    consider_fan_by_name: bool = True

    @classmethod
    def from_device(cls, device: Device, options: Optional[Dict[str, bool]] = None) -> "CapabilitySet":
        options = options or {}
        return cls(
            name=device.name or "",
            capabilities=frozenset(device.capabilities),
            attributes=frozenset(device.attributes),
            commands=frozenset(device.commands),
            flags=frozenset(device.flags),
            consider_light_by_name=bool(options.get("consider_light_by_name", False)),
            consider_fan_by_name=bool(options.get("consider_fan_by_name", True)),
        )

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities

    def has_attribute(self, attribute: str) -> bool:
        return attribute in self.attributes

    def has_command(self, command: str) -> bool:
        return command in self.commands

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    def has_any_capability(self, capabilities: Iterable[str]) -> bool:
        return any(cap in self.capabilities for cap in capabilities)

    def has_any_attribute(self, attributes: Iterable[str]) -> bool:
        return any(attr in self.attributes for attr in attributes)

    def looks_like_light(self) -> bool:
        return self.consider_light_by_name and "light" in self.name.lower()

    def looks_like_fan(self) -> bool:
        return self.consider_fan_by_name and "fan" in self.name.lower()

    def has_speed_control(self) -> bool:
        return (
            (self.has_attribute("speed") and self.has_command("setSpeed"))
            or (self.has_attribute("level") and self.has_command("setLevel"))
        )

    def fingerprint(self) -> str:
        """
        Stable key over everything that can change a classification result.

        Only attribute names are included; role predicates never read
        attribute values.
        """
        return json.dumps(
            {
                "capabilities": sorted(self.capabilities),
                "attributes": sorted(self.attributes),
                "commands": sorted(self.commands),
                "name": self.name,
                "config": {
                    "consider_light_by_name": self.consider_light_by_name,
                    "consider_fan_by_name": self.consider_fan_by_name,
                },
            },
            sort_keys=True,
        )
