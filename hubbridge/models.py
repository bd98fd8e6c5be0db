"""
Hub device models and data structures.

Defines the device record the bridge keeps for every hub device and
the attribute-change event delivered by the push listener or poller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Set


class DeviceStatus(str, Enum):
    """Device online status."""
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "DeviceStatus":
        """Map a hub status string (ACTIVE, INACTIVE, OFFLINE, ...) to a status."""
        if raw is None or raw == "":
            return cls.UNKNOWN
        value = str(raw).strip().lower()
        if value in ("offline", "inactive"):
            return cls.OFFLINE
        if value in ("online", "active"):
            return cls.ONLINE
        return cls.UNKNOWN


@dataclass
class Device:
    """
    A hub device as the bridge sees it.

    Attributes are the single mutable part; they are written only by the
    attribute update router and read by characteristic get handlers.
    """
    id: str
    name: str
    status: DeviceStatus = DeviceStatus.ONLINE
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    firmware: Optional[str] = None
    capabilities: Set[str] = field(default_factory=set)
    attributes: Dict[str, Any] = field(default_factory=dict)
    commands: Set[str] = field(default_factory=set)
    flags: Set[str] = field(default_factory=set)

    @property
    def serial(self) -> str:
        return f"he_deviceid_{self.id}"

    @property
    def is_online(self) -> bool:
        return self.status != DeviceStatus.OFFLINE

    def update_from(self, other: "Device") -> None:
        """Replace descriptor fields with those of a fresher record."""
        self.name = other.name
        self.status = other.status
        self.manufacturer = other.manufacturer
        self.model = other.model
        self.firmware = other.firmware
        self.capabilities = set(other.capabilities)
        self.attributes = dict(other.attributes)
        self.commands = set(other.commands)
        self.flags = set(other.flags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "firmware": self.firmware,
            "serial": self.serial,
            "capabilities": sorted(self.capabilities),
            "attributes": dict(self.attributes),
            "commands": sorted(self.commands),
            "flags": sorted(self.flags),
        }


@dataclass
class AttributeChange:
    """An inbound attribute event from the hub."""
    device_id: str
    attribute: str
    value: Any
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "attribute": self.attribute,
            "value": self.value,
            "data": self.data,
            "timestamp": self.timestamp,
            "name": self.name,
        }


def apply_exclusions(
    device: Device,
    excluded_capabilities: Optional[List[str]] = None,
    excluded_attributes: Optional[List[str]] = None,
) -> Device:
    """Strip per-device excluded capabilities and attributes in place."""
    for cap in excluded_capabilities or []:
        device.capabilities.discard(cap)
    for attr in excluded_attributes or []:
        device.attributes.pop(attr, None)
    return device
