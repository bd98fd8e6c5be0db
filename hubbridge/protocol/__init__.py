"""
Accessory protocol model: identifiers, value enums and live objects.
"""

from .types import ServiceType, CharacteristicType
from .objects import (
    Accessory,
    Binding,
    Characteristic,
    Service,
    service_id,
)

__all__ = [
    "ServiceType",
    "CharacteristicType",
    "Accessory",
    "Binding",
    "Characteristic",
    "Service",
    "service_id",
]
