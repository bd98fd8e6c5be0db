"""
Attribute update router.

Maintains ``attribute → device id → {characteristic key: characteristic}``
and delivers inbound hub attribute events to the subscribed bindings.

Events are applied synchronously in arrival order; the device attribute
store is written here and nowhere else after ingestion.
"""

import logging
from typing import Dict, List, Optional

from .models import AttributeChange, Device
from .protocol.objects import Characteristic

logger = logging.getLogger(__name__)


class AttributeUpdateRouter:
    """Multiplexes hub attribute events onto live characteristic bindings."""

    def __init__(self):
        self._table: Dict[str, Dict[str, Dict[str, Characteristic]]] = {}
        self.events_routed = 0
        self.events_dropped = 0

    def subscribe(self, device_id: str, characteristic: Characteristic) -> None:
        binding = characteristic.binding
        if binding is None:
            return
        for attribute in binding.attributes:
            by_device = self._table.setdefault(attribute, {})
            by_device.setdefault(device_id, {})[characteristic.key] = characteristic

    def unsubscribe(self, device_id: str, characteristic: Characteristic) -> None:
        """Remove every subscription held by this characteristic."""
        for attribute in list(self._table):
            by_device = self._table[attribute]
            subs = by_device.get(device_id)
            if not subs or subs.get(characteristic.key) is not characteristic:
                continue
            del subs[characteristic.key]
            if not subs:
                del by_device[device_id]
            if not by_device:
                del self._table[attribute]

    def unsubscribe_device(self, device_id: str) -> None:
        for attribute in list(self._table):
            by_device = self._table[attribute]
            by_device.pop(device_id, None)
            if not by_device:
                del self._table[attribute]

    def subscriptions(self, device_id: str, attribute: Optional[str] = None) -> List[Characteristic]:
        """Characteristics subscribed for a device, optionally for one attribute."""
        attributes = [attribute] if attribute else list(self._table)
        found: List[Characteristic] = []
        for attr in attributes:
            found.extend(self._table.get(attr, {}).get(device_id, {}).values())
        return found

    def subscribed_attributes(self, device_id: str) -> List[str]:
        return sorted(a for a, by_device in self._table.items() if device_id in by_device)

    def route(self, device: Device, change: AttributeChange) -> int:
        """
        Apply one event: store the value, then refresh subscribed bindings.

        Returns:
            Number of characteristics that received a value.
        """
        device.attributes[change.attribute] = change.value

        subs = self._table.get(change.attribute, {}).get(device.id)
        if not subs:
            self.events_dropped += 1
            return 0

        delivered = 0
        for characteristic in list(subs.values()):
            binding = characteristic.binding
            if binding is None:
                continue
            if binding.update_handler is not None:
                value = binding.update_handler(change)
            elif binding.get_handler is not None:
                value = binding.get_handler()
            else:
                continue
            if value is None:
                continue
            characteristic.update_value(value)
            delivered += 1

        self.events_routed += 1
        logger.debug(
            f"{device.name} | {change.attribute}={change.value!r} -> {delivered} characteristic(s)"
        )
        return delivered
