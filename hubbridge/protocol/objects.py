"""
Accessory object model exposed to the protocol runtime.

Architecture:
    Accessory (1 per hub device)
      └── Service (keyed by type + subtype)
            └── Characteristic (keyed by type)
                  └── Binding (get / set / update handlers + subscribed attributes)

Reads are synchronous: ``Characteristic.get()`` re-derives the value from
the device's attribute store through the binding's get handler. Writes
are asynchronous: ``await Characteristic.set(value)`` resolves once the
resulting hub command has succeeded or failed.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from ..errors import CommandError, InvalidValueError
from ..models import AttributeChange, Device
from .types import CharacteristicType, ServiceType

logger = logging.getLogger(__name__)

CommandSender = Callable[[str, str, List[Any]], Awaitable[Any]]
ChangeListener = Callable[["Characteristic", Any], None]

# Stateless events notify on every update, repeated values included
EVENT_CHARACTERISTICS = frozenset({CharacteristicType.PROGRAMMABLE_SWITCH_EVENT})


@dataclass
class Binding:
    """Handlers attached to one characteristic; replaced wholesale on rebind."""
    get_handler: Optional[Callable[[], Any]] = None
    set_handler: Optional[Callable[[Any], Any]] = None
    # Receives the raw AttributeChange; returning None skips the push.
    update_handler: Optional[Callable[[AttributeChange], Any]] = None
    attributes: Tuple[str, ...] = ()

    @property
    def writable(self) -> bool:
        return self.set_handler is not None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Characteristic:
    """A single readable (and optionally writable) control point."""

    def __init__(self, type: CharacteristicType, service: "Service", value: Any = None):
        self.type = type
        self.service = service
        self.value = value
        self.props: Dict[str, Any] = {}
        self.binding: Optional[Binding] = None
        self._listeners: List[ChangeListener] = []

    @property
    def key(self) -> str:
        return f"{self.service.id}/{self.type.value}"

    def set_props(self, props: Dict[str, Any]) -> "Characteristic":
        self.props.update(props)
        return self

    def on_change(self, listener: ChangeListener) -> None:
        """Register a runtime listener notified when the value changes."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def constrain(self, value: Any) -> Any:
        """Clamp numeric values into the declared min/max range."""
        if not _is_number(value):
            return value
        min_value = self.props.get("minValue")
        max_value = self.props.get("maxValue")
        if min_value is not None and value < min_value:
            return min_value
        if max_value is not None and value > max_value:
            return max_value
        return value

    def get(self) -> Any:
        if self.binding is not None and self.binding.get_handler is not None:
            self.value = self.constrain(self.binding.get_handler())
        return self.value

    async def set(self, value: Any) -> Any:
        if self.binding is None or self.binding.set_handler is None:
            raise InvalidValueError(self.type.value, value, "characteristic is read-only")

        valid_values = self.props.get("validValues")
        if valid_values is not None and value not in valid_values:
            raise InvalidValueError(self.type.value, value, f"expected one of {list(valid_values)}")
        value = self.constrain(value)

        result = self.binding.set_handler(value)
        if inspect.isawaitable(result):
            result = await result
        self.value = value
        return result

    def update_value(self, value: Any) -> Any:
        """Push a new value and notify listeners if it changed."""
        value = self.constrain(value)
        changed = value != self.value or self.type in EVENT_CHARACTERISTICS
        self.value = value
        if changed:
            for listener in list(self._listeners):
                listener(self, value)
        return value

    def describe(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "value": self.value,
            "props": dict(self.props),
            "writable": bool(self.binding and self.binding.writable),
            "attributes": list(self.binding.attributes) if self.binding else [],
        }

    def __repr__(self) -> str:
        return f"<Characteristic {self.key}={self.value!r}>"


class Service:
    """A protocol grouping of related characteristics."""

    def __init__(self, type: ServiceType, name: Optional[str] = None, subtype: Optional[str] = None):
        self.type = type
        self.subtype = subtype
        self.display_name = name
        self.primary = False
        self.characteristics: Dict[CharacteristicType, Characteristic] = {}

    @property
    def id(self) -> str:
        return service_id(self.type, self.subtype)

    @property
    def name(self) -> Optional[str]:
        char = self.characteristics.get(CharacteristicType.NAME)
        return char.value if char else None

    def get_characteristic(self, type: CharacteristicType) -> Optional[Characteristic]:
        return self.characteristics.get(type)

    def add_characteristic(self, type: CharacteristicType) -> Characteristic:
        char = self.characteristics.get(type)
        if char is None:
            char = Characteristic(type, self)
            self.characteristics[type] = char
        return char

    def remove_characteristic(self, type: CharacteristicType) -> Optional[Characteristic]:
        return self.characteristics.pop(type, None)

    def set_value(self, type: CharacteristicType, value: Any) -> Characteristic:
        char = self.add_characteristic(type)
        char.update_value(value)
        return char

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "subtype": self.subtype,
            "name": self.name,
            "primary": self.primary,
            "characteristics": [c.describe() for c in self.characteristics.values()],
        }

    def __repr__(self) -> str:
        return f"<Service {self.id}>"


def service_id(type: ServiceType, subtype: Optional[str] = None) -> str:
    return f"{type.value}:{subtype}" if subtype else type.value


class Accessory:
    """
    The protocol-side counterpart of one hub device.

    Owns its services and the classification cache; the matched roles of
    the last pass are kept for inspection.
    """

    def __init__(self, device: Device, command_sender: Optional[CommandSender] = None):
        self.device = device
        self.display_name = device.name
        self.services: Dict[str, Service] = {}
        self.roles: List[str] = []
        self.classification_cache: Optional[Tuple[str, List[str]]] = None
        self.command_sender = command_sender
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    @property
    def id(self) -> str:
        return self.device.id

    @property
    def information_service(self) -> Optional[Service]:
        return self.services.get(ServiceType.ACCESSORY_INFORMATION.value)

    @property
    def primary_service(self) -> Optional[Service]:
        for service in self.services.values():
            if service.primary:
                return service
        return None

    def get_service(self, type: ServiceType, subtype: Optional[str] = None) -> Optional[Service]:
        return self.services.get(service_id(type, subtype))

    def add_service(self, service: Service) -> Service:
        self.services[service.id] = service
        return service

    def remove_service(self, service: Service) -> Optional[Service]:
        return self.services.pop(service.id, None)

    def characteristic(
        self,
        service_type: ServiceType,
        char_type: CharacteristicType,
        subtype: Optional[str] = None,
    ) -> Optional[Characteristic]:
        """Shortcut lookup used by the runtime and tests."""
        service = self.get_service(service_type, subtype)
        return service.get_characteristic(char_type) if service else None

    def call_later(self, key: str, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        """Schedule callback, replacing any pending timer with the same key."""
        self.cancel_timer(key)

        def run() -> None:
            self._timers.pop(key, None)
            callback(*args)

        handle = asyncio.get_running_loop().call_later(delay, run)
        self._timers[key] = handle
        return handle

    def cancel_timer(self, key: str) -> bool:
        handle = self._timers.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_timers(self) -> None:
        for key in list(self._timers):
            self.cancel_timer(key)

    async def send_command(self, command: str, *params: Any) -> Any:
        """Send a hub command for this device; None parameters are dropped."""
        if self.command_sender is None:
            raise CommandError(self.id, command, list(params), RuntimeError("no command sender attached"))
        valid_params = [p for p in params if p is not None]
        return await self.command_sender(self.id, command, valid_params)

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "roles": list(self.roles),
            "services": [s.describe() for s in self.services.values()],
        }

    def __repr__(self) -> str:
        return f"<Accessory {self.id} {self.display_name!r}>"
