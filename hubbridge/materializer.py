"""
Materializer: idempotent upsert of services and characteristics.

Architecture:
    begin_pass() → PassContext → role handlers call get_or_add_* → finish_pass()
                                                                    ├── cleanup()
                                                                    └── set_primary_service()

A PassContext lives for exactly one classification pass of one accessory.
Everything a handler touches through it is marked active; cleanup removes
whatever was not, so objects from earlier passes never linger.
"""

import logging
import re
from typing import Any, Callable, Dict, Iterable, Optional, Set, TYPE_CHECKING

from .capabilities import CapabilitySet
from .config import BridgeConfig
from .protocol.objects import Accessory, Binding, Characteristic, Service, service_id
from .protocol.types import CharacteristicType, ServiceType

if TYPE_CHECKING:
    from .router import AttributeUpdateRouter

logger = logging.getLogger(__name__)

UNNAMED_DEVICE = "Unnamed Device"

SERVICE_PRIORITY: Dict[ServiceType, int] = {
    ServiceType.SECURITY_SYSTEM: 100,
    ServiceType.THERMOSTAT: 90,
    ServiceType.LOCK_MECHANISM: 80,
    ServiceType.GARAGE_DOOR_OPENER: 75,
    ServiceType.VALVE: 74,
    ServiceType.WINDOW: 70,
    ServiceType.WINDOW_COVERING: 65,
    ServiceType.LIGHTBULB: 60,
    ServiceType.SPEAKER: 58,
    ServiceType.OUTLET: 55,
    ServiceType.SWITCH: 50,
    ServiceType.FANV2: 45,
    ServiceType.STATELESS_PROGRAMMABLE_SWITCH: 42,
    ServiceType.MOTION_SENSOR: 40,
    ServiceType.CONTACT_SENSOR: 35,
    ServiceType.OCCUPANCY_SENSOR: 34,
    ServiceType.TEMPERATURE_SENSOR: 30,
    ServiceType.HUMIDITY_SENSOR: 25,
    ServiceType.LIGHT_SENSOR: 24,
    ServiceType.LEAK_SENSOR: 20,
    ServiceType.AIR_QUALITY_SENSOR: 18,
    ServiceType.CARBON_MONOXIDE_SENSOR: 15,
    ServiceType.CARBON_DIOXIDE_SENSOR: 10,
    ServiceType.BATTERY: 5,
}


def sanitize_name(name: Optional[str]) -> str:
    """Reduce a device name to characters the protocol accepts."""
    if not name:
        return UNNAMED_DEVICE
    sanitized = re.sub(r"[^a-zA-Z0-9 ']", "", name).strip()
    sanitized = re.sub(r"^[^a-zA-Z0-9]+", "", sanitized)
    sanitized = re.sub(r"[^a-zA-Z0-9]+$", "", sanitized)
    sanitized = re.sub(r"\s{2,}", " ", sanitized)
    return sanitized or UNNAMED_DEVICE


def to_title_case(text: str) -> str:
    return re.sub(r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


class PassContext:
    """
    Pass-scoped view handed to role handlers.

    Tracks the services and characteristics marked active during the pass;
    consumed by the cleanup step and discarded afterwards.
    """

    def __init__(
        self,
        accessory: Accessory,
        caps: CapabilitySet,
        config: BridgeConfig,
        materializer: "Materializer",
    ):
        self.accessory = accessory
        self.device = accessory.device
        self.caps = caps
        self.config = config
        self.active_services: Set[str] = set()
        self.active_characteristics: Set[str] = set()
        self.finished = False
        self._materializer = materializer

    def service_name(self, suffix: str) -> str:
        return re.sub(r"[^a-zA-Z0-9 ]", "", f"{self.accessory.display_name} {suffix}").strip()

    def get_or_add_service(
        self,
        type: ServiceType,
        name: Optional[str] = None,
        subtype: Optional[str] = None,
    ) -> Service:
        return self._materializer.get_or_add_service(self, type, name, subtype)

    def get_or_add_characteristic(
        self,
        service: Service,
        type: CharacteristicType,
        pre_req: Optional[Callable[[], bool]] = None,
        get_handler: Optional[Callable[[], Any]] = None,
        set_handler: Optional[Callable[[Any], Any]] = None,
        update_handler: Optional[Callable[..., Any]] = None,
        props: Optional[Dict[str, Any]] = None,
        value: Any = None,
        attributes: Iterable[str] = (),
        remove_if_missing_pre_req: bool = False,
    ) -> Optional[Characteristic]:
        return self._materializer.get_or_add_characteristic(
            self,
            service,
            type,
            pre_req=pre_req,
            get_handler=get_handler,
            set_handler=set_handler,
            update_handler=update_handler,
            props=props,
            value=value,
            attributes=attributes,
            remove_if_missing_pre_req=remove_if_missing_pre_req,
        )

    async def send_command(self, command: str, *params: Any) -> Any:
        return await self.accessory.send_command(command, *params)


class Materializer:
    """Creates, rebinds and prunes protocol objects for accessories."""

    def __init__(self, router: "AttributeUpdateRouter", config: Optional[BridgeConfig] = None):
        self.router = router
        self.config = config or BridgeConfig()
        self._in_pass: Set[str] = set()

    # ---- pass lifecycle ----

    def begin_pass(self, accessory: Accessory, caps: CapabilitySet) -> PassContext:
        if accessory.id in self._in_pass:
            raise RuntimeError(f"Classification pass already running for {accessory.id}")
        self._in_pass.add(accessory.id)
        ctx = PassContext(accessory, caps, self.config, self)
        self.configure_information(ctx)
        return ctx

    def finish_pass(self, ctx: PassContext) -> None:
        try:
            self.cleanup(ctx)
            self.set_primary_service(ctx.accessory)
        finally:
            ctx.finished = True
            self._in_pass.discard(ctx.accessory.id)

    def abort_pass(self, ctx: PassContext) -> None:
        ctx.finished = True
        self._in_pass.discard(ctx.accessory.id)

    # ---- upserts ----

    def get_or_add_service(
        self,
        ctx: PassContext,
        type: ServiceType,
        name: Optional[str] = None,
        subtype: Optional[str] = None,
    ) -> Service:
        accessory = ctx.accessory
        if name:
            original = name
            name = re.sub(r"[^a-zA-Z0-9 ]", "", name).strip()
            if name != original:
                logger.warning(f"Service name sanitized from \"{original}\" to \"{name}\"")
        if subtype:
            original = subtype
            subtype = re.sub(r"[^a-zA-Z0-9]", "", subtype)
            if subtype != original:
                logger.warning(f"Service subtype sanitized from \"{original}\" to \"{subtype}\"")

        ctx.active_services.add(service_id(type, subtype))

        service = accessory.get_service(type, subtype)
        if service is None:
            service = accessory.add_service(Service(type, name or accessory.display_name, subtype))
            logger.debug(f"{accessory.display_name} | added service {service.id}")
            if name:
                service.set_value(CharacteristicType.NAME, name)
            return service

        if name:
            current = service.get_characteristic(CharacteristicType.NAME)
            if current is None or current.value != name:
                service.set_value(CharacteristicType.NAME, name)
            service.display_name = name
        elif type != ServiceType.ACCESSORY_INFORMATION and service.get_characteristic(CharacteristicType.NAME):
            service.remove_characteristic(CharacteristicType.NAME)
        return service

    def get_or_add_characteristic(
        self,
        ctx: PassContext,
        service: Service,
        type: CharacteristicType,
        pre_req: Optional[Callable[[], bool]] = None,
        get_handler: Optional[Callable[[], Any]] = None,
        set_handler: Optional[Callable[[Any], Any]] = None,
        update_handler: Optional[Callable[..., Any]] = None,
        props: Optional[Dict[str, Any]] = None,
        value: Any = None,
        attributes: Iterable[str] = (),
        remove_if_missing_pre_req: bool = False,
    ) -> Optional[Characteristic]:
        device_id = ctx.accessory.id

        if pre_req is not None and not pre_req():
            if remove_if_missing_pre_req:
                removed = service.remove_characteristic(type)
                if removed is not None:
                    self.router.unsubscribe(device_id, removed)
                    logger.debug(f"{ctx.accessory.display_name} | removed {removed.key} (prerequisite missing)")
            return None

        char = service.add_characteristic(type)
        ctx.active_characteristics.add(char.key)

        if props:
            char.set_props(props)

        # Replace, never stack: the previous binding and its subscriptions go away
        self.router.unsubscribe(device_id, char)
        char.binding = Binding(
            get_handler=get_handler,
            set_handler=set_handler,
            update_handler=update_handler,
            attributes=tuple(attributes),
        )
        if char.binding.attributes:
            self.router.subscribe(device_id, char)

        if value is not None:
            char.update_value(value)
        elif get_handler is not None:
            char.update_value(get_handler())
        return char

    # ---- information service ----

    def configure_information(self, ctx: PassContext) -> Service:
        accessory = ctx.accessory
        device = accessory.device
        accessory.display_name = sanitize_name(device.name)

        info = self.get_or_add_service(ctx, ServiceType.ACCESSORY_INFORMATION)
        info.set_value(CharacteristicType.FIRMWARE_REVISION, device.firmware or "")
        info.set_value(CharacteristicType.MANUFACTURER, device.manufacturer or "")
        info.set_value(CharacteristicType.MODEL, to_title_case(device.model) if device.model else "Unknown")
        info.set_value(CharacteristicType.NAME, accessory.display_name)
        info.set_value(CharacteristicType.SERIAL_NUMBER, device.serial)

        identify = info.add_characteristic(CharacteristicType.IDENTIFY)
        identify.binding = Binding(
            set_handler=lambda v: logger.debug(f"{accessory.display_name} identified with value: {v}"),
        )
        return info

    # ---- end of pass ----

    def cleanup(self, ctx: PassContext) -> None:
        """Remove services and characteristics not marked active in this pass."""
        accessory = ctx.accessory
        for service in list(accessory.services.values()):
            if service.type == ServiceType.ACCESSORY_INFORMATION:
                continue

            if service.id not in ctx.active_services:
                for char in service.characteristics.values():
                    self.router.unsubscribe(accessory.id, char)
                accessory.remove_service(service)
                logger.debug(f"{accessory.display_name} | removed stale service {service.id}")
                continue

            for char in list(service.characteristics.values()):
                if char.type == CharacteristicType.NAME:
                    continue
                if char.key not in ctx.active_characteristics:
                    self.router.unsubscribe(accessory.id, char)
                    service.remove_characteristic(char.type)
                    logger.debug(f"{accessory.display_name} | removed stale characteristic {char.key}")

    def set_primary_service(self, accessory: Accessory) -> Optional[Service]:
        services = [
            s for s in accessory.services.values()
            if s.type != ServiceType.ACCESSORY_INFORMATION
        ]
        if not services:
            return None

        # sorted() is stable, so equal priorities keep insertion order
        ranked = sorted(services, key=lambda s: SERVICE_PRIORITY.get(s.type, 0), reverse=True)
        primary = ranked[0]
        for service in services:
            service.primary = service is primary

        logger.debug(
            f"Setting primary service for {accessory.display_name}: "
            f"{primary.id} (Priority: {SERVICE_PRIORITY.get(primary.type, 0)})"
        )
        return primary

    def remove_accessory(self, accessory: Accessory) -> None:
        self.router.unsubscribe_device(accessory.id)
        accessory.cancel_timers()
        accessory.services.clear()
