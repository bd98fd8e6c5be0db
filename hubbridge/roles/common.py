"""
Characteristic wiring shared by several roles.
"""

from typing import Any, Callable, Optional

from ..materializer import PassContext
from ..models import Device, DeviceStatus
from ..protocol.objects import Characteristic, Service
from ..protocol.types import CharacteristicType as C, StatusTampered
from .. import transforms


def attr(device: Device, name: str, default: Any = None) -> Any:
    return device.attributes.get(name, default)


def is_status_active(device: Device) -> bool:
    raw = device.attributes.get("status")
    status = DeviceStatus.parse(raw) if raw is not None else device.status
    return status != DeviceStatus.OFFLINE


def add_on_characteristic(ctx: PassContext, service: Service) -> Optional[Characteristic]:
    device, accessory = ctx.device, ctx.accessory
    return ctx.get_or_add_characteristic(
        service,
        C.ON,
        get_handler=lambda: transforms.on_off(attr(device, "switch")),
        set_handler=lambda v: accessory.send_command("on" if v else "off"),
        attributes=("switch",),
    )


def add_status_active(ctx: PassContext, service: Service) -> Optional[Characteristic]:
    device = ctx.device
    return ctx.get_or_add_characteristic(
        service,
        C.STATUS_ACTIVE,
        get_handler=lambda: is_status_active(device),
        attributes=("status",),
    )


def add_status_tampered(ctx: PassContext, service: Service) -> Optional[Characteristic]:
    device, caps = ctx.device, ctx.caps
    return ctx.get_or_add_characteristic(
        service,
        C.STATUS_TAMPERED,
        pre_req=lambda: caps.has_capability("TamperAlert"),
        get_handler=lambda: (
            StatusTampered.TAMPERED if attr(device, "tamper") == "detected"
            else StatusTampered.NOT_TAMPERED
        ),
        attributes=("tamper",),
        remove_if_missing_pre_req=True,
    )


def add_status_low_battery(ctx: PassContext, service: Service) -> Optional[Characteristic]:
    device, caps = ctx.device, ctx.caps
    return ctx.get_or_add_characteristic(
        service,
        C.STATUS_LOW_BATTERY,
        pre_req=lambda: caps.has_capability("Battery"),
        get_handler=lambda: transforms.battery_status(attr(device, "battery")),
        attributes=("battery",),
        remove_if_missing_pre_req=True,
    )


def add_sensor_status(ctx: PassContext, service: Service, low_battery: bool = True) -> None:
    """StatusActive, StatusTampered and (optionally) StatusLowBattery."""
    add_status_active(ctx, service)
    add_status_tampered(ctx, service)
    if low_battery:
        add_status_low_battery(ctx, service)


def state_getter(device: Device, attribute: str, mapping: dict, default: Any) -> Callable[[], Any]:
    """Getter that maps a keyword attribute through a lookup table."""
    return lambda: mapping.get(attr(device, attribute), default)
