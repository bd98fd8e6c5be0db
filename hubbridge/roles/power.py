"""
Power roles: battery, energy meter, power meter.
"""

from ..materializer import PassContext
from ..protocol.types import CharacteristicType as C, ChargingState, ServiceType
from .. import transforms
from .common import attr, state_getter

CHARGING_STATE = {
    "mains": ChargingState.CHARGING,
    "dc": ChargingState.CHARGING,
    "battery": ChargingState.NOT_CHARGING,
}


class BatteryHandler:
    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.BATTERY, ctx.service_name("Battery"))
        ctx.get_or_add_characteristic(
            svc,
            C.BATTERY_LEVEL,
            get_handler=lambda: transforms.battery_level(attr(device, "battery")),
            props={"minValue": 0, "maxValue": 100},
            attributes=("battery",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.STATUS_LOW_BATTERY,
            get_handler=lambda: transforms.battery_status(attr(device, "battery")),
            attributes=("battery",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.CHARGING_STATE,
            get_handler=state_getter(device, "powerSource", CHARGING_STATE, ChargingState.NOT_CHARGEABLE),
            attributes=("powerSource",),
        )


class EnergyMeterHandler:
    """Accumulated energy in kWh on a community EnergyMeter service."""

    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.ENERGY_METER, ctx.service_name("Energy"))
        ctx.get_or_add_characteristic(
            svc,
            C.KILOWATT_HOURS,
            get_handler=lambda: round(max(transforms.to_number(attr(device, "energy")) or 0, 0)),
            attributes=("energy",),
        )


class PowerMeterHandler:
    """Instantaneous power in watts on a community PowerMeter service."""

    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.POWER_METER, ctx.service_name("Power"))
        ctx.get_or_add_characteristic(
            svc,
            C.WATTS,
            get_handler=lambda: round(transforms.to_number(attr(device, "power")) or 0),
            attributes=("power",),
        )
