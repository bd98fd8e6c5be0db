"""
Climate roles: fan, thermostat, air purifier, humidifier.
"""

import logging
from typing import Any, List, Optional

from ..capabilities import CapabilitySet
from ..materializer import PassContext
from ..models import Device
from ..protocol.objects import Service
from ..protocol.types import (
    Active,
    CharacteristicType as C,
    CurrentAirPurifierState,
    CurrentFanState,
    CurrentHumidifierDehumidifierState,
    HeatingCoolingState,
    ServiceType,
    TargetAirPurifierState,
    TargetFanState,
    TargetHumidifierDehumidifierState,
    TemperatureDisplayUnits,
)
from .. import transforms
from .common import attr

logger = logging.getLogger(__name__)

# Celsius bounds of the thermostat characteristics
CURRENT_TEMP_RANGE = (0, 100)
TARGET_TEMP_RANGE = (10, 38)
COOLING_THRESHOLD_RANGE = (10, 35)
HEATING_THRESHOLD_RANGE = (0, 25)

THERMOSTAT_OPERATING_STATE = {
    "heating": HeatingCoolingState.HEAT,
    "pending heat": HeatingCoolingState.HEAT,
    "cooling": HeatingCoolingState.COOL,
    "pending cool": HeatingCoolingState.COOL,
}

THERMOSTAT_MODE = {
    "heat": HeatingCoolingState.HEAT,
    "emergency heat": HeatingCoolingState.HEAT,
    "cool": HeatingCoolingState.COOL,
    "auto": HeatingCoolingState.AUTO,
}

THERMOSTAT_MODE_COMMANDS = {
    HeatingCoolingState.HEAT: "heat",
    HeatingCoolingState.COOL: "cool",
    HeatingCoolingState.AUTO: "auto",
    HeatingCoolingState.OFF: "off",
}

PURIFIER_SPEEDS = ["low", "medium", "high"]


def _active(value: Any) -> Active:
    return Active.ACTIVE if value == "on" else Active.INACTIVE


class FanHandler:
    """Fanv2 with on/off and rotation speed from level or named speeds."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        svc = ctx.get_or_add_service(ServiceType.FANV2, ctx.service_name("Fan"))

        ctx.get_or_add_characteristic(
            svc,
            C.ACTIVE,
            pre_req=lambda: caps.has_attribute("switch"),
            get_handler=lambda: _active(attr(device, "switch")),
            set_handler=lambda v: accessory.send_command("on" if v else "off"),
            attributes=("switch",),
            remove_if_missing_pre_req=True,
        )
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_FAN_STATE,
            pre_req=lambda: caps.has_attribute("switch"),
            get_handler=lambda: (
                CurrentFanState.BLOWING_AIR if attr(device, "switch") == "on" else CurrentFanState.IDLE
            ),
            attributes=("switch",),
            remove_if_missing_pre_req=True,
        )
        self._configure_rotation_speed(ctx, svc)

    def _configure_rotation_speed(self, ctx: PassContext, svc: Service) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        flags = sorted(caps.flags)

        if caps.has_attribute("speed") and caps.has_command("setSpeed"):
            speeds = transforms.fan_speed_list(flags, attr(device, "supportedFanSpeeds"))
            step = transforms.fan_speed_step(flags)
            if step == 1:
                step = max(1, 100 // len(speeds))

            def get_speed() -> int:
                value = attr(device, "speed")
                if transforms.to_number(value) is not None:
                    return transforms.percentage(value)
                return transforms.fan_speed_to_percent(value, speeds)

            ctx.get_or_add_characteristic(
                svc,
                C.ROTATION_SPEED,
                get_handler=get_speed,
                set_handler=lambda v: accessory.send_command(
                    "setSpeed", transforms.percent_to_fan_speed(v, speeds)
                ),
                props={"minValue": 0, "maxValue": 100, "minStep": step},
                attributes=("speed",),
            )
        elif caps.has_attribute("level") and caps.has_command("setLevel"):
            ctx.get_or_add_characteristic(
                svc,
                C.ROTATION_SPEED,
                get_handler=lambda: transforms.percentage(attr(device, "level")),
                set_handler=lambda v: accessory.send_command("setLevel", int(v)),
                props={"minValue": 0, "maxValue": 100, "minStep": transforms.fan_speed_step(flags)},
                attributes=("level",),
            )


def supported_thermostat_modes(device: Device) -> List[str]:
    return transforms.parse_list(attr(device, "supportedThermostatModes"))


def supports_auto_mode(caps: CapabilitySet, device: Device) -> bool:
    return "auto" in supported_thermostat_modes(device) or (
        caps.has_attribute("coolingSetpoint") and caps.has_attribute("heatingSetpoint")
    )


def supports_thermostat_fan(caps: CapabilitySet) -> bool:
    return (
        caps.has_attribute("thermostatFanMode")
        and caps.has_command("fanOn")
        and caps.has_command("fanAuto")
    )


def target_modes(caps: CapabilitySet, device: Device) -> List[HeatingCoolingState]:
    supported = supported_thermostat_modes(device)
    modes = [HeatingCoolingState.OFF]
    if "heat" in supported or "emergency heat" in supported or caps.has_attribute("heatingSetpoint"):
        modes.append(HeatingCoolingState.HEAT)
    if "cool" in supported or caps.has_attribute("coolingSetpoint"):
        modes.append(HeatingCoolingState.COOL)
    if supports_auto_mode(caps, device):
        modes.append(HeatingCoolingState.AUTO)
    return modes


def active_setpoint(device: Device) -> Optional[float]:
    """
    The setpoint the thermostat is currently working towards, in hub units.

    In auto mode it is whichever setpoint lies closer to the current
    temperature; an exact tie resolves to the heating setpoint.
    """
    mode = attr(device, "thermostatMode")
    cooling = transforms.to_number(attr(device, "coolingSetpoint"))
    heating = transforms.to_number(attr(device, "heatingSetpoint"))

    if mode == "cool":
        return cooling
    if mode in ("heat", "emergency heat"):
        return heating
    if mode == "auto":
        current = transforms.to_number(attr(device, "temperature"))
        if current is None or cooling is None or heating is None:
            return heating if heating is not None else cooling
        return cooling if abs(current - cooling) < abs(current - heating) else heating

    setpoint = transforms.to_number(attr(device, "thermostatSetpoint"))
    if setpoint is not None:
        return setpoint
    return transforms.to_number(attr(device, "temperature"))


def setpoint_command(device: Device, target: float) -> str:
    """Hub command that moves the active setpoint to target (hub units)."""
    mode = attr(device, "thermostatMode")
    if mode == "cool":
        return "setCoolingSetpoint"
    if mode in ("heat", "emergency heat"):
        return "setHeatingSetpoint"
    if mode == "auto":
        current = transforms.to_number(attr(device, "temperature"))
        if current is not None and target > current:
            return "setCoolingSetpoint"
        return "setHeatingSetpoint"
    return "setThermostatSetpoint"


class ThermostatHandler:
    """Thermostat with setpoints, modes, humidity, auto thresholds and fan."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps, config = ctx.device, ctx.accessory, ctx.caps, ctx.config
        fahrenheit = config.uses_fahrenheit
        svc = ctx.get_or_add_service(ServiceType.THERMOSTAT, ctx.service_name("Thermostat"))

        def to_celsius(value: Any, bounds) -> float:
            return transforms.clamp(transforms.temperature_to_protocol(value, fahrenheit), *bounds)

        def to_hub(value: Any, bounds) -> Optional[float]:
            return transforms.temperature_to_hub(transforms.clamp(value, *bounds), fahrenheit)

        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_TEMPERATURE,
            get_handler=lambda: to_celsius(attr(device, "temperature"), CURRENT_TEMP_RANGE),
            props={"minValue": CURRENT_TEMP_RANGE[0], "maxValue": CURRENT_TEMP_RANGE[1], "minStep": 0.1},
            attributes=("temperature",),
        )

        def set_target(value: Any):
            target = to_hub(value, TARGET_TEMP_RANGE)
            return accessory.send_command(setpoint_command(device, target), target)

        ctx.get_or_add_characteristic(
            svc,
            C.TARGET_TEMPERATURE,
            get_handler=lambda: to_celsius(active_setpoint(device), TARGET_TEMP_RANGE),
            set_handler=set_target,
            props={"minValue": TARGET_TEMP_RANGE[0], "maxValue": TARGET_TEMP_RANGE[1], "minStep": 0.1},
            attributes=("thermostatMode", "coolingSetpoint", "heatingSetpoint", "thermostatSetpoint", "temperature"),
        )

        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_HEATING_COOLING_STATE,
            get_handler=lambda: THERMOSTAT_OPERATING_STATE.get(
                attr(device, "thermostatOperatingState"), HeatingCoolingState.OFF
            ),
            props={"validValues": [HeatingCoolingState.OFF, HeatingCoolingState.HEAT, HeatingCoolingState.COOL]},
            attributes=("thermostatOperatingState",),
        )

        ctx.get_or_add_characteristic(
            svc,
            C.TARGET_HEATING_COOLING_STATE,
            get_handler=lambda: THERMOSTAT_MODE.get(attr(device, "thermostatMode"), HeatingCoolingState.OFF),
            set_handler=lambda v: accessory.send_command(
                "setThermostatMode", THERMOSTAT_MODE_COMMANDS.get(HeatingCoolingState(v), "off")
            ),
            props={"validValues": target_modes(caps, device)},
            attributes=("thermostatMode",),
        )

        ctx.get_or_add_characteristic(
            svc,
            C.TEMPERATURE_DISPLAY_UNITS,
            value=TemperatureDisplayUnits.FAHRENHEIT if fahrenheit else TemperatureDisplayUnits.CELSIUS,
        )

        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_RELATIVE_HUMIDITY,
            pre_req=lambda: caps.has_capability("RelativeHumidityMeasurement"),
            get_handler=lambda: transforms.percentage(attr(device, "humidity")),
            props={"minValue": 0, "maxValue": 100},
            attributes=("humidity",),
            remove_if_missing_pre_req=True,
        )

        if supports_auto_mode(caps, device):
            ctx.get_or_add_characteristic(
                svc,
                C.COOLING_THRESHOLD_TEMPERATURE,
                get_handler=lambda: to_celsius(attr(device, "coolingSetpoint"), COOLING_THRESHOLD_RANGE),
                set_handler=lambda v: accessory.send_command(
                    "setCoolingSetpoint", to_hub(v, COOLING_THRESHOLD_RANGE)
                ),
                props={"minValue": COOLING_THRESHOLD_RANGE[0], "maxValue": COOLING_THRESHOLD_RANGE[1], "minStep": 0.1},
                attributes=("coolingSetpoint",),
            )
            ctx.get_or_add_characteristic(
                svc,
                C.HEATING_THRESHOLD_TEMPERATURE,
                get_handler=lambda: to_celsius(attr(device, "heatingSetpoint"), HEATING_THRESHOLD_RANGE),
                set_handler=lambda v: accessory.send_command(
                    "setHeatingSetpoint", to_hub(v, HEATING_THRESHOLD_RANGE)
                ),
                props={"minValue": HEATING_THRESHOLD_RANGE[0], "maxValue": HEATING_THRESHOLD_RANGE[1], "minStep": 0.1},
                attributes=("heatingSetpoint",),
            )

        if supports_thermostat_fan(caps):
            self._configure_fan(ctx)

    def _configure_fan(self, ctx: PassContext) -> None:
        device, accessory = ctx.device, ctx.accessory
        fan = ctx.get_or_add_service(ServiceType.FANV2, ctx.service_name("Fan"), "thermostatFan")

        ctx.get_or_add_characteristic(
            fan,
            C.ACTIVE,
            get_handler=lambda: _active(attr(device, "thermostatFanMode")),
            set_handler=lambda v: accessory.send_command("fanOn" if v == Active.ACTIVE else "fanAuto"),
            attributes=("thermostatFanMode",),
        )
        ctx.get_or_add_characteristic(
            fan,
            C.CURRENT_FAN_STATE,
            get_handler=lambda: (
                CurrentFanState.BLOWING_AIR if attr(device, "thermostatFanMode") == "on"
                else CurrentFanState.IDLE
            ),
            attributes=("thermostatFanMode",),
        )
        ctx.get_or_add_characteristic(
            fan,
            C.TARGET_FAN_STATE,
            get_handler=lambda: (
                TargetFanState.AUTO if attr(device, "thermostatFanMode") == "auto"
                else TargetFanState.MANUAL
            ),
            set_handler=lambda v: accessory.send_command("fanAuto" if v == TargetFanState.AUTO else "fanOn"),
            attributes=("thermostatFanMode",),
        )


class AirPurifierHandler:
    """Air purifier: power, purifying state, auto/manual and fan mode."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        svc = ctx.get_or_add_service(ServiceType.AIR_PURIFIER, ctx.service_name("Air Purifier"))

        ctx.get_or_add_characteristic(
            svc,
            C.ACTIVE,
            get_handler=lambda: _active(attr(device, "switch")),
            set_handler=lambda v: accessory.send_command("on" if v else "off"),
            attributes=("switch",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_AIR_PURIFIER_STATE,
            get_handler=lambda: (
                CurrentAirPurifierState.PURIFYING_AIR if attr(device, "switch") == "on"
                else CurrentAirPurifierState.INACTIVE
            ),
            attributes=("switch",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.TARGET_AIR_PURIFIER_STATE,
            pre_req=lambda: caps.has_attribute("airPurifierOperationMode"),
            get_handler=lambda: (
                TargetAirPurifierState.AUTO if attr(device, "airPurifierOperationMode") == "auto"
                else TargetAirPurifierState.MANUAL
            ),
            set_handler=lambda v: accessory.send_command(
                "setAirPurifierOperationMode", "auto" if v == TargetAirPurifierState.AUTO else "manual"
            ),
            attributes=("airPurifierOperationMode",),
            remove_if_missing_pre_req=True,
        )
        ctx.get_or_add_characteristic(
            svc,
            C.ROTATION_SPEED,
            pre_req=lambda: caps.has_attribute("fanMode") and caps.has_command("setFanMode"),
            get_handler=lambda: transforms.fan_speed_to_percent(attr(device, "fanMode"), PURIFIER_SPEEDS),
            set_handler=lambda v: accessory.send_command(
                "setFanMode", transforms.percent_to_fan_speed(v, PURIFIER_SPEEDS)
            ),
            props={"minValue": 0, "maxValue": 100, "minStep": 33},
            attributes=("fanMode",),
            remove_if_missing_pre_req=True,
        )


class HumidifierHandler:
    """Humidifier and/or dehumidifier."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        svc = ctx.get_or_add_service(
            ServiceType.HUMIDIFIER_DEHUMIDIFIER, ctx.service_name("Humidifier"), "humidifier"
        )

        humidify = caps.has_capability("Humidifier")
        dehumidify = caps.has_capability("Dehumidifier")
        if humidify and dehumidify:
            target = TargetHumidifierDehumidifierState.HUMIDIFIER_OR_DEHUMIDIFIER
            running = CurrentHumidifierDehumidifierState.IDLE
        elif dehumidify:
            target = TargetHumidifierDehumidifierState.DEHUMIDIFIER
            running = CurrentHumidifierDehumidifierState.DEHUMIDIFYING
        else:
            target = TargetHumidifierDehumidifierState.HUMIDIFIER
            running = CurrentHumidifierDehumidifierState.HUMIDIFYING

        ctx.get_or_add_characteristic(
            svc,
            C.ACTIVE,
            get_handler=lambda: _active(attr(device, "switch")),
            set_handler=lambda v: accessory.send_command("on" if v else "off"),
            attributes=("switch",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_HUMIDIFIER_DEHUMIDIFIER_STATE,
            get_handler=lambda: (
                running if attr(device, "switch") == "on" else CurrentHumidifierDehumidifierState.INACTIVE
            ),
            attributes=("switch",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.TARGET_HUMIDIFIER_DEHUMIDIFIER_STATE,
            value=target,
            props={"validValues": [target]},
        )
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_RELATIVE_HUMIDITY,
            get_handler=lambda: transforms.percentage(attr(device, "humidity")),
            props={"minValue": 0, "maxValue": 100},
            attributes=("humidity",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.HUMIDIFIER_THRESHOLD,
            pre_req=lambda: caps.has_attribute("humiditySetpoint") and caps.has_command("setHumiditySetpoint"),
            get_handler=lambda: transforms.percentage(attr(device, "humiditySetpoint")),
            set_handler=lambda v: accessory.send_command("setHumiditySetpoint", transforms.percentage(v)),
            props={"minValue": 0, "maxValue": 100},
            attributes=("humiditySetpoint",),
            remove_if_missing_pre_req=True,
        )
