"""
Default role table.

Order matters: a role named in another role's ``exclude_roles`` is
declared first (light, outlet and fan before switch; garageDoor before
contactSensor).
"""

from typing import List

from ..capabilities import CapabilitySet
from .access import (
    AlarmSystemHandler,
    GarageDoorHandler,
    LockHandler,
    ValveHandler,
    WindowCoveringHandler,
)
from .base import Role
from .climate import AirPurifierHandler, FanHandler, HumidifierHandler, ThermostatHandler
from .controls import ButtonHandler, SpeakerHandler, VirtualModeHandler, VirtualPistonHandler
from .lighting import LightHandler, OutletHandler, SwitchHandler
from .power import BatteryHandler, EnergyMeterHandler, PowerMeterHandler
from .registry import RoleRegistry
from .sensors import (
    AccelerationSensorHandler,
    AirQualityHandler,
    CarbonDioxideHandler,
    CarbonMonoxideHandler,
    ContactSensorHandler,
    FilterMaintenanceHandler,
    HumiditySensorHandler,
    IlluminanceSensorHandler,
    LeakSensorHandler,
    MotionSensorHandler,
    PresenceSensorHandler,
    SmokeDetectorHandler,
    TemperatureSensorHandler,
)

BUTTON_CAPABILITIES = ("Button", "DoubleTapableButton", "HoldableButton", "PushableButton")
COLOR_ATTRIBUTES = ("hue", "saturation", "colorTemperature")
NOT_A_DIMMER = ("Fan", "FanControl", "WindowShade", "Outlet", "Valve")
THERMOSTAT_EXCLUSIONS = dict(
    exclude_capabilities=("Thermostat", "ThermostatOperatingState"),
    exclude_attributes=("thermostatOperatingState",),
)


def is_dimmer(caps: CapabilitySet) -> bool:
    return (
        caps.has_capability("SwitchLevel")
        and caps.has_command("setLevel")
        and not caps.has_any_capability(NOT_A_DIMMER)
    )


def is_light(caps: CapabilitySet) -> bool:
    if not caps.has_capability("Switch"):
        return False
    return (
        caps.has_any_capability(("LightBulb", "Bulb", "ColorControl"))
        or caps.looks_like_light()
        or caps.has_any_attribute(COLOR_ATTRIBUTES)
        or is_dimmer(caps)
    )


def is_fan(caps: CapabilitySet) -> bool:
    if caps.has_any_capability(("Fan", "FanControl")) and caps.has_speed_control():
        return True
    return caps.looks_like_fan() and caps.has_capability("Switch")


def is_thermostat(caps: CapabilitySet) -> bool:
    return caps.has_any_capability(("Thermostat", "ThermostatOperatingState")) or caps.has_attribute(
        "thermostatOperatingState"
    )


def default_roles() -> List[Role]:
    return [
        Role("windowCovering", lambda c: c.has_capability("WindowShade"), WindowCoveringHandler()),
        Role("light", is_light, LightHandler()),
        Role(
            "airPurifier",
            lambda c: c.has_capability("custom.airPurifierOperationMode"),
            AirPurifierHandler(),
            disabled=True,
        ),
        Role("garageDoor", lambda c: c.has_capability("GarageDoorControl"), GarageDoorHandler()),
        Role("lock", lambda c: c.has_capability("Lock"), LockHandler()),
        Role("valve", lambda c: c.has_capability("Valve"), ValveHandler()),
        Role("speaker", lambda c: c.has_capability("Speaker"), SpeakerHandler()),
        Role(
            "filterMaintenance",
            lambda c: c.has_capability("FilterStatus") and c.has_attribute("filterStatus"),
            FilterMaintenanceHandler(),
        ),
        Role("fan", is_fan, FanHandler()),
        Role("virtualMode", lambda c: c.has_capability("Mode"), VirtualModeHandler()),
        Role("virtualPiston", lambda c: c.has_capability("Piston"), VirtualPistonHandler()),
        Role("button", lambda c: c.has_any_capability(BUTTON_CAPABILITIES), ButtonHandler()),
        Role(
            "outlet",
            lambda c: c.has_capability("Outlet") and c.has_capability("Switch"),
            OutletHandler(),
            exclude_capabilities=("LightBulb", "Bulb", "Button", "Fan", "FanControl"),
        ),
        Role(
            "switch",
            lambda c: c.has_capability("Switch") and not c.looks_like_light(),
            SwitchHandler(),
            exclude_capabilities=(
                "WindowShade",
                "DoorControl",
                "GarageDoorControl",
                "Fan",
                "FanControl",
                "LightBulb",
                "Bulb",
                "Outlet",
                "Button",
                "Valve",
            ),
            exclude_attributes=("position", "level", "windowShade"),
            exclude_roles=("light", "outlet", "fan"),
        ),
        Role(
            "smokeDetector",
            lambda c: c.has_capability("SmokeDetector") and c.has_attribute("smoke"),
            SmokeDetectorHandler(),
        ),
        Role(
            "carbonMonoxide",
            lambda c: c.has_capability("CarbonMonoxideDetector") and c.has_attribute("carbonMonoxide"),
            CarbonMonoxideHandler(),
        ),
        Role(
            "carbonDioxide",
            lambda c: c.has_capability("CarbonDioxideMeasurement") and c.has_attribute("carbonDioxide"),
            CarbonDioxideHandler(),
        ),
        Role("motionSensor", lambda c: c.has_capability("MotionSensor"), MotionSensorHandler()),
        Role("accelerationSensor", lambda c: c.has_capability("AccelerationSensor"), AccelerationSensorHandler()),
        Role("leakSensor", lambda c: c.has_capability("WaterSensor"), LeakSensorHandler()),
        Role("presenceSensor", lambda c: c.has_capability("PresenceSensor"), PresenceSensorHandler()),
        Role(
            "humiditySensor",
            lambda c: c.has_capability("RelativeHumidityMeasurement") and c.has_attribute("humidity"),
            HumiditySensorHandler(),
            **THERMOSTAT_EXCLUSIONS,
        ),
        Role(
            "temperatureSensor",
            lambda c: c.has_capability("TemperatureMeasurement"),
            TemperatureSensorHandler(),
            **THERMOSTAT_EXCLUSIONS,
        ),
        Role("illuminanceSensor", lambda c: c.has_capability("IlluminanceMeasurement"), IlluminanceSensorHandler()),
        Role(
            "contactSensor",
            lambda c: c.has_capability("ContactSensor"),
            ContactSensorHandler(),
            exclude_capabilities=("GarageDoorControl",),
            exclude_roles=("garageDoor",),
        ),
        Role("airQuality", lambda c: c.has_any_capability(("AirQuality", "airQuality")), AirQualityHandler()),
        Role("battery", lambda c: c.has_capability("Battery"), BatteryHandler()),
        Role("energyMeter", lambda c: c.has_capability("EnergyMeter"), EnergyMeterHandler()),
        Role("powerMeter", lambda c: c.has_capability("PowerMeter"), PowerMeterHandler()),
        Role("thermostat", is_thermostat, ThermostatHandler()),
        Role("alarmSystem", lambda c: c.has_attribute("alarmSystemStatus"), AlarmSystemHandler()),
        Role("humidifier", lambda c: c.has_any_capability(("Humidifier", "Dehumidifier")), HumidifierHandler()),
    ]


def build_default_registry() -> RoleRegistry:
    """A fresh registry holding the default role table."""
    return RoleRegistry(default_roles())
