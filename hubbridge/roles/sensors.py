"""
Sensor roles.

Every sensor service carries StatusActive, StatusTampered (with
TamperAlert) and StatusLowBattery (with Battery) next to its reading.
"""

from typing import Any, Callable

from ..materializer import PassContext
from ..models import Device
from ..protocol.types import (
    AirQuality,
    CharacteristicType as C,
    ContactSensorState,
    Detected,
    FilterChangeIndication,
    GasLevel,
    ServiceType,
)
from .. import transforms
from .common import add_sensor_status, attr

CO2_ABNORMAL_PPM = 2000

AQI_LEVELS = (
    (50, AirQuality.EXCELLENT),
    (100, AirQuality.GOOD),
    (150, AirQuality.FAIR),
    (200, AirQuality.INFERIOR),
)


def air_quality(value: Any) -> AirQuality:
    aqi = transforms.to_number(value)
    if aqi is None:
        return AirQuality.UNKNOWN
    for limit, quality in AQI_LEVELS:
        if aqi <= limit:
            return quality
    return AirQuality.POOR


def _equals(device: Device, attribute: str, expected: Any, yes: Any, no: Any) -> Callable[[], Any]:
    return lambda: yes if attr(device, attribute) == expected else no


class _BinarySensorHandler:
    """One service, one characteristic reading attribute == expected."""

    service_type: ServiceType
    suffix: str
    characteristic: C
    attribute: str
    expected: Any
    yes: Any = True
    no: Any = False
    subtype = None

    def configure(self, ctx: PassContext) -> None:
        svc = ctx.get_or_add_service(self.service_type, ctx.service_name(self.suffix), self.subtype)
        ctx.get_or_add_characteristic(
            svc,
            self.characteristic,
            get_handler=_equals(ctx.device, self.attribute, self.expected, self.yes, self.no),
            attributes=(self.attribute,),
        )
        add_sensor_status(ctx, svc)


class MotionSensorHandler(_BinarySensorHandler):
    service_type = ServiceType.MOTION_SENSOR
    suffix = "Motion"
    characteristic = C.MOTION_DETECTED
    attribute = "motion"
    expected = "active"


class AccelerationSensorHandler(_BinarySensorHandler):
    service_type = ServiceType.MOTION_SENSOR
    suffix = "Acceleration"
    subtype = "acceleration"
    characteristic = C.MOTION_DETECTED
    attribute = "acceleration"
    expected = "active"


class ContactSensorHandler(_BinarySensorHandler):
    service_type = ServiceType.CONTACT_SENSOR
    suffix = "Contact"
    characteristic = C.CONTACT_SENSOR_STATE
    attribute = "contact"
    expected = "closed"
    yes = ContactSensorState.CONTACT_DETECTED
    no = ContactSensorState.CONTACT_NOT_DETECTED


class LeakSensorHandler(_BinarySensorHandler):
    service_type = ServiceType.LEAK_SENSOR
    suffix = "Leak"
    characteristic = C.LEAK_DETECTED
    attribute = "water"
    expected = "wet"
    yes = Detected.DETECTED
    no = Detected.NOT_DETECTED


class SmokeDetectorHandler(_BinarySensorHandler):
    service_type = ServiceType.SMOKE_SENSOR
    suffix = "Smoke"
    characteristic = C.SMOKE_DETECTED
    attribute = "smoke"
    expected = "detected"
    yes = Detected.DETECTED
    no = Detected.NOT_DETECTED


class CarbonMonoxideHandler(_BinarySensorHandler):
    service_type = ServiceType.CARBON_MONOXIDE_SENSOR
    suffix = "CO"
    characteristic = C.CARBON_MONOXIDE_DETECTED
    attribute = "carbonMonoxide"
    expected = "detected"
    yes = GasLevel.ABNORMAL
    no = GasLevel.NORMAL


class PresenceSensorHandler(_BinarySensorHandler):
    service_type = ServiceType.OCCUPANCY_SENSOR
    suffix = "Presence"
    characteristic = C.OCCUPANCY_DETECTED
    attribute = "presence"
    expected = "present"
    yes = Detected.DETECTED
    no = Detected.NOT_DETECTED


class CarbonDioxideHandler:
    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.CARBON_DIOXIDE_SENSOR, ctx.service_name("CO2"))
        ctx.get_or_add_characteristic(
            svc,
            C.CARBON_DIOXIDE_LEVEL,
            get_handler=lambda: transforms.clamp_int(attr(device, "carbonDioxide"), 0, 100000),
            props={"minValue": 0, "maxValue": 100000},
            attributes=("carbonDioxide",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.CARBON_DIOXIDE_DETECTED,
            get_handler=lambda: (
                GasLevel.ABNORMAL
                if transforms.clamp(attr(device, "carbonDioxide"), 0, 100000) >= CO2_ABNORMAL_PPM
                else GasLevel.NORMAL
            ),
            attributes=("carbonDioxide",),
        )
        add_sensor_status(ctx, svc)


class TemperatureSensorHandler:
    def configure(self, ctx: PassContext) -> None:
        device, config = ctx.device, ctx.config
        svc = ctx.get_or_add_service(ServiceType.TEMPERATURE_SENSOR, ctx.service_name("Temperature"))
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_TEMPERATURE,
            get_handler=lambda: transforms.clamp(
                transforms.temperature_to_protocol(attr(device, "temperature"), config.uses_fahrenheit),
                -50,
                100,
                default=0,
            ),
            props={"minValue": -50, "maxValue": 100, "minStep": 0.1},
            attributes=("temperature",),
        )
        add_sensor_status(ctx, svc)


class HumiditySensorHandler:
    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.HUMIDITY_SENSOR, ctx.service_name("Humidity"))
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_RELATIVE_HUMIDITY,
            get_handler=lambda: transforms.percentage(attr(device, "humidity")),
            props={"minValue": 0, "maxValue": 100},
            attributes=("humidity",),
        )
        add_sensor_status(ctx, svc)


class IlluminanceSensorHandler:
    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.LIGHT_SENSOR, ctx.service_name("Illuminance"))
        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_AMBIENT_LIGHT_LEVEL,
            get_handler=lambda: transforms.clamp(attr(device, "illuminance"), 0.0001, 100000),
            props={"minValue": 0.0001, "maxValue": 100000},
            attributes=("illuminance",),
        )
        add_sensor_status(ctx, svc)


class AirQualityHandler:
    def configure(self, ctx: PassContext) -> None:
        device, caps = ctx.device, ctx.caps
        svc = ctx.get_or_add_service(ServiceType.AIR_QUALITY_SENSOR, ctx.service_name("Air Quality"))
        ctx.get_or_add_characteristic(
            svc,
            C.AIR_QUALITY,
            get_handler=lambda: air_quality(attr(device, "airQualityIndex")),
            attributes=("airQualityIndex",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.PM2_5_DENSITY,
            pre_req=lambda: caps.has_attribute("pm25"),
            get_handler=lambda: transforms.clamp(attr(device, "pm25"), 0, 1000),
            props={"minValue": 0, "maxValue": 1000},
            attributes=("pm25",),
            remove_if_missing_pre_req=True,
        )
        add_sensor_status(ctx, svc)


class FilterMaintenanceHandler:
    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.FILTER_MAINTENANCE, ctx.service_name("Filter"))
        ctx.get_or_add_characteristic(
            svc,
            C.FILTER_CHANGE_INDICATION,
            get_handler=_equals(
                device,
                "filterStatus",
                "replace",
                FilterChangeIndication.CHANGE_FILTER,
                FilterChangeIndication.FILTER_OK,
            ),
            attributes=("filterStatus",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.FILTER_LIFE_LEVEL,
            get_handler=_equals(device, "filterStatus", "replace", 0, 100),
            props={"minValue": 0, "maxValue": 100},
            attributes=("filterStatus",),
        )
