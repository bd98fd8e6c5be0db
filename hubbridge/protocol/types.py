"""
Accessory protocol identifiers.

Service and characteristic type names plus the enumerated values the
protocol defines for state characteristics.
"""

from enum import Enum, IntEnum


class ServiceType(str, Enum):
    """Accessory service types."""
    ACCESSORY_INFORMATION = "AccessoryInformation"

    # Lighting & power
    LIGHTBULB = "Lightbulb"
    SWITCH = "Switch"
    OUTLET = "Outlet"

    # Climate
    FANV2 = "Fanv2"
    THERMOSTAT = "Thermostat"
    AIR_PURIFIER = "AirPurifier"
    HUMIDIFIER_DEHUMIDIFIER = "HumidifierDehumidifier"
    FILTER_MAINTENANCE = "FilterMaintenance"

    # Access & security
    LOCK_MECHANISM = "LockMechanism"
    GARAGE_DOOR_OPENER = "GarageDoorOpener"
    VALVE = "Valve"
    WINDOW = "Window"
    WINDOW_COVERING = "WindowCovering"
    SECURITY_SYSTEM = "SecuritySystem"

    # Controls
    SPEAKER = "Speaker"
    STATELESS_PROGRAMMABLE_SWITCH = "StatelessProgrammableSwitch"

    # Sensors
    MOTION_SENSOR = "MotionSensor"
    CONTACT_SENSOR = "ContactSensor"
    OCCUPANCY_SENSOR = "OccupancySensor"
    TEMPERATURE_SENSOR = "TemperatureSensor"
    HUMIDITY_SENSOR = "HumiditySensor"
    LIGHT_SENSOR = "LightSensor"
    LEAK_SENSOR = "LeakSensor"
    SMOKE_SENSOR = "SmokeSensor"
    CARBON_MONOXIDE_SENSOR = "CarbonMonoxideSensor"
    CARBON_DIOXIDE_SENSOR = "CarbonDioxideSensor"
    AIR_QUALITY_SENSOR = "AirQualitySensor"

    # Power source & metering
    BATTERY = "Battery"
    ENERGY_METER = "EnergyMeter"  # community type
    POWER_METER = "PowerMeter"  # community type


class CharacteristicType(str, Enum):
    """Accessory characteristic types."""
    # Information
    NAME = "Name"
    MANUFACTURER = "Manufacturer"
    MODEL = "Model"
    SERIAL_NUMBER = "SerialNumber"
    FIRMWARE_REVISION = "FirmwareRevision"
    IDENTIFY = "Identify"

    # On/off & level
    ON = "On"
    OUTLET_IN_USE = "OutletInUse"
    BRIGHTNESS = "Brightness"
    HUE = "Hue"
    SATURATION = "Saturation"
    COLOR_TEMPERATURE = "ColorTemperature"
    ADAPTIVE_LIGHTING = "AdaptiveLightingController"
    LIGHT_EFFECT = "LightEffect"  # community type

    # Fan & purifier
    ACTIVE = "Active"
    CURRENT_FAN_STATE = "CurrentFanState"
    TARGET_FAN_STATE = "TargetFanState"
    ROTATION_SPEED = "RotationSpeed"
    CURRENT_AIR_PURIFIER_STATE = "CurrentAirPurifierState"
    TARGET_AIR_PURIFIER_STATE = "TargetAirPurifierState"
    FILTER_CHANGE_INDICATION = "FilterChangeIndication"
    FILTER_LIFE_LEVEL = "FilterLifeLevel"

    # Thermostat & humidity
    CURRENT_TEMPERATURE = "CurrentTemperature"
    TARGET_TEMPERATURE = "TargetTemperature"
    CURRENT_HEATING_COOLING_STATE = "CurrentHeatingCoolingState"
    TARGET_HEATING_COOLING_STATE = "TargetHeatingCoolingState"
    TEMPERATURE_DISPLAY_UNITS = "TemperatureDisplayUnits"
    COOLING_THRESHOLD_TEMPERATURE = "CoolingThresholdTemperature"
    HEATING_THRESHOLD_TEMPERATURE = "HeatingThresholdTemperature"
    CURRENT_RELATIVE_HUMIDITY = "CurrentRelativeHumidity"
    CURRENT_HUMIDIFIER_DEHUMIDIFIER_STATE = "CurrentHumidifierDehumidifierState"
    TARGET_HUMIDIFIER_DEHUMIDIFIER_STATE = "TargetHumidifierDehumidifierState"
    HUMIDIFIER_THRESHOLD = "RelativeHumidityHumidifierThreshold"

    # Lock, doors, coverings, valves
    LOCK_CURRENT_STATE = "LockCurrentState"
    LOCK_TARGET_STATE = "LockTargetState"
    CURRENT_DOOR_STATE = "CurrentDoorState"
    TARGET_DOOR_STATE = "TargetDoorState"
    OBSTRUCTION_DETECTED = "ObstructionDetected"
    CURRENT_POSITION = "CurrentPosition"
    TARGET_POSITION = "TargetPosition"
    POSITION_STATE = "PositionState"
    IN_USE = "InUse"
    VALVE_TYPE = "ValveType"

    # Security system
    SECURITY_SYSTEM_CURRENT_STATE = "SecuritySystemCurrentState"
    SECURITY_SYSTEM_TARGET_STATE = "SecuritySystemTargetState"

    # Audio
    MUTE = "Mute"
    VOLUME = "Volume"

    # Buttons
    PROGRAMMABLE_SWITCH_EVENT = "ProgrammableSwitchEvent"
    SERVICE_LABEL_INDEX = "ServiceLabelIndex"

    # Sensors
    MOTION_DETECTED = "MotionDetected"
    CONTACT_SENSOR_STATE = "ContactSensorState"
    OCCUPANCY_DETECTED = "OccupancyDetected"
    LEAK_DETECTED = "LeakDetected"
    SMOKE_DETECTED = "SmokeDetected"
    CARBON_MONOXIDE_DETECTED = "CarbonMonoxideDetected"
    CARBON_DIOXIDE_DETECTED = "CarbonDioxideDetected"
    CARBON_DIOXIDE_LEVEL = "CarbonDioxideLevel"
    CURRENT_AMBIENT_LIGHT_LEVEL = "CurrentAmbientLightLevel"
    AIR_QUALITY = "AirQuality"
    PM2_5_DENSITY = "PM2_5Density"

    # Status
    STATUS_ACTIVE = "StatusActive"
    STATUS_TAMPERED = "StatusTampered"
    STATUS_LOW_BATTERY = "StatusLowBattery"
    BATTERY_LEVEL = "BatteryLevel"
    CHARGING_STATE = "ChargingState"

    # Metering (community types)
    KILOWATT_HOURS = "KilowattHours"
    WATTS = "Watts"


class Active(IntEnum):
    INACTIVE = 0
    ACTIVE = 1


class InUse(IntEnum):
    NOT_IN_USE = 0
    IN_USE = 1


class ValveType(IntEnum):
    GENERIC = 0
    IRRIGATION = 1
    SHOWER_HEAD = 2
    WATER_FAUCET = 3


class LockState(IntEnum):
    """Shared by LockCurrentState (all values) and LockTargetState (0, 1)."""
    UNSECURED = 0
    SECURED = 1
    JAMMED = 2
    UNKNOWN = 3


class DoorState(IntEnum):
    """Shared by CurrentDoorState (all values) and TargetDoorState (0, 1)."""
    OPEN = 0
    CLOSED = 1
    OPENING = 2
    CLOSING = 3
    STOPPED = 4


class PositionState(IntEnum):
    DECREASING = 0
    INCREASING = 1
    STOPPED = 2


class HeatingCoolingState(IntEnum):
    """Shared by the current (0-2) and target (0-3) heating/cooling states."""
    OFF = 0
    HEAT = 1
    COOL = 2
    AUTO = 3


class TemperatureDisplayUnits(IntEnum):
    CELSIUS = 0
    FAHRENHEIT = 1


class CurrentFanState(IntEnum):
    INACTIVE = 0
    IDLE = 1
    BLOWING_AIR = 2


class TargetFanState(IntEnum):
    MANUAL = 0
    AUTO = 1


class CurrentAirPurifierState(IntEnum):
    INACTIVE = 0
    IDLE = 1
    PURIFYING_AIR = 2


class TargetAirPurifierState(IntEnum):
    MANUAL = 0
    AUTO = 1


class CurrentHumidifierDehumidifierState(IntEnum):
    INACTIVE = 0
    IDLE = 1
    HUMIDIFYING = 2
    DEHUMIDIFYING = 3


class TargetHumidifierDehumidifierState(IntEnum):
    HUMIDIFIER_OR_DEHUMIDIFIER = 0
    HUMIDIFIER = 1
    DEHUMIDIFIER = 2


class FilterChangeIndication(IntEnum):
    FILTER_OK = 0
    CHANGE_FILTER = 1


class SecuritySystemState(IntEnum):
    """Shared by the current (0-4) and target (0-3) security system states."""
    STAY_ARM = 0
    AWAY_ARM = 1
    NIGHT_ARM = 2
    DISARMED = 3
    ALARM_TRIGGERED = 4


class ProgrammableSwitchEvent(IntEnum):
    SINGLE_PRESS = 0
    DOUBLE_PRESS = 1
    LONG_PRESS = 2


class ContactSensorState(IntEnum):
    CONTACT_DETECTED = 0
    CONTACT_NOT_DETECTED = 1


class Detected(IntEnum):
    """Binary detection used by leak, smoke and occupancy sensors."""
    NOT_DETECTED = 0
    DETECTED = 1


class GasLevel(IntEnum):
    """CarbonMonoxideDetected and CarbonDioxideDetected."""
    NORMAL = 0
    ABNORMAL = 1


class AirQuality(IntEnum):
    UNKNOWN = 0
    EXCELLENT = 1
    GOOD = 2
    FAIR = 3
    INFERIOR = 4
    POOR = 5


class StatusTampered(IntEnum):
    NOT_TAMPERED = 0
    TAMPERED = 1


class StatusLowBattery(IntEnum):
    BATTERY_LEVEL_NORMAL = 0
    BATTERY_LEVEL_LOW = 1


class ChargingState(IntEnum):
    NOT_CHARGING = 0
    CHARGING = 1
    NOT_CHARGEABLE = 2
