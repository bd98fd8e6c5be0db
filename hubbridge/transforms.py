"""
Value transforms between hub attribute values and protocol values.

Every function is total: malformed input maps to a documented default
instead of raising.

Conventions:
- Hue: hub 0-100, protocol 0-360, scaled by 3.6.
- Color temperature: hub Kelvin, protocol mired clamped to [140, 500].
- Temperature: hub unit per config, protocol Celsius, rounded to 0.1.
- Battery: low below 20 percent.
"""

import json
import math
from typing import Any, List, Optional, Sequence

from .protocol.types import StatusLowBattery

HUE_SCALE = 3.6
MIRED_MIN = 140
MIRED_MAX = 500
LOW_BATTERY_THRESHOLD = 20

# Ordered named fan speeds, slowest first
FAN_SPEEDS = ["low", "medium-low", "medium", "medium-high", "high"]
FAN_SPEEDS_BY_COUNT = {
    3: ["low", "medium", "high"],
    4: ["low", "medium-low", "medium-high", "high"],
    5: FAN_SPEEDS,
    6: FAN_SPEEDS,
}
FAN_SPEED_FLAGS = {
    "fan_3_spd": 3,
    "fan_4_spd": 4,
    "fan_5_spd": 5,
    "fan_6_spd": 6,
}
FAN_SPEED_STEPS = {3: 33, 4: 25, 5: 20, 6: 16}


def to_number(value: Any) -> Optional[float]:
    """Parse a hub value as a finite number, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def clamp(value: Any, min_value: float, max_value: float, default: Optional[float] = None) -> float:
    """Clamp to [min_value, max_value]; unparseable input yields default (or min)."""
    number = to_number(value)
    if number is None:
        return min_value if default is None else default
    return min(max(number, min_value), max_value)


def clamp_int(value: Any, min_value: int, max_value: int, default: Optional[int] = None) -> int:
    return int(round(clamp(value, min_value, max_value, default)))


def on_off(value: Any) -> bool:
    return value == "on"


def percentage(value: Any) -> int:
    """Level, volume, saturation, humidity, battery: clamp to [0, 100]."""
    return clamp_int(value, 0, 100)


def level(value: Any, round_levels: bool = False) -> int:
    """Dimmer level; with round_levels the ends snap to 0 and 100."""
    lvl = clamp_int(value, 0, 100)
    if round_levels:
        if lvl < 5:
            lvl = 0
        elif lvl > 95:
            lvl = 100
    return lvl


def hue_to_protocol(value: Any) -> int:
    number = to_number(value)
    if number is None:
        return 0
    return clamp_int(round(number * HUE_SCALE), 0, 360)


def hue_to_hub(value: Any) -> int:
    number = to_number(value)
    if number is None:
        return 0
    return clamp_int(round(number / HUE_SCALE), 0, 100)


def kelvin_to_mired(value: Any) -> int:
    kelvin = to_number(value)
    if kelvin is None or kelvin <= 0:
        return MIRED_MIN
    return clamp_int(round(1_000_000 / kelvin), MIRED_MIN, MIRED_MAX)


def mired_to_kelvin(value: Any) -> int:
    mired = to_number(value)
    if mired is None or mired <= 0:
        mired = MIRED_MIN
    return int(round(1_000_000 / mired))


def temperature_to_protocol(value: Any, fahrenheit: bool = True) -> Optional[float]:
    """Hub temperature to Celsius, rounded to 0.1; None when unparseable."""
    number = to_number(value)
    if number is None:
        return None
    celsius = (number - 32) / 1.8 if fahrenheit else number
    return round(celsius, 1)


def temperature_to_hub(value: Any, fahrenheit: bool = True) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    converted = number * 1.8 + 32 if fahrenheit else number
    return round(converted, 1)


def battery_level(value: Any) -> int:
    return percentage(value)


def battery_status(value: Any) -> StatusLowBattery:
    number = to_number(value)
    if number is not None and number < LOW_BATTERY_THRESHOLD:
        return StatusLowBattery.BATTERY_LEVEL_LOW
    return StatusLowBattery.BATTERY_LEVEL_NORMAL


def parse_list(value: Any) -> List[str]:
    """
    Normalize a hub list attribute.

    Hubs send these as real lists, JSON strings ('["heat","cool"]') or
    bracketed plain strings ('[heat, cool]').
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value]
    text = str(value).strip()
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        return [str(v).strip() for v in parsed]
    return [part.strip().strip('"\'') for part in text.strip("[]").split(",") if part.strip()]


def fan_speed_list(flags: Sequence[str], supported: Any = None) -> List[str]:
    """Ordered named speeds for a device, from supportedFanSpeeds or speed flags."""
    advertised = set(parse_list(supported))
    if advertised:
        speeds = [s for s in FAN_SPEEDS if s in advertised]
        if speeds:
            return speeds
    for flag, count in FAN_SPEED_FLAGS.items():
        if flag in flags:
            return list(FAN_SPEEDS_BY_COUNT[count])
    return list(FAN_SPEEDS)


def fan_speed_step(flags: Sequence[str]) -> int:
    for flag, count in FAN_SPEED_FLAGS.items():
        if flag in flags:
            return FAN_SPEED_STEPS[count]
    return 1


def fan_speed_to_percent(speed: Any, speeds: Sequence[str]) -> int:
    """Index-proportional: the i-th of n named speeds maps to round(i*100/n)."""
    if not speeds or speed not in speeds:
        if speed in ("on", "auto") and speeds:
            return 100
        return 0
    index = list(speeds).index(speed) + 1
    return int(round(index * 100 / len(speeds)))


def percent_to_fan_speed(value: Any, speeds: Sequence[str]) -> str:
    percent = clamp(value, 0, 100)
    if percent <= 0 or not speeds:
        return "off"
    index = math.ceil(percent * len(speeds) / 100)
    index = min(max(index, 1), len(speeds))
    return speeds[index - 1]
