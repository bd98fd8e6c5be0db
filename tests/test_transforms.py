"""
Tests for hub/protocol value transforms.
"""

import pytest

from hubbridge import transforms
from hubbridge.protocol.types import StatusLowBattery


class TestNumbers:
    """Tests for parsing and clamping."""

    def test_to_number(self):
        """Numeric strings parse; junk, bools and NaN do not."""
        assert transforms.to_number("21.5") == 21.5
        assert transforms.to_number(7) == 7.0
        assert transforms.to_number("abc") is None
        assert transforms.to_number(None) is None
        assert transforms.to_number(True) is None
        assert transforms.to_number("nan") is None

    def test_clamp(self):
        """Out-of-range values clamp; unparseable values take the default."""
        assert transforms.clamp(15, 0, 10) == 10
        assert transforms.clamp(-3, 0, 10) == 0
        assert transforms.clamp("x", 0, 10) == 0
        assert transforms.clamp("x", 0, 10, default=5) == 5

    def test_percentage(self):
        """Percentages are ints in [0, 100]."""
        assert transforms.percentage("42") == 42
        assert transforms.percentage(140) == 100
        assert transforms.percentage(None) == 0

    def test_level_rounding(self):
        """With round_levels the ends snap to 0 and 100."""
        assert transforms.level(3, round_levels=True) == 0
        assert transforms.level(97, round_levels=True) == 100
        assert transforms.level(55, round_levels=True) == 55
        assert transforms.level(3, round_levels=False) == 3


class TestColor:
    """Tests for hue and colour temperature conversion."""

    def test_hue_scaling(self):
        """Hub hue 0-100 maps to 0-360 degrees."""
        assert transforms.hue_to_protocol(50) == 180
        assert transforms.hue_to_protocol(100) == 360
        assert transforms.hue_to_hub(180) == 50
        assert transforms.hue_to_hub(90) == 25

    @pytest.mark.parametrize("hub_hue", [0, 13, 50, 77, 100])
    def test_hue_survives_conversion(self, hub_hue):
        """Converting hub hue out and back is lossless."""
        assert transforms.hue_to_hub(transforms.hue_to_protocol(hub_hue)) == hub_hue

    def test_kelvin_to_mired(self):
        """Kelvin converts to mired within [140, 500]."""
        assert transforms.kelvin_to_mired(2700) == 370
        assert transforms.kelvin_to_mired(10000) == 140
        assert transforms.kelvin_to_mired(1000) == 500
        assert transforms.kelvin_to_mired(None) == 140

    def test_mired_to_kelvin(self):
        """Mired converts back to Kelvin."""
        assert transforms.mired_to_kelvin(370) == 2703
        assert transforms.mired_to_kelvin(500) == 2000


class TestTemperature:
    """Tests for temperature conversion."""

    def test_fahrenheit_to_celsius(self):
        """Fahrenheit hubs are converted to Celsius, rounded to 0.1."""
        assert transforms.temperature_to_protocol(68, fahrenheit=True) == 20.0
        assert transforms.temperature_to_protocol(70, fahrenheit=True) == 21.1

    def test_celsius_to_fahrenheit(self):
        """Protocol Celsius converts back to hub Fahrenheit."""
        assert transforms.temperature_to_hub(20.0, fahrenheit=True) == 68.0
        assert transforms.temperature_to_hub(22, fahrenheit=True) == 71.6

    @pytest.mark.parametrize("fahrenheit", [tenths / 10 for tenths in range(-400, 1201, 37)])
    def test_round_trip_within_a_tenth(self, fahrenheit):
        """F -> C -> F recovers the reading within 0.1 degree, fractional values included."""
        assert round(((fahrenheit - 32) / 1.8) * 1.8 + 32, 1) == pytest.approx(fahrenheit, abs=1e-9)

        celsius = transforms.temperature_to_protocol(fahrenheit, fahrenheit=True)
        back = transforms.temperature_to_hub(celsius, fahrenheit=True)
        assert back == pytest.approx(fahrenheit, abs=0.1 + 1e-9)

    def test_celsius_hub_is_passthrough(self):
        """Celsius hubs are only rounded."""
        assert transforms.temperature_to_protocol(21.54, fahrenheit=False) == 21.5
        assert transforms.temperature_to_hub(21.5, fahrenheit=False) == 21.5

    def test_unparseable(self):
        """Bad readings yield None."""
        assert transforms.temperature_to_protocol("n/a") is None
        assert transforms.temperature_to_hub(None) is None


class TestBattery:
    """Tests for battery transforms."""

    def test_level(self):
        """Battery level clamps and treats null as 0."""
        assert transforms.battery_level(None) == 0
        assert transforms.battery_level(150) == 100
        assert transforms.battery_level("64") == 64

    def test_low_battery_threshold(self):
        """Low battery is strictly below 20 percent."""
        assert transforms.battery_status(19) == StatusLowBattery.BATTERY_LEVEL_LOW
        assert transforms.battery_status(20) == StatusLowBattery.BATTERY_LEVEL_NORMAL
        assert transforms.battery_status(None) == StatusLowBattery.BATTERY_LEVEL_NORMAL


class TestLists:
    """Tests for hub list attributes."""

    def test_json_list(self):
        assert transforms.parse_list('["heat","cool"]') == ["heat", "cool"]

    def test_bracketed_string(self):
        assert transforms.parse_list("[heat, cool, auto]") == ["heat", "cool", "auto"]

    def test_real_list_and_empty(self):
        assert transforms.parse_list(["off", "heat"]) == ["off", "heat"]
        assert transforms.parse_list(None) == []
        assert transforms.parse_list("") == []


class TestFanSpeeds:
    """Tests for named fan speed mapping."""

    def test_speed_list_from_flags(self):
        """Speed flags select the named speed list."""
        assert transforms.fan_speed_list(["fan_3_spd"]) == ["low", "medium", "high"]
        assert transforms.fan_speed_list(["fan_4_spd"]) == ["low", "medium-low", "medium-high", "high"]
        assert transforms.fan_speed_list([]) == transforms.FAN_SPEEDS

    def test_speed_list_from_supported(self):
        """Advertised speeds take precedence and keep slowest-first order."""
        assert transforms.fan_speed_list(["fan_5_spd"], '["high","low"]') == ["low", "high"]

    def test_speed_to_percent(self):
        """The i-th of n speeds maps to round(i*100/n)."""
        speeds = ["low", "medium", "high"]
        assert transforms.fan_speed_to_percent("low", speeds) == 33
        assert transforms.fan_speed_to_percent("medium", speeds) == 67
        assert transforms.fan_speed_to_percent("high", speeds) == 100
        assert transforms.fan_speed_to_percent("off", speeds) == 0
        assert transforms.fan_speed_to_percent("on", speeds) == 100

    def test_percent_to_speed(self):
        """Percent p maps to the speed at ceil(p*n/100)."""
        speeds = ["low", "medium", "high"]
        assert transforms.percent_to_fan_speed(0, speeds) == "off"
        assert transforms.percent_to_fan_speed(10, speeds) == "low"
        assert transforms.percent_to_fan_speed(50, speeds) == "medium"
        assert transforms.percent_to_fan_speed(100, speeds) == "high"

    def test_speed_step(self):
        assert transforms.fan_speed_step(["fan_4_spd"]) == 25
        assert transforms.fan_speed_step([]) == 1
