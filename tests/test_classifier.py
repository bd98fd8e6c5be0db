"""
Tests for capability sets, the role registry and the classifier.
"""

import logging

import pytest

from hubbridge.capabilities import CapabilitySet
from hubbridge.classifier import Classifier
from hubbridge.models import Device
from hubbridge.protocol.objects import Accessory
from hubbridge.roles.base import Role
from hubbridge.roles.catalog import build_default_registry
from hubbridge.roles.lighting import SwitchHandler
from hubbridge.roles.registry import RoleRegistry


def caps(name="Device", capabilities=(), attributes=(), commands=(), **options):
    return CapabilitySet(
        name=name,
        capabilities=frozenset(capabilities),
        attributes=frozenset(attributes),
        commands=frozenset(commands),
        **options,
    )


def role_names(capability_set):
    classifier = Classifier(build_default_registry())
    return [role.name for role in classifier.match(capability_set)]


class TestCapabilitySet:
    """Tests for capability queries."""

    def test_from_device(self):
        """Capability sets mirror the device record."""
        device = Device(
            id="1",
            name="Porch Light",
            capabilities={"Switch"},
            attributes={"switch": "on"},
            commands={"on", "off"},
            flags={"light_no_al"},
        )
        cs = CapabilitySet.from_device(device, {"consider_light_by_name": True})
        assert cs.has_capability("Switch")
        assert cs.has_attribute("switch")
        assert cs.has_command("off")
        assert cs.has_flag("light_no_al")
        assert cs.looks_like_light()

    def test_name_heuristics_follow_options(self):
        """Fan names count by default, light names only when enabled."""
        cs = caps(name="Bedroom FAN light")
        assert cs.looks_like_fan()
        assert not cs.looks_like_light()
        assert not caps(name="Bedroom Fan", consider_fan_by_name=False).looks_like_fan()

    def test_speed_control(self):
        assert caps(attributes={"speed"}, commands={"setSpeed"}).has_speed_control()
        assert caps(attributes={"level"}, commands={"setLevel"}).has_speed_control()
        assert not caps(attributes={"speed"}).has_speed_control()

    def test_fingerprint_ignores_attribute_values(self):
        """The fingerprint depends on names, not on current values."""
        a = Device(id="1", name="Lamp", capabilities={"Switch"}, attributes={"switch": "on"})
        b = Device(id="1", name="Lamp", capabilities={"Switch"}, attributes={"switch": "off"})
        assert CapabilitySet.from_device(a).fingerprint() == CapabilitySet.from_device(b).fingerprint()

    def test_fingerprint_tracks_capabilities(self):
        a = caps(capabilities={"Switch"})
        b = caps(capabilities={"Switch", "SwitchLevel"})
        assert a.fingerprint() != b.fingerprint()


class TestRoleRegistry:
    """Tests for the role table."""

    def test_default_table(self):
        """The default table holds every role, with airPurifier disabled."""
        registry = build_default_registry()
        assert len(registry) == 32
        assert registry.names()[0] == "windowCovering"
        assert registry["airPurifier"].disabled
        assert "airPurifier" not in [r.name for r in registry.enabled()]

    def test_duplicate_rejected(self):
        registry = build_default_registry()
        with pytest.raises(ValueError):
            registry.register(Role("light", lambda c: True, SwitchHandler()))

    def test_register_before(self):
        """Roles can be inserted ahead of an existing entry."""
        registry = RoleRegistry([Role("b", lambda c: True, SwitchHandler())])
        registry.register(Role("a", lambda c: True, SwitchHandler()), before="b")
        assert registry.names() == ["a", "b"]

    def test_signature_changes_when_enabling(self):
        registry = build_default_registry()
        before = registry.signature()
        registry.set_enabled("airPurifier")
        assert registry.signature() != before
        assert "airPurifier" in registry.signature()


class TestClassifier:
    """Tests for multi-label classification."""

    def test_dimmer_is_a_light(self):
        """A dimmable switch is classified as a light only."""
        cs = caps(
            capabilities={"Switch", "SwitchLevel"},
            attributes={"switch", "level"},
            commands={"on", "off", "setLevel"},
        )
        assert role_names(cs) == ["light"]

    def test_plain_switch(self):
        cs = caps(capabilities={"Switch"}, attributes={"switch"}, commands={"on", "off"})
        assert role_names(cs) == ["switch"]

    def test_light_name_heuristic(self):
        """With the name heuristic enabled a named switch becomes a light."""
        cs = caps(
            name="Hall Light",
            capabilities={"Switch"},
            attributes={"switch"},
            consider_light_by_name=True,
        )
        assert role_names(cs) == ["light"]

    def test_garage_door_excludes_contact_sensor(self):
        """A garage door controller with a contact sensor is only a garage door."""
        cs = caps(
            capabilities={"ContactSensor", "GarageDoorControl"},
            attributes={"contact", "door"},
            commands={"open", "close"},
        )
        assert role_names(cs) == ["garageDoor"]

    def test_outlet_excludes_switch(self):
        cs = caps(capabilities={"Outlet", "Switch"}, attributes={"switch"}, commands={"on", "off"})
        assert role_names(cs) == ["outlet"]

    def test_fan_with_speed(self):
        cs = caps(
            capabilities={"FanControl", "Switch"},
            attributes={"speed", "switch"},
            commands={"setSpeed", "on", "off"},
        )
        assert role_names(cs) == ["fan"]

    def test_fan_by_name_excludes_switch(self):
        """A switch named like a fan becomes a fan, not a switch."""
        cs = caps(name="Bathroom Fan", capabilities={"Switch"}, attributes={"switch"})
        assert role_names(cs) == ["fan"]

    def test_thermostat_suppresses_sensors(self):
        """Thermostats do not also expose temperature or humidity sensors."""
        cs = caps(
            capabilities={"Thermostat", "TemperatureMeasurement", "RelativeHumidityMeasurement"},
            attributes={"temperature", "humidity", "thermostatMode"},
        )
        assert role_names(cs) == ["thermostat"]

    def test_multi_label(self):
        """A multi-sensor matches each of its roles in table order."""
        cs = caps(
            capabilities={"MotionSensor", "TemperatureMeasurement", "Battery", "TamperAlert"},
            attributes={"motion", "temperature", "battery", "tamper"},
        )
        assert role_names(cs) == ["motionSensor", "temperatureSensor", "battery"]

    def test_disabled_role_skipped(self):
        cs = caps(capabilities={"custom.airPurifierOperationMode"}, attributes={"airPurifierOperationMode"})
        assert role_names(cs) == []

        registry = build_default_registry()
        registry.set_enabled("airPurifier")
        assert [r.name for r in Classifier(registry).match(cs)] == ["airPurifier"]

    def test_no_match_warns(self, caplog):
        """A device matching no role logs a warning."""
        with caplog.at_level(logging.WARNING, logger="hubbridge.classifier"):
            assert role_names(caps(name="Mystery Box", capabilities={"Refresh"})) == []
        assert "No device roles matched for Mystery Box" in caplog.text


class TestClassificationCache:
    """Tests for per-accessory classification caching."""

    def test_cache_hit(self):
        """Unchanged capability sets reuse the cached result."""
        classifier = Classifier(build_default_registry())
        device = Device(id="1", name="Lamp", capabilities={"Switch"}, attributes={"switch": "on"})
        accessory = Accessory(device)
        cs = CapabilitySet.from_device(device)

        first = classifier.classify(accessory, cs)
        second = classifier.classify(accessory, cs)
        assert [r.name for r in first] == [r.name for r in second] == ["switch"]
        assert classifier.cache_misses == 1
        assert classifier.cache_hits == 1

    def test_cache_invalidated_by_capabilities(self):
        classifier = Classifier(build_default_registry())
        device = Device(id="1", name="Lamp", capabilities={"Switch"}, attributes={"switch": "on"})
        accessory = Accessory(device)
        classifier.classify(accessory, CapabilitySet.from_device(device))

        device.capabilities.add("SwitchLevel")
        device.attributes["level"] = 10
        device.commands.add("setLevel")
        roles = classifier.classify(accessory, CapabilitySet.from_device(device))
        assert [r.name for r in roles] == ["light"]
        assert classifier.cache_misses == 2

    def test_cache_invalidated_by_registry(self):
        """Enabling a role changes the cache key."""
        registry = build_default_registry()
        classifier = Classifier(registry)
        device = Device(id="1", name="Purifier", capabilities={"custom.airPurifierOperationMode"})
        accessory = Accessory(device)
        cs = CapabilitySet.from_device(device)

        assert classifier.classify(accessory, cs) == []
        registry.set_enabled("airPurifier")
        assert [r.name for r in classifier.classify(accessory, cs)] == ["airPurifier"]
        assert classifier.cache_hits == 0
