"""
Tests for the materializer: idempotent upserts, cleanup and primary service.
"""

import logging

import pytest

from hubbridge.capabilities import CapabilitySet
from hubbridge.config import BridgeConfig
from hubbridge.materializer import Materializer, sanitize_name, to_title_case
from hubbridge.models import Device
from hubbridge.protocol.objects import Accessory
from hubbridge.protocol.types import CharacteristicType as C, ServiceType
from hubbridge.router import AttributeUpdateRouter


def make_accessory(**kwargs):
    device = Device(
        id=kwargs.pop("id", "7"),
        name=kwargs.pop("name", "Desk Lamp"),
        attributes=kwargs.pop("attributes", {"switch": "on", "level": 40}),
        **kwargs,
    )
    return Accessory(device)


@pytest.fixture
def router():
    return AttributeUpdateRouter()


@pytest.fixture
def materializer(router):
    return Materializer(router, BridgeConfig())


def run_pass(materializer, accessory, configure):
    ctx = materializer.begin_pass(accessory, CapabilitySet.from_device(accessory.device))
    configure(ctx)
    materializer.finish_pass(ctx)
    return ctx


def light_with_brightness(ctx):
    device = ctx.device
    svc = ctx.get_or_add_service(ServiceType.LIGHTBULB, ctx.service_name("Light"))
    ctx.get_or_add_characteristic(
        svc, C.ON, get_handler=lambda: device.attributes.get("switch") == "on", attributes=("switch",)
    )
    ctx.get_or_add_characteristic(
        svc, C.BRIGHTNESS, get_handler=lambda: device.attributes.get("level"), attributes=("level",)
    )


def light_without_brightness(ctx):
    device = ctx.device
    svc = ctx.get_or_add_service(ServiceType.LIGHTBULB, ctx.service_name("Light"))
    ctx.get_or_add_characteristic(
        svc, C.ON, get_handler=lambda: device.attributes.get("switch") == "on", attributes=("switch",)
    )


class TestNames:
    """Tests for name sanitization."""

    def test_sanitize_name(self):
        assert sanitize_name("  --Hall  Light!! ") == "Hall Light"
        assert sanitize_name("Bob's Lamp") == "Bob's Lamp"
        assert sanitize_name("!!!") == "Unnamed Device"
        assert sanitize_name(None) == "Unnamed Device"

    def test_title_case(self):
        assert to_title_case("smart PLUG v2") == "Smart Plug V2"


class TestInformationService:
    """Tests for accessory information."""

    def test_information_applied(self, materializer):
        accessory = make_accessory(manufacturer="Acme", model="smart PLUG", firmware="1.2")
        run_pass(materializer, accessory, lambda ctx: None)

        info = accessory.information_service
        assert info.get_characteristic(C.SERIAL_NUMBER).value == "he_deviceid_7"
        assert info.get_characteristic(C.MODEL).value == "Smart Plug"
        assert info.get_characteristic(C.MANUFACTURER).value == "Acme"
        assert info.get_characteristic(C.FIRMWARE_REVISION).value == "1.2"
        assert info.get_characteristic(C.NAME).value == "Desk Lamp"

    def test_unknown_model(self, materializer):
        accessory = make_accessory()
        run_pass(materializer, accessory, lambda ctx: None)
        assert accessory.information_service.get_characteristic(C.MODEL).value == "Unknown"

    def test_identify_is_writable(self, materializer):
        accessory = make_accessory()
        run_pass(materializer, accessory, lambda ctx: None)
        assert accessory.information_service.get_characteristic(C.IDENTIFY).binding.writable


class TestUpserts:
    """Tests for get_or_add_service / get_or_add_characteristic."""

    def test_pass_is_idempotent(self, materializer, router):
        """Re-running a pass reuses objects and does not stack subscriptions."""
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)
        service = accessory.get_service(ServiceType.LIGHTBULB)
        brightness = service.get_characteristic(C.BRIGHTNESS)

        run_pass(materializer, accessory, light_with_brightness)
        assert accessory.get_service(ServiceType.LIGHTBULB) is service
        assert service.get_characteristic(C.BRIGHTNESS) is brightness
        assert len(router.subscriptions("7")) == 2
        assert len(router.subscriptions("7", "level")) == 1

    def test_subtyped_service_id(self, materializer):
        """Subtyped services are keyed as type:subtype."""
        accessory = make_accessory()

        def configure(ctx):
            ctx.get_or_add_service(ServiceType.SWITCH, "Outlet One", "1")
            ctx.get_or_add_service(ServiceType.SWITCH, "Outlet Two", "2")

        ctx = run_pass(materializer, accessory, configure)
        assert {"Switch:1", "Switch:2"} <= ctx.active_services
        assert accessory.get_service(ServiceType.SWITCH, "2").id == "Switch:2"

    def test_initial_value_from_get_handler(self, materializer):
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)
        assert accessory.characteristic(ServiceType.LIGHTBULB, C.BRIGHTNESS).value == 40
        assert accessory.characteristic(ServiceType.LIGHTBULB, C.ON).value is True

    def test_service_name_sanitized(self, materializer, caplog):
        """Names with disallowed characters are cleaned and a warning logged."""
        accessory = make_accessory()

        def configure(ctx):
            ctx.get_or_add_service(ServiceType.SWITCH, "Lamp (Kitchen)!", "btn-1")

        with caplog.at_level(logging.WARNING, logger="hubbridge.materializer"):
            run_pass(materializer, accessory, configure)

        service = accessory.get_service(ServiceType.SWITCH, "btn1")
        assert service is not None
        assert service.name == "Lamp Kitchen"
        assert "sanitized" in caplog.text

    def test_name_removed_when_not_given(self, materializer):
        """A stale Name characteristic goes away when no name is passed."""
        accessory = make_accessory()
        run_pass(materializer, accessory, lambda ctx: ctx.get_or_add_service(ServiceType.SWITCH, "Named"))
        assert accessory.get_service(ServiceType.SWITCH).get_characteristic(C.NAME) is not None

        run_pass(materializer, accessory, lambda ctx: ctx.get_or_add_service(ServiceType.SWITCH))
        assert accessory.get_service(ServiceType.SWITCH).get_characteristic(C.NAME) is None

    def test_missing_prerequisite_removes(self, materializer, router):
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)

        def configure(ctx):
            light_without_brightness(ctx)
            svc = ctx.accessory.get_service(ServiceType.LIGHTBULB)
            result = ctx.get_or_add_characteristic(
                svc,
                C.BRIGHTNESS,
                pre_req=lambda: False,
                attributes=("level",),
                remove_if_missing_pre_req=True,
            )
            assert result is None

        run_pass(materializer, accessory, configure)
        assert accessory.characteristic(ServiceType.LIGHTBULB, C.BRIGHTNESS) is None
        assert router.subscriptions("7", "level") == []

    def test_reentrant_pass_rejected(self, materializer):
        accessory = make_accessory()
        ctx = materializer.begin_pass(accessory, CapabilitySet.from_device(accessory.device))
        with pytest.raises(RuntimeError):
            materializer.begin_pass(accessory, CapabilitySet.from_device(accessory.device))
        materializer.abort_pass(ctx)
        materializer.finish_pass(materializer.begin_pass(accessory, CapabilitySet.from_device(accessory.device)))


class TestCleanup:
    """Tests for end-of-pass cleanup."""

    def test_stale_service_removed(self, materializer, router):
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)
        run_pass(materializer, accessory, lambda ctx: None)

        assert accessory.get_service(ServiceType.LIGHTBULB) is None
        assert accessory.information_service is not None
        assert router.subscriptions("7") == []

    def test_stale_characteristic_removed(self, materializer, router):
        """Characteristics not touched in the pass are dropped with their subscriptions."""
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)
        run_pass(materializer, accessory, light_without_brightness)

        service = accessory.get_service(ServiceType.LIGHTBULB)
        assert service.get_characteristic(C.BRIGHTNESS) is None
        assert service.get_characteristic(C.ON) is not None
        assert service.get_characteristic(C.NAME) is not None
        assert router.subscribed_attributes("7") == ["switch"]

    def test_remove_accessory(self, materializer, router):
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)
        materializer.remove_accessory(accessory)
        assert accessory.services == {}
        assert router.subscriptions("7") == []


class TestPrimaryService:
    """Tests for primary service selection."""

    def test_single_service_is_primary(self, materializer):
        accessory = make_accessory()
        run_pass(materializer, accessory, light_with_brightness)
        assert accessory.primary_service is accessory.get_service(ServiceType.LIGHTBULB)
        assert not accessory.information_service.primary

    def test_highest_priority_wins(self, materializer):
        accessory = make_accessory()

        def configure(ctx):
            ctx.get_or_add_service(ServiceType.BATTERY, "Battery")
            ctx.get_or_add_service(ServiceType.MOTION_SENSOR, "Motion")
            ctx.get_or_add_service(ServiceType.TEMPERATURE_SENSOR, "Temperature")

        run_pass(materializer, accessory, configure)
        assert accessory.primary_service.type == ServiceType.MOTION_SENSOR
        primaries = [s for s in accessory.services.values() if s.primary]
        assert len(primaries) == 1

    def test_ties_keep_insertion_order(self, materializer):
        accessory = make_accessory()

        def configure(ctx):
            ctx.get_or_add_service(ServiceType.STATELESS_PROGRAMMABLE_SWITCH, "Button 1", "1")
            ctx.get_or_add_service(ServiceType.STATELESS_PROGRAMMABLE_SWITCH, "Button 2", "2")

        run_pass(materializer, accessory, configure)
        assert accessory.primary_service.subtype == "1"
