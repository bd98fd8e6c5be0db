"""
Tests for the attribute update router.
"""

from hubbridge.models import AttributeChange, Device
from hubbridge.protocol.objects import Binding, Service
from hubbridge.protocol.types import CharacteristicType as C, ServiceType
from hubbridge.router import AttributeUpdateRouter


def bound(service, char_type, device, attribute, **binding):
    char = service.add_characteristic(char_type)
    if "get_handler" not in binding and "update_handler" not in binding:
        binding["get_handler"] = lambda: device.attributes.get(attribute)
    char.binding = Binding(attributes=(attribute,), **binding)
    return char


class TestRouting:
    """Tests for event delivery."""

    def setup_method(self):
        self.router = AttributeUpdateRouter()
        self.lamp = Device(id="1", name="Lamp", attributes={"switch": "off", "level": 10})
        self.fan = Device(id="2", name="Fan", attributes={"switch": "off"})

        self.lamp_svc = Service(ServiceType.LIGHTBULB)
        self.fan_svc = Service(ServiceType.FANV2)
        self.lamp_on = bound(self.lamp_svc, C.ON, self.lamp, "switch")
        self.lamp_level = bound(self.lamp_svc, C.BRIGHTNESS, self.lamp, "level")
        self.fan_on = bound(self.fan_svc, C.ON, self.fan, "switch")

        for char in (self.lamp_on, self.lamp_level):
            self.router.subscribe("1", char)
        self.router.subscribe("2", self.fan_on)

    def test_only_subscribed_characteristics_update(self):
        """An event reaches exactly the bindings for that device and attribute."""
        delivered = self.router.route(self.lamp, AttributeChange("1", "switch", "on"))

        assert delivered == 1
        assert self.lamp_on.value == "on"
        assert self.lamp_level.value is None
        assert self.fan_on.value is None

    def test_attribute_written_before_handlers(self):
        self.router.route(self.lamp, AttributeChange("1", "level", 75))
        assert self.lamp.attributes["level"] == 75
        assert self.lamp_level.value == 75

    def test_unsubscribed_event_still_stored(self):
        """Events nobody listens to update the store and count as dropped."""
        delivered = self.router.route(self.lamp, AttributeChange("1", "power", 12))
        assert delivered == 0
        assert self.lamp.attributes["power"] == 12
        assert self.router.events_dropped == 1

    def test_update_handler_can_skip(self):
        """An update handler returning None leaves the value alone."""
        svc = Service(ServiceType.STATELESS_PROGRAMMABLE_SWITCH, subtype="1")
        char = bound(
            svc,
            C.PROGRAMMABLE_SWITCH_EVENT,
            self.lamp,
            "pushed",
            update_handler=lambda change: 0 if change.value == "1" else None,
        )
        self.router.subscribe("1", char)

        assert self.router.route(self.lamp, AttributeChange("1", "pushed", "2")) == 0
        assert char.value is None
        assert self.router.route(self.lamp, AttributeChange("1", "pushed", "1")) == 1
        assert char.value == 0

    def test_change_listener_notified(self):
        seen = []
        self.lamp_on.on_change(lambda char, value: seen.append(value))
        self.router.route(self.lamp, AttributeChange("1", "switch", "on"))
        self.router.route(self.lamp, AttributeChange("1", "switch", "on"))
        assert seen == ["on"]


class TestSubscriptions:
    """Tests for subscription bookkeeping."""

    def test_unsubscribe(self):
        router = AttributeUpdateRouter()
        device = Device(id="1", name="Lamp")
        char = bound(Service(ServiceType.SWITCH), C.ON, device, "switch")
        router.subscribe("1", char)
        assert router.subscriptions("1", "switch") == [char]

        router.unsubscribe("1", char)
        assert router.subscriptions("1") == []
        assert router.subscribed_attributes("1") == []

    def test_unsubscribe_device(self):
        router = AttributeUpdateRouter()
        a = Device(id="1", name="A")
        b = Device(id="2", name="B")
        char_a = bound(Service(ServiceType.SWITCH), C.ON, a, "switch")
        char_b = bound(Service(ServiceType.SWITCH), C.ON, b, "switch")
        router.subscribe("1", char_a)
        router.subscribe("2", char_b)

        router.unsubscribe_device("1")
        assert router.subscriptions("1") == []
        assert router.subscriptions("2") == [char_b]

    def test_resubscribe_replaces(self):
        """Subscribing the same characteristic twice keeps one entry."""
        router = AttributeUpdateRouter()
        device = Device(id="1", name="Lamp")
        char = bound(Service(ServiceType.SWITCH), C.ON, device, "switch")
        router.subscribe("1", char)
        router.subscribe("1", char)
        assert len(router.subscriptions("1")) == 1
