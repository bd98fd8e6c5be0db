"""
Control roles: speaker, button, virtual mode, virtual piston.
"""

import logging
from typing import Any, Callable, List, Optional

from ..materializer import PassContext
from ..models import AttributeChange
from ..protocol.types import CharacteristicType as C, ProgrammableSwitchEvent, ServiceType
from .. import transforms
from .common import attr

logger = logging.getLogger(__name__)

MAX_BUTTONS = 10
PISTON_RESET_SECONDS = 1.0

BUTTON_EVENTS = {
    "pushed": ProgrammableSwitchEvent.SINGLE_PRESS,
    "doubleTapped": ProgrammableSwitchEvent.DOUBLE_PRESS,
    "held": ProgrammableSwitchEvent.LONG_PRESS,
}


class SpeakerHandler:
    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        svc = ctx.get_or_add_service(ServiceType.SPEAKER, ctx.service_name("Speaker"))

        ctx.get_or_add_characteristic(
            svc,
            C.MUTE,
            get_handler=lambda: attr(device, "mute") == "muted",
            set_handler=lambda v: accessory.send_command("mute" if v else "unmute"),
            attributes=("mute",),
        )

        source = "volume" if caps.has_attribute("volume") else "level"
        command = "setVolume" if caps.has_attribute("volume") else "setLevel"
        ctx.get_or_add_characteristic(
            svc,
            C.VOLUME,
            pre_req=lambda: caps.has_attribute(source) and caps.has_command(command),
            get_handler=lambda: transforms.percentage(attr(device, source)),
            set_handler=lambda v: accessory.send_command(command, transforms.percentage(v)),
            props={"minValue": 0, "maxValue": 100, "minStep": 1},
            attributes=(source,),
            remove_if_missing_pre_req=True,
        )


def button_count(value: Any) -> int:
    return transforms.clamp_int(value, 1, MAX_BUTTONS, default=1)


def button_number(change: AttributeChange) -> Optional[int]:
    """Button a push/double-tap/hold event refers to."""
    raw = (change.data or {}).get("buttonNumber", change.value)
    number = transforms.to_number(raw)
    return int(number) if number is not None else None


class ButtonHandler:
    """One stateless programmable switch per physical button."""

    def configure(self, ctx: PassContext) -> None:
        count = button_count(attr(ctx.device, "numberOfButtons"))
        valid = self.supported_events(ctx)
        logger.debug(f"{ctx.accessory.display_name} | configuring {count} button(s)")

        for number in range(1, count + 1):
            svc = ctx.get_or_add_service(
                ServiceType.STATELESS_PROGRAMMABLE_SWITCH,
                ctx.service_name(f"Button {number}"),
                str(number),
            )
            ctx.get_or_add_characteristic(
                svc,
                C.PROGRAMMABLE_SWITCH_EVENT,
                update_handler=self._event_handler(ctx, number, valid),
                props={"validValues": valid},
                attributes=tuple(BUTTON_EVENTS),
            )
            ctx.get_or_add_characteristic(svc, C.SERVICE_LABEL_INDEX, value=number)

    @staticmethod
    def supported_events(ctx: PassContext) -> List[ProgrammableSwitchEvent]:
        caps = ctx.caps
        events = []
        if caps.has_any_capability(("PushableButton", "Button")):
            events.append(ProgrammableSwitchEvent.SINGLE_PRESS)
        if caps.has_capability("DoubleTapableButton"):
            events.append(ProgrammableSwitchEvent.DOUBLE_PRESS)
        if caps.has_capability("HoldableButton"):
            events.append(ProgrammableSwitchEvent.LONG_PRESS)
        return events or [ProgrammableSwitchEvent.SINGLE_PRESS, ProgrammableSwitchEvent.LONG_PRESS]

    @staticmethod
    def _event_handler(
        ctx: PassContext, number: int, valid: List[ProgrammableSwitchEvent]
    ) -> Callable[[AttributeChange], Optional[ProgrammableSwitchEvent]]:
        name = ctx.accessory.display_name

        def handle(change: AttributeChange) -> Optional[ProgrammableSwitchEvent]:
            event = BUTTON_EVENTS.get(change.attribute)
            if event is None or event not in valid or button_number(change) != number:
                return None
            logger.info(f"{name} | Button {number} event: {event.name}")
            return event

        return handle


class VirtualModeHandler:
    """Hub location mode as a switch; turning it on activates the mode."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory = ctx.device, ctx.accessory
        svc = ctx.get_or_add_service(ServiceType.SWITCH, ctx.service_name("Mode"), "mode")

        def set_on(value: Any):
            if not value:
                return None
            return accessory.send_command("mode")

        ctx.get_or_add_characteristic(
            svc,
            C.ON,
            get_handler=lambda: transforms.on_off(attr(device, "switch")),
            set_handler=set_on,
            attributes=("switch",),
        )


class VirtualPistonHandler:
    """Momentary switch that runs a rule-engine piston."""

    def configure(self, ctx: PassContext) -> None:
        accessory = ctx.accessory
        svc = ctx.get_or_add_service(ServiceType.SWITCH, ctx.service_name("Piston"), "piston")

        async def run_piston(value: Any) -> Any:
            if not value:
                return None
            result = await accessory.send_command("piston")
            char = svc.get_characteristic(C.ON)
            accessory.call_later("piston", PISTON_RESET_SECONDS, char.update_value, False)
            return result

        ctx.get_or_add_characteristic(
            svc,
            C.ON,
            get_handler=lambda: False,
            set_handler=run_piston,
        )
