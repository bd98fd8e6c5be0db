"""
Lighting and power roles: light, switch, outlet.
"""

import json
import logging
from typing import Dict

from ..materializer import PassContext
from ..protocol.types import CharacteristicType as C, ServiceType
from .. import transforms
from .common import add_on_characteristic, attr

logger = logging.getLogger(__name__)


def parse_light_effects(value) -> Dict[str, str]:
    """lightEffects arrives as a mapping (or its JSON text) of effect id to name."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return {str(i + 1): str(v) for i, v in enumerate(value)}
    return {}


class LightHandler:
    """Lightbulb with optional dimming, colour, colour temperature and effects."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps, config = ctx.device, ctx.accessory, ctx.caps, ctx.config
        svc = ctx.get_or_add_service(ServiceType.LIGHTBULB, ctx.service_name("Light"))

        add_on_characteristic(ctx, svc)

        brightness = ctx.get_or_add_characteristic(
            svc,
            C.BRIGHTNESS,
            pre_req=lambda: caps.has_capability("SwitchLevel") or caps.has_attribute("level"),
            get_handler=lambda: transforms.level(attr(device, "level"), config.round_levels),
            set_handler=lambda v: accessory.send_command("setLevel", int(v)),
            props={"minValue": 0, "maxValue": 100, "minStep": 1},
            attributes=("level",),
            remove_if_missing_pre_req=True,
        )

        ctx.get_or_add_characteristic(
            svc,
            C.HUE,
            pre_req=lambda: caps.has_attribute("hue") and caps.has_command("setHue"),
            get_handler=lambda: transforms.hue_to_protocol(attr(device, "hue")),
            set_handler=lambda v: accessory.send_command("setHue", transforms.hue_to_hub(v)),
            props={"minValue": 0, "maxValue": 360},
            attributes=("hue",),
            remove_if_missing_pre_req=True,
        )

        ctx.get_or_add_characteristic(
            svc,
            C.SATURATION,
            pre_req=lambda: caps.has_attribute("saturation") and caps.has_command("setSaturation"),
            get_handler=lambda: transforms.percentage(attr(device, "saturation")),
            set_handler=lambda v: accessory.send_command("setSaturation", transforms.percentage(v)),
            props={"minValue": 0, "maxValue": 100},
            attributes=("saturation",),
            remove_if_missing_pre_req=True,
        )

        color_temp = ctx.get_or_add_characteristic(
            svc,
            C.COLOR_TEMPERATURE,
            pre_req=lambda: (
                (caps.has_capability("ColorTemperature") or caps.has_attribute("colorTemperature"))
                and caps.has_command("setColorTemperature")
            ),
            get_handler=lambda: transforms.kelvin_to_mired(attr(device, "colorTemperature")),
            set_handler=lambda v: accessory.send_command("setColorTemperature", transforms.mired_to_kelvin(v)),
            props={"minValue": transforms.MIRED_MIN, "maxValue": transforms.MIRED_MAX},
            attributes=("colorTemperature",),
            remove_if_missing_pre_req=True,
        )

        if (
            config.adaptive_lighting
            and brightness is not None
            and color_temp is not None
            and not caps.has_flag("light_no_al")
        ):
            ctx.get_or_add_characteristic(svc, C.ADAPTIVE_LIGHTING, value=True)

        if config.allow_led_effects_control:
            self._configure_effects(ctx, svc)

    def _configure_effects(self, ctx: PassContext, svc) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        effects = parse_light_effects(attr(device, "lightEffects"))

        def set_effect(name):
            for effect_id, effect_name in effects.items():
                if effect_name == name:
                    return accessory.send_command("setEffect", int(effect_id) if effect_id.isdigit() else effect_id)
            logger.warning(f"{accessory.display_name} | unknown light effect {name!r}")
            return None

        ctx.get_or_add_characteristic(
            svc,
            C.LIGHT_EFFECT,
            pre_req=lambda: caps.has_attribute("effectName") and caps.has_command("setEffect") and bool(effects),
            get_handler=lambda: attr(device, "effectName") or "",
            set_handler=set_effect,
            props={"validValues": list(effects.values())},
            attributes=("effectName",),
            remove_if_missing_pre_req=True,
        )


class SwitchHandler:
    """Plain on/off switch."""

    def configure(self, ctx: PassContext) -> None:
        svc = ctx.get_or_add_service(ServiceType.SWITCH, ctx.service_name("Switch"))
        add_on_characteristic(ctx, svc)


class OutletHandler:
    """Switchable outlet; in-use mirrors the switch state."""

    def configure(self, ctx: PassContext) -> None:
        device = ctx.device
        svc = ctx.get_or_add_service(ServiceType.OUTLET, ctx.service_name("Outlet"))
        add_on_characteristic(ctx, svc)
        ctx.get_or_add_characteristic(
            svc,
            C.OUTLET_IN_USE,
            get_handler=lambda: transforms.on_off(attr(device, "switch")),
            attributes=("switch",),
        )
