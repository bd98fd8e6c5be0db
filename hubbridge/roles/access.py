"""
Access and security roles: lock, garage door, valve, window covering, alarm system.
"""

import logging
from typing import Any

from ..materializer import PassContext
from ..protocol.types import (
    Active,
    CharacteristicType as C,
    DoorState,
    InUse,
    LockState,
    PositionState,
    SecuritySystemState,
    ServiceType,
    ValveType,
)
from .. import transforms
from .common import attr, state_getter

logger = logging.getLogger(__name__)

LOCK_CURRENT_STATE = {
    "locked": LockState.SECURED,
    "unlocked": LockState.UNSECURED,
    "unlocked with timeout": LockState.UNSECURED,
    "jammed": LockState.JAMMED,
}

DOOR_CURRENT_STATE = {
    "open": DoorState.OPEN,
    "opening": DoorState.OPENING,
    "closed": DoorState.CLOSED,
    "closing": DoorState.CLOSING,
}

POSITION_STATE = {
    "opening": PositionState.INCREASING,
    "closing": PositionState.DECREASING,
}

# Window coverings at or below this target are closed outright
CLOSE_THRESHOLD = 2

ALARM_CURRENT_STATE = {
    "armedHome": SecuritySystemState.STAY_ARM,
    "armedNight": SecuritySystemState.NIGHT_ARM,
    "armedAway": SecuritySystemState.AWAY_ARM,
    "disarmed": SecuritySystemState.DISARMED,
    "intrusion": SecuritySystemState.ALARM_TRIGGERED,
    "intrusion-home": SecuritySystemState.ALARM_TRIGGERED,
    "intrusion-away": SecuritySystemState.ALARM_TRIGGERED,
    "intrusion-night": SecuritySystemState.ALARM_TRIGGERED,
    # plain keyword aliases
    "stay": SecuritySystemState.STAY_ARM,
    "away": SecuritySystemState.AWAY_ARM,
    "night": SecuritySystemState.NIGHT_ARM,
    "off": SecuritySystemState.DISARMED,
    "alarm_active": SecuritySystemState.ALARM_TRIGGERED,
}

ALARM_COMMANDS = {
    SecuritySystemState.STAY_ARM: "armHome",
    SecuritySystemState.AWAY_ARM: "armAway",
    SecuritySystemState.NIGHT_ARM: "armNight",
    SecuritySystemState.DISARMED: "disarm",
}


def alarm_target_state(value: Any) -> SecuritySystemState:
    state = ALARM_CURRENT_STATE.get(value, SecuritySystemState.DISARMED)
    if state == SecuritySystemState.ALARM_TRIGGERED:
        return SecuritySystemState.DISARMED
    return state


class LockHandler:
    def configure(self, ctx: PassContext) -> None:
        device, accessory = ctx.device, ctx.accessory
        svc = ctx.get_or_add_service(ServiceType.LOCK_MECHANISM, ctx.service_name("Lock"))

        ctx.get_or_add_characteristic(
            svc,
            C.LOCK_CURRENT_STATE,
            get_handler=state_getter(device, "lock", LOCK_CURRENT_STATE, LockState.UNKNOWN),
            attributes=("lock",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.LOCK_TARGET_STATE,
            get_handler=lambda: (
                LockState.SECURED if attr(device, "lock") == "locked" else LockState.UNSECURED
            ),
            set_handler=lambda v: accessory.send_command("lock" if v == LockState.SECURED else "unlock"),
            props={"validValues": [LockState.UNSECURED, LockState.SECURED]},
            attributes=("lock",),
        )


class GarageDoorHandler:
    def configure(self, ctx: PassContext) -> None:
        device, accessory = ctx.device, ctx.accessory
        svc = ctx.get_or_add_service(ServiceType.GARAGE_DOOR_OPENER, ctx.service_name("Garage Door"))

        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_DOOR_STATE,
            get_handler=state_getter(device, "door", DOOR_CURRENT_STATE, DoorState.STOPPED),
            attributes=("door",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.TARGET_DOOR_STATE,
            get_handler=lambda: (
                DoorState.CLOSED if attr(device, "door") in ("closed", "closing") else DoorState.OPEN
            ),
            set_handler=lambda v: accessory.send_command("close" if v == DoorState.CLOSED else "open"),
            props={"validValues": [DoorState.OPEN, DoorState.CLOSED]},
            attributes=("door",),
        )
        ctx.get_or_add_characteristic(svc, C.OBSTRUCTION_DETECTED, value=False)


class ValveHandler:
    def configure(self, ctx: PassContext) -> None:
        device, accessory = ctx.device, ctx.accessory
        svc = ctx.get_or_add_service(ServiceType.VALVE, ctx.service_name("Valve"))

        ctx.get_or_add_characteristic(
            svc,
            C.ACTIVE,
            get_handler=lambda: Active.ACTIVE if attr(device, "valve") == "open" else Active.INACTIVE,
            set_handler=lambda v: accessory.send_command("open" if v == Active.ACTIVE else "close"),
            attributes=("valve",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.IN_USE,
            get_handler=lambda: InUse.IN_USE if attr(device, "valve") == "open" else InUse.NOT_IN_USE,
            attributes=("valve",),
        )
        ctx.get_or_add_characteristic(svc, C.VALVE_TYPE, value=ValveType.GENERIC)


class WindowCoveringHandler:
    """Shade/blind driven by position, or by level where position is absent."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory, caps = ctx.device, ctx.accessory, ctx.caps
        svc = ctx.get_or_add_service(ServiceType.WINDOW_COVERING, ctx.service_name("Window Shade"))

        use_position = caps.has_attribute("position")
        source = "position" if use_position else "level"
        command = "setPosition" if use_position else "setLevel"

        def set_target(value: Any):
            target = transforms.percentage(value)
            if target <= CLOSE_THRESHOLD and caps.has_command("close"):
                return accessory.send_command("close")
            return accessory.send_command(command, target)

        ctx.get_or_add_characteristic(
            svc,
            C.CURRENT_POSITION,
            get_handler=lambda: transforms.percentage(attr(device, source)),
            props={"minValue": 0, "maxValue": 100, "minStep": 1},
            attributes=(source,),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.TARGET_POSITION,
            get_handler=lambda: transforms.percentage(attr(device, source)),
            set_handler=set_target,
            props={"minValue": 0, "maxValue": 100, "minStep": 1},
            attributes=(source,),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.POSITION_STATE,
            get_handler=state_getter(device, "windowShade", POSITION_STATE, PositionState.STOPPED),
            attributes=("windowShade",),
        )


class AlarmSystemHandler:
    """Hub safety monitor exposed as a security system."""

    def configure(self, ctx: PassContext) -> None:
        device, accessory = ctx.device, ctx.accessory
        svc = ctx.get_or_add_service(ServiceType.SECURITY_SYSTEM, ctx.service_name("Alarm System"))

        def set_target(value: Any):
            command = ALARM_COMMANDS.get(SecuritySystemState(value), "disarm")
            return accessory.send_command(command)

        ctx.get_or_add_characteristic(
            svc,
            C.SECURITY_SYSTEM_CURRENT_STATE,
            get_handler=state_getter(
                device, "alarmSystemStatus", ALARM_CURRENT_STATE, SecuritySystemState.DISARMED
            ),
            attributes=("alarmSystemStatus",),
        )
        ctx.get_or_add_characteristic(
            svc,
            C.SECURITY_SYSTEM_TARGET_STATE,
            get_handler=lambda: alarm_target_state(attr(device, "alarmSystemStatus")),
            set_handler=set_target,
            props={"validValues": list(ALARM_COMMANDS)},
            attributes=("alarmSystemStatus",),
        )
