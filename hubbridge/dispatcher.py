"""
Command dispatcher: debounced, coalesced outbound hub commands.

Continuous controls (sliders for level, volume, colour, setpoints) emit
bursts of writes. Those commands are debounced per (device id, command)
with trailing-edge semantics: each call inside the window reschedules the
timer with the newest parameters, so only the last value of a burst is
sent. Every caller in the burst awaits the same shielded future and
observes the result of that single send; cancelling one caller leaves
the others waiting. All other commands go out immediately.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Set, Tuple

from .config import DEFAULT_DEBOUNCE_SECONDS
from .errors import CommandError

logger = logging.getLogger(__name__)

DEBOUNCED_COMMANDS: FrozenSet[str] = frozenset({
    "setLevel",
    "setVolume",
    "setSpeed",
    "setSaturation",
    "setHue",
    "setColorTemperature",
    "setHeatingSetpoint",
    "setCoolingSetpoint",
    "setThermostatSetpoint",
    "setThermostatMode",
    "setPosition",
    "setHumiditySetpoint",
})


class CommandTransport(Protocol):
    """Anything that can deliver a command to the hub."""

    async def execute(self, device_id: str, command: str, params: List[Any]) -> Any:
        ...


@dataclass
class CommandTimer:
    """A pending debounced command."""
    device_id: str
    command: str
    params: List[Any]
    future: asyncio.Future
    handle: Optional[asyncio.TimerHandle] = None
    calls: int = 1

    @property
    def key(self) -> Tuple[str, str]:
        return (self.device_id, self.command)


@dataclass
class DispatcherStats:
    sent: int = 0
    failed: int = 0
    coalesced: int = 0


class CommandDispatcher:
    """Sends hub commands, debouncing the continuous ones."""

    def __init__(
        self,
        transport: CommandTransport,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        debounced_commands: FrozenSet[str] = DEBOUNCED_COMMANDS,
    ):
        self.transport = transport
        self.debounce_seconds = debounce_seconds
        self.debounced_commands = debounced_commands
        self.stats = DispatcherStats()
        self._timers: Dict[Tuple[str, str], CommandTimer] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> List[Tuple[str, str]]:
        return list(self._timers)

    def is_debounced(self, command: str) -> bool:
        return command in self.debounced_commands

    async def send_command(self, device_id: str, command: str, params: Optional[List[Any]] = None) -> Any:
        """
        Send a command, waiting for the hub's answer.

        Raises:
            CommandError: if the transport failed.
        """
        params = list(params or [])
        if not self.is_debounced(command):
            return await self._execute(device_id, command, params)
        return await asyncio.shield(self.schedule(device_id, command, params))

    def schedule(self, device_id: str, command: str, params: List[Any]) -> asyncio.Future:
        """Queue (or re-queue) a debounced command and return its shared future."""
        loop = asyncio.get_running_loop()
        key = (device_id, command)
        timer = self._timers.get(key)
        if timer is None:
            timer = CommandTimer(device_id, command, list(params), loop.create_future())
            self._timers[key] = timer
        else:
            timer.handle.cancel()
            timer.params = list(params)
            timer.calls += 1
            self.stats.coalesced += 1
            if timer.future.done():
                timer.future = loop.create_future()
        timer.handle = loop.call_later(self.debounce_seconds, self._fire, key)
        logger.debug(f"Debouncing {command}{timer.params} for device {device_id} ({timer.calls} call(s))")
        return timer.future

    def _fire(self, key: Tuple[str, str]) -> None:
        timer = self._timers.pop(key, None)
        if timer is None:
            return
        task = asyncio.ensure_future(self._complete(timer))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _complete(self, timer: CommandTimer) -> None:
        try:
            result = await self._execute(timer.device_id, timer.command, timer.params)
        except CommandError as e:
            if not timer.future.done():
                timer.future.set_exception(e)
        else:
            if not timer.future.done():
                timer.future.set_result(result)

    async def _execute(self, device_id: str, command: str, params: List[Any]) -> Any:
        logger.info(f"Sending {command}{params} to device {device_id}")
        try:
            result = await self.transport.execute(device_id, command, params)
        except CommandError:
            self.stats.failed += 1
            raise
        except Exception as e:
            self.stats.failed += 1
            logger.error(f"Command {command} failed for device {device_id}: {e}")
            raise CommandError(device_id, command, params, e) from e

        if result is False:
            self.stats.failed += 1
            raise CommandError(device_id, command, params, RuntimeError("hub rejected the command"))

        self.stats.sent += 1
        return result

    async def flush(self) -> None:
        """Send every pending debounced command now and wait for all sends."""
        for key in list(self._timers):
            timer = self._timers.pop(key)
            timer.handle.cancel()
            task = asyncio.ensure_future(self._complete(timer))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_device(self, device_id: str) -> int:
        """Drop pending commands for a device that no longer exists."""
        cancelled = 0
        for key in [k for k in self._timers if k[0] == device_id]:
            timer = self._timers.pop(key)
            timer.handle.cancel()
            timer.future.cancel()
            cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} pending command(s) for device {device_id}")
        return cancelled
