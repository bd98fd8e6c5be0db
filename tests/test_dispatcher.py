"""
Tests for the debounced command dispatcher.
"""

import asyncio

import pytest

from hubbridge.dispatcher import CommandDispatcher
from hubbridge.errors import CommandError


@pytest.fixture
def dispatcher(transport):
    return CommandDispatcher(transport, debounce_seconds=0.01)


class TestImmediateCommands:
    """Tests for commands that skip the debounce window."""

    @pytest.mark.asyncio
    async def test_sent_immediately(self, dispatcher, transport):
        """Discrete commands go out without waiting."""
        result = await dispatcher.send_command("1", "on")
        assert result is True
        assert transport.calls == [("1", "on", [])]
        assert dispatcher.stats.sent == 1

    @pytest.mark.asyncio
    async def test_transport_failure_wrapped(self, dispatcher, transport):
        transport.error = RuntimeError("connection refused")
        with pytest.raises(CommandError) as exc:
            await dispatcher.send_command("1", "off")
        assert exc.value.command == "off"
        assert dispatcher.stats.failed == 1

    @pytest.mark.asyncio
    async def test_rejected_command(self, dispatcher, transport):
        """A False answer from the hub is a failure."""
        transport.result = False
        with pytest.raises(CommandError):
            await dispatcher.send_command("1", "lock")


class TestDebounce:
    """Tests for coalescing continuous commands."""

    @pytest.mark.asyncio
    async def test_burst_sends_last_value(self, dispatcher, transport):
        """A burst of setLevel writes yields one send with the final value."""
        results = await asyncio.gather(
            dispatcher.send_command("1", "setLevel", [10]),
            dispatcher.send_command("1", "setLevel", [20]),
            dispatcher.send_command("1", "setLevel", [30]),
        )
        assert transport.calls == [("1", "setLevel", [30])]
        assert results == [True, True, True]
        assert dispatcher.stats.coalesced == 2

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, dispatcher, transport):
        """Different devices and commands debounce separately."""
        await asyncio.gather(
            dispatcher.send_command("1", "setLevel", [10]),
            dispatcher.send_command("2", "setLevel", [20]),
            dispatcher.send_command("1", "setHue", [50]),
        )
        assert sorted(transport.calls) == [
            ("1", "setHue", [50]),
            ("1", "setLevel", [10]),
            ("2", "setLevel", [20]),
        ]

    @pytest.mark.asyncio
    async def test_failure_reaches_every_caller(self, dispatcher, transport):
        transport.error = RuntimeError("hub offline")
        results = await asyncio.gather(
            dispatcher.send_command("1", "setVolume", [10]),
            dispatcher.send_command("1", "setVolume", [15]),
            return_exceptions=True,
        )
        assert all(isinstance(r, CommandError) for r in results)
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_flush_sends_pending(self, transport):
        """Flushing sends pending commands without waiting out the window."""
        dispatcher = CommandDispatcher(transport, debounce_seconds=60)
        future = dispatcher.schedule("1", "setLevel", [42])
        assert dispatcher.pending == [("1", "setLevel")]

        await dispatcher.flush()
        assert transport.calls == [("1", "setLevel", [42])]
        assert future.result() is True
        assert dispatcher.pending == []

    @pytest.mark.asyncio
    async def test_cancel_device(self, transport):
        """Pending commands for a removed device are dropped."""
        dispatcher = CommandDispatcher(transport, debounce_seconds=60)
        future = dispatcher.schedule("1", "setLevel", [42])
        dispatcher.schedule("2", "setLevel", [7])

        assert dispatcher.cancel_device("1") == 1
        assert future.cancelled()
        assert dispatcher.pending == [("2", "setLevel")]

        await dispatcher.flush()
        assert transport.calls == [("2", "setLevel", [7])]

    @pytest.mark.asyncio
    async def test_cancelled_caller_leaves_others_waiting(self, dispatcher, transport):
        """Cancelling one caller in a burst does not cancel the send for the rest."""
        first = asyncio.ensure_future(dispatcher.send_command("1", "setLevel", [10]))
        await asyncio.sleep(0)
        first.cancel()
        second = await dispatcher.send_command("1", "setLevel", [80])

        assert second is True
        assert first.cancelled()
        assert transport.calls == [("1", "setLevel", [80])]

    @pytest.mark.asyncio
    async def test_finished_future_replaced(self, transport):
        """A call arriving after the shared future was settled gets a fresh one."""
        dispatcher = CommandDispatcher(transport, debounce_seconds=60)
        stale = dispatcher.schedule("1", "setLevel", [10])
        stale.cancel()
        fresh = dispatcher.schedule("1", "setLevel", [20])
        assert fresh is not stale

        await dispatcher.flush()
        assert fresh.result() is True
        assert transport.calls == [("1", "setLevel", [20])]
