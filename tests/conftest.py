"""
Pytest fixtures for HubBridge tests.
"""

from typing import Any, Dict, List, Optional

import pytest

from hubbridge.bridge import HubBridge
from hubbridge.config import BridgeConfig


class FakeTransport:
    """Records hub commands instead of sending them."""

    def __init__(self, result: Any = True, error: Optional[Exception] = None):
        self.calls: List[tuple] = []
        self.result = result
        self.error = error

    async def execute(self, device_id: str, command: str, params: List[Any]) -> Any:
        self.calls.append((device_id, command, list(params)))
        if self.error is not None:
            raise self.error
        return self.result

    def commands(self) -> List[str]:
        return [call[1] for call in self.calls]


class FakeHubClient:
    """Serves device records from memory."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self.records = list(records or [])
        self.closed = False
        self.fetches = 0

    async def get_devices(self) -> List[Dict[str, Any]]:
        self.fetches += 1
        return list(self.records)

    async def execute(self, device_id: str, command: str, params: List[Any]) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


def make_record(
    device_id: Any,
    name: str,
    capabilities: List[str],
    attributes: Optional[Dict[str, Any]] = None,
    commands: Optional[List[str]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    record = {
        "deviceid": device_id,
        "name": name,
        "capabilities": capabilities,
        "attributes": attributes or {},
        "commands": commands or [],
    }
    record.update(extra)
    return record


@pytest.fixture
def record():
    """Factory for hub device records."""
    return make_record


@pytest.fixture
def config(tmp_path) -> BridgeConfig:
    return BridgeConfig(data_dir=tmp_path, debounce_seconds=0.01, polling_seconds=0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def hub_client() -> FakeHubClient:
    return FakeHubClient()


@pytest.fixture
def bridge(config, transport, hub_client) -> HubBridge:
    return HubBridge(config, client=hub_client, transport=transport)
