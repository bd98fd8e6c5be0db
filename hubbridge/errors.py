"""
Exception hierarchy for HubBridge.

Optional characteristics and malformed hub values never raise; these
exceptions cover configuration, hub transport and protocol writes.
"""

from typing import Any, List, Optional


class HubBridgeError(Exception):
    """Base class for all HubBridge errors."""


class ConfigError(HubBridgeError):
    """Configuration file could not be read or is invalid."""


class HubRequestError(HubBridgeError):
    """HTTP request to the hub failed."""

    def __init__(self, endpoint: str, message: str, status: Optional[int] = None):
        self.endpoint = endpoint
        self.status = status
        self.message = message
        prefix = f"[{status}] " if status is not None else ""
        super().__init__(f"{prefix}{endpoint}: {message}")


class CommandError(HubBridgeError):
    """A device command could not be delivered to the hub."""

    def __init__(
        self,
        device_id: str,
        command: str,
        params: Optional[List[Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.device_id = device_id
        self.command = command
        self.params = list(params or [])
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Command {command}{self.params} failed for device {device_id}{detail}")


class InvalidValueError(HubBridgeError):
    """A protocol write violated the characteristic's constraints."""

    def __init__(self, characteristic: str, value: Any, reason: str):
        self.characteristic = characteristic
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value {value!r} for {characteristic}: {reason}")


class UnknownDeviceError(HubBridgeError):
    """An event or command named a device the bridge does not know."""

    def __init__(self, device_id: str):
        self.device_id = device_id
        super().__init__(f"Unknown device: {device_id}")
