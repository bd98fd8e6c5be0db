"""
Hub integration: Maker API device records and the HTTP client.

Architecture:
    MakerApiClient.get_devices() → raw records → HubDeviceRecord (pydantic)
                                              → parse_device() → Device
    CommandDispatcher → MakerApiClient.execute() → GET .../devices/<id>/<command>
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Union
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ConfigDict, Field

from .config import HubConfig
from .errors import ConfigError, HubRequestError
from .models import Device, DeviceStatus, apply_exclusions

logger = logging.getLogger(__name__)


def _names(value: Any) -> Set[str]:
    """Capabilities/commands arrive as a list of names, a list of objects or a mapping."""
    if not value:
        return set()
    if isinstance(value, dict):
        return {str(k) for k in value}
    names = set()
    for item in value:
        if isinstance(item, dict):
            name = item.get("name") or item.get("command")
            if name:
                names.add(str(name))
        elif item is not None:
            names.add(str(item))
    return names


def _attributes(value: Any) -> Dict[str, Any]:
    if not value:
        return {}
    if isinstance(value, dict):
        return dict(value)
    attributes = {}
    for item in value:
        if isinstance(item, dict) and item.get("name"):
            attributes[str(item["name"])] = item.get("currentValue", item.get("value"))
    return attributes


def _flags(value: Any) -> Set[str]:
    if not value:
        return set()
    if isinstance(value, dict):
        return {str(k) for k, v in value.items() if v}
    if isinstance(value, str):
        return {value}
    return {str(v) for v in value}


class HubDeviceRecord(BaseModel):
    """One device as reported by the Maker API."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    deviceid: Optional[Union[str, int]] = None
    id: Optional[Union[str, int]] = None
    name: Optional[str] = None
    label: Optional[str] = None
    status: Optional[str] = None
    manufacturer: Optional[str] = Field(default=None, alias="manufacturerName")
    model: Optional[str] = Field(default=None, alias="modelName")
    firmware: Optional[str] = Field(default=None, alias="firmwareVersion")
    capabilities: Any = None
    attributes: Any = None
    commands: Any = None
    customflags: Any = None

    @property
    def device_id(self) -> Optional[str]:
        raw = self.deviceid if self.deviceid is not None else self.id
        return str(raw) if raw is not None else None

    @property
    def display_name(self) -> str:
        return self.label or self.name or ""

    def to_device(self) -> Device:
        device_id = self.device_id
        if device_id is None:
            raise ValueError("hub device record has no deviceid")
        return Device(
            id=device_id,
            name=self.display_name,
            status=DeviceStatus.parse(self.status),
            manufacturer=self.manufacturer,
            model=self.model,
            firmware=self.firmware,
            capabilities=_names(self.capabilities),
            attributes=_attributes(self.attributes),
            commands=_names(self.commands),
            flags=_flags(self.customflags),
        )


def parse_device(
    record: Union[Dict[str, Any], HubDeviceRecord],
    excluded_capabilities: Optional[Iterable[str]] = None,
    excluded_attributes: Optional[Iterable[str]] = None,
) -> Device:
    """
    Build a Device from a hub record, dropping excluded capabilities/attributes.

    Raises:
        pydantic.ValidationError: if the record is malformed.
        ValueError: if the record has no device id.
    """
    if not isinstance(record, HubDeviceRecord):
        record = HubDeviceRecord.model_validate(record)
    device = record.to_device()
    return apply_exclusions(device, list(excluded_capabilities or []), list(excluded_attributes or []))


class MakerApiClient:
    """
    Async client for the hub's Maker API.

    Usage:
        async with MakerApiClient(config.hub) as client:
            records = await client.get_devices()
            await client.execute("42", "setLevel", [80])
    """

    def __init__(self, config: HubConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "MakerApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _app_url(self) -> str:
        if not self.config.is_configured:
            raise ConfigError("Hub connection is not configured (app URL, app id and access token are required)")
        return f"{self.config.base_url}{self.config.app_id}"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _get(self, path: str) -> aiohttp.ClientResponse:
        url = f"{self._app_url()}/{path}"
        session = await self._get_session()
        try:
            resp = await session.get(url, params={"access_token": self.config.access_token})
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise HubRequestError(path, str(e) or type(e).__name__) from e
        if resp.status < 200 or resp.status >= 300:
            text = await resp.text()
            resp.release()
            raise HubRequestError(path, text or resp.reason or "request failed", status=resp.status)
        return resp

    async def get_devices(self) -> List[Dict[str, Any]]:
        """Fetch every device record exposed to the Maker API app."""
        resp = await self._get("devices/all")
        try:
            data = await resp.json(content_type=None)
        except ValueError as e:
            raise HubRequestError("devices/all", f"invalid JSON: {e}", status=resp.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise HubRequestError("devices/all", str(e) or type(e).__name__, status=resp.status) from e
        finally:
            resp.release()

        if not isinstance(data, list):
            raise HubRequestError("devices/all", "expected a list of devices", status=resp.status)
        logger.debug(f"Fetched {len(data)} device record(s) from hub")
        return data

    async def execute(self, device_id: str, command: str, params: Optional[List[Any]] = None) -> bool:
        """
        Send one command to a device.

        Raises:
            HubRequestError: on transport failure or a non-2xx status.
        """
        path = f"devices/{quote(str(device_id), safe='')}/{quote(command, safe='')}"
        if params:
            path += "/" + quote(",".join(str(p) for p in params), safe=",")
        resp = await self._get(path)
        resp.release()
        return True
