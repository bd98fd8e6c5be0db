"""
API routes for the HubBridge push listener.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from .server import get_bridge
from ..bridge import HubBridge
from ..config import BridgeConfig
from ..errors import ConfigError, HubRequestError, UnknownDeviceError
from ..models import AttributeChange

logger = logging.getLogger(__name__)

router = APIRouter()


# ============ Request/Response Models ============

class HubEvent(BaseModel):
    """Attribute change pushed by the hub."""
    change_device: Union[str, int] = Field(..., description="Device id")
    change_attribute: str = Field(..., description="Attribute name")
    change_value: Any = Field(default=None, description="New attribute value")
    change_data: Any = Field(default=None, description="Extra event data (object or JSON text)")
    change_date: Optional[str] = None
    change_name: Optional[str] = None
    access_token: Optional[str] = None
    app_id: Optional[Union[str, int]] = None

    def data(self) -> Dict[str, Any]:
        raw = self.change_data
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return {}
        return raw if isinstance(raw, dict) else {}

    def to_change(self) -> AttributeChange:
        return AttributeChange(
            device_id=str(self.change_device),
            attribute=self.change_attribute,
            value=self.change_value,
            data=self.data(),
            timestamp=self.change_date,
            name=self.change_name,
        )


class UpdateResponse(BaseModel):
    evtType: str = "attrUpdStatus"
    evtStatus: str = "OK"


class HealthResponse(BaseModel):
    status: str
    running: bool
    devices: int


# ============ Helpers ============

def _require_bridge() -> HubBridge:
    bridge = get_bridge()
    if bridge is None:
        raise HTTPException(status_code=503, detail="Bridge not ready")
    return bridge


def _check_credentials(config: BridgeConfig, event: HubEvent) -> None:
    """Reject events carrying an app id or token other than the configured ones."""
    hub = config.hub
    if hub.app_id and event.app_id is not None and str(event.app_id) != str(hub.app_id):
        raise HTTPException(status_code=401, detail="App id mismatch")
    if hub.access_token and event.access_token is not None and event.access_token != hub.access_token:
        raise HTTPException(status_code=401, detail="Access token mismatch")


# ============ Routes ============

@router.post("/update", response_model=UpdateResponse)
async def update(event: HubEvent, request: Request):
    """Apply an attribute change pushed by the hub."""
    bridge = _require_bridge()
    _check_credentials(request.app.state.config, event)

    change = event.to_change()
    try:
        delivered = bridge.handle_event(change)
    except UnknownDeviceError as e:
        logger.warning(f"Event for unknown device {change.device_id} ({change.attribute})")
        raise HTTPException(status_code=404, detail=str(e))

    logger.debug(
        f"Event {change.name or change.device_id} {change.attribute}={change.value!r} "
        f"updated {delivered} characteristic(s)"
    )
    return UpdateResponse()


@router.post("/refresh")
async def refresh():
    """Re-fetch every device from the hub."""
    bridge = _require_bridge()
    try:
        result = await bridge.refresh()
    except ConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except HubRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return result.to_dict()


@router.get("/health", response_model=HealthResponse)
async def health():
    bridge = get_bridge()
    if bridge is None:
        return HealthResponse(status="starting", running=False, devices=0)
    return HealthResponse(status="ok", running=bridge.is_running, devices=len(bridge.accessories))


@router.get("/accessories")
async def accessories():
    """Snapshot of every accessory, service and characteristic."""
    return _require_bridge().describe()
