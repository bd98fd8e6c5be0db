"""
FastAPI push listener for HubBridge.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import uvicorn

from ..bridge import HubBridge
from ..config import BridgeConfig

logger = logging.getLogger(__name__)

# Global bridge instance (shared with routes.py)
_bridge: Optional[HubBridge] = None


def get_bridge() -> Optional[HubBridge]:
    """Get the global bridge instance."""
    return _bridge


def set_bridge(bridge: Optional[HubBridge]) -> None:
    global _bridge
    _bridge = bridge


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the bridge with the app and stop it on shutdown."""
    bridge = get_bridge()
    if bridge is not None and app.state.manage_bridge:
        await bridge.start()

    yield

    if bridge is not None and app.state.manage_bridge:
        await bridge.stop()


def create_app(
    bridge: HubBridge,
    config: Optional[BridgeConfig] = None,
    manage_bridge: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        bridge: Bridge that receives hub events
        config: Settings for credential checks (defaults to the bridge's)
        manage_bridge: Start/stop the bridge with the application lifespan
    """
    from .routes import router

    set_bridge(bridge)

    app = FastAPI(
        title="HubBridge",
        description="Hub device events to protocol accessories",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config or bridge.config
    app.state.manage_bridge = manage_bridge

    app.include_router(router)
    return app


def run_server(bridge: HubBridge, config: Optional[BridgeConfig] = None) -> None:
    """Run the push listener (and the bridge) with uvicorn."""
    config = config or bridge.config
    app = create_app(bridge, config)
    logger.info(f"Push listener on http://{config.server.host}:{config.server.port}")
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )
