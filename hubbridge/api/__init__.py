"""
Push listener for HubBridge.

Provides REST endpoints for:
- Hub attribute events
- Manual device refresh
- Health and accessory inspection
"""

from .server import create_app, get_bridge, run_server
from .routes import router

__all__ = [
    "create_app",
    "get_bridge",
    "run_server",
    "router",
]
