"""
HubBridge - hub devices as protocol accessories

Classifies each hub device into one or more roles, materializes the
matching accessory services and characteristics, routes hub attribute
events onto them and sends protocol writes back as debounced hub commands.

Example:
    >>> from hubbridge import HubBridge
    >>> bridge = HubBridge()
    >>> await bridge.start()
    >>> bridge.describe()
"""

__version__ = "1.0.0"

from .config import BridgeConfig, get_config
from .bridge import HubBridge

__all__ = [
    "__version__",
    "BridgeConfig",
    "get_config",
    "HubBridge",
]
