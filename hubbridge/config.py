"""
Configuration management for HubBridge.

Handles:
- Hub connection settings (Maker API endpoints and token)
- Push listener settings
- Classification and presentation options
- Per-device capability/attribute exclusions
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any
import logging

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".hubbridge"

DEFAULT_LISTENER_PORT = 8000
DEFAULT_DEBOUNCE_SECONDS = 0.6


@dataclass
class HubConfig:
    """Configuration for the hub's Maker API."""
    app_url_local: Optional[str] = None  # e.g., http://192.168.1.20/apps/api/
    app_url_cloud: Optional[str] = None
    app_id: Optional[str] = None
    access_token: Optional[str] = None
    use_cloud: bool = False
    request_timeout_seconds: float = 10.0

    @property
    def base_url(self) -> Optional[str]:
        url = self.app_url_cloud if self.use_cloud else self.app_url_local
        if url and not url.endswith("/"):
            url += "/"
        return url

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.app_id and self.access_token)

    def to_dict(self) -> dict:
        return {
            "app_url_local": self.app_url_local,
            "app_url_cloud": self.app_url_cloud,
            "app_id": self.app_id,
            "access_token": self.access_token,
            "use_cloud": self.use_cloud,
            "request_timeout_seconds": self.request_timeout_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HubConfig":
        # Filter to only known fields to handle config evolution
        known_fields = {
            "app_url_local", "app_url_cloud", "app_id", "access_token",
            "use_cloud", "request_timeout_seconds",
        }
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)


@dataclass
class ServerConfig:
    """Configuration for the push listener."""
    host: str = "0.0.0.0"
    port: int = DEFAULT_LISTENER_PORT

    def to_dict(self) -> dict:
        return {"host": self.host, "port": self.port}

    @classmethod
    def from_dict(cls, data: dict) -> "ServerConfig":
        known_fields = {"host", "port"}
        return cls(**{k: v for k, v in data.items() if k in known_fields})


@dataclass
class BridgeConfig:
    """
    Main HubBridge configuration.

    Stored at ~/.hubbridge/config.json
    """
    # Paths
    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)

    # Components
    hub: HubConfig = field(default_factory=HubConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Presentation
    temperature_unit: str = "F"  # unit the hub reports in: F or C
    round_levels: bool = True

    # Classification
    consider_fan_by_name: bool = True
    consider_light_by_name: bool = False

    # Lighting
    adaptive_lighting: bool = True
    allow_led_effects_control: bool = True

    # Per-device exclusions, keyed by device id
    excluded_capabilities: Dict[str, List[str]] = field(default_factory=dict)
    excluded_attributes: Dict[str, List[str]] = field(default_factory=dict)

    # Timing
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    polling_seconds: int = 900

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.json"

    @property
    def uses_fahrenheit(self) -> bool:
        return str(self.temperature_unit).upper() == "F"

    def classification_options(self) -> Dict[str, bool]:
        """The subset of settings that can change classification results."""
        return {
            "consider_light_by_name": self.consider_light_by_name,
            "consider_fan_by_name": self.consider_fan_by_name,
        }

    def ensure_data_dir(self) -> None:
        """Create data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hub": self.hub.to_dict(),
            "server": self.server.to_dict(),
            "temperature_unit": self.temperature_unit,
            "round_levels": self.round_levels,
            "consider_fan_by_name": self.consider_fan_by_name,
            "consider_light_by_name": self.consider_light_by_name,
            "adaptive_lighting": self.adaptive_lighting,
            "allow_led_effects_control": self.allow_led_effects_control,
            "excluded_capabilities": self.excluded_capabilities,
            "excluded_attributes": self.excluded_attributes,
            "debounce_seconds": self.debounce_seconds,
            "polling_seconds": self.polling_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], data_dir: Optional[Path] = None) -> "BridgeConfig":
        known_fields = {
            "temperature_unit", "round_levels", "consider_fan_by_name",
            "consider_light_by_name", "adaptive_lighting", "allow_led_effects_control",
            "excluded_capabilities", "excluded_attributes", "debounce_seconds",
            "polling_seconds",
        }
        config = cls(
            data_dir=data_dir or DEFAULT_DATA_DIR,
            **{k: v for k, v in data.items() if k in known_fields},
        )
        if "hub" in data:
            config.hub = HubConfig.from_dict(data["hub"])
        if "server" in data:
            config.server = ServerConfig.from_dict(data["server"])

        if str(config.temperature_unit).upper() not in ("F", "C"):
            raise ConfigError(f"temperature_unit must be 'F' or 'C', got {config.temperature_unit!r}")
        config.temperature_unit = str(config.temperature_unit).upper()
        # Device ids arrive as ints from some hubs
        config.excluded_capabilities = {str(k): list(v) for k, v in config.excluded_capabilities.items()}
        config.excluded_attributes = {str(k): list(v) for k, v in config.excluded_attributes.items()}
        return config

    def save(self) -> None:
        """Save configuration to disk."""
        self.ensure_data_dir()

        with open(self.config_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.debug(f"Configuration saved to {self.config_path}")

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "BridgeConfig":
        """Load configuration from disk."""
        data_dir = data_dir or DEFAULT_DATA_DIR
        config_path = data_dir / "config.json"

        if not config_path.exists():
            return cls(data_dir=data_dir)

        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Expected an object in {config_path}")

        return cls.from_dict(data, data_dir=data_dir)

    @classmethod
    def exists(cls, data_dir: Optional[Path] = None) -> bool:
        """Check if configuration exists."""
        data_dir = data_dir or DEFAULT_DATA_DIR
        return (data_dir / "config.json").exists()


# Global config instance
_config: Optional[BridgeConfig] = None


def get_config(data_dir: Optional[Path] = None) -> BridgeConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BridgeConfig.load(data_dir)
    return _config


def set_config(config: BridgeConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
