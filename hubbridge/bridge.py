"""
HubBridge: platform orchestration.

Architecture:
    MakerApiClient ──records──► sync_devices() ──► Accessory per device
                                                      │
                          Classifier ◄── CapabilitySet┘
                              │ roles
                              ▼
                          Materializer (PassContext) ──► services / characteristics
                              │ subscriptions                   │ writes
                              ▼                                 ▼
    push listener ──► handle_event() ──► AttributeUpdateRouter   CommandDispatcher ──► hub

One HubBridge owns one accessory per hub device, keyed by device id.
Classification passes run synchronously; only commands, refresh and
polling touch the event loop.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from .capabilities import CapabilitySet
from .classifier import Classifier
from .config import BridgeConfig, get_config
from .dispatcher import CommandDispatcher, CommandTransport
from .errors import ConfigError, HubRequestError, UnknownDeviceError
from .hub import MakerApiClient, parse_device
from .materializer import Materializer
from .models import AttributeChange, Device
from .protocol.objects import Accessory
from .roles.base import Role
from .roles.catalog import build_default_registry
from .roles.registry import RoleRegistry
from .router import AttributeUpdateRouter

logger = logging.getLogger(__name__)

# Attributes whose value shapes the service layout, not just a reading
RECONFIGURE_ATTRIBUTES = frozenset({
    "numberOfButtons",
    "supportedThermostatModes",
    "supportedFanSpeeds",
    "lightEffects",
})


@dataclass
class SyncResult:
    """Outcome of one device sync."""
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": self.added,
            "updated": self.updated,
            "removed": self.removed,
            "skipped": self.skipped,
        }


class HubBridge:
    """
    Bridges hub devices to protocol accessories.

    Usage:
        bridge = HubBridge(config)
        await bridge.start()          # initial refresh + polling
        bridge.handle_event(change)   # from the push listener
        await bridge.stop()
    """

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        client: Optional[MakerApiClient] = None,
        transport: Optional[CommandTransport] = None,
        registry: Optional[RoleRegistry] = None,
    ):
        self.config = config or get_config()
        self.client = client or MakerApiClient(self.config.hub)
        self.registry = registry or build_default_registry()

        self.router = AttributeUpdateRouter()
        self.materializer = Materializer(self.router, self.config)
        self.classifier = Classifier(self.registry)
        self.dispatcher = CommandDispatcher(
            transport or self.client,
            debounce_seconds=self.config.debounce_seconds,
        )

        self.accessories: Dict[str, Accessory] = {}
        self._running = False
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def get_accessory(self, device_id: str) -> Accessory:
        accessory = self.accessories.get(str(device_id))
        if accessory is None:
            raise UnknownDeviceError(str(device_id))
        return accessory

    # ---- classification ----

    def configure_accessory(self, accessory: Accessory) -> List[Role]:
        """Run one classification pass: classify, materialize, clean up."""
        caps = CapabilitySet.from_device(accessory.device, self.config.classification_options())
        roles = self.classifier.classify(accessory, caps)

        ctx = self.materializer.begin_pass(accessory, caps)
        try:
            for role in roles:
                role.configure(ctx)
        except Exception:
            self.materializer.abort_pass(ctx)
            raise
        self.materializer.finish_pass(ctx)

        accessory.roles = [role.name for role in roles]
        logger.debug(f"{accessory.display_name} | roles: {', '.join(accessory.roles) or 'none'}")
        return roles

    def _parse(self, record: Dict[str, Any]) -> Optional[Device]:
        device_id = str(record.get("deviceid", record.get("id", "")))
        try:
            return parse_device(
                record,
                self.config.excluded_capabilities.get(device_id),
                self.config.excluded_attributes.get(device_id),
            )
        except (ValidationError, ValueError) as e:
            logger.warning(f"Skipping malformed device record {device_id or '?'}: {e}")
            return None

    def sync_devices(self, records: Iterable[Dict[str, Any]]) -> SyncResult:
        """Reconcile accessories with a full list of hub device records."""
        result = SyncResult()
        seen = set()

        for record in records:
            device = self._parse(record)
            if device is None:
                result.skipped += 1
                continue
            seen.add(device.id)

            accessory = self.accessories.get(device.id)
            if accessory is None:
                accessory = Accessory(device, self._send_command)
                self.accessories[device.id] = accessory
                result.added.append(device.id)
            else:
                accessory.device.update_from(device)
                result.updated.append(device.id)
            self.configure_accessory(accessory)

        for device_id in [d for d in self.accessories if d not in seen]:
            self.remove_accessory(device_id)
            result.removed.append(device_id)

        logger.info(
            f"Synced {len(self.accessories)} device(s): {len(result.added)} added, "
            f"{len(result.updated)} updated, {len(result.removed)} removed"
        )
        return result

    def remove_accessory(self, device_id: str) -> None:
        accessory = self.accessories.pop(device_id, None)
        if accessory is None:
            return
        self.materializer.remove_accessory(accessory)
        self.dispatcher.cancel_device(device_id)
        logger.info(f"Removed accessory {accessory.display_name} ({device_id})")

    # ---- events and commands ----

    def handle_event(self, change: AttributeChange) -> int:
        """
        Apply one inbound attribute event.

        Returns:
            Number of characteristics updated.

        Raises:
            UnknownDeviceError: if the device is not bridged.
        """
        accessory = self.get_accessory(change.device_id)
        if change.attribute in self.config.excluded_attributes.get(accessory.id, []):
            logger.debug(f"{accessory.display_name} | ignoring excluded attribute {change.attribute}")
            return 0

        delivered = self.router.route(accessory.device, change)
        if change.attribute in RECONFIGURE_ATTRIBUTES:
            self.configure_accessory(accessory)
        return delivered

    async def _send_command(self, device_id: str, command: str, params: List[Any]) -> Any:
        return await self.dispatcher.send_command(device_id, command, params)

    # ---- hub sync ----

    async def refresh(self) -> SyncResult:
        """
        Fetch all device records from the hub and sync them.

        Raises:
            HubRequestError: if the hub could not be reached.
        """
        records = await self.client.get_devices()
        return self.sync_devices(records)

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.config.polling_seconds)
            try:
                await self.refresh()
            except (HubRequestError, ConfigError) as e:
                logger.warning(f"Periodic refresh failed: {e}")
            except Exception as e:
                logger.exception(f"Unexpected error during periodic refresh: {e}")

    async def start(self) -> None:
        """Initial refresh, then periodic refresh every polling_seconds."""
        if self._running:
            return
        self._running = True

        try:
            await self.refresh()
        except (HubRequestError, ConfigError) as e:
            logger.error(f"Initial device refresh failed: {e}")

        if self.config.polling_seconds > 0:
            self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info(f"HubBridge running with {len(self.accessories)} accessory(ies)")

    async def stop(self) -> None:
        """Stop polling, send pending debounced commands and close the hub client."""
        logger.info("Stopping HubBridge...")
        self._running = False

        try:
            if self._poll_task:
                self._poll_task.cancel()
                try:
                    await self._poll_task
                except asyncio.CancelledError:
                    pass
                self._poll_task = None
        finally:
            try:
                await self.dispatcher.flush()
            finally:
                await self.client.close()
        logger.info("HubBridge stopped")

    # ---- inspection ----

    def describe(self) -> Dict[str, Any]:
        """JSON-serializable snapshot of every accessory."""
        return {
            "running": self._running,
            "accessories": [a.describe() for a in self.accessories.values()],
            "stats": {
                "devices": len(self.accessories),
                "events_routed": self.router.events_routed,
                "events_dropped": self.router.events_dropped,
                "commands_sent": self.dispatcher.stats.sent,
                "commands_failed": self.dispatcher.stats.failed,
                "commands_coalesced": self.dispatcher.stats.coalesced,
                "classification_cache_hits": self.classifier.cache_hits,
            },
        }
