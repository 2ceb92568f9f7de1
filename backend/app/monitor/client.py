"""
Notification client: ties the push channel, the stats cache and the bridge together.

State: disconnected -> connect() -> connected -> disconnect() -> disconnected.
The stats cache is readable in both states; pushes only arrive while connected.
Nothing here raises on connectivity problems: failures land in `last_error`.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from app.core.config import settings
from app.monitor.api_client import InventoryApi
from app.monitor.bridge import NotificationBridge
from app.monitor.channel import ChannelError, RealtimeChannel
from app.monitor.stats_cache import StatsCache
from app.services.stock_alerts import AlertBuckets, classify_medicines

logger = logging.getLogger(__name__)


class NotificationClient:

    def __init__(
        self,
        api: InventoryApi,
        channel: RealtimeChannel,
        bridge: NotificationBridge,
        cache: Optional[StatsCache] = None,
        room: Optional[str] = settings.MONITOR_ROOM,
    ):
        self.api = api
        self.channel = channel
        self.bridge = bridge
        self.cache = cache or StatsCache()
        self.room = room
        self.last_error: Optional[str] = None
        self.channel.init(self._on_event)

    async def _call(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def start(self) -> bool:
        """Register delivery, ask for permission once, connect and load the first stats."""
        await self.bridge.register()
        await self.bridge.ensure_permission()
        connected = await self.connect()
        await self.refresh_stats()
        return connected

    async def connect(self) -> bool:
        if self.channel.is_connected():
            return True
        try:
            await self.channel.connect()
        except ChannelError as e:
            self.last_error = str(e)
            logger.error(f"[Monitor] {self.last_error}")
            return False
        self.last_error = None
        return True

    async def disconnect(self):
        await self.channel.disconnect()

    def is_connected(self) -> bool:
        return self.channel.is_connected()

    async def _on_event(self, event: str, data: Any):
        if event == "stats" and isinstance(data, dict):
            self.cache.replace(data)
        elif event == "notification" and isinstance(data, dict):
            try:
                await self.bridge.show(data)
            except Exception as e:
                self.last_error = f"Failed to deliver notification: {e}"
                logger.error(f"[Monitor] {self.last_error}")
            self.cache.notify()
        elif event == "connected":
            logger.info(f"[Monitor] {data.get('message') if isinstance(data, dict) else data}")
            await self._join_room()
        elif event == "error":
            self.last_error = data.get("message") if isinstance(data, dict) else str(data)

    async def _join_room(self):
        # Sent on every welcome frame so automatic reconnects rejoin too
        if not self.room:
            return
        try:
            await self.channel.join_room(self.room)
        except ChannelError as e:
            logger.warning(f"[Monitor] Could not join room '{self.room}': {e}")

    async def refresh_stats(self) -> bool:
        """Replace the cache with the backend's counts. On failure the cache is untouched."""
        try:
            stats = await self._call(self.api.get_stats)
        except requests.RequestException as e:
            self.last_error = f"Failed to fetch notification stats: {e}"
            logger.error(f"[Monitor] {self.last_error}")
            return False
        self.cache.replace(stats)
        return True

    async def trigger_inventory_check(self) -> bool:
        try:
            result = await self._call(self.api.trigger_inventory_check)
        except requests.RequestException as e:
            self.last_error = f"Failed to trigger inventory check: {e}"
            logger.error(f"[Monitor] {self.last_error}")
            return False
        logger.info(f"[Monitor] Inventory check triggered: {result.get('message')}")
        return True

    async def send_test_notification(self) -> dict:
        """Local-only synthetic alert; goes through the same path as a pushed one."""
        payload = {
            "type": "low_stock",
            "title": "Test Notification",
            "message": "This is a test notification from the pharmacy monitor",
            "priority": "medium",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        await self._on_event("notification", payload)
        return payload

    async def inventory_snapshot(self, now: Optional[datetime] = None) -> Optional[AlertBuckets]:
        """Fetch every medicine and bucket them locally; None when the fetch fails."""
        try:
            medicines = await self._call(self.api.fetch_medicines)
        except requests.RequestException as e:
            self.last_error = f"Failed to fetch medicines: {e}"
            logger.error(f"[Monitor] {self.last_error}")
            return None
        return classify_medicines(
            medicines,
            now=now,
            low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
            expiry_warning_days=settings.EXPIRY_WARNING_DAYS,
        )

    def status(self) -> dict:
        return {
            "connected": self.is_connected(),
            "permission": self.bridge.permission,
            "ready": self.bridge.ready,
            "banner": self.bridge.banner,
            "lastError": self.last_error,
            "stats": self.cache.current,
        }
