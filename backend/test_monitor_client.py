"""
Monitor client: stats cache, channel lifecycle and manual triggers.

Tests:
1. Refreshing twice keeps exactly the second response
2. Failed refresh leaves the cache and records last_error
3. connect() is idempotent; disconnect/connect reconnects once
4. Channel failure becomes last_error, never an exception
5. Pushed stats / notifications update cache, signal and bridge
   (a failing delivery is recorded, not raised)
6. Test notification and inventory snapshot
"""
import asyncio
from datetime import datetime, timedelta

import requests

from app.monitor.bridge import InMemoryDelivery, NotificationBridge, PERMISSION_GRANTED
from app.monitor.channel import ChannelError, RealtimeChannel
from app.monitor.client import NotificationClient
from app.monitor.stats_cache import StatsCache


class FakeChannel(RealtimeChannel):
    def __init__(self, fail=False):
        super().__init__()
        self.fail = fail
        self.connected = False
        self.opened = 0
        self.rooms = []

    async def connect(self):
        if self.fail:
            raise ChannelError("Could not connect to ws://backend/notifications/ws: refused")
        if not self.connected:
            self.opened += 1
        self.connected = True

    async def disconnect(self):
        self.connected = False

    def is_connected(self):
        return self.connected

    async def join_room(self, room):
        if not self.connected:
            raise ChannelError("Not connected")
        self.rooms.append(room)

    async def push(self, event, data):
        await self._dispatch(event, data)


class FakeApi:
    def __init__(self):
        self.stats_responses = []
        self.medicines = []
        self.fail = False
        self.checks = 0

    def get_stats(self):
        if self.fail:
            raise requests.ConnectionError("backend down")
        return self.stats_responses.pop(0)

    def trigger_inventory_check(self):
        if self.fail:
            raise requests.ConnectionError("backend down")
        self.checks += 1
        return {"message": "Inventory checks completed"}

    def fetch_medicines(self):
        if self.fail:
            raise requests.ConnectionError("backend down")
        return self.medicines


def _client(channel=None, permission=PERMISSION_GRANTED):
    delivery = InMemoryDelivery(permission=permission)
    client = NotificationClient(FakeApi(), channel or FakeChannel(), NotificationBridge(delivery))
    return client, delivery


def test_refresh_replaces_cache_wholesale():
    client, _ = _client()
    client.api.stats_responses = [
        {"expired": 1, "expiringSoon": 2, "lowStock": 3, "outOfStock": 4, "connectedClients": 2},
        {"expired": 0, "lowStock": 9},
    ]

    async def scenario():
        await client.refresh_stats()
        await client.refresh_stats()

    asyncio.run(scenario())
    assert client.cache.current == {"expired": 0, "lowStock": 9}


def test_failed_refresh_keeps_cache():
    client, _ = _client()
    client.cache.replace({"expired": 5})
    client.api.fail = True

    assert asyncio.run(client.refresh_stats()) is False
    assert client.cache.current == {"expired": 5}
    assert "backend down" in client.last_error


def test_connect_is_idempotent():
    channel = FakeChannel()
    client, _ = _client(channel)

    async def scenario():
        await client.connect()
        await client.connect()
        await client.disconnect()
        assert not client.is_connected()
        await client.connect()

    asyncio.run(scenario())
    assert client.is_connected()
    assert channel.opened == 2


def test_connection_failure_is_reported():
    client, _ = _client(FakeChannel(fail=True))
    assert asyncio.run(client.connect()) is False
    assert not client.is_connected()
    assert client.last_error.startswith("Could not connect")


def test_pushed_stats_update_cache_and_signal():
    channel = FakeChannel()
    client, _ = _client(channel)
    seen = []
    client.cache.signal.subscribe(seen.append)

    async def scenario():
        await client.connect()
        await channel.push("stats", {"expired": 2, "expiringSoon": 0, "lowStock": 1, "outOfStock": 0})

    asyncio.run(scenario())
    assert client.cache.current["expired"] == 2
    assert seen == [client.cache.current]


def test_pushed_notification_reaches_bridge():
    channel = FakeChannel()
    client, delivery = _client(channel)
    seen = []
    client.cache.signal.subscribe(seen.append)

    async def scenario():
        await client.bridge.register()
        await client.connect()
        await channel.push("notification", {
            "type": "out_of_stock", "title": "Out of Stock", "message": "Crocin is out of stock",
            "medicineId": 4, "priority": "urgent",
        })

    asyncio.run(scenario())
    assert delivery.shown[0].tag == "notification-out_of_stock-4"
    assert len(seen) == 1


class BrokenDelivery(InMemoryDelivery):
    async def show(self, notification):
        raise RuntimeError("telegram send failed")


def test_delivery_failure_is_recorded_and_later_pushes_still_apply():
    channel = FakeChannel()
    delivery = BrokenDelivery(permission=PERMISSION_GRANTED)
    client = NotificationClient(FakeApi(), channel, NotificationBridge(delivery))

    async def scenario():
        await client.bridge.register()
        await client.connect()
        await channel.push("notification", {
            "type": "expired", "title": "Medicine Expired", "message": "Amoxil has expired",
            "medicineId": 9, "priority": "high",
        })
        await channel.push("stats", {"expired": 1, "expiringSoon": 0, "lowStock": 0, "outOfStock": 0})

    asyncio.run(scenario())
    assert client.last_error == "Failed to deliver notification: telegram send failed"
    assert client.cache.current["expired"] == 1
    assert client.is_connected()


def test_welcome_frame_joins_monitor_room():
    channel = FakeChannel()
    delivery = InMemoryDelivery(permission=PERMISSION_GRANTED)
    client = NotificationClient(FakeApi(), channel, NotificationBridge(delivery), room="admin")

    async def scenario():
        await client.connect()
        await channel.push("connected", {"message": "Connected to notification service"})
        await channel.disconnect()
        # welcome frame racing a drop is logged, not raised
        await channel.push("connected", {"message": "Connected to notification service"})

    asyncio.run(scenario())
    assert channel.rooms == ["admin"]


def test_channel_error_event_sets_last_error():
    channel = FakeChannel()
    client, _ = _client(channel)
    asyncio.run(channel.push("error", {"message": "Could not reconnect"}))
    assert client.last_error == "Could not reconnect"


def test_send_test_notification():
    client, delivery = _client()

    async def scenario():
        await client.bridge.register()
        return await client.send_test_notification()

    payload = asyncio.run(scenario())
    assert payload["type"] == "low_stock"
    assert payload["priority"] == "medium"
    assert delivery.shown[0].title == "Test Notification"
    assert delivery.shown[0].tag == "notification-low_stock-general"


def test_trigger_inventory_check():
    client, _ = _client()
    assert asyncio.run(client.trigger_inventory_check()) is True
    assert client.api.checks == 1
    client.api.fail = True
    assert asyncio.run(client.trigger_inventory_check()) is False


def test_inventory_snapshot():
    client, _ = _client()
    now = datetime(2025, 3, 10, 9, 0)
    client.api.medicines = [
        {"id": 1, "quantity": 0, "expiry_date": (now + timedelta(days=5)).date().isoformat()},
        {"id": 2, "quantity": 5, "expiry_date": (now + timedelta(days=40)).date().isoformat()},
        {"id": 3, "quantity": 50, "expiry_date": (now - timedelta(days=1)).date().isoformat()},
    ]
    buckets = asyncio.run(client.inventory_snapshot(now=now))
    assert [m["id"] for m in buckets.out_of_stock] == [1]
    assert [m["id"] for m in buckets.low_stock] == [2]
    assert [m["id"] for m in buckets.expiring_soon] == [1]
    assert [m["id"] for m in buckets.expired] == [3]

    client.api.fail = True
    assert asyncio.run(client.inventory_snapshot(now=now)) is None


def test_start_registers_prompts_and_loads_stats():
    client, delivery = _client(permission="default")
    client.api.stats_responses = [{"expired": 1}]
    assert asyncio.run(client.start()) is True
    assert client.bridge.ready
    assert delivery.prompts == 1
    assert client.status()["stats"] == {"expired": 1}
    assert client.status()["connected"] is True


def test_listener_errors_do_not_break_other_listeners():
    cache = StatsCache()
    seen = []

    def broken(stats):
        raise ValueError("boom")

    cache.signal.subscribe(broken)
    unsubscribe = cache.signal.subscribe(seen.append)
    cache.replace({"lowStock": 1})
    unsubscribe()
    cache.replace({"lowStock": 2})
    assert seen == [{"lowStock": 1}]
