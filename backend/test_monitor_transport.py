"""
Monitor transport: REST paging and WebSocket channel setup.

Tests:
1. fetch_medicines reads every page
2. HTTP errors propagate as requests exceptions
3. Reconnect backoff is exponential and capped
4. ws URL derived from API_URL
5. Connect gives up with ChannelError after max attempts
6. Frames are dispatched as (event, data)
7. Against a local websockets server: one socket per channel across
   repeated connect, disconnect/connect, server-side drops and a connect
   issued mid-reconnect; a failing delivery leaves the loop running
"""
import asyncio
import json

import pytest
import requests
from websockets.asyncio.server import serve

from app.monitor import channel as channel_module
from app.monitor.api_client import InventoryApi
from app.monitor.bridge import InMemoryDelivery, NotificationBridge, PERMISSION_GRANTED
from app.monitor.channel import ChannelError, ReconnectPolicy, WebSocketChannel, notifications_ws_url
from app.monitor.client import NotificationClient


class FakeResponse:
    def __init__(self, body, status=200):
        self.body = body
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.body


class FakeSession:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if url.endswith("/notifications/stats"):
            return FakeResponse({}, status=503)
        return FakeResponse(self.pages[params["page"] - 1])

    def close(self):
        pass


def test_fetch_medicines_pages_through_all_rows():
    pages = [
        {"medicines": [{"id": 1}, {"id": 2}], "total": 5},
        {"medicines": [{"id": 3}, {"id": 4}], "total": 5},
        {"medicines": [{"id": 5}], "total": 5},
    ]
    session = FakeSession(pages)
    api = InventoryApi(base_url="http://backend:8000/", session=session)

    medicines = api.fetch_medicines(page_size=2)
    assert [m["id"] for m in medicines] == [1, 2, 3, 4, 5]
    assert len(session.calls) == 3
    assert session.calls[0] == ("http://backend:8000/medicines", {"page": 1, "limit": 2, "is_active": "true"})


def test_http_errors_propagate():
    api = InventoryApi(base_url="http://backend:8000", session=FakeSession([]))
    with pytest.raises(requests.HTTPError):
        api.get_stats()


def test_backoff_is_exponential_and_capped():
    policy = ReconnectPolicy(max_attempts=5, base_delay=2.0, max_delay=5.0)
    assert [policy.delay(n) for n in range(1, 5)] == [2.0, 4.0, 5.0, 5.0]


def test_ws_url_from_api_url():
    assert notifications_ws_url("http://127.0.0.1:8000/") == "ws://127.0.0.1:8000/notifications/ws"
    assert notifications_ws_url("https://pharmacy.example") == "wss://pharmacy.example/notifications/ws"


def test_connect_gives_up_after_max_attempts(monkeypatch):
    attempts = []

    async def refuse(url, **kwargs):
        attempts.append(url)
        raise OSError("Connection refused")

    monkeypatch.setattr(channel_module, "connect", refuse)
    channel = WebSocketChannel("ws://backend/notifications/ws", ReconnectPolicy(3, 0, 0))

    with pytest.raises(ChannelError):
        asyncio.run(channel.connect())
    assert len(attempts) == 3
    assert not channel.is_connected()


def test_frames_are_dispatched():
    received = []

    async def handler(event, data):
        received.append((event, data))

    channel = WebSocketChannel("ws://backend/notifications/ws")
    channel.init(handler)

    async def scenario():
        await channel._handle_frame('{"event": "stats", "data": {"expired": 1}}')
        await channel._handle_frame("garbage")
        await channel._handle_frame('{"data": 1}')

    asyncio.run(scenario())
    assert received == [("stats", {"expired": 1})]


NO_WAIT = ReconnectPolicy(max_attempts=3, base_delay=0, max_delay=0)


class HubServer:
    """Local server speaking the hub's frame format; tracks live sockets."""

    def __init__(self, frames=()):
        self.frames = list(frames)
        self.accepted = 0
        self.live = set()
        self.received = []
        self.server = None

    async def handler(self, ws):
        self.accepted += 1
        self.live.add(ws)
        try:
            await ws.send(json.dumps({"event": "connected", "data": {"message": "Connected to notification service"}}))
            for frame in self.frames:
                await ws.send(json.dumps(frame))
            async for message in ws:
                self.received.append(json.loads(message))
        finally:
            self.live.discard(ws)

    @property
    def url(self):
        port = list(self.server.sockets)[0].getsockname()[1]
        return f"ws://127.0.0.1:{port}/notifications/ws"

    async def drop_all(self):
        for ws in list(self.live):
            await ws.close()


async def _until(predicate, timeout=3.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.01)


def test_repeated_connect_and_reconnect_keep_one_socket():
    hub = HubServer()
    events = []

    async def handler(event, data):
        events.append(event)

    async def scenario():
        async with serve(hub.handler, "127.0.0.1", 0) as server:
            hub.server = server
            channel = WebSocketChannel(hub.url, NO_WAIT)
            channel.init(handler)

            await channel.connect()
            await channel.connect()
            await _until(lambda: events == ["connected"])
            assert hub.accepted == 1

            await channel.disconnect()
            assert not channel.is_connected()
            await _until(lambda: not hub.live)

            await channel.connect()
            await _until(lambda: len(events) == 2)
            assert channel.is_connected()
            assert hub.accepted == 2
            assert len(hub.live) == 1

            await channel.disconnect()
            await _until(lambda: not hub.live)

    asyncio.run(scenario())


def test_server_close_triggers_reconnect():
    hub = HubServer()
    events = []

    async def handler(event, data):
        events.append(event)

    async def scenario():
        async with serve(hub.handler, "127.0.0.1", 0) as server:
            hub.server = server
            channel = WebSocketChannel(hub.url, NO_WAIT)
            channel.init(handler)
            await channel.connect()
            await _until(lambda: len(hub.live) == 1)

            await hub.drop_all()
            await _until(lambda: events == ["connected", "connected"])
            assert channel.is_connected()
            assert hub.accepted == 2
            assert len(hub.live) == 1

            await channel.disconnect()
            await _until(lambda: not hub.live)

    asyncio.run(scenario())


def test_connect_during_automatic_reconnect_opens_one_socket(monkeypatch):
    hub = HubServer()
    real_connect = channel_module.connect
    slow = {"next": False}

    async def slow_once(url, **kwargs):
        if slow["next"]:
            slow["next"] = False
            await asyncio.sleep(0.3)
        return await real_connect(url, **kwargs)

    monkeypatch.setattr(channel_module, "connect", slow_once)

    async def scenario():
        async with serve(hub.handler, "127.0.0.1", 0) as server:
            hub.server = server
            channel = WebSocketChannel(hub.url, NO_WAIT)
            await channel.connect()
            await _until(lambda: len(hub.live) == 1)

            slow["next"] = True
            await hub.drop_all()
            await _until(lambda: not channel.is_connected())

            await channel.connect()
            await asyncio.sleep(0.5)
            assert channel.is_connected()
            assert hub.accepted == 2
            assert len(hub.live) == 1

            await channel.disconnect()
            await _until(lambda: not hub.live)

    asyncio.run(scenario())


class BrokenDelivery(InMemoryDelivery):
    async def show(self, notification):
        raise RuntimeError("telegram send failed")


def test_failing_delivery_keeps_receive_loop_alive():
    hub = HubServer(frames=[
        {"event": "notification", "data": {"type": "expired", "title": "Medicine Expired",
                                           "message": "Amoxil has expired", "medicineId": 9,
                                           "priority": "high"}},
        {"event": "stats", "data": {"expired": 1, "expiringSoon": 0, "lowStock": 0, "outOfStock": 0}},
    ])

    async def scenario():
        async with serve(hub.handler, "127.0.0.1", 0) as server:
            hub.server = server
            channel = WebSocketChannel(hub.url, NO_WAIT)
            client = NotificationClient(None, channel, NotificationBridge(BrokenDelivery(PERMISSION_GRANTED)),
                                        room="admin")
            await client.bridge.register()
            assert await client.connect()

            await _until(lambda: client.cache.current["expired"] == 1)
            assert client.is_connected()
            assert client.last_error == "Failed to deliver notification: telegram send failed"
            await _until(lambda: hub.received == [{"event": "join_room", "data": "admin"}])

            await client.disconnect()
            await _until(lambda: not hub.live)

    asyncio.run(scenario())
