"""
Realtime channel client.

`RealtimeChannel` is the lifecycle interface the notification client depends
on (init / connect / disconnect / teardown / is_connected); tests pass a fake.
`WebSocketChannel` talks to the backend hub at /notifications/ws.

Frames are JSON objects {"event": ..., "data": ...}.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from app.core.config import settings

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Any], Awaitable[None]]


class ChannelError(Exception):
    """Connecting to the push channel failed after all attempts."""


@dataclass
class ReconnectPolicy:
    """Bounded exponential backoff: base_delay * 2^(attempt-1), capped at max_delay."""
    max_attempts: int = settings.RECONNECT_MAX_ATTEMPTS
    base_delay: float = settings.RECONNECT_BASE_DELAY
    max_delay: float = settings.RECONNECT_MAX_DELAY

    def delay(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


def notifications_ws_url(api_url: str = settings.API_URL) -> str:
    base = api_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return f"{base}/notifications/ws"


class RealtimeChannel:
    """Push channel lifecycle. Subclasses implement connect/disconnect/is_connected/join_room."""

    def __init__(self):
        self._handler: Optional[EventHandler] = None

    def init(self, handler: EventHandler):
        self._handler = handler

    async def connect(self):
        raise NotImplementedError

    async def disconnect(self):
        raise NotImplementedError

    def is_connected(self) -> bool:
        raise NotImplementedError

    async def join_room(self, room: str):
        raise NotImplementedError

    async def teardown(self):
        await self.disconnect()
        self._handler = None

    async def _dispatch(self, event: str, data: Any):
        if self._handler is not None:
            await self._handler(event, data)


class WebSocketChannel(RealtimeChannel):
    """
    At most one live socket per channel.

    connect() and disconnect() are serialized; a connect() issued while the
    receive loop is reopening a dropped socket cancels that attempt and opens
    its own, so the two never race for `_ws`.
    """

    def __init__(self, url: Optional[str] = None, policy: Optional[ReconnectPolicy] = None):
        super().__init__()
        self.url = url or notifications_ws_url()
        self.policy = policy or ReconnectPolicy()
        self._ws: Optional[ClientConnection] = None
        self._receiver: Optional[asyncio.Task] = None
        self._closing = False
        self._lock = asyncio.Lock()

    def is_connected(self) -> bool:
        return self._ws is not None and self._receiver is not None and not self._receiver.done()

    async def connect(self):
        """Open the socket (no-op when already open) and start the receive loop."""
        async with self._lock:
            if self.is_connected():
                return
            await self._stop_receiver()
            stale, self._ws = self._ws, None
            if stale is not None:
                await stale.close()
            self._closing = False
            self._ws = await self._open()
            self._receiver = asyncio.create_task(self._receive_loop())

    async def _open(self) -> ClientConnection:
        last_error = None
        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                ws = await connect(self.url, open_timeout=settings.HTTP_TIMEOUT_SECONDS)
                logger.info(f"[Channel] Connected to {self.url}")
                return ws
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"[Channel] Connect attempt {attempt}/{self.policy.max_attempts} failed: {e}")
                if attempt < self.policy.max_attempts:
                    await asyncio.sleep(self.policy.delay(attempt))
        raise ChannelError(f"Could not connect to {self.url}: {last_error}")

    async def _receive_loop(self):
        while True:
            try:
                async for raw in self._ws:
                    try:
                        await self._handle_frame(raw)
                    except Exception as e:
                        logger.error(f"[Channel] Handler failed, frame dropped: {e}", exc_info=True)
            except ConnectionClosed as e:
                logger.warning(f"[Channel] Connection closed: {e}")
            if self._closing:
                return
            # Server went away: reopen with the same backoff policy
            self._ws = None
            try:
                self._ws = await self._open()
            except ChannelError as e:
                logger.error(f"[Channel] Giving up: {e}")
                await self._dispatch("error", {"message": str(e)})
                return

    async def _handle_frame(self, raw):
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("[Channel] Ignoring non-JSON frame")
            return
        if not isinstance(frame, dict) or "event" not in frame:
            return
        await self._dispatch(frame["event"], frame.get("data"))

    async def send(self, event: str, data: Any):
        if self._ws is None:
            raise ChannelError("Not connected")
        try:
            await self._ws.send(json.dumps({"event": event, "data": data}))
        except ConnectionClosed as e:
            raise ChannelError(f"Send failed: {e}") from e

    async def join_room(self, room: str):
        await self.send("join_room", room)

    async def _stop_receiver(self):
        receiver, self._receiver = self._receiver, None
        if receiver is None or receiver is asyncio.current_task():
            return
        receiver.cancel()
        try:
            await receiver
        except asyncio.CancelledError:
            pass

    async def disconnect(self):
        async with self._lock:
            self._closing = True
            await self._stop_receiver()
            ws, self._ws = self._ws, None
            if ws is not None:
                await ws.close()
                logger.info("[Channel] Disconnected")
