"""
Realtime notification channel (server side).

Keeps the open WebSocket connections, optional named rooms, and fans out
frames of the form {"event": <name>, "data": <payload>}.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class NotificationHub:

    def __init__(self):
        self.connections: Set[WebSocket] = set()
        self.rooms: Dict[str, Set[WebSocket]] = {}

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.connections.add(ws)
        logger.info(f"[NotificationHub] Client connected ({len(self.connections)} open)")
        await ws.send_json({
            "event": "connected",
            "data": {"message": "Connected to notification service", "timestamp": _now()},
        })

    def disconnect(self, ws: WebSocket):
        self.connections.discard(ws)
        for members in self.rooms.values():
            members.discard(ws)
        logger.info(f"[NotificationHub] Client disconnected ({len(self.connections)} open)")

    async def join_room(self, ws: WebSocket, room: str):
        self.rooms.setdefault(room, set()).add(ws)
        logger.info(f"[NotificationHub] Client joined room: {room}")
        await ws.send_json({"event": "joined_room", "data": {"room": room, "timestamp": _now()}})

    async def leave_room(self, ws: WebSocket, room: str):
        self.rooms.get(room, set()).discard(ws)
        logger.info(f"[NotificationHub] Client left room: {room}")
        await ws.send_json({"event": "left_room", "data": {"room": room, "timestamp": _now()}})

    async def _send(self, targets, frame: Dict[str, Any]) -> int:
        dead = []
        sent = 0
        for ws in list(targets):
            try:
                await ws.send_json(frame)
                sent += 1
            except Exception as e:
                logger.warning(f"[NotificationHub] Dropping connection after send failure: {e}")
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)
        return sent

    async def broadcast(self, event: str, data: Dict[str, Any]) -> int:
        """Send to every connection. Returns how many received it."""
        return await self._send(self.connections, {"event": event, "data": data})

    async def send_to_room(self, room: str, event: str, data: Dict[str, Any]) -> int:
        return await self._send(self.rooms.get(room, set()), {"event": event, "data": data})

    def connected_count(self) -> int:
        return len(self.connections)


hub = NotificationHub()
