"""
Stock/expiry notifications: stats, manual checks, and the realtime WebSocket channel.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.notification import NotificationStats
from app.services import notification_service
from app.services.notification_hub import hub
from app.services.notification_service import ALL_CHECKS, EXPIRED, EXPIRING_SOON, LOW_STOCK, OUT_OF_STOCK

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def ping():
    return {"message": "Notifications module is working", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/stats", response_model=NotificationStats)
def get_stats(db: Session = Depends(get_db)):
    return notification_service.get_notification_stats(db)


async def _run_checks(db: Session, checks: tuple, label: str) -> dict:
    # Queries and classification block; keep them off the event loop serving the sockets
    alerts, stats = await run_in_threadpool(notification_service.collect, db, checks)
    delivered = await notification_service.publish(alerts, stats)
    return {"message": f"{label} completed", "alerts": len(alerts), "delivered": delivered}


@router.post("/check-inventory")
async def check_inventory(db: Session = Depends(get_db)):
    """Recompute all buckets and push alerts plus fresh stats to connected clients."""
    return await _run_checks(db, ALL_CHECKS, "Inventory checks")


@router.post("/check-expired")
async def check_expired(db: Session = Depends(get_db)):
    return await _run_checks(db, (EXPIRED,), "Expired medicines check")


@router.post("/check-expiring-soon")
async def check_expiring_soon(db: Session = Depends(get_db)):
    return await _run_checks(db, (EXPIRING_SOON,), "Expiring soon medicines check")


@router.post("/check-low-stock")
async def check_low_stock(db: Session = Depends(get_db)):
    return await _run_checks(db, (LOW_STOCK,), "Low stock medicines check")


@router.post("/check-out-of-stock")
async def check_out_of_stock(db: Session = Depends(get_db)):
    return await _run_checks(db, (OUT_OF_STOCK,), "Out of stock medicines check")


@router.post("/test")
async def send_test_notification(room: Optional[str] = None):
    """Sample alert to every client, or only to the clients that joined `room`."""
    delivered = await notification_service.publish([notification_service.sample_alert()], room=room)
    return {"message": "Test notification sent", "delivered": delivered}


@router.websocket("/ws")
async def notifications_ws(websocket: WebSocket):
    """
    Client frames: {"event": "join_room" | "leave_room", "data": "<room>"}.
    Anything else is ignored.
    """
    try:
        await hub.connect(websocket)
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                logger.debug(f"[NotificationHub] Ignoring non-JSON frame: {raw[:80]}")
                continue
            if not isinstance(frame, dict):
                continue
            event, room = frame.get("event"), frame.get("data")
            if not isinstance(room, str) or not room:
                continue
            if event == "join_room":
                await hub.join_room(websocket, room)
            elif event == "leave_room":
                await hub.leave_room(websocket, room)
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
