"""
Inventory alert checks.

Each check turns the active-medicine snapshot into one alert payload per
affected medicine. `publish` pushes the alerts and the fresh bucket counts
to every client connected to the notification hub.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.medicine import Medicine
from app.schemas.notification import NotificationPayload
from app.services.medicine_service import list_active_medicines
from app.services.notification_hub import hub
from app.services.stock_alerts import (
    AlertBuckets,
    classify_medicines,
    days_until_expiry,
    expiry_priority,
    stock_priority,
)

logger = logging.getLogger(__name__)

EXPIRED = "expired"
EXPIRING_SOON = "expiring_soon"
LOW_STOCK = "low_stock"
OUT_OF_STOCK = "out_of_stock"
ALL_CHECKS = (EXPIRED, EXPIRING_SOON, LOW_STOCK, OUT_OF_STOCK)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _expired_alert(m: Medicine, now: datetime) -> dict:
    return {
        "type": "expired",
        "title": "Medicine Expired",
        "message": f"{m.name} has expired on {m.expiry_date.isoformat()}",
        "medicineId": m.id,
        "medicineName": m.name,
        "expiryDate": m.expiry_date.isoformat(),
        "priority": "urgent",
        "timestamp": _timestamp(),
    }


def _expiring_alert(m: Medicine, now: datetime) -> dict:
    days = days_until_expiry(m.expiry_date, now)
    return {
        "type": "expire_soon",
        "title": "Medicine Expiring Soon",
        "message": f"{m.name} will expire in {days} days",
        "medicineId": m.id,
        "medicineName": m.name,
        "expiryDate": m.expiry_date.isoformat(),
        "priority": expiry_priority(days),
        "timestamp": _timestamp(),
    }


def _low_stock_alert(m: Medicine, now: datetime) -> dict:
    return {
        "type": "low_stock",
        "title": "Low Stock Alert",
        "message": f"{m.name} is running low ({m.quantity} {m.unit or 'units'} remaining)",
        "medicineId": m.id,
        "medicineName": m.name,
        "quantity": m.quantity,
        "priority": stock_priority(m.quantity),
        "timestamp": _timestamp(),
    }


def _out_of_stock_alert(m: Medicine, now: datetime) -> dict:
    return {
        "type": "out_of_stock",
        "title": "Out of Stock",
        "message": f"{m.name} is out of stock",
        "medicineId": m.id,
        "medicineName": m.name,
        "quantity": 0,
        "priority": "urgent",
        "timestamp": _timestamp(),
    }


_CHECKS: Dict[str, tuple[Callable[[AlertBuckets], List[Medicine]], Callable[[Medicine, datetime], dict]]] = {
    EXPIRED: (lambda b: b.expired, _expired_alert),
    EXPIRING_SOON: (lambda b: b.expiring_soon, _expiring_alert),
    LOW_STOCK: (lambda b: b.low_stock, _low_stock_alert),
    OUT_OF_STOCK: (lambda b: b.out_of_stock, _out_of_stock_alert),
}


def classify_inventory(db: Session, now: datetime | None = None) -> AlertBuckets:
    return classify_medicines(
        list_active_medicines(db),
        now=now,
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
        expiry_warning_days=settings.EXPIRY_WARNING_DAYS,
    )


def collect_alerts(db: Session, checks: Iterable[str] = ALL_CHECKS, now: datetime | None = None) -> List[dict]:
    """Run the named checks against the current inventory and build their alert payloads."""
    now = now or datetime.now()
    buckets = classify_inventory(db, now)
    alerts = []
    for check in checks:
        select, build = _CHECKS[check]
        found = select(buckets)
        if found:
            logger.warning(f"[Inventory] Found {len(found)} medicines for check '{check}'")
        alerts.extend(build(m, now) for m in found)
    return alerts


def get_notification_stats(db: Session, now: datetime | None = None) -> dict:
    stats = classify_inventory(db, now).counts
    stats["connectedClients"] = hub.connected_count()
    return stats


def sample_alert() -> dict:
    return {
        "type": "low_stock",
        "title": "Test Notification",
        "message": "This is a test notification to verify the system is working",
        "priority": "medium",
        "timestamp": _timestamp(),
    }


async def publish(alerts: List[dict], stats: dict | None = None, room: str | None = None) -> int:
    """
    Send alerts (to every client, or only to `room`), then broadcast the stats frame.
    Returns the number of alert frames delivered.
    """
    delivered = 0
    for alert in alerts:
        payload = NotificationPayload(**alert).model_dump(exclude_none=True)
        if room:
            delivered += await hub.send_to_room(room, "notification", payload)
        else:
            delivered += await hub.broadcast("notification", payload)
    if stats is not None:
        await hub.broadcast("stats", stats)
    logger.info(
        f"[Inventory] Published {len(alerts)} alerts to {hub.connected_count()} clients"
    )
    return delivered


def collect(db: Session, checks: Iterable[str] = ALL_CHECKS) -> tuple[List[dict], dict]:
    """Blocking: alerts for the named checks plus the current counts."""
    return collect_alerts(db, checks), get_notification_stats(db)


def collect_in_new_session(checks: Iterable[str] = ALL_CHECKS) -> tuple[List[dict], dict]:
    """Blocking helper for the scheduler: own session."""
    db = SessionLocal()
    try:
        return collect(db, checks)
    finally:
        db.close()
