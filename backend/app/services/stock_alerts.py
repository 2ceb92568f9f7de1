"""
Stock and expiry alert buckets.

A medicine can sit in several buckets at once (e.g. low stock AND expiring
soon). Buckets are recomputed from the current snapshot on every call, never
stored.

Rules:
- out_of_stock:  quantity == 0
- low_stock:     0 < quantity <= LOW_STOCK_THRESHOLD
- expiring_soon: 0 <= days_until_expiry <= EXPIRY_WARNING_DAYS
- expired:       days_until_expiry < 0

days_until_expiry = ceil((expiry - now) / 1 day); a date-only expiry counts
from midnight of that day. A missing or unreadable field only removes the
medicine from that axis.

Works on ORM rows, pydantic models and plain dicts (camelCase or snake_case keys).
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Optional

LOW_STOCK_THRESHOLD = 10
EXPIRY_WARNING_DAYS = 30
URGENT_EXPIRY_DAYS = 7  # expiring within a week -> high priority
CRITICAL_STOCK_LEVEL = 5  # low stock at or below this -> high priority

ONE_DAY = timedelta(days=1)

_FIELD_ALIASES = {
    "quantity": ("quantity", "qty"),
    "expiry_date": ("expiry_date", "expiryDate", "exp"),
}


def _field(medicine: Any, name: str) -> Any:
    for key in _FIELD_ALIASES.get(name, (name,)):
        if isinstance(medicine, dict):
            if key in medicine:
                return medicine[key]
        elif hasattr(medicine, key):
            return getattr(medicine, key)
    return None


def parse_quantity(value: Any) -> Optional[int]:
    """Non-negative integer quantity, or None when missing/malformed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            return None
        return int(text)
    try:
        qty = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if qty != value:
        return None  # fractional
    return qty if qty >= 0 else None


def parse_expiry(value: Any) -> Optional[datetime]:
    """Expiry as a datetime, or None when missing/malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return datetime.combine(date.fromisoformat(text), time.min)
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _align(expiry: datetime, now: datetime) -> datetime:
    # Compare naive with naive, aware with aware
    if expiry.tzinfo is not None and now.tzinfo is None:
        return expiry.astimezone().replace(tzinfo=None)
    if expiry.tzinfo is None and now.tzinfo is not None:
        return expiry.replace(tzinfo=now.tzinfo)
    return expiry


def days_until_expiry(expiry: Any, now: Optional[datetime] = None) -> Optional[int]:
    """ceil((expiry - now) / 1 day), or None when there is no usable expiry."""
    parsed = parse_expiry(expiry)
    if parsed is None:
        return None
    now = now or datetime.now()
    delta = _align(parsed, now) - now
    return math.ceil(delta / ONE_DAY)


@dataclass
class AlertBuckets:
    out_of_stock: List[Any] = field(default_factory=list)
    low_stock: List[Any] = field(default_factory=list)
    expiring_soon: List[Any] = field(default_factory=list)
    expired: List[Any] = field(default_factory=list)

    @property
    def counts(self) -> dict:
        """Counts keyed the way the stats payload names them."""
        return {
            "expired": len(self.expired),
            "expiringSoon": len(self.expiring_soon),
            "lowStock": len(self.low_stock),
            "outOfStock": len(self.out_of_stock),
        }

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def classify_medicines(
    medicines: Iterable[Any],
    now: Optional[datetime] = None,
    low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    expiry_warning_days: int = EXPIRY_WARNING_DAYS,
) -> AlertBuckets:
    """Partition a medicine snapshot into the four (non-exclusive) alert buckets."""
    now = now or datetime.now()
    buckets = AlertBuckets()

    for medicine in medicines:
        qty = parse_quantity(_field(medicine, "quantity"))
        if qty is not None:
            if qty == 0:
                buckets.out_of_stock.append(medicine)
            elif qty <= low_stock_threshold:
                buckets.low_stock.append(medicine)

        days = days_until_expiry(_field(medicine, "expiry_date"), now)
        if days is not None:
            if days < 0:
                buckets.expired.append(medicine)
            elif days <= expiry_warning_days:
                buckets.expiring_soon.append(medicine)

    return buckets


def expiry_priority(days: int) -> str:
    if days < 0:
        return "urgent"
    return "high" if days <= URGENT_EXPIRY_DAYS else "medium"


def stock_priority(quantity: int) -> str:
    if quantity == 0:
        return "urgent"
    return "high" if quantity <= CRITICAL_STOCK_LEVEL else "medium"
