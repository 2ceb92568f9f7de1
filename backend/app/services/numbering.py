"""Human-readable document numbers: PREFIX-YYYYMMDD-NNNN."""
import random
from datetime import date

from sqlalchemy.orm import Session

MAX_ATTEMPTS = 20


def generate_number(db: Session, prefix: str, column, on: date | None = None) -> str:
    """Random 4-digit suffix, retried until it does not collide with `column`."""
    day = (on or date.today()).strftime("%Y%m%d")
    for _ in range(MAX_ATTEMPTS):
        candidate = f"{prefix}-{day}-{random.randint(1000, 9999)}"
        if not db.query(column).filter(column == candidate).first():
            return candidate
    raise RuntimeError(f"Could not allocate a unique {prefix} number for {day}")
