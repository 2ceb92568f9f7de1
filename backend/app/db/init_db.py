"""Create all tables. Run on app startup."""
import logging

from app.db.base import Base
from app.db.session import engine
from app.models import category, medicine, customer, supplier, purchase_order, sale, cost  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db():
    Base.metadata.create_all(bind=engine)
    logger.info(f"[DB] Tables ready: {', '.join(sorted(Base.metadata.tables))}")
