"""
Pharmacy Inventory Backend.

ARCHITECTURE:
- FastAPI REST API: medicines, categories, customers, suppliers, purchase
  orders, sales, costs, dashboard
- SQLite/Postgres via SQLAlchemy: source of truth for stock levels
- Notification hub (WebSocket /notifications/ws): pushes stock/expiry alerts
  and live counts to connected dashboards
- Inventory scheduler: periodic checks running inside this process

Stock only changes through sales (decrement) and purchase-order receipts
(increment); both publish fresh counts afterwards.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from app.api.routes import (
    categories,
    costs,
    customers,
    dashboard,
    medicines,
    notifications,
    purchase_orders,
    sales,
    suppliers,
)
from app.core.config import settings
from app.core.exceptions import unhandled_exception_handler, validation_exception_handler
from app.core.rate_limiter import RateLimitMiddleware
from app.db.init_db import init_db
from app.scheduler.inventory_scheduler import scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    1. Initialize database tables
    2. Start inventory alert scheduler (if enabled)

    Shutdown:
    1. Stop the scheduler
    """
    logger.info("[*] Initializing database...")
    init_db()
    logger.info("[OK] Database initialized")

    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.warning("[WARN] Inventory scheduler disabled")

    yield

    if settings.SCHEDULER_ENABLED:
        await scheduler.stop()


app = FastAPI(
    title="Pharmacy Inventory API",
    description="Medicines, purchasing, sales and realtime stock/expiry alerts.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Trust only configured hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    max_age=600,
    expose_headers=["Content-Type"],
)

app.add_middleware(RateLimitMiddleware)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.include_router(categories.router, prefix="/categories", tags=["categories"])
app.include_router(medicines.router, prefix="/medicines", tags=["medicines"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
app.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["purchase-orders"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(costs.router, prefix="/costs", tags=["costs"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])


@app.get("/health")
def health():
    return {"status": "ok", "scheduler": "enabled" if settings.SCHEDULER_ENABLED else "disabled"}
