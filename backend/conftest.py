"""
Shared fixtures: in-memory SQLite per test, FastAPI app with get_db overridden.

Environment is set before any app module is imported because Settings reads
it at import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost,127.0.0.1"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_CHAT_ID"] = ""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.models import Category, Medicine, Supplier


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_medicine(db_session):
    """Insert a medicine; `expires_in` is days from today (None = no expiry)."""
    counter = {"n": 0}

    def _make(name=None, quantity=100, expires_in=365, selling_price="10.00", cost_price="6.00", **extra):
        counter["n"] += 1
        medicine = Medicine(
            name=name or f"Medicine {counter['n']}",
            quantity=quantity,
            unit=extra.pop("unit", "strip"),
            selling_price=Decimal(selling_price),
            cost_price=Decimal(cost_price),
            expiry_date=date.today() + timedelta(days=expires_in) if expires_in is not None else None,
            **extra,
        )
        db_session.add(medicine)
        db_session.commit()
        db_session.refresh(medicine)
        return medicine

    return _make


@pytest.fixture
def category(db_session):
    category = Category(name="Analgesics", description="Pain relief")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def supplier(db_session):
    supplier = Supplier(name="MedSupply Co", contact_person="Asha", phone="9800000000")
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier
