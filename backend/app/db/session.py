"""Database engine and session factory. SQLite for development, any SQLAlchemy URL in production."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite: one connection per session, shared across threads by the executor
    from sqlalchemy.pool import NullPool
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
else:
    # PostgreSQL/MySQL
    engine = create_engine(
        settings.DATABASE_URL,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,  # Verify connection health
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
