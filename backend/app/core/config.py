"""Application configuration.

Environment variables override all defaults. A local `.env` in the backend
directory is loaded first for development.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _csv(name: str, default: str) -> List[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pharmacy.db")

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _csv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001",
    )
    ALLOWED_HOSTS: List[str] = _csv("ALLOWED_HOSTS", "localhost,127.0.0.1")

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Stock alert thresholds
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
    EXPIRY_WARNING_DAYS: int = int(os.getenv("EXPIRY_WARNING_DAYS", "30"))

    # Inventory scheduler (seconds)
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
    FULL_CHECK_INTERVAL: int = int(os.getenv("FULL_CHECK_INTERVAL", "3600"))
    STOCK_CHECK_INTERVAL: int = int(os.getenv("STOCK_CHECK_INTERVAL", "7200"))
    EXPIRED_CHECK_INTERVAL: int = int(os.getenv("EXPIRED_CHECK_INTERVAL", "21600"))
    EXPIRING_CHECK_INTERVAL: int = int(os.getenv("EXPIRING_CHECK_INTERVAL", "43200"))

    # Monitor client
    API_URL: str = os.getenv("API_URL", "http://127.0.0.1:8000")
    DASHBOARD_URL: str = os.getenv("DASHBOARD_URL", "http://localhost:3000")
    RECONNECT_MAX_ATTEMPTS: int = int(os.getenv("RECONNECT_MAX_ATTEMPTS", "3"))
    RECONNECT_BASE_DELAY: float = float(os.getenv("RECONNECT_BASE_DELAY", "2.0"))
    RECONNECT_MAX_DELAY: float = float(os.getenv("RECONNECT_MAX_DELAY", "30.0"))
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
    MONITOR_ROOM: str = os.getenv("MONITOR_ROOM", "admin")

    # Telegram delivery (Must be set via .env, never in code)
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_CHAT_ID: str = os.getenv("TELEGRAM_CHAT_ID", "")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"


settings = Settings()
