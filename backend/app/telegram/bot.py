"""Monitor bot: Telegram application wiring and polling."""
import asyncio
import logging

from telegram import error
from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from app.monitor.client import NotificationClient
from app.telegram.handlers import (
    MONITOR_KEY,
    handle_check,
    handle_connect,
    handle_notification_button,
    handle_start,
    handle_stats,
    handle_status,
    handle_test,
)

logger = logging.getLogger(__name__)


def build_application(token: str) -> Application:
    return Application.builder().token(token).build()


def attach_handlers(app: Application, client: NotificationClient):
    app.bot_data[MONITOR_KEY] = client
    app.add_handler(CommandHandler("start", handle_start))
    app.add_handler(CommandHandler("stats", handle_stats))
    app.add_handler(CommandHandler("check", handle_check))
    app.add_handler(CommandHandler("test", handle_test))
    app.add_handler(CommandHandler("status", handle_status))
    app.add_handler(CommandHandler("connect", handle_connect))
    app.add_handler(CallbackQueryHandler(handle_notification_button))


async def start_polling_with_retry(app: Application, max_retries: int = 3, initial_backoff: float = 2) -> bool:
    for attempt in range(max_retries):
        try:
            logger.info(f"[Telegram] Starting polling (attempt {attempt + 1}/{max_retries})...")
            await app.updater.start_polling(drop_pending_updates=True)
            logger.info("[Telegram] Polling started")
            return True
        except error.Conflict as e:
            if attempt < max_retries - 1:
                backoff = initial_backoff * (2 ** attempt)
                logger.warning(f"[Telegram] Conflict detected: {e}. Retrying in {backoff}s")
                await asyncio.sleep(backoff)
            else:
                logger.error(f"[Telegram] Failed after {max_retries} retries. Bot disabled. Error: {e}")
                return False
    return False
