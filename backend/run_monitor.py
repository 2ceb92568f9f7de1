"""
Stock alert monitor: listens to the backend's notification channel and
forwards alerts to the operator's Telegram chat.

Needs TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID in backend/.env; the backend
(run_server.py) must be reachable at API_URL.
"""
import asyncio
import logging
import signal
import sys

from app.core.config import settings
from app.monitor.api_client import InventoryApi
from app.monitor.bridge import NotificationBridge
from app.monitor.channel import WebSocketChannel
from app.monitor.client import NotificationClient
from app.telegram.bot import attach_handlers, build_application, start_polling_with_retry
from app.telegram.delivery import TelegramDelivery

logger = logging.getLogger("monitor")


async def main() -> int:
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("[Monitor] TELEGRAM_BOT_TOKEN is not set")
        return 1

    app = build_application(settings.TELEGRAM_BOT_TOKEN)
    api = InventoryApi()
    client = NotificationClient(api, WebSocketChannel(), NotificationBridge(TelegramDelivery(app.bot)))
    client.cache.signal.subscribe(lambda stats: logger.info(f"[Monitor] Stats updated: {stats}"))
    attach_handlers(app, client)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with app:
        await app.start()
        await start_polling_with_retry(app)
        if not await client.start():
            logger.warning(f"[Monitor] Running without push channel: {client.last_error}")
        await stop.wait()
        await client.disconnect()
        if app.updater.running:
            await app.updater.stop()
        await app.stop()
    api.close()
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print("=" * 50)
    print("  Starting Pharmacy Stock Monitor")
    print("=" * 50)
    sys.exit(asyncio.run(main()))
