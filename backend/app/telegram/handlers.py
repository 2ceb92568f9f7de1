"""Operator commands and notification button callbacks for the monitor bot."""
import logging

from telegram import Update
from telegram.ext import ContextTypes

from app.monitor.client import NotificationClient
from app.telegram.delivery import parse_callback_data

logger = logging.getLogger(__name__)

MONITOR_KEY = "monitor"


def _client(context: ContextTypes.DEFAULT_TYPE) -> NotificationClient:
    return context.bot_data[MONITOR_KEY]


def format_stats(stats: dict) -> str:
    return (
        "📊 Inventory alerts\n\n"
        f"• Expired: {stats.get('expired', 0)}\n"
        f"• Expiring soon: {stats.get('expiringSoon', 0)}\n"
        f"• Low stock: {stats.get('lowStock', 0)}\n"
        f"• Out of stock: {stats.get('outOfStock', 0)}"
    )


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/start - the operator opened the chat, so alerts can now be delivered."""
    client = _client(context)
    permission = await client.bridge.request_permission()
    logger.info(f"[Telegram] /start from chat_id={update.effective_chat.id}, permission={permission}")
    await update.message.reply_text(
        "💊 Pharmacy stock monitor\n\n"
        "Commands:\n"
        "• /stats - current alert counts\n"
        "• /check - run the inventory checks now\n"
        "• /test - send a test notification\n"
        "• /status - connection status\n"
        "• /connect - reconnect the alert channel"
    )


async def handle_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = _client(context)
    if not await client.refresh_stats():
        await update.message.reply_text(f"⚠️ {client.last_error}\n\nLast known counts:")
    await update.message.reply_text(format_stats(client.cache.current))


async def handle_check(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = _client(context)
    if await client.trigger_inventory_check():
        await update.message.reply_text("✅ Inventory check started. Alerts will follow.")
    else:
        await update.message.reply_text(f"⚠️ {client.last_error}")


async def handle_test(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _client(context).send_test_notification()


async def handle_connect(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/connect - retry the push channel after it gave up; no-op when already connected."""
    client = _client(context)
    if await client.connect():
        await client.refresh_stats()
        await update.message.reply_text("✅ Connected to the alert channel.")
    else:
        await update.message.reply_text(f"⚠️ {client.last_error}")


async def handle_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    status = _client(context).status()
    lines = [
        f"Connected: {'yes' if status['connected'] else 'no'}",
        f"Notifications: {status['permission']}",
    ]
    if status["lastError"]:
        lines.append(f"Last error: {status['lastError']}")
    if status["banner"]:
        lines.append(status["banner"])
    await update.message.reply_text("\n".join(lines))


async def handle_notification_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Inline `view` / `dismiss` buttons on alert messages."""
    query = update.callback_query
    await query.answer()
    action, tag = parse_callback_data(query.data)
    logger.info(f"[Telegram] Notification click action={action} tag={tag}")
    await _client(context).bridge.handle_click(action, tag)
