"""
Telegram as the notification platform.

- ready: the bot token works (`get_me`)
- permission: "granted" once the operator chat is reachable, "denied" when the
  operator blocked the bot (Forbidden), "default" when no chat is configured
  or it has not opened a conversation with the bot yet
- replace-by-tag: a repeat alert edits the message previously sent for that tag
- actions: inline buttons whose callback data is "<action>|<tag>"
"""
import logging
from typing import Dict, Optional

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest, Forbidden, TelegramError

from app.core.config import settings
from app.monitor.bridge import (
    PERMISSION_DEFAULT,
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    NotificationDelivery,
    SystemNotification,
)

logger = logging.getLogger(__name__)

CALLBACK_SEPARATOR = "|"
# Bot API answer when an edit would leave text and markup unchanged
_NOT_MODIFIED = "message is not modified"


def callback_data(action: str, tag: str) -> str:
    return f"{action}{CALLBACK_SEPARATOR}{tag}"


def parse_callback_data(data: str) -> tuple[Optional[str], str]:
    action, sep, tag = (data or "").partition(CALLBACK_SEPARATOR)
    if not sep:
        return None, action
    return action, tag


def render_text(notification: SystemNotification) -> str:
    prefix = "🚨 " if notification.require_interaction else ""
    return f"{prefix}{notification.title}\n\n{notification.body}"


class TelegramDelivery(NotificationDelivery):

    def __init__(self, bot: Bot, chat_id: Optional[str] = settings.TELEGRAM_CHAT_ID,
                 dashboard_url: str = settings.DASHBOARD_URL):
        self.bot = bot
        self.chat_id = chat_id
        self.dashboard_url = dashboard_url.rstrip("/")
        self._messages: Dict[str, int] = {}
        self._permission = PERMISSION_DEFAULT

    async def register(self) -> bool:
        try:
            me = await self.bot.get_me()
        except TelegramError as e:
            logger.error(f"[Telegram] Bot not usable: {e}")
            return False
        logger.info(f"[Telegram] Delivering alerts as @{me.username}")
        return True

    async def permission(self) -> str:
        if not self.chat_id:
            self._permission = PERMISSION_DEFAULT
            return self._permission
        try:
            await self.bot.get_chat(self.chat_id)
            self._permission = PERMISSION_GRANTED
        except Forbidden:
            self._permission = PERMISSION_DENIED
        except BadRequest as e:
            logger.warning(f"[Telegram] Chat {self.chat_id} not reachable yet: {e}")
            self._permission = PERMISSION_DEFAULT
        return self._permission

    async def request_permission(self) -> str:
        # A bot cannot prompt; the operator has to /start it. Re-check instead.
        return await self.permission()

    def _markup(self, notification: SystemNotification) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([[
            InlineKeyboardButton(action["title"], callback_data=callback_data(action["action"], notification.tag))
            for action in notification.actions
        ]])

    async def show(self, notification: SystemNotification):
        text = render_text(notification)
        markup = self._markup(notification)
        message_id = self._messages.get(notification.tag)
        if message_id is not None:
            try:
                await self.bot.edit_message_text(
                    text, chat_id=self.chat_id, message_id=message_id, reply_markup=markup
                )
                return
            except BadRequest as e:
                if _NOT_MODIFIED in str(e).lower():
                    # Same alert again: the message already shows it
                    return
                # Deleted by the operator; fall back to a new message
                logger.info(f"[Telegram] Could not replace {notification.tag}: {e}")
        message = await self.bot.send_message(
            self.chat_id, text, reply_markup=markup, disable_notification=notification.silent
        )
        self._messages[notification.tag] = message.message_id

    async def close(self, tag: str):
        message_id = self._messages.pop(tag, None)
        if message_id is None:
            return
        try:
            await self.bot.delete_message(self.chat_id, message_id)
        except BadRequest as e:
            logger.info(f"[Telegram] Message for {tag} already gone: {e}")

    async def focus_window(self) -> bool:
        # No app window to focus from a chat; clicks always open the dashboard link
        return False

    async def post_message(self, message: dict):
        logger.info(f"[Telegram] {message.get('type')}: {message.get('data')}")

    async def open_window(self, path: str):
        await self.bot.send_message(self.chat_id, f"Open {self.dashboard_url}{path}")
