"""
Notification bridge.

Turns alert payloads into system notifications and routes clicks back into
the app. The platform side (registration, permission, showing, windows) sits
behind `NotificationDelivery`; `InMemoryDelivery` records everything for tests
and `app.telegram.delivery.TelegramDelivery` is the production one.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_DEFAULT = "default"

DEFAULT_TITLE = "Pharmacy Alert"
DEFAULT_BODY = "New inventory notification"
MEDICINES_PATH = "/medicines"

ACTION_VIEW = "view"
ACTION_DISMISS = "dismiss"
NOTIFICATION_ACTIONS = (
    {"action": ACTION_VIEW, "title": "View Details"},
    {"action": ACTION_DISMISS, "title": "Dismiss"},
)

DENIED_BANNER = "Notifications are blocked. Enable them in your notification settings to receive stock alerts."


@dataclass
class SystemNotification:
    title: str
    body: str
    tag: str
    require_interaction: bool = False
    silent: bool = False
    actions: tuple = NOTIFICATION_ACTIONS
    data: Dict[str, Any] = field(default_factory=dict)


def notification_tag(payload: dict) -> str:
    """Same type + medicine -> same tag, so a repeat alert replaces the previous one."""
    return f"notification-{payload.get('type')}-{payload.get('medicineId') or 'general'}"


def build_notification(payload: dict) -> SystemNotification:
    priority = payload.get("priority")
    return SystemNotification(
        title=payload.get("title") or DEFAULT_TITLE,
        body=payload.get("message") or DEFAULT_BODY,
        tag=notification_tag(payload),
        require_interaction=priority == "urgent",
        silent=priority == "low",
        data=dict(payload),
    )


class NotificationDelivery:
    """Platform notification API."""

    async def register(self) -> bool:
        """Prepare background delivery. Returns readiness."""
        raise NotImplementedError

    async def permission(self) -> str:
        raise NotImplementedError

    async def request_permission(self) -> str:
        raise NotImplementedError

    async def show(self, notification: SystemNotification):
        raise NotImplementedError

    async def close(self, tag: str):
        raise NotImplementedError

    async def focus_window(self) -> bool:
        """Focus an open app window. False when none is open."""
        raise NotImplementedError

    async def post_message(self, message: dict):
        raise NotImplementedError

    async def open_window(self, path: str):
        raise NotImplementedError


class InMemoryDelivery(NotificationDelivery):
    """Records calls; `prompt_result` is what the platform answers to a permission prompt."""

    def __init__(self, permission: str = PERMISSION_DEFAULT, prompt_result: str = PERMISSION_GRANTED,
                 window_open: bool = False, ready: bool = True):
        self._permission = permission
        self.prompt_result = prompt_result
        self.window_open = window_open
        self.ready = ready
        self.prompts = 0
        self.visible: Dict[str, SystemNotification] = {}
        self.shown: List[SystemNotification] = []
        self.messages: List[dict] = []
        self.opened: List[str] = []
        self.focused = 0

    async def register(self) -> bool:
        return self.ready

    async def permission(self) -> str:
        return self._permission

    async def request_permission(self) -> str:
        self.prompts += 1
        # The platform never re-prompts once blocked
        if self._permission == PERMISSION_DEFAULT:
            self._permission = self.prompt_result
        return self._permission

    async def show(self, notification: SystemNotification):
        self.visible[notification.tag] = notification
        self.shown.append(notification)

    async def close(self, tag: str):
        self.visible.pop(tag, None)

    async def focus_window(self) -> bool:
        if self.window_open:
            self.focused += 1
        return self.window_open

    async def post_message(self, message: dict):
        self.messages.append(message)

    async def open_window(self, path: str):
        self.opened.append(path)
        self.window_open = True


class NotificationBridge:

    def __init__(self, delivery: NotificationDelivery):
        self.delivery = delivery
        self.ready = False
        self.permission = PERMISSION_DEFAULT
        self.banner: Optional[str] = None
        self._auto_prompted = False
        self._active: Dict[str, SystemNotification] = {}

    async def register(self) -> bool:
        self.ready = await self.delivery.register()
        self.permission = await self.delivery.permission()
        if self.permission == PERMISSION_DENIED:
            self.banner = DENIED_BANNER
        logger.info(f"[Bridge] Delivery ready={self.ready} permission={self.permission}")
        return self.ready

    def _set_permission(self, permission: str):
        self.permission = permission
        self.banner = DENIED_BANNER if permission == PERMISSION_DENIED else None

    async def ensure_permission(self) -> bool:
        """Automatic path: prompt at most once per bridge, never when already denied."""
        if self.permission == PERMISSION_GRANTED:
            return True
        if self.permission == PERMISSION_DENIED or self._auto_prompted:
            return False
        self._auto_prompted = True
        self._set_permission(await self.delivery.request_permission())
        return self.permission == PERMISSION_GRANTED

    async def request_permission(self) -> str:
        """Explicit user request: always asks the platform."""
        self._set_permission(await self.delivery.request_permission())
        logger.info(f"[Bridge] Permission after user request: {self.permission}")
        return self.permission

    async def show(self, payload: dict) -> bool:
        if not self.ready:
            logger.warning("[Bridge] Delivery not registered, dropping notification")
            return False
        if self.permission != PERMISSION_GRANTED:
            logger.info(f"[Bridge] Permission {self.permission}, not showing '{payload.get('title')}'")
            return False
        notification = build_notification(payload)
        await self.delivery.show(notification)
        self._active[notification.tag] = notification
        return True

    async def handle_click(self, action: Optional[str], tag: str):
        """`view` or a click on the body opens the medicines view; `dismiss` only closes."""
        notification = self._active.pop(tag, None)
        await self.delivery.close(tag)
        if action == ACTION_DISMISS:
            return
        data = notification.data if notification else {}
        if await self.delivery.focus_window():
            await self.delivery.post_message({"type": "NOTIFICATION_CLICKED", "data": data})
        else:
            await self.delivery.open_window(MEDICINES_PATH)
