"""
Notification bridge over the in-memory delivery.

Tests:
1. Notification built from payload (defaults, tag, urgent, low priority)
2. Repeat alerts for the same medicine replace each other
3. Permission: shown only when granted, auto prompt once, never when denied
4. Clicks: view focuses + posts message or opens /medicines, dismiss only closes
"""
import asyncio

from app.monitor.bridge import (
    DEFAULT_BODY,
    DEFAULT_TITLE,
    DENIED_BANNER,
    InMemoryDelivery,
    NotificationBridge,
    build_notification,
)

LOW_STOCK = {
    "type": "low_stock",
    "title": "Low Stock Alert",
    "message": "Dolo is running low (3 strip remaining)",
    "medicineId": 7,
    "priority": "high",
}


def _run(coro):
    return asyncio.run(coro)


def _ready_bridge(**delivery_kwargs):
    delivery = InMemoryDelivery(**delivery_kwargs)
    bridge = NotificationBridge(delivery)
    _run(bridge.register())
    return bridge, delivery


def test_build_notification_from_payload():
    notification = build_notification(LOW_STOCK)
    assert notification.title == "Low Stock Alert"
    assert notification.body == LOW_STOCK["message"]
    assert notification.tag == "notification-low_stock-7"
    assert not notification.require_interaction
    assert not notification.silent
    assert [a["action"] for a in notification.actions] == ["view", "dismiss"]
    assert notification.data == LOW_STOCK


def test_defaults_and_priority_flags():
    urgent = build_notification({"type": "expired", "priority": "urgent"})
    assert urgent.title == DEFAULT_TITLE
    assert urgent.body == DEFAULT_BODY
    assert urgent.tag == "notification-expired-general"
    assert urgent.require_interaction

    low = build_notification({"type": "low_stock", "priority": "low", "medicineId": 1})
    assert low.silent
    assert not low.require_interaction


def test_repeat_alert_replaces_previous():
    bridge, delivery = _ready_bridge(permission="granted")
    _run(bridge.show(LOW_STOCK))
    _run(bridge.show({**LOW_STOCK, "message": "Dolo is running low (2 strip remaining)"}))
    _run(bridge.show({**LOW_STOCK, "medicineId": 8}))

    assert len(delivery.shown) == 3
    assert set(delivery.visible) == {"notification-low_stock-7", "notification-low_stock-8"}
    assert delivery.visible["notification-low_stock-7"].body.endswith("(2 strip remaining)")


def test_nothing_shown_without_permission():
    bridge, delivery = _ready_bridge(permission="default")
    assert _run(bridge.show(LOW_STOCK)) is False
    assert delivery.shown == []


def test_nothing_shown_before_register():
    delivery = InMemoryDelivery(permission="granted")
    bridge = NotificationBridge(delivery)
    assert _run(bridge.show(LOW_STOCK)) is False


def test_auto_prompt_happens_once():
    bridge, delivery = _ready_bridge(permission="default", prompt_result="default")
    assert _run(bridge.ensure_permission()) is False
    assert _run(bridge.ensure_permission()) is False
    assert delivery.prompts == 1


def test_auto_prompt_grants():
    bridge, delivery = _ready_bridge(permission="default", prompt_result="granted")
    assert _run(bridge.ensure_permission()) is True
    assert _run(bridge.show(LOW_STOCK)) is True


def test_denied_is_never_auto_prompted():
    bridge, delivery = _ready_bridge(permission="denied")
    assert bridge.banner == DENIED_BANNER
    assert _run(bridge.ensure_permission()) is False
    assert delivery.prompts == 0


def test_explicit_request_asks_the_platform():
    bridge, delivery = _ready_bridge(permission="default", prompt_result="denied")
    _run(bridge.ensure_permission())
    assert bridge.permission == "denied"

    _run(bridge.request_permission())
    assert delivery.prompts == 2
    assert bridge.banner == DENIED_BANNER


def test_view_click_with_open_window_posts_message():
    bridge, delivery = _ready_bridge(permission="granted", window_open=True)
    _run(bridge.show(LOW_STOCK))
    _run(bridge.handle_click("view", "notification-low_stock-7"))

    assert delivery.visible == {}
    assert delivery.focused == 1
    assert delivery.messages == [{"type": "NOTIFICATION_CLICKED", "data": LOW_STOCK}]
    assert delivery.opened == []


def test_body_click_without_window_opens_medicines():
    bridge, delivery = _ready_bridge(permission="granted", window_open=False)
    _run(bridge.show(LOW_STOCK))
    _run(bridge.handle_click(None, "notification-low_stock-7"))

    assert delivery.opened == ["/medicines"]
    assert delivery.messages == []


def test_dismiss_only_closes():
    bridge, delivery = _ready_bridge(permission="granted", window_open=True)
    _run(bridge.show(LOW_STOCK))
    _run(bridge.handle_click("dismiss", "notification-low_stock-7"))

    assert delivery.visible == {}
    assert delivery.focused == 0
    assert delivery.messages == [] and delivery.opened == []
