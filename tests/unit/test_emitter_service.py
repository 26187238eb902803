from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType
from app.utils.emitters import (
    SOCKETIO_NAMESPACE_NOTIFICATIONS,
    WS_EVENT_NOTIFICATIONS_UPDATED,
    WS_EVENT_PLATFORM_NOTIFICATION,
    NotificationEmitter,
)


def _notification(priority):
    return Notification(
        type=NotificationType.IRRIGATION_OVERDUE,
        title="Overdue Irrigation",
        message="Green Valley Farm - Maize irrigation is 3 hours overdue. Immediate action required.",
        priority=priority,
        schedule_id=1,
    )


def test_attach_emits_unread_count_on_every_change(notification_store, fake_socketio):
    emitter = NotificationEmitter(fake_socketio)
    emitter.attach(notification_store)

    stored = notification_store.add(_notification(NotificationPriority.MEDIUM))
    notification_store.mark_read(stored.id)

    updates = [e for e in fake_socketio.emits if e["event"] == WS_EVENT_NOTIFICATIONS_UPDATED]
    assert [u["payload"] for u in updates] == [
        {"unread_count": 0, "total": 0},
        {"unread_count": 1, "total": 1},
        {"unread_count": 0, "total": 1},
    ]
    assert all(u["namespace"] == SOCKETIO_NAMESPACE_NOTIFICATIONS for u in updates)
    assert all(u["room"] is None for u in updates)


def test_urgent_notifications_are_pushed(notification_store, fake_socketio):
    NotificationEmitter(fake_socketio).attach(notification_store)

    notification_store.add(_notification(NotificationPriority.CRITICAL))
    notification_store.add(_notification(NotificationPriority.LOW))

    pushes = [e for e in fake_socketio.emits if e["event"] == WS_EVENT_PLATFORM_NOTIFICATION]
    assert len(pushes) == 1
    assert pushes[0]["payload"]["title"] == "Overdue Irrigation"
    assert "3 hours overdue" in pushes[0]["payload"]["body"]


def test_detach_stops_updates(notification_store, fake_socketio):
    emitter = NotificationEmitter(fake_socketio)
    emitter.attach(notification_store)
    emitter.detach()
    count = len(fake_socketio.emits)

    notification_store.add(_notification(NotificationPriority.MEDIUM))

    assert len(fake_socketio.emits) == count


def test_emit_failures_are_swallowed():
    class BrokenSocketIO:
        def emit(self, *args, **kwargs):
            raise RuntimeError("no clients")

    NotificationEmitter(BrokenSocketIO()).send("title", "body")
