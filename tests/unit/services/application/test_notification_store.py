from datetime import timedelta

import pytest

from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType
from app.services.application.notification_store import STORAGE_KEY, NotificationStore
from app.utils.persistent_store import JsonFileStore, MemoryStore


class RecordingNotifier:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, title, body):
        self.sent.append((title, body))
        if self.error:
            raise self.error


def _draft(schedule_id=None, priority=NotificationPriority.MEDIUM, ntype=NotificationType.IRRIGATION_DUE):
    return Notification(
        type=ntype,
        title="Irrigation Due Soon",
        message="Maize needs water",
        priority=priority,
        farm_id=1,
        schedule_id=schedule_id,
        read=True,
        id="caller-supplied",
    )


def test_add_assigns_id_timestamp_and_unread(notification_store, clock):
    stored = notification_store.add(_draft(schedule_id=7))

    assert stored.id.startswith("notif_")
    assert stored.id != "caller-supplied"
    assert stored.timestamp == clock.now
    assert stored.read is False
    assert notification_store.get_unread_count() == 1


def test_newest_notification_comes_first(notification_store, clock):
    first = notification_store.add(_draft(schedule_id=1))
    clock.advance(minutes=1)
    second = notification_store.add(_draft(schedule_id=2))

    ids = [n.id for n in notification_store.get_notifications()]
    assert ids == [second.id, first.id]


def test_returned_notifications_are_copies(notification_store):
    notification_store.add(_draft(schedule_id=1))

    notification_store.get_notifications()[0].read = True

    assert notification_store.get_unread_count() == 1


def test_mark_read_is_idempotent(notification_store):
    stored = notification_store.add(_draft())

    assert notification_store.mark_read(stored.id) is True
    assert notification_store.mark_read(stored.id) is True
    assert notification_store.mark_read("notif_missing") is False
    assert notification_store.get_unread_count() == 0


def test_mark_all_read_returns_changed_count(notification_store):
    notification_store.add(_draft())
    already = notification_store.add(_draft())
    notification_store.mark_read(already.id)
    notification_store.add(_draft())

    assert notification_store.mark_all_read() == 2
    assert notification_store.mark_all_read() == 0


def test_mark_read_for_schedule_only_touches_that_schedule(notification_store):
    notification_store.add(_draft(schedule_id=1))
    notification_store.add(_draft(schedule_id=1, ntype=NotificationType.IRRIGATION_OVERDUE))
    notification_store.add(_draft(schedule_id=2))

    assert notification_store.mark_read_for_schedule(1) == 2
    assert [n.schedule_id for n in notification_store.get_notifications(unread_only=True)] == [2]


def test_has_unread_respects_type_and_date(notification_store, clock):
    notification_store.add(_draft(schedule_id=3))
    today = clock.now.date()

    assert notification_store.has_unread(3, NotificationType.IRRIGATION_DUE)
    assert notification_store.has_unread(3, NotificationType.IRRIGATION_DUE, on_date=today)
    assert not notification_store.has_unread(3, NotificationType.IRRIGATION_DUE, on_date=today + timedelta(days=1))
    assert not notification_store.has_unread(3, NotificationType.IRRIGATION_OVERDUE)
    assert not notification_store.has_unread(4, NotificationType.IRRIGATION_DUE)

    notification_store.mark_read_for_schedule(3)
    assert not notification_store.has_unread(3, NotificationType.IRRIGATION_DUE)


def test_subscribe_receives_current_list_and_updates(notification_store):
    notification_store.add(_draft())
    received = []

    unsubscribe = notification_store.subscribe(lambda items: received.append(len(items)))
    notification_store.add(_draft())
    unsubscribe()
    notification_store.add(_draft())

    assert received == [1, 2]


def test_failing_subscriber_does_not_break_mutations(notification_store):
    calls = []

    def broken(items):
        calls.append(len(items))
        raise RuntimeError("listener bug")

    notification_store.subscribe(broken)
    stored = notification_store.add(_draft())

    assert calls == [0, 1]
    assert notification_store.get_notifications()[0].id == stored.id


def test_subscriber_can_read_store_inside_callback(notification_store):
    counts = []
    notification_store.subscribe(lambda items: counts.append(notification_store.get_unread_count()))

    notification_store.add(_draft())

    assert counts == [0, 1]


def test_prune_removes_notifications_at_or_before_cutoff(notification_store, clock):
    start = clock.now
    clock.now = start - timedelta(days=30)
    notification_store.add(_draft(schedule_id=1))  # exactly at the cutoff
    clock.now = start - timedelta(days=30) + timedelta(seconds=1)
    kept = notification_store.add(_draft(schedule_id=2))
    clock.now = start

    assert notification_store.prune_older_than(30) == 1
    assert [n.id for n in notification_store.get_notifications()] == [kept.id]
    assert notification_store.prune_older_than(30) == 0


def test_notifications_survive_reload(kv_store, clock):
    store = NotificationStore(kv_store, clock=clock)
    stored = store.add(_draft(schedule_id=5))
    store.mark_read(stored.id)

    reloaded = NotificationStore(kv_store, clock=clock)

    [item] = reloaded.get_notifications()
    assert item.id == stored.id
    assert item.read is True
    assert item.timestamp == clock.now
    assert item.type == NotificationType.IRRIGATION_DUE


def test_persisted_document_uses_storage_key(kv_store, notification_store):
    notification_store.add(_draft(schedule_id=9))

    [raw] = kv_store.load(STORAGE_KEY)
    assert raw["schedule_id"] == 9
    assert raw["type"] == "irrigation_due"
    assert raw["priority"] == "medium"
    assert raw["timestamp"].endswith("+00:00")


def test_malformed_entries_are_skipped_on_load(clock):
    good = {
        "id": "notif_ok",
        "type": "system_alert",
        "title": "Hello",
        "message": "World",
        "priority": "low",
        "timestamp": "2026-03-10T10:00:00Z",
    }
    kv = MemoryStore(
        {
            STORAGE_KEY: [
                good,
                {"id": "notif_bad_type", "type": "nope", "timestamp": "2026-03-10T10:00:00Z"},
                {"id": "notif_no_ts", "type": "system_alert"},
                "not-a-dict",
            ]
        }
    )

    store = NotificationStore(kv, clock=clock)

    assert [n.id for n in store.get_notifications()] == ["notif_ok"]


def test_non_list_document_starts_empty(clock):
    store = NotificationStore(MemoryStore({STORAGE_KEY: {"oops": True}}), clock=clock)

    assert store.get_notifications() == []


@pytest.mark.parametrize(
    "priority, expected",
    [
        (NotificationPriority.LOW, 0),
        (NotificationPriority.MEDIUM, 0),
        (NotificationPriority.HIGH, 1),
        (NotificationPriority.CRITICAL, 1),
    ],
)
def test_platform_notifier_only_for_urgent(kv_store, clock, priority, expected):
    notifier = RecordingNotifier()
    store = NotificationStore(kv_store, clock=clock, platform_notifier=notifier)

    store.add(_draft(priority=priority))

    assert len(notifier.sent) == expected


def test_platform_notifier_failure_is_swallowed(kv_store, clock):
    store = NotificationStore(kv_store, clock=clock, platform_notifier=RecordingNotifier(RuntimeError("no push")))

    stored = store.add(_draft(priority=NotificationPriority.CRITICAL))

    assert store.get_notifications()[0].id == stored.id


def test_persist_failure_keeps_memory_state(clock):
    class ReadOnlyStore(MemoryStore):
        def save(self, key, value):
            raise OSError("disk full")

    store = NotificationStore(ReadOnlyStore(), clock=clock)
    store.add(_draft())

    assert store.get_unread_count() == 1


def test_add_system_alert(notification_store):
    alert = notification_store.add_system_alert("Backup", "Nightly backup failed", NotificationPriority.HIGH, farm_id=2)

    assert alert.type == NotificationType.SYSTEM_ALERT
    assert alert.farm_id == 2
    assert alert.schedule_id is None


def test_mark_read_for_farm(notification_store):
    notification_store.add(_draft(schedule_id=1))
    notification_store.add_system_alert("Pump", "Pressure low", farm_id=2)

    assert notification_store.mark_read_for_farm(1) == 1
    assert [n.farm_id for n in notification_store.get_notifications(unread_only=True)] == [2]


def test_web_and_scheduler_processes_share_the_document(tmp_path, clock):
    web = NotificationStore(JsonFileStore(str(tmp_path)), clock=clock)
    worker = NotificationStore(JsonFileStore(str(tmp_path)), clock=clock)

    overdue = worker.add(_draft(schedule_id=4, ntype=NotificationType.IRRIGATION_OVERDUE))
    assert web.has_unread(4, NotificationType.IRRIGATION_OVERDUE)

    alert = web.add_system_alert("Backup", "Nightly backup failed")

    assert {n.id for n in web.get_notifications()} == {overdue.id, alert.id}
    fresh = NotificationStore(JsonFileStore(str(tmp_path)), clock=clock)
    assert [n.id for n in fresh.get_notifications()] == [alert.id, overdue.id]

    assert worker.mark_read(alert.id) is True
    assert web.get_unread_count() == 1
