from datetime import timedelta
from unittest.mock import Mock

import pytest

from app.domain.exceptions import RepositoryError
from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType
from app.services.application.irrigation_reminder_service import IrrigationReminderService
from app.services.utilities.sms_service import SmsResult


@pytest.fixture()
def service(schedule_repo, notification_store, fake_sms, clock):
    return IrrigationReminderService(schedule_repo, notification_store, fake_sms, clock=clock)


def _of_type(store, notification_type):
    return [n for n in store.get_notifications() if n.type == notification_type]


def test_due_soon_schedule_gets_notification_and_sms(service, seed, clock, notification_store, fake_sms):
    schedule = seed.create_schedule(next_due=clock.now + timedelta(minutes=40), duration=30)

    result = service.scan()

    assert result.ok
    assert result.scanned == 1
    assert result.due_soon == 1
    assert result.overdue == 0
    assert result.sms_sent == 1

    [notification] = _of_type(notification_store, NotificationType.IRRIGATION_DUE)
    assert notification.title == "Irrigation Due Soon"
    assert notification.priority == NotificationPriority.HIGH
    assert notification.schedule_id == schedule.schedule_id
    assert notification.action_required is True
    assert notification.action_data["minutes_until"] == 40
    assert notification.action_data["farm_name"] == "Green Valley Farm"
    assert notification.action_data["crop_name"] == "Maize"
    assert notification.action_data["duration"] == 30
    assert "needs irrigation in 40 minutes" in notification.message

    assert fake_sms.sent == [
        (
            "+254700000001",
            "AquaWise Reminder: Irrigation for Maize at Green Valley Farm is due in 40 minutes.",
        )
    ]


def test_overdue_schedule_gets_critical_notification(service, seed, clock, notification_store, fake_sms):
    seed.create_schedule(next_due=clock.now - timedelta(hours=3, minutes=5))

    result = service.scan()

    assert result.overdue == 1
    assert result.due_soon == 0
    [notification] = _of_type(notification_store, NotificationType.IRRIGATION_OVERDUE)
    assert notification.title == "Overdue Irrigation"
    assert notification.priority == NotificationPriority.CRITICAL
    assert notification.action_data["hours_overdue"] == 3
    assert notification.action_data["original_time"] == "06:00"
    assert "3 hours overdue" in notification.message
    assert fake_sms.sent[0][1] == (
        "AquaWise Alert: Irrigation for Maize at Green Valley Farm is 3 hours overdue. Please attend to it."
    )


def test_due_exactly_now_counts_as_overdue(service, seed, clock, notification_store):
    seed.create_schedule(next_due=clock.now)

    result = service.scan()

    assert result.overdue == 1
    assert _of_type(notification_store, NotificationType.IRRIGATION_OVERDUE)[0].action_data["hours_overdue"] == 0


def test_window_boundary_is_inclusive(service, seed, clock):
    seed.create_schedule(next_due=clock.now + timedelta(minutes=60))
    seed.create_schedule(next_due=clock.now + timedelta(minutes=61))

    result = service.scan()

    assert result.scanned == 2
    assert result.due_soon == 1


def test_far_future_schedule_is_left_alone(service, seed, clock, notification_store, fake_sms):
    seed.create_schedule(next_due=clock.now + timedelta(days=1))

    result = service.scan()

    assert result.scanned == 1
    assert result.due_soon == 0
    assert result.overdue == 0
    assert notification_store.get_notifications() == []
    assert fake_sms.sent == []


def test_inactive_schedules_are_not_scanned(service, seed, clock, notification_store):
    seed.create_schedule(next_due=clock.now - timedelta(hours=1), is_active=False)

    result = service.scan()

    assert result.scanned == 0
    assert notification_store.get_notifications() == []


def test_repeated_scans_do_not_duplicate(service, seed, clock, notification_store, fake_sms):
    seed.create_schedule(next_due=clock.now + timedelta(minutes=40))
    seed.create_schedule(next_due=clock.now - timedelta(hours=2))

    first = service.scan()
    clock.advance(minutes=5)
    second = service.scan()

    assert first.due_soon == 1 and first.overdue == 1
    assert second.due_soon == 0 and second.overdue == 0
    assert second.duplicates_skipped == 2
    assert len(notification_store.get_notifications()) == 2
    assert len(fake_sms.sent) == 2


def test_read_overdue_reminder_is_raised_again(service, seed, clock, notification_store):
    seed.create_schedule(next_due=clock.now - timedelta(hours=1))
    service.scan()
    notification_store.mark_all_read()

    clock.advance(hours=1)
    result = service.scan()

    assert result.overdue == 1
    overdue = _of_type(notification_store, NotificationType.IRRIGATION_OVERDUE)
    assert len(overdue) == 2
    assert overdue[0].action_data["hours_overdue"] == 2


def test_due_soon_dedup_is_per_day(service, seed, clock, schedule_repo, notification_store):
    schedule = seed.create_schedule(next_due=clock.now + timedelta(minutes=30))
    service.scan()

    # A day later the same schedule is due soon again while yesterday's reminder is still unread
    clock.advance(days=1)
    schedule_repo.update_next_due(schedule.schedule_id, clock.now + timedelta(minutes=30))
    result = service.scan()

    assert result.due_soon == 1
    assert len(_of_type(notification_store, NotificationType.IRRIGATION_DUE)) == 2


def test_sms_exception_does_not_stop_scan(schedule_repo, notification_store, seed, clock):
    sms = Mock()
    sms.send.side_effect = RuntimeError("gateway down")
    service = IrrigationReminderService(schedule_repo, notification_store, sms, clock=clock)
    seed.create_schedule(next_due=clock.now + timedelta(minutes=10))
    seed.create_schedule(next_due=clock.now - timedelta(hours=4))

    result = service.scan()

    assert result.ok
    assert result.sms_failed == 2
    assert result.sms_sent == 0
    assert len(notification_store.get_notifications()) == 2


def test_sms_failure_result_is_counted(schedule_repo, notification_store, seed, clock):
    sms = Mock()
    sms.send.return_value = SmsResult(success=False, error="Twilio credentials not configured")
    service = IrrigationReminderService(schedule_repo, notification_store, sms, clock=clock)
    seed.create_schedule(next_due=clock.now + timedelta(minutes=10))

    result = service.scan()

    assert result.due_soon == 1
    assert result.sms_failed == 1
    assert result.sms_sent == 0


def test_schedule_without_phone_skips_sms(service, seed, clock, fake_sms, notification_store):
    seed.create_schedule(next_due=clock.now + timedelta(minutes=15), phone=None)

    result = service.scan()

    assert result.due_soon == 1
    assert result.sms_sent == 0
    assert result.sms_failed == 0
    assert fake_sms.sent == []
    assert len(notification_store.get_notifications()) == 1


def test_without_sms_service_only_notifications_are_created(schedule_repo, notification_store, seed, clock):
    service = IrrigationReminderService(schedule_repo, notification_store, None, clock=clock)
    seed.create_schedule(next_due=clock.now - timedelta(minutes=30))

    result = service.scan()

    assert result.overdue == 1
    assert result.sms_sent == 0


def test_repository_failure_aborts_scan(notification_store, fake_sms, clock):
    repo = Mock()
    repo.get_active.side_effect = RepositoryError("database is locked")
    service = IrrigationReminderService(repo, notification_store, fake_sms, clock=clock)

    result = service.scan()

    assert not result.ok
    assert result.error == "database is locked"
    assert result.scanned == 0
    assert notification_store.get_notifications() == []
    assert service.get_status()["last_result"]["ok"] is False


def test_failing_schedule_does_not_stop_the_others(notification_store, fake_sms, seed, clock, schedule_repo):
    good = seed.create_schedule(next_due=clock.now + timedelta(minutes=20))
    broken = seed.create_schedule(next_due=clock.now + timedelta(minutes=20))
    # A non-datetime due time makes the comparison fail for this schedule only
    broken.next_due = "not-a-date"

    repo = Mock()
    repo.get_active.return_value = [broken, schedule_repo.get_by_id(good.schedule_id)]
    service = IrrigationReminderService(repo, notification_store, fake_sms, clock=clock)

    result = service.scan()

    assert result.ok
    assert result.scanned == 2
    assert result.due_soon == 1


def test_scan_is_skipped_while_another_is_running(service, seed, clock, notification_store):
    seed.create_schedule(next_due=clock.now + timedelta(minutes=20))

    service._scan_lock.acquire()
    try:
        result = service.scan()
    finally:
        service._scan_lock.release()

    assert result.skipped is True
    assert result.scanned == 0
    assert notification_store.get_notifications() == []


def test_scan_prunes_old_notifications(service, clock, notification_store):
    clock.now = clock.now - timedelta(days=31)
    notification_store.add(
        Notification(type=NotificationType.SYSTEM_ALERT, title="Old", message="stale")
    )
    clock.advance(days=31)

    result = service.scan()

    assert result.pruned == 1
    assert notification_store.get_notifications() == []


def test_status_reports_last_scan(service, seed, clock):
    assert service.get_status()["last_scan_at"] is None

    seed.create_schedule(next_due=clock.now + timedelta(minutes=5))
    service.scan()

    status = service.get_status()
    assert status["scan_in_progress"] is False
    assert status["due_soon_window_minutes"] == 60
    assert status["last_result"]["due_soon"] == 1
    assert status["last_scan_at"].startswith("2026-03-10T14:00")


def test_scan_result_to_dict_includes_ok(service):
    data = service.scan().to_dict()

    assert data["ok"] is True
    assert data["skipped"] is False
    assert data["error"] is None
