from datetime import datetime, timedelta, timezone

import pytest

from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType
from app.services.application.irrigation_completion_service import IrrigationCompletionService


@pytest.fixture()
def service(schedule_repo, log_repo, notification_store, clock):
    return IrrigationCompletionService(
        schedule_repo=schedule_repo,
        log_repo=log_repo,
        notification_store=notification_store,
        clock=clock,
    )


def _overdue_notification(schedule_id):
    return Notification(
        type=NotificationType.IRRIGATION_OVERDUE,
        title="Overdue Irrigation",
        message="late",
        priority=NotificationPriority.CRITICAL,
        schedule_id=schedule_id,
    )


def test_completion_logs_and_moves_next_due(service, seed, clock, schedule_repo, log_repo):
    schedule = seed.create_schedule(next_due=clock.now - timedelta(hours=8), frequency=2, time_of_day="06:00")

    result = service.mark_completed(schedule.schedule_id, 120, notes="Full cycle")

    assert result["ok"] is True
    assert result["next_due"] == "2026-03-12T06:00:00+00:00"
    assert result["log"]["water_used"] == 120.0
    assert result["log"]["duration"] == schedule.duration
    assert result["log"]["completed"] is True
    assert result["log"]["notes"] == "Full cycle"
    assert result["log"]["irrigation_date"] == "2026-03-10T14:00:00+00:00"

    updated = schedule_repo.get_by_id(schedule.schedule_id)
    assert updated.next_due == datetime(2026, 3, 12, 6, 0, tzinfo=timezone.utc)

    [log] = log_repo.list_for_schedule(schedule.schedule_id)
    assert log.farm_id == schedule.farm_id
    assert log.water_used == 120.0


def test_next_due_counts_from_today_not_previous_due(service, seed, clock, schedule_repo):
    # Five days overdue: next due is still today + frequency
    schedule = seed.create_schedule(next_due=clock.now - timedelta(days=5), frequency=3, time_of_day="17:30")

    result = service.mark_completed(schedule.schedule_id, 50)

    assert result["next_due"] == "2026-03-13T17:30:00+00:00"


def test_today_is_taken_in_farm_timezone(schedule_repo, log_repo, notification_store, seed, clock):
    nairobi = timezone(timedelta(hours=3))
    service = IrrigationCompletionService(
        schedule_repo=schedule_repo,
        log_repo=log_repo,
        notification_store=notification_store,
        clock=clock,
        tz=nairobi,
    )
    # 22:30 UTC is already the next day at UTC+3
    clock.now = datetime(2026, 3, 10, 22, 30, tzinfo=timezone.utc)
    schedule = seed.create_schedule(frequency=2, time_of_day="06:00")

    result = service.mark_completed(schedule.schedule_id, 80)

    assert result["next_due"] == "2026-03-13T03:00:00+00:00"


def test_completion_retires_schedule_notifications(service, seed, clock, notification_store):
    schedule = seed.create_schedule(next_due=clock.now - timedelta(hours=2))
    other = seed.create_schedule(next_due=clock.now - timedelta(hours=2))
    notification_store.add(_overdue_notification(schedule.schedule_id))
    notification_store.add(_overdue_notification(other.schedule_id))

    result = service.mark_completed(schedule.schedule_id, 100)

    assert result["notifications_retired"] == 1
    unread = notification_store.get_notifications(unread_only=True)
    assert [n.schedule_id for n in unread] == [other.schedule_id]


def test_unknown_schedule_is_not_found(service, log_repo):
    result = service.mark_completed(999, 100)

    assert result["ok"] is False
    assert result["error_code"] == "not_found"
    assert "999" in result["error"]
    assert log_repo.list_recent() == []


@pytest.mark.parametrize("water_used", [0, -5, "lots"])
def test_invalid_water_is_rejected(service, seed, log_repo, water_used):
    schedule = seed.create_schedule()

    result = service.mark_completed(schedule.schedule_id, water_used)

    assert result["ok"] is False
    assert result["error_code"] == "validation_error"
    assert log_repo.list_recent() == []


def test_completed_schedule_is_no_longer_overdue(service, seed, clock, schedule_repo, notification_store, fake_sms):
    from app.services.application.irrigation_reminder_service import IrrigationReminderService

    reminders = IrrigationReminderService(schedule_repo, notification_store, fake_sms, clock=clock)
    schedule = seed.create_schedule(next_due=clock.now - timedelta(hours=3))
    assert reminders.scan().overdue == 1

    service.mark_completed(schedule.schedule_id, 90)
    result = reminders.scan()

    assert result.overdue == 0
    assert result.due_soon == 0
    assert notification_store.get_unread_count() == 0
