import pytest

from app.domain.exceptions import NotFoundError, ValidationError
from app.enums import NotificationPriority, NotificationType
from app.services.application.soil_moisture_service import (
    MAX_READINGS_PER_FARM,
    SoilMoistureService,
    optimal_moisture_range,
)


@pytest.fixture()
def service(kv_store, notification_store, clock):
    return SoilMoistureService(kv_store, notification_store, clock=clock)


def test_reading_in_range_raises_no_alert(service):
    result = service.add_reading(farm_id=1, crop="maize", moisture_level=70, temperature=22.5)

    assert result["alert"] is None
    assert result["reading"]["moisture_level"] == 70.0
    assert result["reading"]["timestamp"] == "2026-03-10T14:00:00+00:00"
    assert service.get_alerts() == []


def test_low_reading_raises_alert_and_notification(service, notification_store):
    result = service.add_reading(farm_id=1, crop="maize", moisture_level=40)

    alert = result["alert"]
    assert alert["alert_type"] == "low"
    assert alert["threshold"] == 65
    assert alert["acknowledged"] is False

    [notification] = notification_store.get_notifications()
    assert notification.type == NotificationType.SOIL_MOISTURE_ALERT
    assert notification.priority == NotificationPriority.HIGH
    assert notification.title == "Low Soil Moisture"
    assert notification.action_data["alert_id"] == alert["id"]


def test_high_reading_uses_upper_threshold(service):
    alert = service.add_reading(farm_id=1, crop="Tomatoes", moisture_level=95)["alert"]

    assert alert["alert_type"] == "high"
    assert alert["threshold"] == 90


def test_unknown_crop_uses_default_range():
    assert optimal_moisture_range("sorghum") == (60.0, 80.0)
    assert optimal_moisture_range(" Kale ") == (70, 85)


def test_duplicate_alert_within_an_hour_is_suppressed(service, clock, notification_store):
    service.add_reading(farm_id=1, crop="beans", moisture_level=30)
    clock.advance(minutes=30)
    second = service.add_reading(farm_id=1, crop="beans", moisture_level=31)
    clock.advance(minutes=31)
    third = service.add_reading(farm_id=1, crop="beans", moisture_level=32)

    assert second["alert"] is None
    assert third["alert"] is not None
    assert len(service.get_alerts()) == 2
    assert len(notification_store.get_notifications()) == 2


def test_same_crop_on_another_farm_still_alerts(service, notification_store):
    first = service.add_reading(farm_id=1, crop="maize", moisture_level=30)
    second = service.add_reading(farm_id=2, crop="maize", moisture_level=30)

    assert first["alert"] is not None
    assert second["alert"] is not None
    assert second["alert"]["farm_id"] == 2
    assert [a["farm_id"] for a in service.get_alerts()] == [1, 2]
    assert {n.farm_id for n in notification_store.get_notifications()} == {1, 2}


def test_acknowledged_alert_does_not_suppress(service):
    first = service.add_reading(farm_id=1, crop="beans", moisture_level=30)["alert"]
    service.acknowledge_alert(first["id"])

    second = service.add_reading(farm_id=1, crop="beans", moisture_level=30)

    assert second["alert"] is not None


def test_acknowledge_unknown_alert(service):
    with pytest.raises(NotFoundError):
        service.acknowledge_alert("missing")


@pytest.mark.parametrize("level", [-1, 100.5])
def test_moisture_must_be_a_percentage(service, level):
    with pytest.raises(ValidationError):
        service.add_reading(farm_id=1, crop="maize", moisture_level=level)


def test_readings_window_and_latest(service, clock):
    service.add_reading(farm_id=1, crop="maize", moisture_level=70)
    clock.advance(days=10)
    service.add_reading(farm_id=1, crop="beans", moisture_level=65)
    clock.advance(hours=1)
    service.add_reading(farm_id=1, crop="maize", moisture_level=72)
    service.add_reading(farm_id=2, crop="maize", moisture_level=75)

    assert len(service.get_readings(1, days=30)) == 3
    assert len(service.get_readings(1, days=7)) == 2
    assert service.get_latest_reading(1)["moisture_level"] == 72.0
    assert service.get_latest_reading(1, crop="beans")["moisture_level"] == 65.0
    assert service.get_latest_reading(3) is None


def test_readings_are_capped_per_farm(kv_store, clock):
    service = SoilMoistureService(kv_store, None, clock=clock)
    key = "aquawise_soil_readings_1"
    kv_store.save(key, [{"id": str(i), "timestamp": clock.now.isoformat()} for i in range(MAX_READINGS_PER_FARM)])

    service.add_reading(farm_id=1, crop="maize", moisture_level=70)

    stored = kv_store.load(key)
    assert len(stored) == MAX_READINGS_PER_FARM
    assert stored[0]["id"] == "1"


def test_alerts_filter_by_farm(service, clock):
    service.add_reading(farm_id=1, crop="maize", moisture_level=10)
    service.add_reading(farm_id=2, crop="kale", moisture_level=99)

    assert [a["farm_id"] for a in service.get_alerts(farm_id=2)] == [2]
    assert len(service.get_alerts()) == 2


def test_without_notification_store_alert_is_still_recorded(kv_store, clock):
    service = SoilMoistureService(kv_store, None, clock=clock)

    result = service.add_reading(farm_id=1, crop="onions", moisture_level=5)

    assert result["alert"]["alert_type"] == "low"


def test_old_readings_fall_out_of_window(service, clock):
    service.add_reading(farm_id=1, crop="maize", moisture_level=70)
    clock.advance(days=31)

    assert service.get_readings(1) == []
    assert service.get_latest_reading(1) is None
