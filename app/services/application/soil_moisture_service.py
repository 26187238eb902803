"""
Soil moisture tracking.

Readings are kept per farm (last 1000) and alerts in one shared list, both as
JSON documents in the key-value store. A reading outside the crop's optimal
range raises a low/high alert and a high priority ``soil_moisture_alert``
notification, unless an unacknowledged alert of the same crop and direction
was raised within the last hour.
"""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType, SoilMoistureAlertType
from app.utils.persistent_store import KeyValueStore
from app.utils.time import Clock, coerce_datetime, to_utc_iso, utc_now

if TYPE_CHECKING:
    from app.services.application.notification_store import NotificationStore

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "aquawise_soil_"
MAX_READINGS_PER_FARM = 1000
ALERT_DEDUP_WINDOW = timedelta(hours=1)

# Optimal volumetric moisture (%) per crop
OPTIMAL_MOISTURE_RANGES: Dict[str, tuple[float, float]] = {
    "maize": (65, 85),
    "beans": (60, 80),
    "tomatoes": (70, 90),
    "potatoes": (65, 85),
    "onions": (60, 80),
    "kale": (70, 85),
}
DEFAULT_MOISTURE_RANGE = (60.0, 80.0)


def optimal_moisture_range(crop: str) -> tuple[float, float]:
    return OPTIMAL_MOISTURE_RANGES.get((crop or "").strip().lower(), DEFAULT_MOISTURE_RANGE)


class SoilMoistureService:
    """Soil moisture readings and threshold alerts."""

    def __init__(
        self,
        store: KeyValueStore,
        notification_store: Optional["NotificationStore"] = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._notifications = notification_store
        self._clock = clock

    # --- storage ---------------------------------------------------------------

    @staticmethod
    def _readings_key(farm_id: Any) -> str:
        return f"{STORAGE_PREFIX}readings_{farm_id}"

    _ALERTS_KEY = f"{STORAGE_PREFIX}alerts"

    def _load_list(self, key: str) -> List[Dict[str, Any]]:
        data = self._store.load(key, [])
        if not isinstance(data, list):
            logger.warning("Ignoring malformed soil moisture document %s", key)
            return []
        return [item for item in data if isinstance(item, dict)]

    # --- readings --------------------------------------------------------------

    def add_reading(
        self,
        *,
        farm_id: int,
        crop: str,
        moisture_level: float,
        temperature: Optional[float] = None,
        ph: Optional[float] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        device_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store a reading and check it against the crop's optimal range.

        Returns:
            ``{"reading": ..., "alert": ... or None}``
        """
        level = float(moisture_level)
        if not 0 <= level <= 100:
            raise ValidationError("moisture_level must be between 0 and 100")

        reading = {
            "id": uuid.uuid4().hex,
            "farm_id": farm_id,
            "crop": crop,
            "moisture_level": level,
            "temperature": temperature,
            "ph": ph,
            "location": {"lat": latitude, "lng": longitude},
            "device_id": device_id,
            "notes": notes,
            "timestamp": to_utc_iso(self._clock()),
        }

        key = self._readings_key(farm_id)
        readings = self._load_list(key)
        readings.append(reading)
        if len(readings) > MAX_READINGS_PER_FARM:
            readings = readings[-MAX_READINGS_PER_FARM:]
        self._store.save(key, readings)

        return {"reading": reading, "alert": self._check_thresholds(reading)}

    def get_readings(self, farm_id: int, days: int = 30) -> List[Dict[str, Any]]:
        """Readings of the last ``days`` days, oldest first."""
        cutoff = self._clock() - timedelta(days=days)
        result = []
        for reading in self._load_list(self._readings_key(farm_id)):
            ts = coerce_datetime(reading.get("timestamp"))
            if ts is not None and ts >= cutoff:
                result.append(reading)
        return result

    def get_latest_reading(self, farm_id: int, crop: Optional[str] = None) -> Optional[Dict[str, Any]]:
        readings = self.get_readings(farm_id, days=7)
        if crop:
            readings = [r for r in readings if r.get("crop") == crop]
        return readings[-1] if readings else None

    # --- alerts ----------------------------------------------------------------

    def _check_thresholds(self, reading: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        low, high = optimal_moisture_range(reading["crop"])
        level = reading["moisture_level"]
        if level < low:
            return self.create_alert(reading, SoilMoistureAlertType.LOW, low)
        if level > high:
            return self.create_alert(reading, SoilMoistureAlertType.HIGH, high)
        return None

    def create_alert(
        self, reading: Dict[str, Any], alert_type: SoilMoistureAlertType, threshold: float
    ) -> Optional[Dict[str, Any]]:
        """Store an alert unless a matching unacknowledged one is recent. Returns it, or None."""
        now = self._clock()
        alerts = self._load_list(self._ALERTS_KEY)
        for existing in alerts:
            ts = coerce_datetime(existing.get("timestamp"))
            if (
                existing.get("farm_id") == reading["farm_id"]
                and existing.get("crop") == reading["crop"]
                and existing.get("alert_type") == str(alert_type)
                and not existing.get("acknowledged")
                and ts is not None
                and now - ts < ALERT_DEDUP_WINDOW
            ):
                logger.info("Duplicate %s soil moisture alert for %s suppressed", alert_type, reading["crop"])
                return None

        alert = {
            "id": uuid.uuid4().hex,
            "farm_id": reading["farm_id"],
            "crop": reading["crop"],
            "alert_type": str(alert_type),
            "moisture_level": reading["moisture_level"],
            "threshold": threshold,
            "timestamp": reading["timestamp"],
            "acknowledged": False,
        }
        alerts.append(alert)
        self._store.save(self._ALERTS_KEY, alerts)

        if self._notifications is not None:
            self._notifications.add(
                Notification(
                    type=NotificationType.SOIL_MOISTURE_ALERT,
                    title=f"{str(alert_type).capitalize()} Soil Moisture",
                    message=(
                        f"Moisture for {reading['crop']} is at {reading['moisture_level']:.1f}%. "
                        f"Threshold: {threshold:g}%."
                    ),
                    priority=NotificationPriority.HIGH,
                    farm_id=reading["farm_id"],
                    action_required=True,
                    action_data={
                        "alert_id": alert["id"],
                        "crop": reading["crop"],
                        "moisture_level": reading["moisture_level"],
                        "threshold": threshold,
                        "alert_type": str(alert_type),
                    },
                )
            )
        return alert

    def get_alerts(self, farm_id: Optional[int] = None) -> List[Dict[str, Any]]:
        alerts = self._load_list(self._ALERTS_KEY)
        if farm_id is not None:
            alerts = [a for a in alerts if a.get("farm_id") == farm_id]
        return alerts

    def acknowledge_alert(self, alert_id: str) -> Dict[str, Any]:
        alerts = self._load_list(self._ALERTS_KEY)
        for alert in alerts:
            if alert.get("id") == alert_id:
                alert["acknowledged"] = True
                self._store.save(self._ALERTS_KEY, alerts)
                return alert
        raise NotFoundError(f"Soil moisture alert {alert_id} not found")
