"""
Common Enumerations
====================

This module contains common enums used across multiple services.
These are application-wide enums for notifications and alerting.
"""

from enum import Enum


class NotificationType(str, Enum):
    """
    Notification type categories.
    Used by: notification_store, irrigation_reminder_service, soil_moisture_service
    """
    IRRIGATION_DUE = "irrigation_due"
    IRRIGATION_OVERDUE = "irrigation_overdue"
    WEATHER_ALERT = "weather_alert"
    SYSTEM_ALERT = "system_alert"
    SOIL_MOISTURE_ALERT = "soil_moisture_alert"

    def __str__(self) -> str:
        return self.value


class NotificationPriority(str, Enum):
    """
    Notification priority levels.
    HIGH and CRITICAL also raise a platform (push) notification.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value

    @property
    def is_urgent(self) -> bool:
        return self in (NotificationPriority.HIGH, NotificationPriority.CRITICAL)


class SoilMoistureAlertType(str, Enum):
    """Direction of a soil moisture threshold breach."""
    LOW = "low"
    HIGH = "high"
    OPTIMAL = "optimal"

    def __str__(self) -> str:
        return self.value
