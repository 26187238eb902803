"""
Domain Package
==============
Entities and value objects for irrigation schedules, logs and notifications.
"""

from .irrigation import IrrigationLog, IrrigationSchedule, next_due_after
from .notifications import Notification

__all__ = [
    "IrrigationLog",
    "IrrigationSchedule",
    "Notification",
    "next_due_after",
]
