"""
Notification Domain Object
==========================
In-app alert shown in the notification list and persisted as JSON.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from app.enums import NotificationPriority, NotificationType
from app.utils.time import coerce_datetime, to_utc_iso


@dataclass
class Notification:
    """
    A single notification.

    ``id`` and ``timestamp`` are assigned by the notification store when the
    notification is added; drafts leave them empty.
    """
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    farm_id: Optional[int] = None
    schedule_id: Optional[int] = None
    action_required: bool = False
    action_data: Dict[str, Any] = field(default_factory=dict)
    read: bool = False
    id: str = ""
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": str(self.type),
            "title": self.title,
            "message": self.message,
            "priority": str(self.priority),
            "farm_id": self.farm_id,
            "schedule_id": self.schedule_id,
            "read": self.read,
            "action_required": self.action_required,
            "action_data": dict(self.action_data),
            "timestamp": to_utc_iso(self.timestamp) if self.timestamp else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Notification":
        """Rebuild from persisted JSON. Raises ValueError/KeyError on bad entries."""
        timestamp = coerce_datetime(data.get("timestamp"))
        if timestamp is None:
            raise ValueError("notification has no valid timestamp")
        return Notification(
            id=str(data["id"]),
            type=NotificationType(data["type"]),
            title=str(data.get("title", "")),
            message=str(data.get("message", "")),
            priority=NotificationPriority(data.get("priority", "medium")),
            farm_id=data.get("farm_id"),
            schedule_id=data.get("schedule_id"),
            read=bool(data.get("read", False)),
            action_required=bool(data.get("action_required", False)),
            action_data=dict(data.get("action_data") or {}),
            timestamp=timestamp,
        )
