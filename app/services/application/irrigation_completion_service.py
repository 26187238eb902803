"""
Irrigation completion ("mark as done") service.

Recording a completed irrigation writes an immutable log entry, moves the
schedule's next due time to ``today + frequency days`` at the schedule's time
of day, and retires every open notification for that schedule.

The three writes are not wrapped in one transaction. A failure part-way is
reported as a failed result; writes that already succeeded stay in place.
"""
from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import TYPE_CHECKING, Any, Dict, Optional

from app.domain.exceptions import NotFoundError, RepositoryError, ValidationError
from app.domain.irrigation import IrrigationLog, next_due_after
from app.utils.time import Clock, local_date, to_utc_iso, utc_now

if TYPE_CHECKING:
    from app.services.application.notification_store import NotificationStore
    from infrastructure.database.repositories.irrigation_logs import IrrigationLogRepository
    from infrastructure.database.repositories.schedules import ScheduleRepository

logger = logging.getLogger(__name__)


class IrrigationCompletionService:
    """Log completed irrigations and advance their schedules."""

    def __init__(
        self,
        *,
        schedule_repo: "ScheduleRepository",
        log_repo: "IrrigationLogRepository",
        notification_store: "NotificationStore",
        clock: Clock = utc_now,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._schedules = schedule_repo
        self._logs = log_repo
        self._notifications = notification_store
        self._clock = clock
        self._tz = tz

    def mark_completed(
        self,
        schedule_id: int,
        water_used: float,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record that a scheduled irrigation happened.

        Returns:
            ``{"ok": True, "log": ..., "next_due": ...}`` on success, otherwise
            ``{"ok": False, "error": ..., "error_code": ...}``.
        """
        try:
            return self._complete(schedule_id, water_used, notes)
        except (NotFoundError, ValidationError, RepositoryError) as e:
            logger.warning("Could not complete irrigation for schedule %s: %s", schedule_id, e)
            return {"ok": False, "error": str(e), "error_code": e.error_code}

    def _complete(self, schedule_id: int, water_used: float, notes: Optional[str]) -> Dict[str, Any]:
        try:
            water = float(water_used)
        except (TypeError, ValueError):
            raise ValidationError("water_used must be a number") from None
        if water <= 0:
            raise ValidationError("water_used must be greater than zero")

        schedule = self._schedules.get_by_id(schedule_id)
        if schedule is None:
            raise NotFoundError(f"Irrigation schedule {schedule_id} not found")

        now = self._clock()
        log = self._logs.add(
            IrrigationLog(
                schedule_id=schedule.schedule_id,
                farm_id=schedule.farm_id,
                duration=schedule.duration,
                water_used=water,
                completed=True,
                irrigation_date=now,
                notes=notes or "",
            )
        )

        next_due = next_due_after(local_date(now, self._tz), schedule.frequency, schedule.time_of_day, self._tz)
        if not self._schedules.update_next_due(schedule.schedule_id, next_due):
            raise NotFoundError(f"Irrigation schedule {schedule_id} disappeared while completing")

        retired = self._notifications.mark_read_for_schedule(schedule.schedule_id)
        logger.info(
            "Irrigation completed for schedule %s (%.1f water); next due %s, %d notification(s) retired",
            schedule.schedule_id,
            water,
            next_due.isoformat(),
            retired,
        )
        return {
            "ok": True,
            "log": log.to_dict(),
            "next_due": to_utc_iso(next_due),
            "notifications_retired": retired,
        }
