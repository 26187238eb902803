"""
Irrigation Reminder Service
===========================

Periodic scan over active irrigation schedules.

Each active schedule is classified relative to the current time:

- due soon (``0 < next_due - now <= window``): one high priority
  ``irrigation_due`` notification per schedule per calendar day, plus an SMS.
- overdue (``next_due <= now``): one critical ``irrigation_overdue``
  notification until it is read (completion or acknowledgement), plus an SMS.
- anything later: nothing.

The scan never moves ``next_due``; only completing an irrigation does. Missed
scans do not accumulate because classification only looks at "now".

Failure handling:
- a schedule read failure aborts the scan; the next interval retries
- SMS problems are logged per schedule and never stop the scan
- a scan that is still running when the next one fires makes the newer one
  return immediately (per process only; two processes can still race on the
  dedup check)
"""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import TYPE_CHECKING, Any, Dict, Optional

from app.domain.exceptions import RepositoryError
from app.domain.irrigation import IrrigationSchedule
from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType
from app.services.utilities.sms_service import due_soon_message, overdue_message
from app.utils.time import Clock, local_date, round_half_up, to_utc_iso, utc_now

if TYPE_CHECKING:
    from app.services.application.notification_store import NotificationStore
    from app.services.utilities.sms_service import SmsService
    from infrastructure.database.repositories.schedules import ScheduleRepository

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Counters describing one scan."""
    scanned: int = 0
    due_soon: int = 0
    overdue: int = 0
    duplicates_skipped: int = 0
    sms_sent: int = 0
    sms_failed: int = 0
    pruned: int = 0
    skipped: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ok"] = self.ok
        return data


class IrrigationReminderService:
    """Creates due-soon / overdue reminders for irrigation schedules."""

    def __init__(
        self,
        schedule_repo: "ScheduleRepository",
        notification_store: "NotificationStore",
        sms_service: Optional["SmsService"] = None,
        *,
        clock: Clock = utc_now,
        tz: tzinfo = timezone.utc,
        due_soon_window_minutes: int = 60,
        retention_days: int = 30,
    ):
        self._schedules = schedule_repo
        self._notifications = notification_store
        self._sms = sms_service
        self._clock = clock
        self._tz = tz
        self._window = timedelta(minutes=due_soon_window_minutes)
        self._retention_days = retention_days
        self._scan_lock = threading.Lock()
        self._last_result: Optional[ScanResult] = None
        self._last_scan_at: Optional[datetime] = None

    # ------------------------------------------------------------------ #
    # Scan
    # ------------------------------------------------------------------ #

    def scan(self) -> ScanResult:
        """Run one pass over all active schedules."""
        if not self._scan_lock.acquire(blocking=False):
            logger.info("Irrigation reminder scan already in progress; skipping")
            return ScanResult(skipped=True)
        try:
            result = self._scan()
            self._last_result = result
            self._last_scan_at = self._clock()
            return result
        finally:
            self._scan_lock.release()

    def _scan(self) -> ScanResult:
        result = ScanResult()
        now = self._clock()

        try:
            schedules = self._schedules.get_active()
        except RepositoryError as e:
            logger.error("Irrigation reminder scan aborted, could not read schedules: %s", e)
            result.error = str(e)
            return result

        result.scanned = len(schedules)
        today = local_date(now, self._tz)

        for schedule in schedules:
            if not schedule.is_active or schedule.next_due is None:
                continue
            try:
                self._check_schedule(schedule, now, today, result)
            except Exception as e:
                logger.error(
                    "Failed to process irrigation schedule %s: %s", schedule.schedule_id, e, exc_info=True
                )

        result.pruned = self._notifications.prune_older_than(self._retention_days)

        logger.info(
            "Irrigation reminder scan: %d active, %d due soon, %d overdue, %d duplicates skipped, "
            "%d SMS sent, %d SMS failed",
            result.scanned,
            result.due_soon,
            result.overdue,
            result.duplicates_skipped,
            result.sms_sent,
            result.sms_failed,
        )
        return result

    def _check_schedule(
        self, schedule: IrrigationSchedule, now: datetime, today: date, result: ScanResult
    ) -> None:
        delta = schedule.next_due - now
        if timedelta(0) < delta <= self._window:
            self._handle_due_soon(schedule, delta, today, result)
        elif delta <= timedelta(0):
            self._handle_overdue(schedule, delta, result)
        else:
            logger.debug("Schedule %s not due yet (%s)", schedule.schedule_id, delta)

    def _handle_due_soon(
        self, schedule: IrrigationSchedule, delta: timedelta, today: date, result: ScanResult
    ) -> None:
        if self._notifications.has_unread(
            schedule.schedule_id, NotificationType.IRRIGATION_DUE, on_date=today, tz=self._tz
        ):
            logger.debug("Due-soon reminder already sent today for schedule %s", schedule.schedule_id)
            result.duplicates_skipped += 1
            return

        minutes_until = round_half_up(delta / timedelta(minutes=1))
        farm_name, crop_name = self._names(schedule)
        self._notifications.add(
            Notification(
                type=NotificationType.IRRIGATION_DUE,
                title="Irrigation Due Soon",
                message=(
                    f"{farm_name} - {crop_name} needs irrigation in {minutes_until} minutes. "
                    f"Duration: {schedule.duration} minutes."
                ),
                priority=NotificationPriority.HIGH,
                farm_id=schedule.farm_id,
                schedule_id=schedule.schedule_id,
                action_required=True,
                action_data={
                    "farm_name": farm_name,
                    "crop_name": crop_name,
                    "duration": schedule.duration,
                    "minutes_until": minutes_until,
                    "scheduled_time": schedule.time_of_day,
                    "next_due": to_utc_iso(schedule.next_due),
                },
            )
        )
        result.due_soon += 1
        self._dispatch_sms(schedule, due_soon_message(crop_name, farm_name, minutes_until), result)

    def _handle_overdue(self, schedule: IrrigationSchedule, delta: timedelta, result: ScanResult) -> None:
        if self._notifications.has_unread(schedule.schedule_id, NotificationType.IRRIGATION_OVERDUE):
            logger.debug("Overdue reminder still unread for schedule %s", schedule.schedule_id)
            result.duplicates_skipped += 1
            return

        hours_overdue = round_half_up(abs(delta) / timedelta(hours=1))
        farm_name, crop_name = self._names(schedule)
        self._notifications.add(
            Notification(
                type=NotificationType.IRRIGATION_OVERDUE,
                title="Overdue Irrigation",
                message=(
                    f"{farm_name} - {crop_name} irrigation is {hours_overdue} hours overdue. "
                    "Immediate action required."
                ),
                priority=NotificationPriority.CRITICAL,
                farm_id=schedule.farm_id,
                schedule_id=schedule.schedule_id,
                action_required=True,
                action_data={
                    "farm_name": farm_name,
                    "crop_name": crop_name,
                    "duration": schedule.duration,
                    "hours_overdue": hours_overdue,
                    "original_time": schedule.time_of_day,
                    "next_due": to_utc_iso(schedule.next_due),
                },
            )
        )
        result.overdue += 1
        self._dispatch_sms(schedule, overdue_message(crop_name, farm_name, hours_overdue), result)

    def _dispatch_sms(self, schedule: IrrigationSchedule, message: str, result: ScanResult) -> None:
        if self._sms is None:
            return
        if not schedule.owner_phone:
            logger.info("No phone number for owner of farm %s; SMS skipped", schedule.farm_id)
            return
        try:
            sms_result = self._sms.send(schedule.owner_phone, message)
        except Exception as e:
            logger.error("SMS dispatch raised for schedule %s: %s", schedule.schedule_id, e)
            result.sms_failed += 1
            return
        if sms_result.success:
            result.sms_sent += 1
        else:
            logger.warning("SMS for schedule %s not sent: %s", schedule.schedule_id, sms_result.error)
            result.sms_failed += 1

    @staticmethod
    def _names(schedule: IrrigationSchedule) -> tuple[str, str]:
        return schedule.farm_name or f"Farm {schedule.farm_id}", schedule.crop_name or "Crop"

    # ------------------------------------------------------------------ #
    # Status
    # ------------------------------------------------------------------ #

    def get_status(self) -> Dict[str, Any]:
        return {
            "scan_in_progress": self._scan_lock.locked(),
            "last_scan_at": self._last_scan_at.isoformat() if self._last_scan_at else None,
            "last_result": self._last_result.to_dict() if self._last_result else None,
            "due_soon_window_minutes": int(self._window / timedelta(minutes=1)),
        }
