"""
Irrigation schedule management.

Creates schedules (first due time = start date at the chosen time of day),
toggles them active/inactive and deletes them. Deactivating or deleting a
schedule also retires its open notifications so stale reminders do not linger.
"""
from __future__ import annotations

import logging
from datetime import date, timezone, tzinfo
from typing import TYPE_CHECKING, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.irrigation import IrrigationSchedule
from app.utils.time import Clock, at_time_of_day, local_date, parse_time_of_day, utc_now

if TYPE_CHECKING:
    from app.services.application.notification_store import NotificationStore
    from infrastructure.database.repositories.farms import FarmRepository
    from infrastructure.database.repositories.schedules import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    """CRUD-style operations on irrigation schedules."""

    def __init__(
        self,
        *,
        schedule_repo: "ScheduleRepository",
        farm_repo: "FarmRepository",
        notification_store: "NotificationStore",
        clock: Clock = utc_now,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._schedules = schedule_repo
        self._farms = farm_repo
        self._notifications = notification_store
        self._clock = clock
        self._tz = tz

    def create_schedule(
        self,
        *,
        farm_id: int,
        crop_id: int,
        frequency: int,
        duration: int,
        time_of_day: str,
        start_date: Optional[date] = None,
    ) -> IrrigationSchedule:
        """
        Create an active schedule.

        Raises:
            NotFoundError: farm or crop does not exist
            ValidationError: crop belongs to another farm, or invalid values
        """
        if self._farms.get_farm(farm_id) is None:
            raise NotFoundError(f"Farm {farm_id} not found")
        crop = self._farms.get_crop(crop_id)
        if crop is None:
            raise NotFoundError(f"Crop {crop_id} not found")
        if crop["farm_id"] != farm_id:
            raise ValidationError(f"Crop {crop_id} does not belong to farm {farm_id}")

        try:
            parse_time_of_day(time_of_day)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        first_day = start_date or local_date(self._clock(), self._tz)
        schedule = IrrigationSchedule(
            farm_id=farm_id,
            crop_id=crop_id,
            frequency=frequency,
            duration=duration,
            time_of_day=time_of_day,
            next_due=at_time_of_day(first_day, time_of_day, self._tz),
            is_active=True,
        )
        try:
            schedule.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from None

        created = self._schedules.create(schedule)
        logger.info("Schedule %s created, first irrigation %s", created.schedule_id, created.next_due)
        return created

    def get_schedule(self, schedule_id: int) -> IrrigationSchedule:
        schedule = self._schedules.get_by_id(schedule_id)
        if schedule is None:
            raise NotFoundError(f"Irrigation schedule {schedule_id} not found")
        return schedule

    def list_schedules(self, farm_id: Optional[int] = None, active_only: bool = False) -> List[IrrigationSchedule]:
        return self._schedules.list(farm_id=farm_id, active_only=active_only)

    def activate_schedule(self, schedule_id: int) -> IrrigationSchedule:
        return self._set_active(schedule_id, True)

    def deactivate_schedule(self, schedule_id: int) -> IrrigationSchedule:
        """Soft-disable a schedule; its unread reminders are marked read."""
        schedule = self._set_active(schedule_id, False)
        self._notifications.mark_read_for_schedule(schedule_id)
        return schedule

    def delete_schedule(self, schedule_id: int) -> None:
        if not self._schedules.delete(schedule_id):
            raise NotFoundError(f"Irrigation schedule {schedule_id} not found")
        self._notifications.mark_read_for_schedule(schedule_id)
        logger.info("Schedule %s deleted", schedule_id)

    def _set_active(self, schedule_id: int, active: bool) -> IrrigationSchedule:
        if not self._schedules.set_active(schedule_id, active):
            raise NotFoundError(f"Irrigation schedule {schedule_id} not found")
        logger.info("Schedule %s %s", schedule_id, "activated" if active else "deactivated")
        return self.get_schedule(schedule_id)
