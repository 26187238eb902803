"""
Irrigation Schedule Repository
==============================

Wraps ScheduleOperations mixin from the infrastructure layer.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from app.domain.irrigation import IrrigationSchedule

if TYPE_CHECKING:
    from infrastructure.database.ops.schedules import ScheduleOperations


class ScheduleRepository:
    """Repository pattern access to irrigation schedules."""

    def __init__(self, backend: "ScheduleOperations") -> None:
        """
        Initialize with database backend.

        Args:
            backend: Database handler that implements ScheduleOperations
        """
        self._backend = backend

    def create(self, schedule: IrrigationSchedule) -> IrrigationSchedule:
        schedule.validate()
        return self._backend.create_irrigation_schedule(schedule)

    def get_by_id(self, schedule_id: int) -> Optional[IrrigationSchedule]:
        return self._backend.get_irrigation_schedule(schedule_id)

    def list(self, farm_id: Optional[int] = None, active_only: bool = False) -> List[IrrigationSchedule]:
        return self._backend.list_irrigation_schedules(farm_id=farm_id, active_only=active_only)

    def get_active(self) -> List[IrrigationSchedule]:
        """Active schedules joined with farm/crop names and owner phone."""
        return self._backend.list_irrigation_schedules(active_only=True)

    def update_next_due(self, schedule_id: int, next_due: datetime) -> bool:
        return self._backend.update_next_irrigation(schedule_id, next_due)

    def set_active(self, schedule_id: int, active: bool) -> bool:
        return self._backend.set_irrigation_schedule_active(schedule_id, active)

    def delete(self, schedule_id: int) -> bool:
        return self._backend.delete_irrigation_schedule(schedule_id)
