"""
Irrigation Schedule Database Operations
=======================================

Database operations for the IrrigationSchedules table. Reads join the farm,
crop and owner profile so callers get display names and the SMS phone number
in one query.

sqlite3 errors are logged and re-raised as RepositoryError: the reminder scan
must be able to tell "no schedules" apart from "could not read schedules".
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING

from app.domain.exceptions import RepositoryError
from app.domain.irrigation import IrrigationSchedule
from app.utils.time import iso_now, to_utc_iso

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)

_JOINED_SELECT = """
    SELECT s.*, f.name AS farm_name, c.name AS crop_name,
           f.farmer_id AS farmer_id, p.phone AS owner_phone
    FROM IrrigationSchedules s
    JOIN Farms f ON f.farm_id = s.farm_id
    LEFT JOIN Crops c ON c.crop_id = s.crop_id
    LEFT JOIN Profiles p ON p.profile_id = f.farmer_id
"""


class ScheduleOperations:
    """Irrigation schedule CRUD helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def create_irrigation_schedule(self, schedule: IrrigationSchedule) -> IrrigationSchedule:
        """
        Insert a schedule.

        Args:
            schedule: Schedule to create (schedule_id should be None, next_due set)

        Returns:
            The schedule with schedule_id and created_at assigned
        """
        if schedule.next_due is None:
            raise ValueError("next_due is required to create a schedule")
        db = self.get_db()
        now = iso_now()
        try:
            cursor = db.execute(
                """
                INSERT INTO IrrigationSchedules (
                    farm_id, crop_id, frequency, duration, best_time,
                    next_irrigation, is_active, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    schedule.farm_id,
                    schedule.crop_id,
                    int(schedule.frequency),
                    int(schedule.duration),
                    schedule.time_of_day,
                    to_utc_iso(schedule.next_due),
                    1 if schedule.is_active else 0,
                    now,
                    now,
                ),
            )
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error creating irrigation schedule for farm %s: %s", schedule.farm_id, e)
            raise RepositoryError(f"Failed to create schedule: {e}") from e

        schedule.schedule_id = cursor.lastrowid
        logger.info("Created irrigation schedule %s for farm %s", schedule.schedule_id, schedule.farm_id)
        return self.get_irrigation_schedule(schedule.schedule_id) or schedule

    def get_irrigation_schedule(self, schedule_id: int) -> IrrigationSchedule | None:
        db = self.get_db()
        try:
            row = db.execute(_JOINED_SELECT + " WHERE s.schedule_id = ?", (schedule_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error("Error fetching irrigation schedule %s: %s", schedule_id, e)
            raise RepositoryError(f"Failed to fetch schedule {schedule_id}: {e}") from e
        return IrrigationSchedule.from_row(row) if row else None

    def list_irrigation_schedules(
        self, farm_id: int | None = None, active_only: bool = False
    ) -> list[IrrigationSchedule]:
        """List schedules ordered by next due time."""
        clauses: list[str] = []
        params: list[object] = []
        if farm_id is not None:
            clauses.append("s.farm_id = ?")
            params.append(farm_id)
        if active_only:
            clauses.append("s.is_active = 1")
        query = _JOINED_SELECT
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY s.next_irrigation ASC, s.schedule_id ASC"

        db = self.get_db()
        try:
            rows = db.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing irrigation schedules: %s", e)
            raise RepositoryError(f"Failed to list schedules: {e}") from e
        return [IrrigationSchedule.from_row(row) for row in rows]

    def update_next_irrigation(self, schedule_id: int, next_due: datetime) -> bool:
        """
        Move a schedule's next due time.

        Returns:
            True if updated, False if the schedule does not exist
        """
        return self._update_schedule_column(schedule_id, "next_irrigation", to_utc_iso(next_due))

    def set_irrigation_schedule_active(self, schedule_id: int, active: bool) -> bool:
        return self._update_schedule_column(schedule_id, "is_active", 1 if active else 0)

    def delete_irrigation_schedule(self, schedule_id: int) -> bool:
        db = self.get_db()
        try:
            cursor = db.execute("DELETE FROM IrrigationSchedules WHERE schedule_id = ?", (schedule_id,))
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error deleting irrigation schedule %s: %s", schedule_id, e)
            raise RepositoryError(f"Failed to delete schedule {schedule_id}: {e}") from e
        if cursor.rowcount > 0:
            logger.info("Deleted irrigation schedule %s", schedule_id)
            return True
        return False

    def _update_schedule_column(self, schedule_id: int, column: str, value: object) -> bool:
        # column names come from this module only
        db = self.get_db()
        try:
            cursor = db.execute(
                f"UPDATE IrrigationSchedules SET {column} = ?, updated_at = ? WHERE schedule_id = ?",
                (value, iso_now(), schedule_id),
            )
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error updating %s for schedule %s: %s", column, schedule_id, e)
            raise RepositoryError(f"Failed to update schedule {schedule_id}: {e}") from e
        return cursor.rowcount > 0
