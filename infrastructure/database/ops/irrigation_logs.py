"""
Irrigation Log Database Operations
==================================

Append-only history of completed irrigations.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.domain.irrigation import IrrigationLog
from app.utils.time import to_utc_iso

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class IrrigationLogOperations:
    """Insert and query helpers for IrrigationLogs."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def insert_irrigation_log(self, log: IrrigationLog) -> IrrigationLog:
        db = self.get_db()
        try:
            cursor = db.execute(
                """
                INSERT INTO IrrigationLogs (
                    schedule_id, farm_id, irrigation_date, duration, water_used, completed, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    log.schedule_id,
                    log.farm_id,
                    to_utc_iso(log.irrigation_date),
                    int(log.duration),
                    float(log.water_used),
                    1 if log.completed else 0,
                    log.notes,
                ),
            )
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error inserting irrigation log for schedule %s: %s", log.schedule_id, e)
            raise RepositoryError(f"Failed to insert irrigation log: {e}") from e

        return IrrigationLog(
            log_id=cursor.lastrowid,
            schedule_id=log.schedule_id,
            farm_id=log.farm_id,
            duration=log.duration,
            water_used=log.water_used,
            completed=log.completed,
            irrigation_date=log.irrigation_date,
            notes=log.notes,
        )

    def list_irrigation_logs(
        self,
        schedule_id: int | None = None,
        farm_id: int | None = None,
        limit: int = 100,
    ) -> list[IrrigationLog]:
        """Logs newest first, optionally filtered by schedule and/or farm."""
        clauses: list[str] = []
        params: list[Any] = []
        if schedule_id is not None:
            clauses.append("schedule_id = ?")
            params.append(schedule_id)
        if farm_id is not None:
            clauses.append("farm_id = ?")
            params.append(farm_id)
        query = "SELECT * FROM IrrigationLogs"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY irrigation_date DESC, log_id DESC LIMIT ?"
        params.append(int(limit))

        db = self.get_db()
        try:
            rows = db.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing irrigation logs: %s", e)
            raise RepositoryError(f"Failed to list irrigation logs: {e}") from e
        return [IrrigationLog.from_row(row) for row in rows]

    def get_water_usage(self, farm_id: int, since: datetime) -> dict[str, Any]:
        """Totals of completed irrigations for a farm since ``since``."""
        db = self.get_db()
        try:
            row = db.execute(
                """
                SELECT COUNT(*) AS events,
                       COALESCE(SUM(water_used), 0) AS total_water,
                       COALESCE(SUM(duration), 0) AS total_minutes
                FROM IrrigationLogs
                WHERE farm_id = ? AND completed = 1 AND irrigation_date >= ?
                """,
                (farm_id, to_utc_iso(since)),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error summarising water usage for farm %s: %s", farm_id, e)
            raise RepositoryError(f"Failed to summarise water usage: {e}") from e
        return {
            "events": int(row["events"]),
            "total_water": float(row["total_water"]),
            "total_minutes": int(row["total_minutes"]),
        }
