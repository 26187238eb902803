"""Farm registry database operations: profiles, farms and crops."""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = ("name", "email", "phone")
FARM_COLUMNS = ("name", "location", "size", "soil_type")
CROP_COLUMNS = ("name", "area", "planted_date", "expected_harvest", "water_requirement")


class FarmOperations:
    """Profile, farm and crop helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    # --- Profiles -------------------------------------------------------------
    def insert_profile(self, name: str, email: str | None = None, phone: str | None = None) -> int:
        return self._insert(
            "INSERT INTO Profiles (name, email, phone, created_at) VALUES (?, ?, ?, ?)",
            (name, email, phone, iso_now()),
            "profile",
        )

    def get_profile(self, profile_id: int) -> dict[str, Any] | None:
        return self._fetch_one("SELECT * FROM Profiles WHERE profile_id = ?", (profile_id,))

    def update_profile(self, profile_id: int, fields: dict[str, Any]) -> bool:
        return self._update("Profiles", "profile_id", profile_id, fields, PROFILE_COLUMNS)

    # --- Farms ----------------------------------------------------------------
    def insert_farm(
        self,
        farmer_id: int,
        name: str,
        location: str | None = None,
        size: float | None = None,
        soil_type: str | None = None,
    ) -> int:
        return self._insert(
            """
            INSERT INTO Farms (farmer_id, name, location, size, soil_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (farmer_id, name, location, size, soil_type, iso_now()),
            "farm",
        )

    def get_farm(self, farm_id: int) -> dict[str, Any] | None:
        return self._fetch_one("SELECT * FROM Farms WHERE farm_id = ?", (farm_id,))

    def list_farms(self, farmer_id: int | None = None) -> list[dict[str, Any]]:
        if farmer_id is None:
            return self._fetch_all("SELECT * FROM Farms ORDER BY farm_id", ())
        return self._fetch_all("SELECT * FROM Farms WHERE farmer_id = ? ORDER BY farm_id", (farmer_id,))

    def update_farm(self, farm_id: int, fields: dict[str, Any]) -> bool:
        return self._update("Farms", "farm_id", farm_id, fields, FARM_COLUMNS)

    def delete_farm(self, farm_id: int) -> bool:
        """Delete a farm; its crops, schedules and logs go with it."""
        return self._delete("Farms", "farm_id", farm_id)

    # --- Crops ----------------------------------------------------------------
    def insert_crop(
        self,
        farm_id: int,
        name: str,
        area: float | None = None,
        planted_date: str | None = None,
        expected_harvest: str | None = None,
        water_requirement: str | None = None,
    ) -> int:
        return self._insert(
            """
            INSERT INTO Crops (farm_id, name, area, planted_date, expected_harvest, water_requirement, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (farm_id, name, area, planted_date, expected_harvest, water_requirement, iso_now()),
            "crop",
        )

    def get_crop(self, crop_id: int) -> dict[str, Any] | None:
        return self._fetch_one("SELECT * FROM Crops WHERE crop_id = ?", (crop_id,))

    def list_crops(self, farm_id: int) -> list[dict[str, Any]]:
        return self._fetch_all("SELECT * FROM Crops WHERE farm_id = ? ORDER BY crop_id", (farm_id,))

    def update_crop(self, crop_id: int, fields: dict[str, Any]) -> bool:
        return self._update("Crops", "crop_id", crop_id, fields, CROP_COLUMNS)

    def delete_crop(self, crop_id: int) -> bool:
        """Delete a crop and its schedules. Logs keep their farm but lose the schedule link."""
        return self._delete("Crops", "crop_id", crop_id)

    # --- helpers --------------------------------------------------------------
    def _insert(self, sql: str, params: tuple, entity: str) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(sql, params)
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error inserting %s: %s", entity, e)
            raise RepositoryError(f"Failed to insert {entity}: {e}") from e
        return int(cursor.lastrowid)

    def _update(
        self, table: str, key: str, row_id: int, fields: dict[str, Any], allowed: tuple[str, ...]
    ) -> bool:
        unknown = set(fields) - set(allowed)
        if unknown:
            raise ValueError(f"Unknown {table} columns: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValueError("No columns to update")

        # table, key and column names come from this module only
        columns = [c for c in allowed if c in fields]
        assignments = ", ".join(f"{c} = ?" for c in columns)
        db = self.get_db()
        try:
            cursor = db.execute(
                f"UPDATE {table} SET {assignments} WHERE {key} = ?",
                (*[fields[c] for c in columns], row_id),
            )
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error updating %s %s: %s", table, row_id, e)
            raise RepositoryError(f"Failed to update {table} {row_id}: {e}") from e
        return cursor.rowcount > 0

    def _delete(self, table: str, key: str, row_id: int) -> bool:
        db = self.get_db()
        try:
            cursor = db.execute(f"DELETE FROM {table} WHERE {key} = ?", (row_id,))
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            logger.error("Error deleting %s %s: %s", table, row_id, e)
            raise RepositoryError(f"Failed to delete {table} {row_id}: {e}") from e
        if cursor.rowcount > 0:
            logger.info("Deleted %s %s", table, row_id)
            return True
        return False

    def _fetch_one(self, sql: str, params: tuple) -> dict[str, Any] | None:
        try:
            row = self.get_db().execute(sql, params).fetchone()
        except sqlite3.Error as e:
            logger.error("Query failed: %s", e)
            raise RepositoryError(str(e)) from e
        return dict(row) if row else None

    def _fetch_all(self, sql: str, params: tuple) -> list[dict[str, Any]]:
        try:
            rows = self.get_db().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Query failed: %s", e)
            raise RepositoryError(str(e)) from e
        return [dict(row) for row in rows]
