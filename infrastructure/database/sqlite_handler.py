import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from infrastructure.database.ops.farms import FarmOperations
from infrastructure.database.ops.irrigation_logs import IrrigationLogOperations
from infrastructure.database.ops.schedules import ScheduleOperations

logger = logging.getLogger(__name__)


class SQLiteDatabaseHandler(
    FarmOperations,
    ScheduleOperations,
    IrrigationLogOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals.

    Each thread gets its own connection. With ``":memory:"`` that means each
    thread sees its own empty database, so in-memory handlers are only
    suitable for single-threaded use such as tests.
    """

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()

        # Ensure the directory for the database file exists
        if database_path != ":memory:":
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return "malformed" in message or "not a database" in message

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """WAL for concurrent readers (scheduler thread + web requests), FKs on."""
        connection.execute("PRAGMA foreign_keys=ON")
        if self._database_path != ":memory:":
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        else:
            conn.commit()

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        try:
            with self.connection() as db:
                # Farmer profiles (phone number receives SMS reminders)
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Profiles (
                        profile_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        email TEXT,
                        phone TEXT,
                        created_at TEXT NOT NULL
                    )
                    """
                )

                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Farms (
                        farm_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        farmer_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        location TEXT,
                        size REAL,
                        soil_type TEXT CHECK(soil_type IN ('clay', 'sandy', 'loamy', 'silty')),
                        created_at TEXT NOT NULL,
                        FOREIGN KEY (farmer_id) REFERENCES Profiles(profile_id) ON DELETE CASCADE
                    )
                    """
                )

                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Crops (
                        crop_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        farm_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        area REAL,
                        planted_date TEXT,
                        expected_harvest TEXT,
                        water_requirement TEXT CHECK(water_requirement IN ('low', 'medium', 'high')),
                        created_at TEXT NOT NULL,
                        FOREIGN KEY (farm_id) REFERENCES Farms(farm_id) ON DELETE CASCADE
                    )
                    """
                )

                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS IrrigationSchedules (
                        schedule_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        farm_id INTEGER NOT NULL,
                        crop_id INTEGER NOT NULL,
                        frequency INTEGER NOT NULL CHECK(frequency > 0),
                        duration INTEGER NOT NULL CHECK(duration > 0),
                        best_time TEXT NOT NULL,
                        next_irrigation TEXT NOT NULL,
                        is_active INTEGER NOT NULL DEFAULT 1,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        FOREIGN KEY (farm_id) REFERENCES Farms(farm_id) ON DELETE CASCADE,
                        FOREIGN KEY (crop_id) REFERENCES Crops(crop_id) ON DELETE CASCADE
                    )
                    """
                )

                # Logs outlive their schedule
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS IrrigationLogs (
                        log_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        schedule_id INTEGER,
                        farm_id INTEGER NOT NULL,
                        irrigation_date TEXT NOT NULL,
                        duration INTEGER NOT NULL,
                        water_used REAL NOT NULL,
                        completed INTEGER NOT NULL DEFAULT 1,
                        notes TEXT,
                        FOREIGN KEY (schedule_id) REFERENCES IrrigationSchedules(schedule_id) ON DELETE SET NULL,
                        FOREIGN KEY (farm_id) REFERENCES Farms(farm_id) ON DELETE CASCADE
                    )
                    """
                )

                db.execute("CREATE INDEX IF NOT EXISTS idx_farms_farmer ON Farms(farmer_id)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_crops_farm ON Crops(farm_id)")
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_irrigation_schedules_active "
                    "ON IrrigationSchedules(is_active, next_irrigation)"
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_irrigation_logs_schedule "
                    "ON IrrigationLogs(schedule_id, irrigation_date DESC)"
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_irrigation_logs_farm "
                    "ON IrrigationLogs(farm_id, irrigation_date DESC)"
                )
        except sqlite3.Error as exc:
            logger.error("Error creating tables: %s", exc)
            raise
