"""
Shared test fixtures for the AquaWise backend test suite.

Provides:
- In-memory SQLite database with all tables created
- Repository instances wired to the test database
- In-memory key-value store and a controllable clock
- Fake SMS gateway and fake Socket.IO server
- Helper utilities for seeding farms, crops and schedules
- Flask app / test client built around an injected container

Usage:
    def test_example(seed, schedule_repo, clock):
        schedule = seed.create_schedule(next_due=clock.now + timedelta(minutes=40))
        assert schedule_repo.get_by_id(schedule.schedule_id) is not None
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from app.domain.irrigation import IrrigationSchedule
from app.services.application.notification_store import NotificationStore
from app.services.utilities.sms_service import SmsResult
from app.utils.persistent_store import MemoryStore
from infrastructure.database.repositories.farms import FarmRepository
from infrastructure.database.repositories.irrigation_logs import IrrigationLogRepository
from infrastructure.database.repositories.schedules import ScheduleRepository

# ---------------------------------------------------------------------------
# Database & Repositories
# ---------------------------------------------------------------------------
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

# 14:00 UTC on a Tuesday
FIXED_NOW = datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeSmsService:
    """Records every send; returns a canned result or raises."""

    def __init__(self, result: SmsResult | None = None, error: Exception | None = None) -> None:
        self.result = result or SmsResult(success=True, sid="SM123")
        self.error = error
        self.sent: list[tuple[str, str]] = []

    def send(self, phone: str, message: str) -> SmsResult:
        self.sent.append((phone, message))
        if self.error is not None:
            raise self.error
        return self.result


class FakeSocketIO:
    def __init__(self) -> None:
        self.emits: list[dict] = []

    def emit(self, event, payload, to=None, namespace="/"):
        self.emits.append({"event": event, "payload": payload, "room": to, "namespace": namespace})


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database, no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close_db()


# ========================== Repository Fixtures ============================


@pytest.fixture()
def farm_repo(db_handler):
    return FarmRepository(db_handler)


@pytest.fixture()
def schedule_repo(db_handler):
    return ScheduleRepository(db_handler)


@pytest.fixture()
def log_repo(db_handler):
    return IrrigationLogRepository(db_handler)


# ========================== Service Fixtures ===============================


@pytest.fixture()
def clock():
    return FixedClock()


@pytest.fixture()
def kv_store():
    return MemoryStore()


@pytest.fixture()
def notification_store(kv_store, clock):
    return NotificationStore(kv_store, clock=clock)


@pytest.fixture()
def fake_sms():
    return FakeSmsService()


@pytest.fixture()
def fake_socketio():
    return FakeSocketIO()


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            farm_id, crop_id = seed.create_farm_with_crop()
            schedule = seed.create_schedule(farm_id=farm_id, crop_id=crop_id)
    """

    def __init__(self, farm_repo: FarmRepository, schedule_repo: ScheduleRepository, clock: FixedClock):
        self._farms = farm_repo
        self._schedules = schedule_repo
        self._clock = clock

    def create_farm_with_crop(
        self,
        *,
        farmer_name: str = "Jane Wanjiru",
        phone: str | None = "+254700000001",
        farm_name: str = "Green Valley Farm",
        crop_name: str = "Maize",
        size: float | None = 4.0,
    ) -> tuple[int, int]:
        farmer_id = self._farms.create_profile(farmer_name, phone=phone)
        farm_id = self._farms.create_farm(farmer_id, farm_name, location="Nakuru", size=size, soil_type="loamy")
        crop_id = self._farms.create_crop(farm_id, crop_name, area=1.5, water_requirement="medium")
        return farm_id, crop_id

    def create_schedule(
        self,
        *,
        farm_id: int | None = None,
        crop_id: int | None = None,
        next_due: datetime | None = None,
        frequency: int = 2,
        duration: int = 30,
        time_of_day: str = "06:00",
        is_active: bool = True,
        phone: str | None = "+254700000001",
    ) -> IrrigationSchedule:
        if farm_id is None or crop_id is None:
            farm_id, crop_id = self.create_farm_with_crop(phone=phone)
        return self._schedules.create(
            IrrigationSchedule(
                farm_id=farm_id,
                crop_id=crop_id,
                frequency=frequency,
                duration=duration,
                time_of_day=time_of_day,
                next_due=next_due or self._clock.now + timedelta(days=1),
                is_active=is_active,
            )
        )


@pytest.fixture()
def seed(farm_repo, schedule_repo, clock):
    """SeedData helper for quickly populating the test database."""
    return SeedData(farm_repo, schedule_repo, clock)


# ========================== Flask Fixtures =================================


@pytest.fixture()
def app_config(tmp_path):
    from app.config import AppConfig

    return AppConfig(
        environment="testing",
        database_path=":memory:",
        storage_dir=str(tmp_path / "var"),
        enable_scheduler=False,
        sms_enabled=False,
        log_file="",
    )


@pytest.fixture()
def container(app_config, kv_store, clock):
    from app.services.container import ServiceContainer

    built = ServiceContainer.build(app_config, kv_store=kv_store, clock=clock)
    yield built
    built.shutdown()


@pytest.fixture()
def app(app_config, container):
    from app import create_app

    flask_app = create_app(app_config, container=container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()
