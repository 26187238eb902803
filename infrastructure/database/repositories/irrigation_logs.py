"""Repository for completed irrigation events."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from app.domain.irrigation import IrrigationLog
from app.utils.time import Clock, utc_now
from infrastructure.database.ops.irrigation_logs import IrrigationLogOperations


class IrrigationLogRepository:
    """Append-only access to IrrigationLogs."""

    def __init__(self, backend: IrrigationLogOperations, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._clock = clock

    def add(self, log: IrrigationLog) -> IrrigationLog:
        return self._backend.insert_irrigation_log(log)

    def list_for_schedule(self, schedule_id: int, limit: int = 100) -> list[IrrigationLog]:
        return self._backend.list_irrigation_logs(schedule_id=schedule_id, limit=limit)

    def list_for_farm(self, farm_id: int, limit: int = 100) -> list[IrrigationLog]:
        return self._backend.list_irrigation_logs(farm_id=farm_id, limit=limit)

    def list_recent(self, limit: int = 100) -> list[IrrigationLog]:
        return self._backend.list_irrigation_logs(limit=limit)

    def water_usage_summary(self, farm_id: int, days: int = 30, now: datetime | None = None) -> dict[str, Any]:
        """Total water and minutes irrigated on a farm over the last ``days``."""
        since = (now or self._clock()) - timedelta(days=days)
        summary = self._backend.get_water_usage(farm_id, since)
        summary["farm_id"] = farm_id
        summary["days"] = days
        return summary
