"""Repository facades exposing typed accessors over low-level mixins."""

from infrastructure.database.repositories.farms import FarmRepository
from infrastructure.database.repositories.irrigation_logs import IrrigationLogRepository
from infrastructure.database.repositories.schedules import ScheduleRepository

__all__ = [
    "FarmRepository",
    "IrrigationLogRepository",
    "ScheduleRepository",
]
