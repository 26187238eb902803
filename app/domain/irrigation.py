"""
Irrigation Domain Objects
=========================
Dataclasses for recurring irrigation schedules and completed irrigation events.

A schedule's ``next_due`` is always a calendar date combined with the
schedule's ``time_of_day`` in the farm's local timezone. It only moves forward
when an irrigation is recorded as completed.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, Mapping, Optional

from app.utils.time import at_time_of_day, coerce_datetime, parse_time_of_day, to_utc_iso


def next_due_after(today: date, frequency: int, time_of_day: str, tz: tzinfo) -> datetime:
    """Next occurrence counted from ``today``, never from the previous due date."""
    return at_time_of_day(today + timedelta(days=int(frequency)), time_of_day, tz)


@dataclass
class IrrigationSchedule:
    """A recurring irrigation plan for one crop on one farm."""
    farm_id: int
    crop_id: int
    frequency: int  # days between irrigations
    duration: int  # minutes per irrigation
    time_of_day: str  # "HH:MM", local time
    next_due: Optional[datetime] = None
    is_active: bool = True
    schedule_id: Optional[int] = None
    created_at: Optional[datetime] = None

    # Display / contact fields filled by the joined read
    farm_name: Optional[str] = None
    crop_name: Optional[str] = None
    farmer_id: Optional[int] = None
    owner_phone: Optional[str] = None

    def validate(self) -> None:
        """Raise ValueError when the schedule cannot be persisted."""
        if int(self.frequency) <= 0:
            raise ValueError("frequency must be a positive number of days")
        if int(self.duration) <= 0:
            raise ValueError("duration must be a positive number of minutes")
        parse_time_of_day(self.time_of_day)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "IrrigationSchedule":
        keys = set(row.keys())

        def opt(name: str) -> Any:
            return row[name] if name in keys else None

        return cls(
            schedule_id=row["schedule_id"],
            farm_id=row["farm_id"],
            crop_id=row["crop_id"],
            frequency=int(row["frequency"]),
            duration=int(row["duration"]),
            time_of_day=row["best_time"],
            next_due=coerce_datetime(row["next_irrigation"]),
            is_active=bool(row["is_active"]),
            created_at=coerce_datetime(opt("created_at")),
            farm_name=opt("farm_name"),
            crop_name=opt("crop_name"),
            farmer_id=opt("farmer_id"),
            owner_phone=opt("owner_phone"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule_id": self.schedule_id,
            "farm_id": self.farm_id,
            "crop_id": self.crop_id,
            "frequency": self.frequency,
            "duration": self.duration,
            "time_of_day": self.time_of_day,
            "next_due": to_utc_iso(self.next_due) if self.next_due else None,
            "is_active": self.is_active,
            "created_at": to_utc_iso(self.created_at) if self.created_at else None,
            "farm_name": self.farm_name,
            "crop_name": self.crop_name,
        }


@dataclass(frozen=True)
class IrrigationLog:
    """Immutable record of a completed irrigation."""
    schedule_id: int
    farm_id: int
    duration: int
    water_used: float
    completed: bool
    irrigation_date: datetime
    notes: Optional[str] = None
    log_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "IrrigationLog":
        return cls(
            log_id=row["log_id"],
            schedule_id=row["schedule_id"],
            farm_id=row["farm_id"],
            duration=int(row["duration"]),
            water_used=float(row["water_used"]),
            completed=bool(row["completed"]),
            irrigation_date=coerce_datetime(row["irrigation_date"]),
            notes=row["notes"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_id": self.log_id,
            "schedule_id": self.schedule_id,
            "farm_id": self.farm_id,
            "duration": self.duration,
            "water_used": self.water_used,
            "completed": self.completed,
            "irrigation_date": to_utc_iso(self.irrigation_date),
            "notes": self.notes,
        }
