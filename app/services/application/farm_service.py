"""
Farm registry management.

Farmer profiles, farms and crops. Deleting a farm or crop cascades to its
irrigation schedules in the database, so their open reminders are retired
here the same way a deleted schedule's are.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from app.services.application.notification_store import NotificationStore
    from infrastructure.database.repositories.farms import FarmRepository
    from infrastructure.database.repositories.schedules import ScheduleRepository

logger = logging.getLogger(__name__)

# Columns that cannot be cleared with an explicit null
_REQUIRED_FIELDS = ("name",)


class FarmService:
    """Profiles, farms and crops on top of the farm repository."""

    def __init__(
        self,
        *,
        farm_repo: "FarmRepository",
        schedule_repo: "ScheduleRepository",
        notification_store: "NotificationStore",
    ) -> None:
        self._farms = farm_repo
        self._schedules = schedule_repo
        self._notifications = notification_store

    # --- Profiles ---

    def create_profile(self, name: str, email: Optional[str] = None, phone: Optional[str] = None) -> Dict[str, Any]:
        profile_id = self._farms.create_profile(name, email=email, phone=phone)
        logger.info("Profile %s created", profile_id)
        return self.get_profile(profile_id)

    def get_profile(self, profile_id: int) -> Dict[str, Any]:
        profile = self._farms.get_profile(profile_id)
        if profile is None:
            raise NotFoundError(f"Profile {profile_id} not found")
        return profile

    def update_profile(self, profile_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._check_fields(fields)
        if not self._farms.update_profile(profile_id, **fields):
            raise NotFoundError(f"Profile {profile_id} not found")
        return self.get_profile(profile_id)

    # --- Farms ---

    def create_farm(
        self,
        farmer_id: int,
        name: str,
        location: Optional[str] = None,
        size: Optional[float] = None,
        soil_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a farm for an existing profile.

        Raises:
            NotFoundError: the farmer profile does not exist
        """
        if self._farms.get_profile(farmer_id) is None:
            raise NotFoundError(f"Farmer profile {farmer_id} not found")
        farm_id = self._farms.create_farm(farmer_id, name, location=location, size=size, soil_type=soil_type)
        logger.info("Farm %s created for profile %s", farm_id, farmer_id)
        return self.get_farm(farm_id)

    def get_farm(self, farm_id: int) -> Dict[str, Any]:
        farm = self._farms.get_farm(farm_id)
        if farm is None:
            raise NotFoundError(f"Farm {farm_id} not found")
        return farm

    def list_farms(self, farmer_id: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._farms.list_farms(farmer_id)

    def update_farm(self, farm_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._check_fields(fields)
        if not self._farms.update_farm(farm_id, **fields):
            raise NotFoundError(f"Farm {farm_id} not found")
        return self.get_farm(farm_id)

    def delete_farm(self, farm_id: int) -> None:
        """Delete a farm with its crops, schedules and logs; its reminders are marked read."""
        schedule_ids = [s.schedule_id for s in self._schedules.list(farm_id=farm_id)]
        if not self._farms.delete_farm(farm_id):
            raise NotFoundError(f"Farm {farm_id} not found")

        for schedule_id in schedule_ids:
            self._notifications.mark_read_for_schedule(schedule_id)
        self._notifications.mark_read_for_farm(farm_id)
        logger.info("Farm %s deleted with %d schedules", farm_id, len(schedule_ids))

    # --- Crops ---

    def create_crop(self, farm_id: int, name: str, **fields: Any) -> Dict[str, Any]:
        self.get_farm(farm_id)
        crop_id = self._farms.create_crop(farm_id, name, **fields)
        logger.info("Crop %s added to farm %s", crop_id, farm_id)
        return self.get_crop(crop_id)

    def get_crop(self, crop_id: int) -> Dict[str, Any]:
        crop = self._farms.get_crop(crop_id)
        if crop is None:
            raise NotFoundError(f"Crop {crop_id} not found")
        return crop

    def list_crops(self, farm_id: int) -> List[Dict[str, Any]]:
        self.get_farm(farm_id)
        return self._farms.list_crops(farm_id)

    def update_crop(self, crop_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._check_fields(fields)
        if not self._farms.update_crop(crop_id, **fields):
            raise NotFoundError(f"Crop {crop_id} not found")
        return self.get_crop(crop_id)

    def delete_crop(self, crop_id: int) -> None:
        """Delete a crop with its schedules; their reminders are marked read."""
        crop = self.get_crop(crop_id)
        schedule_ids = [
            s.schedule_id for s in self._schedules.list(farm_id=crop["farm_id"]) if s.crop_id == crop_id
        ]
        if not self._farms.delete_crop(crop_id):
            raise NotFoundError(f"Crop {crop_id} not found")

        for schedule_id in schedule_ids:
            self._notifications.mark_read_for_schedule(schedule_id)
        logger.info("Crop %s deleted with %d schedules", crop_id, len(schedule_ids))

    @staticmethod
    def _check_fields(fields: Dict[str, Any]) -> None:
        if not fields:
            raise ValidationError("No fields to update")
        for name in _REQUIRED_FIELDS:
            if name in fields and fields[name] is None:
                raise ValidationError(f"'{name}' cannot be empty")
