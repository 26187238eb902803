"""Repository for farmer profiles, farms and crops."""

from __future__ import annotations

from typing import Any

from infrastructure.database.ops.farms import FarmOperations


class FarmRepository:
    """Typed access to the farm registry tables."""

    def __init__(self, backend: FarmOperations) -> None:
        self._backend = backend

    # --- Profiles ---

    def create_profile(self, name: str, email: str | None = None, phone: str | None = None) -> int:
        return self._backend.insert_profile(name, email=email, phone=phone)

    def get_profile(self, profile_id: int) -> dict[str, Any] | None:
        return self._backend.get_profile(profile_id)

    def update_profile(self, profile_id: int, **fields: Any) -> bool:
        return self._backend.update_profile(profile_id, fields)

    # --- Farms ---

    def create_farm(
        self,
        farmer_id: int,
        name: str,
        location: str | None = None,
        size: float | None = None,
        soil_type: str | None = None,
    ) -> int:
        return self._backend.insert_farm(farmer_id, name, location=location, size=size, soil_type=soil_type)

    def get_farm(self, farm_id: int) -> dict[str, Any] | None:
        return self._backend.get_farm(farm_id)

    def list_farms(self, farmer_id: int | None = None) -> list[dict[str, Any]]:
        return self._backend.list_farms(farmer_id)

    def update_farm(self, farm_id: int, **fields: Any) -> bool:
        return self._backend.update_farm(farm_id, fields)

    def delete_farm(self, farm_id: int) -> bool:
        return self._backend.delete_farm(farm_id)

    # --- Crops ---

    def create_crop(
        self,
        farm_id: int,
        name: str,
        area: float | None = None,
        planted_date: str | None = None,
        expected_harvest: str | None = None,
        water_requirement: str | None = None,
    ) -> int:
        return self._backend.insert_crop(
            farm_id,
            name,
            area=area,
            planted_date=planted_date,
            expected_harvest=expected_harvest,
            water_requirement=water_requirement,
        )

    def get_crop(self, crop_id: int) -> dict[str, Any] | None:
        return self._backend.get_crop(crop_id)

    def list_crops(self, farm_id: int) -> list[dict[str, Any]]:
        return self._backend.list_crops(farm_id)

    def update_crop(self, crop_id: int, **fields: Any) -> bool:
        return self._backend.update_crop(crop_id, fields)

    def delete_crop(self, crop_id: int) -> bool:
        return self._backend.delete_crop(crop_id)
