import pytest


def test_update_profile_farm_and_crop(seed, farm_repo):
    farm_id, crop_id = seed.create_farm_with_crop()
    farmer_id = farm_repo.get_farm(farm_id)["farmer_id"]

    assert farm_repo.update_profile(farmer_id, phone="+254722222222") is True
    assert farm_repo.update_farm(farm_id, name="Riverside", size=6.5) is True
    assert farm_repo.update_crop(crop_id, water_requirement="high", planted_date="2026-02-01") is True

    assert farm_repo.get_profile(farmer_id)["phone"] == "+254722222222"
    farm = farm_repo.get_farm(farm_id)
    assert (farm["name"], farm["size"], farm["location"]) == ("Riverside", 6.5, "Nakuru")
    crop = farm_repo.get_crop(crop_id)
    assert (crop["water_requirement"], crop["planted_date"], crop["name"]) == ("high", "2026-02-01", "Maize")


def test_update_unknown_rows_returns_false(farm_repo):
    assert farm_repo.update_profile(404, name="Nobody") is False
    assert farm_repo.update_farm(404, name="Nowhere") is False
    assert farm_repo.update_crop(404, name="Nothing") is False


def test_update_rejects_unknown_or_missing_columns(seed, farm_repo):
    farm_id, _ = seed.create_farm_with_crop()

    with pytest.raises(ValueError):
        farm_repo.update_farm(farm_id, farmer_id=2)
    with pytest.raises(ValueError):
        farm_repo.update_farm(farm_id)


def test_delete_farm_cascades_to_crops_and_schedules(seed, farm_repo, schedule_repo):
    schedule = seed.create_schedule()
    other = seed.create_schedule()

    assert farm_repo.delete_farm(schedule.farm_id) is True

    assert farm_repo.get_farm(schedule.farm_id) is None
    assert farm_repo.get_crop(schedule.crop_id) is None
    assert schedule_repo.get_by_id(schedule.schedule_id) is None
    assert schedule_repo.get_by_id(other.schedule_id) is not None
    assert farm_repo.delete_farm(schedule.farm_id) is False


def test_delete_crop_keeps_farm(seed, farm_repo, schedule_repo):
    schedule = seed.create_schedule()

    assert farm_repo.delete_crop(schedule.crop_id) is True

    assert farm_repo.get_farm(schedule.farm_id) is not None
    assert farm_repo.list_crops(schedule.farm_id) == []
    assert schedule_repo.get_by_id(schedule.schedule_id) is None
    assert farm_repo.delete_crop(schedule.crop_id) is False
