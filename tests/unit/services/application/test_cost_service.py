import pytest

from app.domain.exceptions import NotFoundError, ValidationError
from app.services.application.cost_service import CostService


@pytest.fixture()
def service(kv_store, clock):
    return CostService(kv_store, clock=clock)


@pytest.fixture()
def seeded(service):
    service.add_cost_item(farm_id=1, category="water", description="Borehole", amount=1000, date="2026-03-01")
    service.add_cost_item(farm_id=1, category="electricity", description="Pump power", amount=500, date="2026-03-05")
    service.add_cost_item(farm_id=1, category="equipment", description="Drip lines", amount=3000, date="2025-12-20")
    service.add_cost_item(farm_id=2, category="labor", description="Other farm", amount=99, date="2026-03-05")
    return service


def test_add_cost_item(service):
    item = service.add_cost_item(
        farm_id=1,
        category="fuel",
        description="Diesel",
        amount=250.5,
        date="2026-03-09",
        quantity=5,
        unit_cost=50.1,
    )

    assert item["id"]
    assert item["currency"] == "KES"
    assert item["amount"] == 250.5
    assert service.get_cost_items(1) == [item]


@pytest.mark.parametrize(
    "overrides",
    [{"category": "snacks"}, {"date": "yesterday"}, {"amount": -1}],
)
def test_add_cost_item_validation(service, overrides):
    fields = {"farm_id": 1, "category": "water", "description": "x", "amount": 10, "date": "2026-03-01"}
    fields.update(overrides)

    with pytest.raises(ValidationError):
        service.add_cost_item(**fields)


def test_get_cost_items_window(seeded):
    assert len(seeded.get_cost_items(1)) == 3
    assert {c["category"] for c in seeded.get_cost_items(1, days=30)} == {"water", "electricity"}


def test_summary_totals_breakdown_and_trend(seeded):
    summary = seeded.calculate_cost_summary(1, days=30)

    assert summary["total_cost"] == 1500
    assert summary["category_breakdown"] == {"water": 1000, "electricity": 500}
    assert summary["monthly_trend"] == [
        {"month": "2025-12", "cost": 3000},
        {"month": "2026-03", "cost": 1500},
    ]
    # No farm registry: default of two acres
    assert summary["cost_per_acre"] == 750


def test_cost_per_acre_uses_farm_size(kv_store, clock, seed, farm_repo):
    farm_id, _crop_id = seed.create_farm_with_crop(size=4.0)
    service = CostService(kv_store, farm_repo, clock=clock)
    service.add_cost_item(farm_id=farm_id, category="water", description="Tank", amount=1000, date="2026-03-02")

    assert service.calculate_cost_summary(farm_id)["cost_per_acre"] == 250


def test_summary_for_farm_without_costs(service):
    summary = service.calculate_cost_summary(5)

    assert summary["total_cost"] == 0
    assert summary["category_breakdown"] == {}
    assert summary["monthly_trend"] == []
    assert summary["cost_per_acre"] == 0


def test_predict_monthly_costs(seeded):
    assert seeded.predict_monthly_costs(1) == 1500


def test_roi(seeded):
    roi = seeded.calculate_roi(1, revenue=9000)

    assert roi == {"total_costs": 4500, "revenue": 9000, "profit": 4500, "roi": 100}
    assert seeded.calculate_roi(7, revenue=100)["roi"] == 0


def test_delete_cost_item(seeded):
    item_id = seeded.get_cost_items(1, days=30)[0]["id"]

    seeded.delete_cost_item(1, item_id)

    assert item_id not in {c["id"] for c in seeded.get_cost_items(1)}
    with pytest.raises(NotFoundError):
        seeded.delete_cost_item(1, item_id)


def test_budget_plans(service):
    plan = service.create_budget_plan(
        farm_id=1,
        name="Long rains",
        total_budget=20000,
        period="quarterly",
        start_date="2026-03-01",
        end_date="2026-05-31",
        categories={"water": 8000},
    )

    assert service.get_budget_plans(1) == [plan]
    assert service.get_active_budget_plan(1)["id"] == plan["id"]

    updated = service.update_budget_plan(1, plan["id"], {"is_active": False, "id": "hijack", "total_budget": 25000})

    assert updated["id"] == plan["id"]
    assert updated["total_budget"] == 25000
    assert service.get_active_budget_plan(1) is None


def test_budget_plan_validation(service):
    with pytest.raises(ValidationError):
        service.create_budget_plan(
            farm_id=1, name="x", total_budget=1, period="weekly", start_date="2026-03-01", end_date="2026-03-07"
        )
    with pytest.raises(NotFoundError):
        service.update_budget_plan(1, "missing", {"name": "y"})
