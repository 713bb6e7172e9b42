from __future__ import annotations

import pytest

from bizplan import access_log, persistence, runtime_logging
from bizplan.schema import (
    BusinessPlan,
    BusinessTarget,
    Commission,
    CommissionedEmployee,
    FixedCost,
    Product,
    ROIConfig,
    SalariedEmployee,
    VariableCost,
)


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    """Point every on-disk store at a per-test directory."""
    root = tmp_path / "store"
    monkeypatch.setattr(persistence, "STORE_DIR", root)
    monkeypatch.setattr(persistence, "PLAN_STORE_FILE", root / "plans.json")
    monkeypatch.setattr(persistence, "SIMULATION_STORE_FILE", root / "simulations.json")
    monkeypatch.setattr(runtime_logging, "LOG_DIR", root)
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", root / "runtime_events.jsonl")
    monkeypatch.setattr(access_log, "ACCESS_LOG_DIR", root / "logs")
    monkeypatch.delenv("BIZPLAN_DATABASE_URL", raising=False)
    return root


@pytest.fixture
def three_month_plan() -> BusinessPlan:
    """One product, one fixed cost, flat growth over three months."""
    return BusinessPlan(
        id="plan1",
        name="Coffee Cart",
        products=[Product(id="p1", name="Latte Pack", price=100_000.0, estimated_sales_per_month=10.0)],
        fixed_costs=[FixedCost(id="f1", name="Rent", amount=500_000.0, category="rent")],
        business_target=BusinessTarget(
            projection_period=3,
            revenue_growth_percent=0.0,
            cost_growth_percent=0.0,
        ),
    )


@pytest.fixture
def full_plan() -> BusinessPlan:
    return BusinessPlan(
        id="plan2",
        name="Software Studio",
        products=[
            Product(
                id="p1",
                name="SaaS Basic",
                price=250_000.0,
                type="subscription",
                estimated_sales_per_month=40.0,
                sales_commission=Commission(type="percentage", value=5.0),
            ),
            Product(id="p2", name="Setup", price=1_500_000.0, type="service", estimated_sales_per_month=4.0),
        ],
        employees=[
            SalariedEmployee(id="e1", name="Ana", role="Developer", salary=8_000_000.0),
            CommissionedEmployee(id="e2", name="Budi", role="Sales", commission=Commission(type="percentage", value=10.0)),
            CommissionedEmployee(id="e3", name="Citra", role="Marketing", commission=Commission(type="fixed", value=500_000.0)),
        ],
        fixed_costs=[
            FixedCost(id="f1", name="Office", amount=3_000_000.0, category="rent"),
            FixedCost(id="f2", name="Cloud", amount=1_000_000.0, category="software"),
        ],
        variable_costs=[
            VariableCost(id="v1", name="Gateway", type="percentage", value=2.0, category="payment-gateway"),
            VariableCost(id="v2", name="Support", type="fixed", value=400_000.0, category="support"),
            VariableCost(id="v3", name="Packaging", type="per-unit", value=5_000.0, category="production"),
        ],
        business_target=BusinessTarget(projection_period=12, revenue_growth_percent=10.0, cost_growth_percent=5.0),
    )


@pytest.fixture
def roi_config() -> ROIConfig:
    return ROIConfig(
        initial_investment=20_000_000_000.0,
        monthly_revenue=500_000_000.0,
        monthly_operational_costs=300_000_000.0,
        tax_rate=11.0,
        ownership_percentage=100.0,
    )
