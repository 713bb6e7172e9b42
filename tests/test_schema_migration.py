from __future__ import annotations

import pytest

from bizplan.defaults import MAX_PROJECTION_MONTHS
from bizplan.persistence import parse_import_json
from bizplan.schema import (
    PLAN_TYPE,
    SCHEMA_VERSION,
    SIMULATION_TYPE,
    CommissionedEmployee,
    ROIConfig,
    SalariedEmployee,
    build_plan_bundle,
    build_simulation_bundle,
    generate_id,
    migrate_import_payload,
    plan_from_dict,
    roi_config_from_dict,
    validate_plan,
    validate_roi_config,
)


def test_generate_id_shape():
    ids = {generate_id() for _ in range(50)}
    assert len(ids) == 50
    for value in ids:
        assert len(value) == 9
        assert value.isalnum() and value == value.lower()


def test_plan_bundle_round_trip(full_plan):
    kind, plan, warnings, unknown = migrate_import_payload(build_plan_bundle(full_plan))
    assert kind == PLAN_TYPE
    assert warnings == []
    assert unknown == []
    assert plan.to_dict() == full_plan.to_dict()
    assert isinstance(plan.employees[0], SalariedEmployee)
    assert isinstance(plan.employees[1], CommissionedEmployee)


def test_camel_case_legacy_plan_is_accepted():
    payload = {
        "id": "abc",
        "name": "Legacy",
        "products": [
            {"id": "p1", "name": "Kopi", "price": 20000, "type": "one-time", "estimatedSalesPerMonth": 300,
             "targetGrowthPercent": 5, "salesCommission": {"type": "percentage", "value": 2}},
        ],
        "employees": [
            {"id": "e1", "name": "Rina", "role": "Sales", "paymentMode": "commission",
             "commission": {"productId": "p1", "type": "percentage", "value": 3}},
        ],
        "fixedCosts": [{"id": "f1", "name": "Sewa", "amount": 2000000, "category": "rent"}],
        "variableCosts": [],
        "businessTarget": {"targetRevenue": 5000000, "projectionPeriod": 6, "revenueGrowthPercent": 4,
                           "costGrowthPercent": 2, "salesClosingRate": 25, "costInflationRate": 3},
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-02T00:00:00Z",
    }
    kind, plan, warnings, unknown = migrate_import_payload(payload)
    assert kind == PLAN_TYPE
    assert any("legacy" in w for w in warnings)
    assert unknown == []
    assert plan.products[0].estimated_sales_per_month == 300
    assert plan.employees[0].commission.product_id == "p1"
    assert plan.business_target.projection_period == 6
    assert plan.updated_at == "2024-01-02T00:00:00Z"


def test_invalid_values_are_repaired_with_warnings():
    plan, warnings = plan_from_dict(
        {
            "name": "Broken",
            "products": [{"name": "X", "price": "abc", "type": "rental"}, "not-an-object"],
            "business_target": {"projection_period": 999, "revenue_growth_percent": -3},
        }
    )
    assert plan.products[0].price == 0.0
    assert plan.products[0].type == "one-time"
    assert len(plan.products) == 1
    assert plan.business_target.projection_period == MAX_PROJECTION_MONTHS
    assert plan.business_target.revenue_growth_percent == 0.0
    assert len(warnings) >= 4


def test_simulation_bundle_and_version_warning():
    bundle = build_simulation_bundle("Cafe", ROIConfig(tax_rate=10.0))
    bundle["schema_version"] = 0
    bundle["config"]["legacy_flag"] = True
    kind, config, warnings, unknown = migrate_import_payload(bundle)
    assert kind == SIMULATION_TYPE
    assert config.tax_rate == 10.0
    assert any(f"schema_version={SCHEMA_VERSION}" in w for w in warnings)
    assert unknown == ["legacy_flag"]


def test_roi_config_from_camel_case():
    config, warnings = roi_config_from_dict(
        {"initialInvestment": 1_000_000, "useOutletMode": "yes", "scenario": "optimis", "projectDuration": 50,
         "outlets": [{"id": "o1", "name": "A", "dailyRevenue": 100, "operatingDaysPerMonth": 40}]}
    )
    assert config.initial_investment == 1_000_000
    assert config.use_outlet_mode is True
    assert config.project_duration == 20
    assert config.outlets[0].operating_days_per_month == 31
    assert len(warnings) == 2


def test_unrecognized_payload():
    kind, obj, warnings, _ = migrate_import_payload({"hello": "world"})
    assert kind == ""
    assert obj is None
    assert warnings
    assert migrate_import_payload([1, 2])[0] == ""


def test_validation_rejects_bad_inputs(full_plan, roi_config):
    validate_plan(full_plan)
    validate_roi_config(roi_config)

    full_plan.products[0].name = " "
    with pytest.raises(ValueError, match="Product name"):
        validate_plan(full_plan)

    roi_config.scenario = "wild"
    with pytest.raises(ValueError, match="scenario"):
        validate_roi_config(roi_config)


def test_infinite_plan_values_fall_back_to_defaults():
    raw = (
        '{"name": "Inf", "products": [{"name": "A", "price": Infinity, "estimatedSalesPerMonth": 5}],'
        ' "businessTarget": {"projectionPeriod": Infinity, "revenueGrowthPercent": -Infinity}}'
    )
    kind, plan, warnings, _ = parse_import_json(raw)
    assert kind == PLAN_TYPE
    assert plan.products[0].price == 0.0
    assert plan.business_target.projection_period == 12
    assert plan.business_target.revenue_growth_percent == 10.0
    assert sum("not a finite number" in w for w in warnings) == 3


def test_infinite_simulation_values_fall_back_to_defaults():
    kind, config, warnings, _ = parse_import_json('{"initialInvestment": 1, "projectDuration": Infinity}')
    assert kind == SIMULATION_TYPE
    assert config.initial_investment == 1
    assert config.project_duration == 5
    assert any("project_duration is not a finite number" in w for w in warnings)
