from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from bizplan.roi import (
    MONTHLY_COLUMNS,
    YEARLY_COLUMNS,
    break_even_note,
    compare_simulations,
    cost_breakdown,
    recommendations,
    simulate_roi,
)
from bizplan.schema import Outlet


def test_headline_numbers(roi_config):
    results = simulate_roi(roi_config)
    assert results.monthly_gross_profit == pytest.approx(200_000_000.0)
    assert results.monthly_net_profit == pytest.approx(200_000_000.0)
    assert results.monthly_after_tax_profit == pytest.approx(178_000_000.0)
    assert results.monthly_owner_profit == pytest.approx(178_000_000.0)
    assert results.monthly_roi == pytest.approx(0.89)
    assert results.yearly_roi == pytest.approx(10.68)
    assert results.break_even_months == 113
    assert results.is_profitable


def test_zero_investment_has_no_division_fault(roi_config):
    results = simulate_roi(replace(roi_config, initial_investment=0.0))
    assert results.monthly_roi == 0.0
    assert results.yearly_roi == 0.0
    assert results.average_roi_with_inflation == 0.0
    assert (results.yearly["Monthly ROI"] == 0.0).all()


def test_unprofitable_has_no_break_even(roi_config):
    results = simulate_roi(replace(roi_config, monthly_operational_costs=600_000_000.0))
    assert results.break_even_months is None
    assert not results.is_profitable
    assert break_even_note(results).startswith("Focus on reducing costs")


def test_net_margin_overrides_revenue_minus_costs(roi_config):
    results = simulate_roi(replace(roi_config, net_profit_margin=20.0))
    assert results.monthly_gross_profit == pytest.approx(200_000_000.0)
    assert results.monthly_net_profit == pytest.approx(100_000_000.0)
    assert results.monthly_after_tax_profit == pytest.approx(89_000_000.0)


def test_ownership_scales_owner_profit(roi_config):
    results = simulate_roi(replace(roi_config, ownership_percentage=50.0))
    assert results.monthly_owner_profit == pytest.approx(89_000_000.0)


def test_outlet_mode_sums_outlets(roi_config):
    config = replace(
        roi_config,
        use_outlet_mode=True,
        outlets=[
            Outlet(id="o1", name="Mall", daily_revenue=1_000_000.0, operating_days_per_month=30, monthly_operational_costs=20_000_000.0),
            Outlet(id="o2", name="Station", daily_revenue=2_000_000.0, operating_days_per_month=25, monthly_operational_costs=30_000_000.0),
        ],
    )
    results = simulate_roi(config)
    assert results.monthly_revenue == pytest.approx(80_000_000.0)
    assert results.monthly_costs == pytest.approx(50_000_000.0)
    assert cost_breakdown(config, results)["Outlet Costs"] == pytest.approx(50_000_000.0)


def test_yearly_breakdown_applies_scenario_and_growth(roi_config):
    config = replace(roi_config, scenario="optimis", inflation_rate=5.0, price_increase_rate=3.0, project_duration=4)
    yearly = simulate_roi(config).yearly
    assert list(yearly.columns) == YEARLY_COLUMNS
    assert yearly["Year"].tolist() == [1, 2, 3, 4]
    assert yearly["Monthly Revenue"].iloc[0] == pytest.approx(600_000_000.0)
    assert yearly["Monthly Costs"].iloc[0] == pytest.approx(270_000_000.0)
    assert yearly["Monthly Revenue"].iloc[2] == pytest.approx(500_000_000.0 * 1.03**2 * 1.2)
    assert yearly["Monthly Costs"].iloc[2] == pytest.approx(300_000_000.0 * 1.05**2 * 0.9)

    prev = np.concatenate(([0.0], yearly["Cumulative Profit"].to_numpy()[:-1]))
    assert np.allclose(yearly["Cumulative Profit"], prev + yearly["Yearly Profit"])
    assert yearly["Real Yearly Profit"].iloc[1] == pytest.approx(yearly["Yearly Profit"].iloc[1] / 1.05)


def test_headline_ignores_scenario(roi_config):
    base = simulate_roi(roi_config)
    pessimistic = simulate_roi(replace(roi_config, scenario="pesimis"))
    assert pessimistic.monthly_owner_profit == pytest.approx(base.monthly_owner_profit)
    assert pessimistic.monthly["Revenue"].iloc[0] == pytest.approx(400_000_000.0)


def test_totals_and_inflation_adjusted_roi(roi_config):
    results = simulate_roi(roi_config)
    assert results.total_return == pytest.approx(results.yearly["Yearly Profit"].sum())
    assert results.total_real_return == pytest.approx(results.yearly["Real Yearly Profit"].sum())
    expected = (results.yearly["Real Yearly Profit"] / roi_config.initial_investment * 100).mean()
    assert results.average_roi_with_inflation == pytest.approx(expected)


def test_monthly_detail_table(roi_config):
    monthly = simulate_roi(roi_config).monthly
    assert list(monthly.columns) == MONTHLY_COLUMNS
    assert len(monthly) == 12
    assert monthly["Cumulative Profit"].iloc[-1] == pytest.approx(12 * 178_000_000.0)


def test_cost_breakdown_tax_slice(roi_config):
    results = simulate_roi(roi_config)
    breakdown = cost_breakdown(roi_config, results)
    assert breakdown["Operational Costs"] == pytest.approx(300_000_000.0)
    assert breakdown["Tax"] == pytest.approx(22_000_000.0)
    assert breakdown["Outlet Costs"] == 0.0


def test_recommendations_for_profitable_long_payback(roi_config):
    lines = recommendations(roi_config, simulate_roi(roi_config))
    assert lines[0] == "Business is profitable and viable to run"
    assert lines[1] == "ROI 10.7% per year (good)"
    assert "Break-even takes too long; consider optimizing the business model" in lines


def test_recommendations_below_inflation(roi_config):
    config = replace(roi_config, monthly_revenue=320_000_000.0, inflation_rate=5.0)
    results = simulate_roi(config)
    lines = recommendations(config, results)
    assert "needs optimization" in lines[1]
    assert any("below inflation" in line for line in lines)


def test_recommendations_for_unprofitable(roi_config):
    config = replace(roi_config, monthly_operational_costs=700_000_000.0)
    lines = recommendations(config, simulate_roi(config))
    assert lines[:2] == [
        "Business is not profitable under current conditions",
        "Consider: reduce costs, raise prices, or increase volume",
    ]


def test_compare_simulations_marks_best(roi_config):
    other = replace(roi_config, monthly_operational_costs=250_000_000.0)
    table = compare_simulations(roi_config, other).set_index("Metric")
    assert table.loc["Monthly Owner Profit", "Best"] == "other"
    assert table.loc["Monthly Revenue", "Best"] == "tie"
    assert table.loc["Operational Costs", "Best"] == "other"
    assert table.loc["Break-even Months", "Best"] == "other"


def test_compare_treats_missing_break_even_as_worse(roi_config):
    losing = replace(roi_config, monthly_operational_costs=900_000_000.0)
    table = compare_simulations(roi_config, losing).set_index("Metric")
    assert table.loc["Break-even Months", "Best"] == "current"
