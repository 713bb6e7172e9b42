from __future__ import annotations

import pytest

from bizplan.scenarios import (
    BREAK_EVEN_LOST,
    BREAK_EVEN_NEITHER,
    BREAK_EVEN_REACHED,
    BREAK_EVEN_SHIFTED,
    SCENARIO_EMPLOYEE_ID,
    ScenarioDelta,
    apply_delta,
    apply_scenario,
    compare_break_even,
    describe_delta,
    get_difference,
    run_scenario,
)
from bizplan.metrics import analyze_plan
from bizplan.schema import SalariedEmployee


def test_zero_delta_reproduces_baseline(full_plan):
    delta = ScenarioDelta()
    assert delta.is_identity()
    result = run_scenario(full_plan, delta)
    assert result.scenario.total_profit_12_months == result.baseline.total_profit_12_months
    assert result.scenario.roi == result.baseline.roi
    assert result.total_profit.diff == 0.0
    assert result.roi.percentage == 0.0
    assert result.break_even.outcome == BREAK_EVEN_SHIFTED
    assert result.break_even.message == "Faster by 0 months"
    assert result.insights == []


def test_apply_delta_leaves_baseline_untouched(full_plan):
    modified = apply_delta(
        full_plan,
        ScenarioDelta(price_increase_percent=10, cost_reduction_percent=20, new_employee_salary=4_000_000, commission_change_percent=5),
    )
    assert full_plan.products[0].price == 250_000.0
    assert modified.products[0].price == pytest.approx(275_000.0)
    assert modified.fixed_costs[0].amount == pytest.approx(2_400_000.0)
    assert modified.variable_costs[1].value == pytest.approx(320_000.0)
    assert len(modified.employees) == len(full_plan.employees) + 1

    hire = modified.employees[-1]
    assert isinstance(hire, SalariedEmployee)
    assert hire.id == SCENARIO_EMPLOYEE_ID
    assert hire.salary == 4_000_000

    # Percentage commissions shift additively; fixed commissions stay put.
    assert modified.employees[1].commission.value == pytest.approx(15.0)
    assert modified.employees[2].commission.value == pytest.approx(500_000.0)
    assert full_plan.employees[1].commission.value == 10.0


def test_price_increase_insights(three_month_plan):
    result = run_scenario(three_month_plan, ScenarioDelta(price_increase_percent=10))
    assert result.total_profit.diff == pytest.approx(300_000.0)
    assert result.total_profit.percentage == pytest.approx(20.0)
    assert result.insights == [
        "This scenario could increase profit by Rp 300rb",
        "A price increase can lift the profit margin per unit",
    ]


def test_new_hire_can_lose_break_even(three_month_plan):
    result = run_scenario(three_month_plan, ScenarioDelta(new_employee_salary=600_000))
    assert result.scenario.break_even_month is None
    assert result.break_even.outcome == BREAK_EVEN_LOST
    assert result.break_even.message == "No longer breaks even"
    assert result.insights[0] == "This scenario would reduce profit by Rp 1.8jt"


def test_cost_cut_can_reach_break_even(three_month_plan):
    three_month_plan.fixed_costs[0].amount = 1_100_000.0
    baseline = analyze_plan(three_month_plan)
    assert baseline.break_even_month is None
    result = run_scenario(three_month_plan, ScenarioDelta(cost_reduction_percent=20))
    assert result.scenario.break_even_month == 1
    assert result.break_even.outcome == BREAK_EVEN_REACHED
    assert result.break_even.message == "Reaches break-even!"
    assert "Cost efficiency helps improve profitability" in result.insights


def test_break_even_comparison_outcomes():
    assert compare_break_even(None, None).outcome == BREAK_EVEN_NEITHER
    assert compare_break_even(None, None).message == "Neither reaches break-even"
    assert compare_break_even(None, 4).outcome == BREAK_EVEN_REACHED
    assert compare_break_even(4, None).outcome == BREAK_EVEN_LOST

    faster = compare_break_even(6, 4)
    assert (faster.outcome, faster.months, faster.message) == (BREAK_EVEN_SHIFTED, -2, "Faster by 2 months")
    slower = compare_break_even(4, 7)
    assert (slower.months, slower.message) == (3, "Slower by 3 months")


def test_break_even_shift_insight(full_plan):
    full_plan.fixed_costs[0].amount = 10_000_000.0
    full_plan.business_target.projection_period = 36
    baseline = analyze_plan(full_plan)
    scenario = apply_scenario(full_plan, ScenarioDelta(price_increase_percent=30))
    assert baseline.break_even_month is not None
    assert scenario.break_even_month < baseline.break_even_month
    result = run_scenario(full_plan, ScenarioDelta(price_increase_percent=30))
    months = baseline.break_even_month - scenario.break_even_month
    assert f"Break-even point arrives {months} months earlier" in result.insights


def test_difference_against_zero_baseline():
    diff = get_difference(0.0, 250.0)
    assert diff.diff == 250.0
    assert diff.percentage == 0.0
    assert get_difference(200.0, 150.0).percentage == pytest.approx(-25.0)


def test_describe_delta_lines():
    lines = describe_delta(
        ScenarioDelta(price_increase_percent=10, cost_reduction_percent=5.5, new_employee_salary=5_000_000, commission_change_percent=2)
    )
    assert lines == [
        "Product prices up 10%",
        "Operating costs down 5.5%",
        "Add an employee with salary Rp 5.000.000/month",
        "Sales commission up 2%",
    ]
    assert describe_delta(ScenarioDelta()) == []
