"""What-if scenario engine: perturb a baseline plan and compare analyses."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field, replace

from bizplan.formatting import format_currency, format_currency_short
from bizplan.metrics import BusinessAnalysis, analyze_plan
from bizplan.schema import BusinessPlan, CommissionedEmployee, SalariedEmployee


SCENARIO_EMPLOYEE_ID = "scenario-employee"

BREAK_EVEN_NEITHER = "neither"
BREAK_EVEN_REACHED = "reached"
BREAK_EVEN_LOST = "lost"
BREAK_EVEN_SHIFTED = "shifted"


@dataclass
class ScenarioDelta:
    price_increase_percent: float = 0.0
    cost_reduction_percent: float = 0.0
    # 0 means no additional hire.
    new_employee_salary: float = 0.0
    commission_change_percent: float = 0.0

    def is_identity(self) -> bool:
        return not any(
            (
                self.price_increase_percent,
                self.cost_reduction_percent,
                self.new_employee_salary,
                self.commission_change_percent,
            )
        )


@dataclass
class Difference:
    diff: float
    percentage: float


@dataclass
class BreakEvenComparison:
    outcome: str
    months: int = 0
    message: str = ""


@dataclass
class ScenarioComparison:
    baseline: BusinessAnalysis
    scenario: BusinessAnalysis
    total_profit: Difference
    roi: Difference
    break_even: BreakEvenComparison
    insights: list[str] = field(default_factory=list)


def apply_delta(plan: BusinessPlan, delta: ScenarioDelta) -> BusinessPlan:
    """Return a modified copy of ``plan``; the baseline is never mutated."""
    modified = deepcopy(plan)
    price_mult = 1 + delta.price_increase_percent / 100
    cost_mult = 1 - delta.cost_reduction_percent / 100

    for product in modified.products:
        product.price = product.price * price_mult
    for cost in modified.fixed_costs:
        cost.amount = cost.amount * cost_mult
    for cost in modified.variable_costs:
        cost.value = cost.value * cost_mult

    if delta.new_employee_salary > 0:
        modified.employees.append(
            SalariedEmployee(
                id=SCENARIO_EMPLOYEE_ID,
                name="New Hire (Scenario)",
                role="Additional",
                salary=delta.new_employee_salary,
            )
        )

    if delta.commission_change_percent:
        for employee in modified.employees:
            if isinstance(employee, CommissionedEmployee) and employee.commission is not None:
                if employee.commission.type == "percentage":
                    employee.commission = replace(
                        employee.commission, value=employee.commission.value + delta.commission_change_percent
                    )
    return modified


def apply_scenario(plan: BusinessPlan, delta: ScenarioDelta) -> BusinessAnalysis | None:
    return analyze_plan(apply_delta(plan, delta))


def get_difference(baseline: float, scenario: float) -> Difference:
    diff = scenario - baseline
    percentage = diff / baseline * 100 if baseline != 0 else 0.0
    return Difference(diff=diff, percentage=percentage)


def compare_break_even(baseline: int | None, scenario: int | None) -> BreakEvenComparison:
    if not baseline and not scenario:
        return BreakEvenComparison(BREAK_EVEN_NEITHER, 0, "Neither reaches break-even")
    if not baseline and scenario:
        return BreakEvenComparison(BREAK_EVEN_REACHED, 0, "Reaches break-even!")
    if baseline and not scenario:
        return BreakEvenComparison(BREAK_EVEN_LOST, 0, "No longer breaks even")
    diff = scenario - baseline
    direction = "Faster" if diff <= 0 else "Slower"
    return BreakEvenComparison(BREAK_EVEN_SHIFTED, diff, f"{direction} by {abs(diff)} months")


def scenario_insights(baseline: BusinessAnalysis, scenario: BusinessAnalysis, delta: ScenarioDelta) -> list[str]:
    insights: list[str] = []
    profit_diff = scenario.total_profit_12_months - baseline.total_profit_12_months
    if profit_diff > 0:
        insights.append(f"This scenario could increase profit by {format_currency_short(profit_diff)}")
    elif profit_diff < 0:
        insights.append(f"This scenario would reduce profit by {format_currency_short(abs(profit_diff))}")

    if scenario.break_even_month and baseline.break_even_month:
        bep_diff = scenario.break_even_month - baseline.break_even_month
        if bep_diff < 0:
            insights.append(f"Break-even point arrives {abs(bep_diff)} months earlier")
        elif bep_diff > 0:
            insights.append(f"Break-even point arrives {bep_diff} months later")

    if delta.price_increase_percent > 0:
        insights.append("A price increase can lift the profit margin per unit")
    if delta.cost_reduction_percent > 0:
        insights.append("Cost efficiency helps improve profitability")
    return insights


def compare_analyses(
    baseline: BusinessAnalysis, scenario: BusinessAnalysis, delta: ScenarioDelta | None = None
) -> ScenarioComparison:
    delta = delta or ScenarioDelta()
    return ScenarioComparison(
        baseline=baseline,
        scenario=scenario,
        total_profit=get_difference(baseline.total_profit_12_months, scenario.total_profit_12_months),
        roi=get_difference(baseline.roi, scenario.roi),
        break_even=compare_break_even(baseline.break_even_month, scenario.break_even_month),
        insights=scenario_insights(baseline, scenario, delta),
    )


def run_scenario(plan: BusinessPlan, delta: ScenarioDelta) -> ScenarioComparison | None:
    baseline = analyze_plan(plan)
    scenario = apply_scenario(plan, delta)
    if baseline is None or scenario is None:
        return None
    return compare_analyses(baseline, scenario, delta)


def _fmt_pct(value: float) -> str:
    return f"{value:g}%"


def describe_delta(delta: ScenarioDelta) -> list[str]:
    lines: list[str] = []
    if delta.price_increase_percent != 0:
        lines.append(f"Product prices up {_fmt_pct(delta.price_increase_percent)}")
    if delta.cost_reduction_percent != 0:
        lines.append(f"Operating costs down {_fmt_pct(delta.cost_reduction_percent)}")
    if delta.new_employee_salary != 0:
        lines.append(f"Add an employee with salary {format_currency(delta.new_employee_salary)}/month")
    if delta.commission_change_percent != 0:
        lines.append(f"Sales commission up {_fmt_pct(delta.commission_change_percent)}")
    return lines
