"""Monthly projection engine for business plans."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from bizplan.schema import BusinessPlan, CommissionedEmployee, SalariedEmployee


PROJECTION_COLUMNS = [
    "Month",
    "Revenue",
    "Fixed Costs",
    "Direct Variable Costs",
    "Commissions",
    "Variable Costs",
    "Total Costs",
    "Gross Profit",
    "Net Profit",
    "Cash Flow",
    "Cumulative Profit",
]


@dataclass
class MonthlyProjection:
    month: int
    revenue: float
    fixed_costs: float
    variable_costs: float
    total_costs: float
    gross_profit: float
    net_profit: float
    cash_flow: float
    cumulative_profit: float


def _growth_factor(pct: float, months: np.ndarray) -> np.ndarray:
    return (1 + float(pct) / 100) ** (months - 1)


def run_projection(plan: BusinessPlan) -> pd.DataFrame:
    target = plan.business_target
    horizon = int(target.projection_period)
    if horizon < 1:
        return pd.DataFrame(columns=PROJECTION_COLUMNS)

    months = np.arange(1, horizon + 1, dtype=float)
    revenue_growth = _growth_factor(target.revenue_growth_percent, months)
    cost_growth = _growth_factor(target.cost_growth_percent, months)

    base_revenue = sum(p.estimated_sales_per_month * p.price for p in plan.products)
    revenue = base_revenue * revenue_growth

    salaries = sum(e.salary for e in plan.employees if isinstance(e, SalariedEmployee) and e.salary)
    fixed_amounts = sum(c.amount for c in plan.fixed_costs)
    fixed_costs = (salaries + fixed_amounts) * cost_growth

    # Per-unit costs carry no sales-volume basis and contribute nothing.
    pct_variable = sum(c.value for c in plan.variable_costs if c.type == "percentage")
    flat_variable = sum(c.value for c in plan.variable_costs if c.type == "fixed")
    direct_variable = revenue * pct_variable / 100 + flat_variable

    pct_commission = 0.0
    flat_commission = 0.0
    for e in plan.employees:
        if not isinstance(e, CommissionedEmployee) or e.commission is None:
            continue
        if e.commission.type == "percentage":
            pct_commission += e.commission.value
        elif e.commission.type == "fixed":
            flat_commission += e.commission.value
    commissions = revenue * pct_commission / 100 + flat_commission

    total_costs = fixed_costs + direct_variable + commissions
    gross_profit = revenue - direct_variable
    net_profit = revenue - total_costs
    cumulative = np.cumsum(net_profit)

    df = pd.DataFrame(
        {
            "Month": months.astype(int),
            "Revenue": revenue,
            "Fixed Costs": fixed_costs,
            "Direct Variable Costs": direct_variable,
            "Commissions": commissions,
            "Variable Costs": direct_variable + commissions,
            "Total Costs": total_costs,
            "Gross Profit": gross_profit,
            "Net Profit": net_profit,
            "Cash Flow": net_profit,
            "Cumulative Profit": cumulative,
        }
    )
    df.attrs["cost_inflation_rate"] = float(target.cost_inflation_rate)
    return df


def project(plan: BusinessPlan) -> list[MonthlyProjection]:
    df = run_projection(plan)
    return [
        MonthlyProjection(
            month=int(row["Month"]),
            revenue=float(row["Revenue"]),
            fixed_costs=float(row["Fixed Costs"]),
            variable_costs=float(row["Variable Costs"]),
            total_costs=float(row["Total Costs"]),
            gross_profit=float(row["Gross Profit"]),
            net_profit=float(row["Net Profit"]),
            cash_flow=float(row["Cash Flow"]),
            cumulative_profit=float(row["Cumulative Profit"]),
        )
        for _, row in df.iterrows()
    ]
