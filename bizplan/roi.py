"""Investment-centric ROI simulator (monthly headline, yearly breakdown)."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from bizplan.schema import ROIConfig


SCENARIO_MULTIPLIERS = {
    "optimis": {"revenue": 1.2, "costs": 0.9},
    "realistis": {"revenue": 1.0, "costs": 1.0},
    "pesimis": {"revenue": 0.8, "costs": 1.1},
}

YEARLY_COLUMNS = [
    "Year",
    "Monthly Revenue",
    "Monthly Costs",
    "Monthly Profit",
    "Yearly Profit",
    "Monthly ROI",
    "Annual ROI",
    "Cumulative Profit",
    "Real Yearly Profit",
]

MONTHLY_COLUMNS = ["Month", "Revenue", "Costs", "Gross Profit", "Net Profit", "Profit", "ROI", "Cumulative Profit"]


@dataclass
class ROIResults:
    monthly_revenue: float
    monthly_costs: float
    monthly_gross_profit: float
    monthly_net_profit: float
    monthly_after_tax_profit: float
    monthly_owner_profit: float
    monthly_roi: float
    yearly_roi: float
    break_even_months: int | None
    total_return: float
    total_real_return: float
    average_roi_with_inflation: float
    yearly: pd.DataFrame
    monthly: pd.DataFrame

    @property
    def is_profitable(self) -> bool:
        return self.monthly_owner_profit > 0


def outlet_revenue(config: ROIConfig) -> float:
    return float(sum(o.daily_revenue * o.operating_days_per_month for o in config.outlets))


def outlet_costs(config: ROIConfig) -> float:
    return float(sum(o.monthly_operational_costs for o in config.outlets))


def base_revenue_and_costs(config: ROIConfig) -> tuple[float, float]:
    if config.use_outlet_mode:
        return outlet_revenue(config), outlet_costs(config)
    return float(config.monthly_revenue), float(config.monthly_operational_costs)


def _profit_layers(revenue, costs, config: ROIConfig):
    """Gross, net, after-tax and owner profit; works on scalars and arrays."""
    gross = revenue - costs
    if config.net_profit_margin > 0:
        net = revenue * (config.net_profit_margin / 100)
    else:
        net = gross
    after_tax = net * (1 - config.tax_rate / 100)
    owner = after_tax * (config.ownership_percentage / 100)
    return gross, net, after_tax, owner


def _roi_pct(owner_profit, investment: float):
    if investment > 0:
        return owner_profit / investment * 100
    return owner_profit * 0.0


def yearly_projection(config: ROIConfig) -> pd.DataFrame:
    revenue, costs = base_revenue_and_costs(config)
    mult = SCENARIO_MULTIPLIERS.get(config.scenario, SCENARIO_MULTIPLIERS["realistis"])
    duration = max(0, int(config.project_duration))
    years = np.arange(1, duration + 1, dtype=float)
    if duration == 0:
        return pd.DataFrame(columns=YEARLY_COLUMNS)

    inflation_mult = (1 + config.inflation_rate / 100) ** (years - 1)
    price_mult = (1 + config.price_increase_rate / 100) ** (years - 1)
    adj_revenue = revenue * price_mult * mult["revenue"]
    adj_costs = costs * inflation_mult * mult["costs"]
    _, _, _, owner = _profit_layers(adj_revenue, adj_costs, config)
    yearly_profit = owner * 12
    monthly_roi = _roi_pct(owner, config.initial_investment)

    return pd.DataFrame(
        {
            "Year": years.astype(int),
            "Monthly Revenue": adj_revenue,
            "Monthly Costs": adj_costs,
            "Monthly Profit": owner,
            "Yearly Profit": yearly_profit,
            "Monthly ROI": monthly_roi,
            "Annual ROI": monthly_roi * 12,
            "Cumulative Profit": np.cumsum(yearly_profit),
            "Real Yearly Profit": yearly_profit / inflation_mult,
        }
    )


def monthly_projection(config: ROIConfig, months: int = 12) -> pd.DataFrame:
    """Flat detail view: scenario applied, no growth or inflation."""
    revenue, costs = base_revenue_and_costs(config)
    mult = SCENARIO_MULTIPLIERS.get(config.scenario, SCENARIO_MULTIPLIERS["realistis"])
    adj_revenue = revenue * mult["revenue"]
    adj_costs = costs * mult["costs"]
    gross, net, _, owner = _profit_layers(adj_revenue, adj_costs, config)
    month = np.arange(1, months + 1)
    n = len(month)
    return pd.DataFrame(
        {
            "Month": month,
            "Revenue": np.full(n, adj_revenue, dtype=float),
            "Costs": np.full(n, adj_costs, dtype=float),
            "Gross Profit": np.full(n, gross, dtype=float),
            "Net Profit": np.full(n, net, dtype=float),
            "Profit": np.full(n, owner, dtype=float),
            "ROI": np.full(n, _roi_pct(owner, config.initial_investment), dtype=float),
            "Cumulative Profit": owner * month.astype(float),
        }
    )


def simulate_roi(config: ROIConfig) -> ROIResults:
    revenue, costs = base_revenue_and_costs(config)
    gross, net, after_tax, owner = _profit_layers(revenue, costs, config)
    monthly_roi = float(_roi_pct(owner, config.initial_investment))
    break_even = math.ceil(config.initial_investment / owner) if owner > 0 else None

    yearly = yearly_projection(config)
    total_return = float(yearly["Cumulative Profit"].iloc[-1]) if not yearly.empty else 0.0
    total_real = float(yearly["Real Yearly Profit"].sum()) if not yearly.empty else 0.0
    if yearly.empty or config.initial_investment <= 0:
        avg_real_roi = 0.0
    else:
        avg_real_roi = float((yearly["Real Yearly Profit"] / config.initial_investment * 100).mean())

    return ROIResults(
        monthly_revenue=revenue,
        monthly_costs=costs,
        monthly_gross_profit=float(gross),
        monthly_net_profit=float(net),
        monthly_after_tax_profit=float(after_tax),
        monthly_owner_profit=float(owner),
        monthly_roi=monthly_roi,
        yearly_roi=monthly_roi * 12,
        break_even_months=break_even,
        total_return=total_return,
        total_real_return=total_real,
        average_roi_with_inflation=avg_real_roi,
        yearly=yearly,
        monthly=monthly_projection(config),
    )


def cost_breakdown(config: ROIConfig, results: ROIResults) -> dict:
    """Slices for the monthly cost pie: operations, tax, outlet costs."""
    tax = results.monthly_net_profit - results.monthly_after_tax_profit if results.monthly_after_tax_profit > 0 else 0.0
    return {
        "Operational Costs": results.monthly_costs,
        "Tax": tax,
        "Outlet Costs": outlet_costs(config) if config.use_outlet_mode else 0.0,
    }


def _best(current: float | None, other: float | None, higher_is_better: bool) -> str:
    if current is None and other is None:
        return "tie"
    if current is None:
        return "other"
    if other is None:
        return "current"
    if math.isclose(current, other):
        return "tie"
    if (current > other) == higher_is_better:
        return "current"
    return "other"


def compare_simulations(current: ROIConfig, other: ROIConfig) -> pd.DataFrame:
    a = simulate_roi(current)
    b = simulate_roi(other)
    rows = [
        ("Monthly Owner Profit", a.monthly_owner_profit, b.monthly_owner_profit, True),
        ("Yearly ROI (%)", a.yearly_roi, b.yearly_roi, True),
        ("Monthly Revenue", a.monthly_revenue, b.monthly_revenue, True),
        ("Operational Costs", a.monthly_costs, b.monthly_costs, False),
        ("Break-even Months", a.break_even_months, b.break_even_months, False),
    ]
    return pd.DataFrame(
        [
            {"Metric": label, "Current": cur, "Compared": oth, "Best": _best(cur, oth, higher)}
            for label, cur, oth, higher in rows
        ]
    )


def recommendations(config: ROIConfig, results: ROIResults) -> list[str]:
    out: list[str] = []
    yearly_roi = results.yearly_roi
    if results.is_profitable:
        out.append("Business is profitable and viable to run")
        quality = "good" if yearly_roi > config.inflation_rate + 5 else "needs optimization"
        out.append(f"ROI {yearly_roi:.1f}% per year ({quality})")
    else:
        out.append("Business is not profitable under current conditions")
        out.append("Consider: reduce costs, raise prices, or increase volume")

    if results.break_even_months and results.break_even_months > 24:
        out.append("Break-even takes too long; consider optimizing the business model")
    if 0 < yearly_roi < config.inflation_rate:
        out.append(
            f"ROI {yearly_roi:.1f}% is below inflation {config.inflation_rate:g}%; "
            "consider other investments or optimizing the business model"
        )
    return out


def break_even_note(results: ROIResults) -> str:
    months = results.break_even_months
    if not months:
        return "Focus on reducing costs and increasing revenue to reach break-even."
    verdict = "Reasonable!" if months <= 24 else "Rather long, consider optimization."
    return f"Capital returned within {months} months. {verdict}"

