"""Aggregate analysis of monthly plan projections."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from bizplan.model import MonthlyProjection, project, run_projection
from bizplan.schema import BusinessPlan


def _safe_div(a: float, b: float) -> float:
    return float(a / b) if b else 0.0


@dataclass
class BusinessAnalysis:
    break_even_month: int | None
    total_profit_12_months: float
    roi: float
    average_monthly_revenue: float
    average_monthly_costs: float
    monthly_projections: list[MonthlyProjection] = field(default_factory=list)


def break_even_month(df: pd.DataFrame) -> int | None:
    positive = df.index[df["Cumulative Profit"] > 0]
    if len(positive) == 0:
        return None
    return int(df.loc[positive[0], "Month"])


def analyze(df: pd.DataFrame, projections: list[MonthlyProjection] | None = None) -> BusinessAnalysis | None:
    if df is None or df.empty:
        return None
    total_profit = float(df["Cumulative Profit"].iloc[-1])
    total_costs = float(df["Total Costs"].sum())
    # ROI here is profit over costs incurred, not over an investment.
    return BusinessAnalysis(
        break_even_month=break_even_month(df),
        total_profit_12_months=total_profit,
        roi=_safe_div(total_profit, total_costs) * 100 if total_costs > 0 else 0.0,
        average_monthly_revenue=_safe_div(df["Revenue"].sum(), len(df)),
        average_monthly_costs=_safe_div(total_costs, len(df)),
        monthly_projections=projections if projections is not None else [],
    )


def analyze_plan(plan: BusinessPlan | None) -> BusinessAnalysis | None:
    if plan is None:
        return None
    return analyze(run_projection(plan), project(plan))


def summary_totals(df: pd.DataFrame) -> dict:
    """Horizon totals used by report headers."""
    if df is None or df.empty:
        return {"total_revenue": 0.0, "total_costs": 0.0, "total_net_profit": 0.0, "net_margin": 0.0}
    total_revenue = float(df["Revenue"].sum())
    total_net = float(df["Net Profit"].sum())
    return {
        "total_revenue": total_revenue,
        "total_costs": float(df["Total Costs"].sum()),
        "total_net_profit": total_net,
        "net_margin": _safe_div(total_net, total_revenue),
    }
