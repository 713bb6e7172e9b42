"""Plotly figures shared by the dashboard and PDF reports."""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def revenue_vs_costs(df: pd.DataFrame) -> go.Figure | None:
    if df is None or df.empty:
        return None
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df["Month"], y=df["Revenue"], name="Revenue", mode="lines+markers"))
    fig.add_trace(go.Scatter(x=df["Month"], y=df["Total Costs"], name="Total Costs", mode="lines+markers"))
    fig.add_trace(go.Scatter(x=df["Month"], y=df["Net Profit"], name="Net Profit", line=dict(dash="dot")))
    fig.update_layout(title="Revenue vs Costs", xaxis_title="Month", yaxis_title="Rp")
    return fig


def cumulative_profit(df: pd.DataFrame, break_even_month: int | None = None) -> go.Figure | None:
    if df is None or df.empty:
        return None
    fig = px.area(df, x="Month", y="Cumulative Profit", title="Cumulative Profit")
    fig.add_hline(y=0, line_dash="dash", line_color="gray")
    if break_even_month:
        fig.add_vline(x=break_even_month, line_dash="dot", line_color="green", annotation_text="Break-even")
    return fig


def cost_composition(df: pd.DataFrame) -> go.Figure | None:
    if df is None or df.empty:
        return None
    melt = df.melt(
        id_vars=["Month"],
        value_vars=["Fixed Costs", "Direct Variable Costs", "Commissions"],
        var_name="Component",
        value_name="Cost",
    )
    return px.bar(melt, x="Month", y="Cost", color="Component", title="Cost Composition")


def scenario_comparison(baseline: pd.DataFrame, scenario: pd.DataFrame) -> go.Figure | None:
    if baseline is None or baseline.empty or scenario is None or scenario.empty:
        return None
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=baseline["Month"], y=baseline["Cumulative Profit"], name="Baseline"))
    fig.add_trace(go.Scatter(x=scenario["Month"], y=scenario["Cumulative Profit"], name="Scenario"))
    fig.update_layout(title="Cumulative Profit: Baseline vs Scenario", xaxis_title="Month", yaxis_title="Rp")
    return fig


def roi_yearly_profit(yearly: pd.DataFrame) -> go.Figure | None:
    if yearly is None or yearly.empty:
        return None
    fig = go.Figure()
    fig.add_trace(go.Bar(x=yearly["Year"], y=yearly["Yearly Profit"], name="Yearly Profit"))
    fig.add_trace(go.Scatter(x=yearly["Year"], y=yearly["Cumulative Profit"], name="Cumulative Profit", yaxis="y2"))
    fig.update_layout(
        title="Yearly Owner Profit",
        xaxis_title="Year",
        yaxis=dict(title="Rp"),
        yaxis2=dict(title="Cumulative Rp", overlaying="y", side="right"),
    )
    return fig


def roi_monthly_cumulative(monthly: pd.DataFrame, investment: float) -> go.Figure | None:
    if monthly is None or monthly.empty:
        return None
    fig = px.line(monthly, x="Month", y="Cumulative Profit", title="Cumulative Owner Profit (12 months)", markers=True)
    if investment > 0:
        fig.add_hline(y=investment, line_dash="dash", line_color="red", annotation_text="Initial investment")
    return fig


def roi_cost_breakdown(breakdown: dict) -> go.Figure | None:
    values = {k: float(v) for k, v in breakdown.items() if float(v) > 0}
    if not values:
        return None
    return px.pie(names=list(values.keys()), values=list(values.values()), hole=0.45, title="Monthly Cost Breakdown")
