"""Accounting and roll-forward integrity checks for projection frames."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd


def _finding(check: str, max_abs_delta: float, period: str, lhs_name: str, rhs_name: str) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Period of Max Delta": period,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _period_of_max_delta(df: pd.DataFrame, delta: np.ndarray, period_col: str) -> str:
    if len(delta) == 0:
        return ""
    idx = int(np.argmax(np.abs(delta)))
    if period_col in df.columns and idx < len(df):
        return str(df.iloc[idx][period_col])
    return str(idx)


def _check_series_identity(
    findings: list[dict[str, Any]],
    df: pd.DataFrame,
    check_name: str,
    lhs_name: str,
    rhs_name: str,
    lhs: np.ndarray,
    rhs: np.ndarray,
    tol: float,
    period_col: str = "Month",
) -> None:
    delta = np.nan_to_num(np.asarray(lhs, dtype=float) - np.asarray(rhs, dtype=float), nan=0.0)
    if len(delta) == 0:
        return
    max_abs = float(np.max(np.abs(delta)))
    if max_abs > float(tol):
        findings.append(_finding(check_name, max_abs, _period_of_max_delta(df, delta, period_col), lhs_name, rhs_name))


def _not_available() -> list[dict[str, Any]]:
    return [{"Check": "Dataframe not available", "Max Abs Delta": np.nan, "Period of Max Delta": "", "LHS": "", "RHS": ""}]


def run_integrity_checks(df: pd.DataFrame, horizon_months: int | None = None, tol: float = 1e-3) -> list[dict[str, Any]]:
    """Return findings for a plan projection (empty list means all checks passed)."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return _not_available()

    findings: list[dict[str, Any]] = []
    months = df["Month"].to_numpy()
    n = int(horizon_months) if horizon_months is not None else len(df)
    if len(df) != n or not np.array_equal(months, np.arange(1, n + 1)):
        findings.append(_finding("Month sequence", float(abs(len(df) - n)), "", "Month", f"1..{n}"))

    _check_series_identity(
        findings, df, "Variable cost identity", "Variable Costs", "Direct Variable Costs + Commissions",
        df["Variable Costs"].to_numpy(),
        (df["Direct Variable Costs"] + df["Commissions"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings, df, "Total cost identity", "Total Costs", "Fixed + Direct Variable + Commissions",
        df["Total Costs"].to_numpy(),
        (df["Fixed Costs"] + df["Direct Variable Costs"] + df["Commissions"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings, df, "Gross profit identity", "Gross Profit", "Revenue - Direct Variable Costs",
        df["Gross Profit"].to_numpy(),
        (df["Revenue"] - df["Direct Variable Costs"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings, df, "Net profit identity", "Net Profit", "Revenue - Total Costs",
        df["Net Profit"].to_numpy(),
        (df["Revenue"] - df["Total Costs"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings, df, "Cash flow identity", "Cash Flow", "Net Profit",
        df["Cash Flow"].to_numpy(),
        df["Net Profit"].to_numpy(),
        tol,
    )
    prev_cum = np.concatenate(([0.0], df["Cumulative Profit"].to_numpy()[:-1]))
    _check_series_identity(
        findings, df, "Cumulative profit roll-forward", "Cumulative Profit", "Prior Cumulative + Net Profit",
        df["Cumulative Profit"].to_numpy(),
        prev_cum + df["Net Profit"].to_numpy(),
        tol,
    )
    return findings


def run_roi_integrity_checks(yearly: pd.DataFrame, tol: float = 1e-3) -> list[dict[str, Any]]:
    """Findings for the yearly ROI breakdown."""
    if not isinstance(yearly, pd.DataFrame) or yearly.empty:
        return _not_available()

    findings: list[dict[str, Any]] = []
    _check_series_identity(
        findings, yearly, "Yearly profit identity", "Yearly Profit", "Monthly Profit * 12",
        yearly["Yearly Profit"].to_numpy(),
        yearly["Monthly Profit"].to_numpy() * 12,
        tol,
        period_col="Year",
    )
    prev_cum = np.concatenate(([0.0], yearly["Cumulative Profit"].to_numpy()[:-1]))
    _check_series_identity(
        findings, yearly, "Cumulative profit roll-forward", "Cumulative Profit", "Prior Cumulative + Yearly Profit",
        yearly["Cumulative Profit"].to_numpy(),
        prev_cum + yearly["Yearly Profit"].to_numpy(),
        tol,
        period_col="Year",
    )
    return findings
