"""Nominal and inflation-adjusted presentation transforms."""

from __future__ import annotations

import numpy as np
import pandas as pd


VALUE_MODES = ("nominal", "real_inflation")

NON_MONETARY_COLUMNS = {
    "Month",
    "Year",
}


def money_columns(df: pd.DataFrame) -> list[str]:
    cols: list[str] = []
    for col in df.columns:
        if col in NON_MONETARY_COLUMNS:
            continue
        if not pd.api.types.is_numeric_dtype(df[col]):
            continue
        if "ROI" in col or col.endswith("%") or col.startswith("Real "):
            continue
        cols.append(col)
    return cols


def apply_value_mode(
    df: pd.DataFrame, annual_inflation_pct: float, value_mode: str, periods_per_year: int = 12
) -> pd.DataFrame:
    """Return a presentation dataframe transformed for the requested value mode.

    ``periods_per_year`` is 12 for monthly plan frames and 1 for yearly ROI frames.
    """
    out = df.copy()
    if value_mode != "real_inflation" or out.empty:
        return out

    t = np.arange(len(out), dtype=float)
    factor = (1.0 + float(annual_inflation_pct) / 100) ** (t / float(periods_per_year))
    for col in money_columns(out):
        out[col] = out[col] / factor
    return out


def value_mode_label(value_mode: str) -> str:
    if value_mode == "real_inflation":
        return "Inflation-adjusted rupiah"
    return "Nominal rupiah"
