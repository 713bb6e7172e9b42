from __future__ import annotations

import pytest

from bizplan.model import run_projection
from bizplan.roi import simulate_roi
from bizplan.value_modes import apply_value_mode, money_columns, value_mode_label


def test_nominal_mode_is_a_copy(full_plan):
    df = run_projection(full_plan)
    out = apply_value_mode(df, 12.0, "nominal")
    assert out.equals(df)
    assert out is not df


def test_monthly_real_mode_deflates_money_columns(full_plan):
    df = run_projection(full_plan)
    out = apply_value_mode(df, 12.0, "real_inflation", periods_per_year=12)
    assert out["Revenue"].iloc[0] == pytest.approx(df["Revenue"].iloc[0])
    assert out["Revenue"].iloc[12 - 1] == pytest.approx(df["Revenue"].iloc[11] / 1.12 ** (11 / 12))
    assert (out["Month"] == df["Month"]).all()


def test_yearly_real_mode_skips_roi_and_real_columns(roi_config):
    yearly = simulate_roi(roi_config).yearly
    cols = money_columns(yearly)
    assert "Monthly ROI" not in cols
    assert "Annual ROI" not in cols
    assert "Real Yearly Profit" not in cols
    assert "Year" not in cols

    out = apply_value_mode(yearly, 5.0, "real_inflation", periods_per_year=1)
    assert out["Yearly Profit"].iloc[2] == pytest.approx(yearly["Yearly Profit"].iloc[2] / 1.05**2)
    assert out["Annual ROI"].equals(yearly["Annual ROI"])


def test_labels():
    assert value_mode_label("nominal") == "Nominal rupiah"
    assert value_mode_label("real_inflation") == "Inflation-adjusted rupiah"
