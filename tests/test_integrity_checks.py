from __future__ import annotations

import math

from bizplan.integrity_checks import run_integrity_checks, run_roi_integrity_checks
from bizplan.model import run_projection
from bizplan.roi import simulate_roi


def test_clean_projection_has_no_findings(full_plan):
    df = run_projection(full_plan)
    assert run_integrity_checks(df, full_plan.business_target.projection_period) == []


def test_tampered_projection_is_reported(full_plan):
    df = run_projection(full_plan)
    df.loc[4, "Net Profit"] += 1_000.0
    findings = run_integrity_checks(df, 12)
    checks = {f["Check"] for f in findings}
    assert "Net profit identity" in checks
    assert "Cumulative profit roll-forward" in checks
    net = next(f for f in findings if f["Check"] == "Net profit identity")
    assert net["Period of Max Delta"] == "5"
    assert math.isclose(net["Max Abs Delta"], 1_000.0)


def test_horizon_mismatch_is_reported(three_month_plan):
    df = run_projection(three_month_plan)
    findings = run_integrity_checks(df, horizon_months=6)
    assert findings[0]["Check"] == "Month sequence"


def test_missing_frame():
    findings = run_integrity_checks(None)
    assert findings[0]["Check"] == "Dataframe not available"


def test_roi_yearly_checks(roi_config):
    yearly = simulate_roi(roi_config).yearly
    assert run_roi_integrity_checks(yearly) == []
    yearly.loc[2, "Yearly Profit"] = 0.0
    checks = {f["Check"] for f in run_roi_integrity_checks(yearly)}
    assert checks == {"Yearly profit identity", "Cumulative profit roll-forward"}
