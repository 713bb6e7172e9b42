from __future__ import annotations

from bizplan.input_metadata import help_with_guidance, plan_advisory_warnings, roi_advisory_warnings


def test_help_text_appends_guidance():
    text = help_with_guidance("tax_rate", "Tax applied to net profit.")
    assert text.startswith("Tax applied to net profit.")
    assert "Reasonable range: 0 to 30." in text
    assert help_with_guidance("unknown_field", "Base help.") == "Base help."


def test_plan_advisory_warnings():
    assert plan_advisory_warnings({"projection_period": 12, "revenue_growth_percent": 10}) == []
    warnings = plan_advisory_warnings({"projection_period": 60, "sales_closing_rate": 1.5})
    assert len(warnings) == 2
    assert "projection_period=60" in warnings[0]


def test_roi_advisory_warnings_include_outlets():
    config = {
        "tax_rate": 45,
        "use_outlet_mode": True,
        "outlets": [{"name": "Pop-up", "operating_days_per_month": 8}],
    }
    warnings = roi_advisory_warnings(config)
    assert any(w.startswith("tax_rate=45") for w in warnings)
    assert any(w.startswith("Pop-up: operating_days_per_month=8") for w in warnings)
    assert roi_advisory_warnings({"tax_rate": "n/a"}) == []
