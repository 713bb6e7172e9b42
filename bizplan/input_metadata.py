"""Input guidance metadata and advisory range checks."""

from __future__ import annotations

from typing import Any


PLAN_INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "projection_period": {"min": 6, "max": 36, "note": "Most small-business plans project 12 to 24 months."},
    "revenue_growth_percent": {"min": 0.0, "max": 20.0, "note": "Monthly revenue growth compounds quickly; double digits are aggressive."},
    "cost_growth_percent": {"min": 0.0, "max": 10.0, "note": "Monthly growth applied to salaries and fixed costs."},
    "sales_closing_rate": {"min": 5.0, "max": 50.0, "note": "Share of qualified leads that convert to a sale."},
    "cost_inflation_rate": {"min": 0.0, "max": 10.0, "note": "Annual inflation used for the inflation-adjusted view."},
}

ROI_INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "net_profit_margin": {"min": 0.0, "max": 40.0, "note": "Leave at 0 to derive net profit from revenue minus costs."},
    "project_duration": {"min": 1, "max": 10, "note": "Investment horizon in years."},
    "ownership_percentage": {"min": 1.0, "max": 100.0, "note": "Your share of the business profit."},
    "tax_rate": {"min": 0.0, "max": 30.0, "note": "Effective tax on net profit."},
    "inflation_rate": {"min": 0.0, "max": 10.0, "note": "Annual inflation applied to operating costs."},
    "price_increase_rate": {"min": 0.0, "max": 10.0, "note": "Annual price increase applied to revenue."},
}

OUTLET_INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "operating_days_per_month": {"min": 20, "max": 31, "note": "Days the outlet is open each month."},
}


def _fmt(v: float) -> str:
    if abs(v - round(v)) < 1e-9:
        return f"{int(round(v))}"
    return f"{v:.3f}".rstrip("0").rstrip(".")


def _lookup(key: str) -> dict[str, Any] | None:
    for table in (PLAN_INPUT_GUIDANCE, ROI_INPUT_GUIDANCE, OUTLET_INPUT_GUIDANCE):
        if key in table:
            return table[key]
    return None


def help_with_guidance(key: str, base_help: str) -> str:
    g = _lookup(key)
    if not g:
        return base_help
    return f"{base_help} Reasonable range: {_fmt(g['min'])} to {_fmt(g['max'])}. {g['note']}"


def _range_warnings(values: dict, guidance: dict[str, dict[str, Any]], prefix: str = "") -> list[str]:
    warnings: list[str] = []
    for key, g in guidance.items():
        if key not in values:
            continue
        try:
            v = float(values[key])
        except (TypeError, ValueError):
            continue
        if v < g["min"] or v > g["max"]:
            warnings.append(f"{prefix}{key}={_fmt(v)} is outside the recommended range [{_fmt(g['min'])}, {_fmt(g['max'])}].")
    return warnings


def plan_advisory_warnings(target: dict) -> list[str]:
    return _range_warnings(target, PLAN_INPUT_GUIDANCE)


def roi_advisory_warnings(config: dict) -> list[str]:
    warnings = _range_warnings(config, ROI_INPUT_GUIDANCE)
    if config.get("use_outlet_mode"):
        for outlet in config.get("outlets", []):
            warnings.extend(_range_warnings(outlet, OUTLET_INPUT_GUIDANCE, prefix=f"{outlet.get('name', 'outlet')}: "))
    return warnings
