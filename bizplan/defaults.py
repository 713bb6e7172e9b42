"""Default plan targets and ROI simulator inputs."""

from __future__ import annotations


DEFAULT_BUSINESS_TARGET = {
    "target_revenue": 100_000_000.0,
    "projection_period": 12,
    "revenue_growth_percent": 10.0,
    "cost_growth_percent": 5.0,
    "sales_closing_rate": 20.0,
    "cost_inflation_rate": 3.0,
}

DEFAULT_ROI_CONFIG = {
    "initial_investment": 20_000_000_000.0,
    "monthly_revenue": 500_000_000.0,
    "monthly_operational_costs": 300_000_000.0,
    # 0 means "derive net profit from revenue minus costs".
    "net_profit_margin": 0.0,
    "project_duration": 5,
    "ownership_percentage": 100.0,
    "tax_rate": 11.0,
    "inflation_rate": 5.0,
    "price_increase_rate": 3.0,
    "scenario": "realistis",
    "use_outlet_mode": False,
    "outlets": [],
}

DEFAULT_OUTLET = {
    "daily_revenue": 0.0,
    "operating_days_per_month": 30,
    "monthly_operational_costs": 0.0,
}

EMPLOYEE_ROLE_OPTIONS = [
    "Developer",
    "Sales",
    "Admin",
    "Marketing",
    "Customer Service",
    "Project Manager",
    "Designer",
    "Quality Assurance",
    "Business Analyst",
    "Finance",
]

MAX_PROJECTION_MONTHS = 60
MAX_PROJECT_DURATION_YEARS = 20
