"""Plan and simulation data model, parsing, validation, and migration utilities."""

from __future__ import annotations

import math
import random
import string
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Union

from bizplan.defaults import (
    DEFAULT_BUSINESS_TARGET,
    DEFAULT_ROI_CONFIG,
    MAX_PROJECT_DURATION_YEARS,
    MAX_PROJECTION_MONTHS,
)


SCHEMA_VERSION = 1
PLAN_TYPE = "business_plan"
SIMULATION_TYPE = "roi_simulation"

PRODUCT_TYPES = ("subscription", "one-time", "service")
PAYMENT_MODES = ("fixed", "commission")
COMMISSION_TYPES = ("percentage", "fixed")
VARIABLE_COST_TYPES = ("per-unit", "percentage", "fixed")
FIXED_COST_CATEGORIES = ("rent", "utilities", "software", "salary", "other")
VARIABLE_COST_CATEGORIES = ("production", "payment-gateway", "support", "advertising", "commission", "other")
ROI_SCENARIOS = ("optimis", "realistis", "pesimis")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    return "".join(random.choices(_ID_ALPHABET, k=9))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Commission:
    type: str = "percentage"
    value: float = 0.0
    product_id: str | None = None


@dataclass
class Product:
    id: str
    name: str
    price: float = 0.0
    type: str = "one-time"
    estimated_sales_per_month: float = 0.0
    # Captured for reporting; monthly revenue growth comes from the business target.
    target_growth_percent: float = 0.0
    sales_commission: Commission = field(default_factory=Commission)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SalariedEmployee:
    id: str
    name: str
    role: str = ""
    salary: float = 0.0
    estimated_contribution: str = ""

    payment_mode: ClassVar[str] = "fixed"

    def to_dict(self) -> dict:
        return {"payment_mode": self.payment_mode, **asdict(self)}


@dataclass
class CommissionedEmployee:
    id: str
    name: str
    role: str = ""
    commission: Commission | None = None
    estimated_contribution: str = ""

    payment_mode: ClassVar[str] = "commission"

    def to_dict(self) -> dict:
        return {"payment_mode": self.payment_mode, **asdict(self)}


Employee = Union[SalariedEmployee, CommissionedEmployee]


@dataclass
class FixedCost:
    id: str
    name: str
    amount: float = 0.0
    category: str = "other"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class VariableCost:
    id: str
    name: str
    type: str = "fixed"
    value: float = 0.0
    product_id: str | None = None
    category: str = "other"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BusinessTarget:
    target_revenue: float = DEFAULT_BUSINESS_TARGET["target_revenue"]
    projection_period: int = DEFAULT_BUSINESS_TARGET["projection_period"]
    revenue_growth_percent: float = DEFAULT_BUSINESS_TARGET["revenue_growth_percent"]
    cost_growth_percent: float = DEFAULT_BUSINESS_TARGET["cost_growth_percent"]
    sales_closing_rate: float = DEFAULT_BUSINESS_TARGET["sales_closing_rate"]
    cost_inflation_rate: float = DEFAULT_BUSINESS_TARGET["cost_inflation_rate"]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BusinessPlan:
    id: str
    name: str
    products: list[Product] = field(default_factory=list)
    employees: list[Employee] = field(default_factory=list)
    fixed_costs: list[FixedCost] = field(default_factory=list)
    variable_costs: list[VariableCost] = field(default_factory=list)
    business_target: BusinessTarget = field(default_factory=BusinessTarget)
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "products": [p.to_dict() for p in self.products],
            "employees": [e.to_dict() for e in self.employees],
            "fixed_costs": [c.to_dict() for c in self.fixed_costs],
            "variable_costs": [c.to_dict() for c in self.variable_costs],
            "business_target": self.business_target.to_dict(),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Outlet:
    id: str
    name: str
    daily_revenue: float = 0.0
    operating_days_per_month: int = 30
    monthly_operational_costs: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ROIConfig:
    initial_investment: float = DEFAULT_ROI_CONFIG["initial_investment"]
    monthly_revenue: float = DEFAULT_ROI_CONFIG["monthly_revenue"]
    monthly_operational_costs: float = DEFAULT_ROI_CONFIG["monthly_operational_costs"]
    net_profit_margin: float = DEFAULT_ROI_CONFIG["net_profit_margin"]
    project_duration: int = DEFAULT_ROI_CONFIG["project_duration"]
    ownership_percentage: float = DEFAULT_ROI_CONFIG["ownership_percentage"]
    tax_rate: float = DEFAULT_ROI_CONFIG["tax_rate"]
    inflation_rate: float = DEFAULT_ROI_CONFIG["inflation_rate"]
    price_increase_rate: float = DEFAULT_ROI_CONFIG["price_increase_rate"]
    scenario: str = DEFAULT_ROI_CONFIG["scenario"]
    use_outlet_mode: bool = DEFAULT_ROI_CONFIG["use_outlet_mode"]
    outlets: list[Outlet] = field(default_factory=list)

    def to_dict(self) -> dict:
        out = asdict(self)
        out["outlets"] = [o.to_dict() for o in self.outlets]
        return out


def new_plan(name: str) -> BusinessPlan:
    return BusinessPlan(id=generate_id(), name=str(name).strip() or "Untitled Plan")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

# camelCase keys produced by the browser build of the planner.
_KEY_ALIASES = {
    "estimated_sales_per_month": "estimatedSalesPerMonth",
    "target_growth_percent": "targetGrowthPercent",
    "sales_commission": "salesCommission",
    "payment_mode": "paymentMode",
    "product_id": "productId",
    "estimated_contribution": "estimatedContribution",
    "fixed_costs": "fixedCosts",
    "variable_costs": "variableCosts",
    "business_target": "businessTarget",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "target_revenue": "targetRevenue",
    "projection_period": "projectionPeriod",
    "revenue_growth_percent": "revenueGrowthPercent",
    "cost_growth_percent": "costGrowthPercent",
    "sales_closing_rate": "salesClosingRate",
    "cost_inflation_rate": "costInflationRate",
    "initial_investment": "initialInvestment",
    "monthly_revenue": "monthlyRevenue",
    "monthly_operational_costs": "monthlyOperationalCosts",
    "net_profit_margin": "netProfitMargin",
    "project_duration": "projectDuration",
    "ownership_percentage": "ownershipPercentage",
    "tax_rate": "taxRate",
    "inflation_rate": "inflationRate",
    "price_increase_rate": "priceIncreaseRate",
    "use_outlet_mode": "useOutletMode",
    "daily_revenue": "dailyRevenue",
    "operating_days_per_month": "operatingDaysPerMonth",
}


def _get(raw: dict, key: str, default: Any = None) -> Any:
    if key in raw:
        return raw[key]
    alias = _KEY_ALIASES.get(key)
    if alias and alias in raw:
        return raw[alias]
    return default


def _number(raw: dict, key: str, default: float, warnings: list[str], label: str, *, non_negative: bool = True) -> float:
    value = _get(raw, key, default)
    if value is None or value == "":
        return float(default)
    try:
        num = float(value)
    except (TypeError, ValueError):
        warnings.append(f"{label}.{key} invalid and reset to default.")
        return float(default)
    if not math.isfinite(num):
        warnings.append(f"{label}.{key} is not a finite number and was reset to default.")
        return float(default)
    if non_negative and num < 0:
        warnings.append(f"{label}.{key} cannot be negative; clamped to 0.")
        return 0.0
    return num


def _choice(raw: dict, key: str, options: tuple[str, ...], default: str, warnings: list[str], label: str) -> str:
    value = str(_get(raw, key, default) or default)
    if value not in options:
        warnings.append(f"{label}.{key} '{value}' invalid; reset to {default}.")
        return default
    return value


def _text(raw: dict, key: str, default: str = "") -> str:
    value = _get(raw, key, default)
    return "" if value is None else str(value)


def _bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        txt = value.strip().lower()
        if txt in {"1", "true", "yes", "y", "on"}:
            return True
        if txt in {"0", "false", "no", "n", "off"}:
            return False
    return default


def _records(raw: dict, key: str, warnings: list[str]) -> list[dict]:
    value = _get(raw, key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        warnings.append(f"{key} ignored because it is not a list.")
        return []
    out: list[dict] = []
    for idx, item in enumerate(value):
        if not isinstance(item, dict):
            warnings.append(f"{key}[{idx}] ignored because entry is not an object.")
            continue
        out.append(item)
    return out


def commission_from_dict(raw: Any, warnings: list[str], label: str) -> Commission | None:
    if not isinstance(raw, dict):
        return None
    product_id = _get(raw, "product_id")
    return Commission(
        type=_choice(raw, "type", COMMISSION_TYPES, "percentage", warnings, label),
        value=_number(raw, "value", 0.0, warnings, label),
        product_id=str(product_id) if product_id else None,
    )


def product_from_dict(raw: dict, warnings: list[str] | None = None) -> Product:
    warnings = warnings if warnings is not None else []
    label = f"product[{raw.get('name', '')}]"
    return Product(
        id=_text(raw, "id") or generate_id(),
        name=_text(raw, "name"),
        price=_number(raw, "price", 0.0, warnings, label),
        type=_choice(raw, "type", PRODUCT_TYPES, "one-time", warnings, label),
        estimated_sales_per_month=_number(raw, "estimated_sales_per_month", 0.0, warnings, label),
        target_growth_percent=_number(raw, "target_growth_percent", 0.0, warnings, label),
        sales_commission=commission_from_dict(_get(raw, "sales_commission"), warnings, label) or Commission(),
    )


def employee_from_dict(raw: dict, warnings: list[str] | None = None) -> Employee:
    warnings = warnings if warnings is not None else []
    label = f"employee[{raw.get('name', '')}]"
    mode = _choice(raw, "payment_mode", PAYMENT_MODES, "fixed", warnings, label)
    common = {
        "id": _text(raw, "id") or generate_id(),
        "name": _text(raw, "name"),
        "role": _text(raw, "role"),
        "estimated_contribution": _text(raw, "estimated_contribution"),
    }
    if mode == "commission":
        return CommissionedEmployee(commission=commission_from_dict(_get(raw, "commission"), warnings, label), **common)
    return SalariedEmployee(salary=_number(raw, "salary", 0.0, warnings, label), **common)


def fixed_cost_from_dict(raw: dict, warnings: list[str] | None = None) -> FixedCost:
    warnings = warnings if warnings is not None else []
    label = f"fixed_cost[{raw.get('name', '')}]"
    return FixedCost(
        id=_text(raw, "id") or generate_id(),
        name=_text(raw, "name"),
        amount=_number(raw, "amount", 0.0, warnings, label),
        category=_choice(raw, "category", FIXED_COST_CATEGORIES, "other", warnings, label),
    )


def variable_cost_from_dict(raw: dict, warnings: list[str] | None = None) -> VariableCost:
    warnings = warnings if warnings is not None else []
    label = f"variable_cost[{raw.get('name', '')}]"
    product_id = _get(raw, "product_id")
    return VariableCost(
        id=_text(raw, "id") or generate_id(),
        name=_text(raw, "name"),
        type=_choice(raw, "type", VARIABLE_COST_TYPES, "fixed", warnings, label),
        value=_number(raw, "value", 0.0, warnings, label),
        product_id=str(product_id) if product_id else None,
        category=_choice(raw, "category", VARIABLE_COST_CATEGORIES, "other", warnings, label),
    )


def business_target_from_dict(raw: Any, warnings: list[str] | None = None) -> BusinessTarget:
    warnings = warnings if warnings is not None else []
    if not isinstance(raw, dict):
        warnings.append("business_target missing; defaults applied.")
        return BusinessTarget()
    label = "business_target"
    d = DEFAULT_BUSINESS_TARGET
    period = int(_number(raw, "projection_period", d["projection_period"], warnings, label))
    if not (1 <= period <= MAX_PROJECTION_MONTHS):
        warnings.append(f"business_target.projection_period clamped to [1, {MAX_PROJECTION_MONTHS}].")
        period = int(min(MAX_PROJECTION_MONTHS, max(1, period)))
    return BusinessTarget(
        target_revenue=_number(raw, "target_revenue", d["target_revenue"], warnings, label),
        projection_period=period,
        revenue_growth_percent=_number(raw, "revenue_growth_percent", d["revenue_growth_percent"], warnings, label),
        cost_growth_percent=_number(raw, "cost_growth_percent", d["cost_growth_percent"], warnings, label),
        sales_closing_rate=min(100.0, _number(raw, "sales_closing_rate", d["sales_closing_rate"], warnings, label)),
        cost_inflation_rate=_number(raw, "cost_inflation_rate", d["cost_inflation_rate"], warnings, label),
    )


def plan_from_dict(raw: dict) -> tuple[BusinessPlan, list[str]]:
    """Build a plan from a serialized payload (snake_case or camelCase keys)."""
    warnings: list[str] = []
    payload = raw if isinstance(raw, dict) else {}
    plan = BusinessPlan(
        id=_text(payload, "id") or generate_id(),
        name=_text(payload, "name") or "Untitled Plan",
        products=[product_from_dict(r, warnings) for r in _records(payload, "products", warnings)],
        employees=[employee_from_dict(r, warnings) for r in _records(payload, "employees", warnings)],
        fixed_costs=[fixed_cost_from_dict(r, warnings) for r in _records(payload, "fixed_costs", warnings)],
        variable_costs=[variable_cost_from_dict(r, warnings) for r in _records(payload, "variable_costs", warnings)],
        business_target=business_target_from_dict(_get(payload, "business_target"), warnings),
        created_at=_text(payload, "created_at") or _now_iso(),
        updated_at=_text(payload, "updated_at") or _now_iso(),
    )
    return plan, warnings


def outlet_from_dict(raw: dict, warnings: list[str] | None = None) -> Outlet:
    warnings = warnings if warnings is not None else []
    label = f"outlet[{raw.get('name', '')}]"
    days = int(_number(raw, "operating_days_per_month", 30, warnings, label))
    if not (0 <= days <= 31):
        warnings.append(f"{label}.operating_days_per_month clamped to [0, 31].")
        days = int(min(31, max(0, days)))
    return Outlet(
        id=_text(raw, "id") or generate_id(),
        name=_text(raw, "name"),
        daily_revenue=_number(raw, "daily_revenue", 0.0, warnings, label),
        operating_days_per_month=days,
        monthly_operational_costs=_number(raw, "monthly_operational_costs", 0.0, warnings, label),
    )


def roi_config_from_dict(raw: dict) -> tuple[ROIConfig, list[str]]:
    warnings: list[str] = []
    payload = raw if isinstance(raw, dict) else {}
    d = DEFAULT_ROI_CONFIG
    label = "roi"
    duration = int(_number(payload, "project_duration", d["project_duration"], warnings, label))
    if not (1 <= duration <= MAX_PROJECT_DURATION_YEARS):
        warnings.append(f"roi.project_duration clamped to [1, {MAX_PROJECT_DURATION_YEARS}].")
        duration = int(min(MAX_PROJECT_DURATION_YEARS, max(1, duration)))
    config = ROIConfig(
        initial_investment=_number(payload, "initial_investment", d["initial_investment"], warnings, label),
        monthly_revenue=_number(payload, "monthly_revenue", d["monthly_revenue"], warnings, label),
        monthly_operational_costs=_number(
            payload, "monthly_operational_costs", d["monthly_operational_costs"], warnings, label
        ),
        net_profit_margin=min(100.0, _number(payload, "net_profit_margin", d["net_profit_margin"], warnings, label)),
        project_duration=duration,
        ownership_percentage=min(
            100.0, _number(payload, "ownership_percentage", d["ownership_percentage"], warnings, label)
        ),
        tax_rate=min(100.0, _number(payload, "tax_rate", d["tax_rate"], warnings, label)),
        inflation_rate=_number(payload, "inflation_rate", d["inflation_rate"], warnings, label),
        price_increase_rate=_number(payload, "price_increase_rate", d["price_increase_rate"], warnings, label),
        scenario=_choice(payload, "scenario", ROI_SCENARIOS, d["scenario"], warnings, label),
        use_outlet_mode=_bool(_get(payload, "use_outlet_mode", d["use_outlet_mode"]), d["use_outlet_mode"]),
        outlets=[outlet_from_dict(r, warnings) for r in _records(payload, "outlets", warnings)],
    )
    return config, warnings


# ---------------------------------------------------------------------------
# Validation (form boundary)
# ---------------------------------------------------------------------------


def validate_plan(plan: BusinessPlan) -> None:
    for p in plan.products:
        if not p.name.strip():
            raise ValueError("Product name is required.")
        if p.price < 0 or p.estimated_sales_per_month < 0:
            raise ValueError(f"Product '{p.name}' price and sales must be non-negative.")
    for e in plan.employees:
        if not e.name.strip():
            raise ValueError("Employee name is required.")
        if not e.role.strip():
            raise ValueError(f"Employee '{e.name}' role is required.")
        if isinstance(e, SalariedEmployee) and e.salary < 0:
            raise ValueError(f"Employee '{e.name}' salary must be non-negative.")
        if isinstance(e, CommissionedEmployee) and e.commission is not None and e.commission.value < 0:
            raise ValueError(f"Employee '{e.name}' commission must be non-negative.")
    for c in plan.fixed_costs:
        if not c.name.strip():
            raise ValueError("Fixed cost name is required.")
        if c.amount < 0:
            raise ValueError(f"Fixed cost '{c.name}' amount must be non-negative.")
    for c in plan.variable_costs:
        if not c.name.strip():
            raise ValueError("Variable cost name is required.")
        if c.value < 0:
            raise ValueError(f"Variable cost '{c.name}' value must be non-negative.")
    t = plan.business_target
    if t.target_revenue < 1:
        raise ValueError("target_revenue must be greater than 0.")
    if not (1 <= int(t.projection_period) <= MAX_PROJECTION_MONTHS):
        raise ValueError(f"projection_period must be in [1,{MAX_PROJECTION_MONTHS}].")
    if t.revenue_growth_percent < 0 or t.cost_growth_percent < 0 or t.cost_inflation_rate < 0:
        raise ValueError("Growth and inflation rates must be non-negative.")
    if not (0 <= t.sales_closing_rate <= 100):
        raise ValueError("sales_closing_rate must be in [0,100].")


def validate_roi_config(config: ROIConfig) -> None:
    if config.initial_investment < 0:
        raise ValueError("initial_investment must be non-negative.")
    if config.monthly_revenue < 0 or config.monthly_operational_costs < 0:
        raise ValueError("monthly_revenue and monthly_operational_costs must be non-negative.")
    if not (0 <= config.net_profit_margin <= 100):
        raise ValueError("net_profit_margin must be in [0,100].")
    if not (1 <= int(config.project_duration) <= MAX_PROJECT_DURATION_YEARS):
        raise ValueError(f"project_duration must be in [1,{MAX_PROJECT_DURATION_YEARS}].")
    if not (0 <= config.ownership_percentage <= 100):
        raise ValueError("ownership_percentage must be in [0,100].")
    if not (0 <= config.tax_rate <= 100):
        raise ValueError("tax_rate must be in [0,100].")
    if config.scenario not in ROI_SCENARIOS:
        raise ValueError("scenario must be one of optimis/realistis/pesimis.")
    for outlet in config.outlets:
        if not (0 <= int(outlet.operating_days_per_month) <= 31):
            raise ValueError(f"Outlet '{outlet.name}' operating days must be in [0,31].")


# ---------------------------------------------------------------------------
# Bundles and import migration
# ---------------------------------------------------------------------------


def build_plan_bundle(plan: BusinessPlan) -> dict:
    return {
        "type": PLAN_TYPE,
        "schema_version": SCHEMA_VERSION,
        "name": plan.name,
        "saved_at": _now_iso(),
        "plan": plan.to_dict(),
    }


def build_simulation_bundle(name: str, config: ROIConfig) -> dict:
    return {
        "type": SIMULATION_TYPE,
        "schema_version": SCHEMA_VERSION,
        "name": name,
        "saved_at": _now_iso(),
        "config": config.to_dict(),
    }


_PLAN_KEYS = {
    "id", "name", "products", "employees", "fixed_costs", "variable_costs", "business_target",
    "created_at", "updated_at",
}
_ROI_KEYS = set(DEFAULT_ROI_CONFIG.keys())


def _unknown_keys(payload: dict, known: set[str]) -> list[str]:
    known_all = known | {_KEY_ALIASES[k] for k in known if k in _KEY_ALIASES}
    return sorted(k for k in payload.keys() if k not in known_all)


def migrate_import_payload(payload: Any) -> tuple[str, Any, list[str], list[str]]:
    """Parse an imported plan/simulation payload.

    Returns: (kind, object, warnings, unknown_keys). ``kind`` is ``PLAN_TYPE``,
    ``SIMULATION_TYPE`` or ``""`` when the payload cannot be interpreted.
    """
    if not isinstance(payload, dict):
        return "", None, ["Import payload is not a JSON object."], []

    payload_type = payload.get("type")
    version = payload.get("schema_version")
    if payload_type == PLAN_TYPE:
        body = payload.get("plan", {})
        plan, warnings = plan_from_dict(deepcopy(body))
        if version != SCHEMA_VERSION:
            warnings.append(f"Imported schema_version={version}; migrated to schema_version={SCHEMA_VERSION}.")
        unknown = _unknown_keys(body, _PLAN_KEYS) if isinstance(body, dict) else []
        return PLAN_TYPE, plan, warnings, unknown
    if payload_type == SIMULATION_TYPE:
        body = payload.get("config", {})
        config, warnings = roi_config_from_dict(deepcopy(body))
        if version != SCHEMA_VERSION:
            warnings.append(f"Imported schema_version={version}; migrated to schema_version={SCHEMA_VERSION}.")
        unknown = _unknown_keys(body, _ROI_KEYS) if isinstance(body, dict) else []
        return SIMULATION_TYPE, config, warnings, unknown

    # Bare payloads: sniff the shape.
    if any(k in payload for k in ("products", "businessTarget", "business_target")):
        plan, warnings = plan_from_dict(payload)
        warnings.append("Imported legacy plan JSON without bundle metadata.")
        return PLAN_TYPE, plan, warnings, _unknown_keys(payload, _PLAN_KEYS)
    if any(k in payload for k in ("initial_investment", "initialInvestment")):
        config, warnings = roi_config_from_dict(payload)
        warnings.append("Imported legacy simulation JSON without bundle metadata.")
        return SIMULATION_TYPE, config, warnings, _unknown_keys(payload, _ROI_KEYS | {"netProfitMargin"})
    return "", None, ["Import payload is neither a business plan nor an ROI simulation."], sorted(payload.keys())
