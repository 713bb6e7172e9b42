"""In-memory holder for the current business plan and its mutations."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pandas as pd

from bizplan.metrics import BusinessAnalysis, analyze_plan
from bizplan.model import MonthlyProjection, project, run_projection
from bizplan.schema import (
    BusinessPlan,
    Employee,
    FixedCost,
    Product,
    VariableCost,
    employee_from_dict,
    generate_id,
    new_plan,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlanStore:
    """Holds at most one current plan; mutations without a plan are no-ops.

    Child ids are assigned on insertion. Engines read ``current`` and never
    mutate it.
    """

    def __init__(self, plan: BusinessPlan | None = None):
        self.current: BusinessPlan | None = plan

    def create_plan(self, name: str) -> BusinessPlan:
        self.current = new_plan(name)
        return self.current

    def load_plan(self, plan: BusinessPlan) -> None:
        self.current = plan

    def clear(self) -> None:
        self.current = None

    def _touch(self) -> None:
        if self.current is not None:
            self.current.updated_at = _now_iso()

    def _add(self, attr: str, item):
        if self.current is None:
            return None
        item = replace(item, id=generate_id())
        getattr(self.current, attr).append(item)
        self._touch()
        return item.id

    def _update(self, attr: str, item_id: str, updates: dict) -> bool:
        if self.current is None:
            return False
        items = getattr(self.current, attr)
        for idx, item in enumerate(items):
            if item.id == item_id:
                items[idx] = replace(item, **updates)
                self._touch()
                return True
        return False

    def _remove(self, attr: str, item_id: str) -> bool:
        if self.current is None:
            return False
        items = getattr(self.current, attr)
        kept = [i for i in items if i.id != item_id]
        if len(kept) == len(items):
            return False
        setattr(self.current, attr, kept)
        self._touch()
        return True

    def add_product(self, product: Product) -> str | None:
        return self._add("products", product)

    def update_product(self, product_id: str, **updates) -> bool:
        return self._update("products", product_id, updates)

    def remove_product(self, product_id: str) -> bool:
        return self._remove("products", product_id)

    def add_employee(self, employee: Employee) -> str | None:
        return self._add("employees", employee)

    def update_employee(self, employee_id: str, **updates) -> bool:
        if self.current is None:
            return False
        mode = updates.pop("payment_mode", None)
        for idx, emp in enumerate(self.current.employees):
            if emp.id != employee_id:
                continue
            if mode is not None and mode != emp.payment_mode:
                # Switching variant: rebuild from the merged record.
                merged = {**emp.to_dict(), **updates, "payment_mode": mode}
                self.current.employees[idx] = employee_from_dict(merged)
            else:
                self.current.employees[idx] = replace(emp, **updates)
            self._touch()
            return True
        return False

    def remove_employee(self, employee_id: str) -> bool:
        return self._remove("employees", employee_id)

    def add_fixed_cost(self, cost: FixedCost) -> str | None:
        return self._add("fixed_costs", cost)

    def update_fixed_cost(self, cost_id: str, **updates) -> bool:
        return self._update("fixed_costs", cost_id, updates)

    def remove_fixed_cost(self, cost_id: str) -> bool:
        return self._remove("fixed_costs", cost_id)

    def add_variable_cost(self, cost: VariableCost) -> str | None:
        return self._add("variable_costs", cost)

    def update_variable_cost(self, cost_id: str, **updates) -> bool:
        return self._update("variable_costs", cost_id, updates)

    def remove_variable_cost(self, cost_id: str) -> bool:
        return self._remove("variable_costs", cost_id)

    def update_business_target(self, **updates) -> bool:
        if self.current is None:
            return False
        self.current.business_target = replace(self.current.business_target, **updates)
        self._touch()
        return True

    def projection_frame(self) -> pd.DataFrame:
        if self.current is None:
            return pd.DataFrame()
        return run_projection(self.current)

    def projections(self) -> list[MonthlyProjection]:
        if self.current is None:
            return []
        return project(self.current)

    def analysis(self) -> BusinessAnalysis | None:
        return analyze_plan(self.current)


def edited_cells(original: pd.DataFrame, edited: pd.DataFrame, fields: list[str]) -> list[tuple[str, dict]]:
    """Per-row updates from a data editor, keyed by the row's ``id``.

    Cleared cells come back as NaN/None and are skipped, keeping the stored value.
    """
    changes: list[tuple[str, dict]] = []
    for idx in range(min(len(original), len(edited))):
        updates = {}
        for name in fields:
            before, after = original.iloc[idx][name], edited.iloc[idx][name]
            if pd.isna(after) or before == after:
                continue
            updates[name] = float(after) if isinstance(before, float) else after
        if updates:
            changes.append((original.iloc[idx]["id"], updates))
    return changes
