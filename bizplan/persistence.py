"""Local persistence for business plans and shareable ROI simulations."""

from __future__ import annotations

import json
import os
import random
import string
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from bizplan.roi import ROIResults
from bizplan.runtime_logging import append_runtime_event
from bizplan.schema import (
    BusinessPlan,
    ROIConfig,
    build_plan_bundle,
    migrate_import_payload,
    plan_from_dict,
)


STORE_DIR = Path(".local_store")
PLAN_STORE_FILE = STORE_DIR / "plans.json"
SIMULATION_STORE_FILE = STORE_DIR / "simulations.json"

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZPLAN_STORAGE_ROOT"
_DATABASE_ENV_VAR = "BIZPLAN_DATABASE_URL"

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


class SimulationStoreError(Exception):
    """Raised when a simulation cannot be persisted."""


class CodeCollision(SimulationStoreError):
    """Raised by a repository insert when the code is already taken."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _expand_storage_root(path_value: str | Path | None) -> Path:
    text = "" if path_value is None else str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Re-point the storage root used for plan/simulation files."""
    global STORE_DIR, PLAN_STORE_FILE, SIMULATION_STORE_FILE
    STORE_DIR = _expand_storage_root(path_value)
    PLAN_STORE_FILE = STORE_DIR / "plans.json"
    SIMULATION_STORE_FILE = STORE_DIR / "simulations.json"
    return STORE_DIR


def storage_root_path() -> str:
    return str(STORE_DIR.resolve())


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR, ""))


def _load_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        append_runtime_event("WARNING", "store_corrupt", "Store file is not valid JSON; treating as empty.", {"path": str(path)})
        return {}
    return data if isinstance(data, dict) else {}


def _save_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(f"{path.suffix}.tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


# ---------------------------------------------------------------------------
# Plans (key-value by plan id)
# ---------------------------------------------------------------------------


def list_saved_plans() -> list[dict]:
    """Summaries of saved plans, most recently updated first."""
    rows = []
    for plan_id, bundle in _load_json(PLAN_STORE_FILE).items():
        body = bundle.get("plan", {}) if isinstance(bundle, dict) else {}
        rows.append(
            {
                "id": plan_id,
                "name": bundle.get("name", "") if isinstance(bundle, dict) else "",
                "updated_at": body.get("updated_at", ""),
                "products": len(body.get("products", [])),
            }
        )
    return sorted(rows, key=lambda r: r["updated_at"], reverse=True)


def save_plan(plan: BusinessPlan, overwrite: bool = True) -> tuple[bool, str]:
    if not plan.name.strip():
        return False, "Name is required."
    store = _load_json(PLAN_STORE_FILE)
    if plan.id in store and not overwrite:
        return False, "Plan already exists."
    store[plan.id] = build_plan_bundle(plan)
    _save_json(PLAN_STORE_FILE, store)
    return True, "Saved."


def load_plan(plan_id: str) -> BusinessPlan | None:
    bundle = _load_json(PLAN_STORE_FILE).get(plan_id)
    if not isinstance(bundle, dict):
        return None
    plan, warnings = plan_from_dict(deepcopy(bundle.get("plan", {})))
    if warnings:
        append_runtime_event("WARNING", "plan_load_warnings", "Saved plan needed repairs.", {"id": plan_id, "warnings": warnings})
    return plan


def delete_plan(plan_id: str) -> bool:
    store = _load_json(PLAN_STORE_FILE)
    if plan_id not in store:
        return False
    del store[plan_id]
    _save_json(PLAN_STORE_FILE, store)
    return True


def parse_import_json(raw_json: str | bytes) -> tuple[str, object, list[str], list[str]]:
    if isinstance(raw_json, bytes):
        try:
            raw_json = raw_json.decode("utf-8")
        except UnicodeDecodeError:
            return "", None, ["Import file is not UTF-8 text."], []
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError:
        return "", None, ["Could not parse import JSON."], []
    return migrate_import_payload(payload)


# ---------------------------------------------------------------------------
# Simulations (shareable by code)
# ---------------------------------------------------------------------------


def generate_simulation_code() -> str:
    return "".join(random.choices(CODE_ALPHABET, k=CODE_LENGTH))


def normalize_code(code: str) -> str:
    return str(code).strip().upper()


def results_payload(results: ROIResults) -> dict:
    """JSON-ready snapshot of simulator results stored next to the inputs."""
    return {
        "monthly_revenue": results.monthly_revenue,
        "monthly_costs": results.monthly_costs,
        "monthly_gross_profit": results.monthly_gross_profit,
        "monthly_net_profit": results.monthly_net_profit,
        "monthly_after_tax_profit": results.monthly_after_tax_profit,
        "monthly_owner_profit": results.monthly_owner_profit,
        "monthly_roi": results.monthly_roi,
        "yearly_roi": results.yearly_roi,
        "break_even_months": results.break_even_months,
        "total_return": results.total_return,
        "yearly_projections": results.yearly.to_dict(orient="records"),
    }


class SimulationRepository:
    """Code-keyed store for ROI simulations.

    Subclasses implement ``_insert`` (raising ``CodeCollision`` when the code
    exists), ``load``, ``list_all``, ``update`` and ``delete``.
    """

    code_factory: Callable[[], str] = staticmethod(generate_simulation_code)

    def _insert(self, record: dict) -> None:
        raise NotImplementedError

    def save(self, name: str, config: ROIConfig, results: dict) -> str:
        if not str(name).strip():
            raise SimulationStoreError("Simulation name is required.")
        now = _now_iso()
        record = {
            "code": self.code_factory(),
            "name": str(name).strip(),
            "data": config.to_dict(),
            "results": deepcopy(results),
            "created_at": now,
            "updated_at": now,
        }
        try:
            self._insert(record)
        except CodeCollision:
            # One retry with a fresh code.
            record["code"] = self.code_factory()
            self._insert(record)
        return record["code"]

    def load(self, code: str) -> dict | None:
        raise NotImplementedError

    def list_all(self) -> list[dict]:
        raise NotImplementedError

    def update(self, code: str, **fields) -> bool:
        raise NotImplementedError

    def delete(self, code: str) -> bool:
        raise NotImplementedError


_UPDATABLE_FIELDS = {"name", "data", "results"}


class LocalSimulationRepository(SimulationRepository):
    """Simulations kept in ``simulations.json`` under the storage root."""

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else SIMULATION_STORE_FILE

    def _insert(self, record: dict) -> None:
        store = _load_json(self.path)
        if record["code"] in store:
            raise CodeCollision(record["code"])
        store[record["code"]] = record
        _save_json(self.path, store)

    def load(self, code: str) -> dict | None:
        record = _load_json(self.path).get(normalize_code(code))
        return deepcopy(record) if isinstance(record, dict) else None

    def list_all(self) -> list[dict]:
        records = [r for r in _load_json(self.path).values() if isinstance(r, dict)]
        return sorted(records, key=lambda r: r.get("created_at", ""), reverse=True)

    def update(self, code: str, **fields) -> bool:
        code = normalize_code(code)
        store = _load_json(self.path)
        if code not in store:
            return False
        for key, value in fields.items():
            if key in _UPDATABLE_FIELDS:
                store[code][key] = deepcopy(value)
        store[code]["updated_at"] = _now_iso()
        _save_json(self.path, store)
        return True

    def delete(self, code: str) -> bool:
        code = normalize_code(code)
        store = _load_json(self.path)
        if code not in store:
            return False
        del store[code]
        _save_json(self.path, store)
        return True


def get_simulation_repository() -> SimulationRepository:
    """SQL repository when ``BIZPLAN_DATABASE_URL`` is set, else local JSON."""
    url = os.getenv(_DATABASE_ENV_VAR, "").strip()
    if url:
        from bizplan.remote_store import SqlSimulationRepository

        return SqlSimulationRepository(url)
    return LocalSimulationRepository()


configure_storage_root(storage_root_from_env())
