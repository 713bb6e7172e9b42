"""Runtime diagnostics and product analytics event log."""

from __future__ import annotations

import json
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from streamlit.runtime.scriptrunner import get_script_run_ctx


LOG_DIR = Path(".local_store")
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / "runtime_events.jsonl"

_DEFAULT_LOG_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZPLAN_STORAGE_ROOT"

_EXCEPTION_HOOK_INSTALLED = False

# Product analytics events written through ``track``.
ANALYTICS_EVENTS = frozenset(
    {
        "page_view",
        "plan_created",
        "plan_imported",
        "plan_saved",
        "scenario_run",
        "simulation_saved",
        "simulation_loaded",
        "simulation_compared",
        "export_done",
    }
)
_ANALYTICS_PREFIX = "analytics."


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_default(value: Any):
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


def _expand_log_root(path_value: str | Path | None) -> Path:
    text = "" if path_value is None else str(path_value).strip()
    if not text:
        return _DEFAULT_LOG_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_log_root(path_value: str | Path | None) -> Path:
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    LOG_DIR = _expand_log_root(path_value)
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / "runtime_events.jsonl"
    return LOG_DIR


def runtime_log_path() -> str:
    return str(RUNTIME_EVENTS_LOG_FILE.resolve())


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    """Append a structured event record to the JSONL log."""
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        record: dict[str, Any] = {
            "timestamp_utc": _now_iso(),
            "level": str(level).upper(),
            "event": str(event),
            "message": str(message),
            "context": context or {},
        }
        if exc is not None:
            record["exception_type"] = type(exc).__name__
            record["exception_message"] = str(exc)
            if exc.__traceback__ is not None:
                record["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            else:
                record["traceback"] = traceback.format_exc()
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=_json_default, ensure_ascii=False) + "\n")
    except Exception:
        # Diagnostics never crash the app.
        pass


def plan_context(plan: Any) -> dict[str, Any]:
    """Identifying fields of a business plan for analytics records."""
    if plan is None:
        return {}
    target = getattr(plan, "business_target", None)
    return {
        "plan_id": getattr(plan, "id", ""),
        "plan_name": getattr(plan, "name", ""),
        "products": len(getattr(plan, "products", []) or []),
        "employees": len(getattr(plan, "employees", []) or []),
        "projection_period": getattr(target, "projection_period", None),
    }


def simulation_context(config: Any, code: str | None = None) -> dict[str, Any]:
    """Identifying fields of an ROI simulation for analytics records."""
    context: dict[str, Any] = {
        "scenario": getattr(config, "scenario", ""),
        "project_duration": getattr(config, "project_duration", None),
        "outlet_mode": bool(getattr(config, "use_outlet_mode", False)),
        "outlets": len(getattr(config, "outlets", []) or []),
    }
    if code:
        context["code"] = code
    return context


def track(event: str, **context: Any) -> None:
    """Record a product analytics event; names outside ``ANALYTICS_EVENTS`` are flagged."""
    if event not in ANALYTICS_EVENTS:
        append_runtime_event("WARNING", "analytics_unknown_event", f"Unknown analytics event '{event}'.", context)
        return
    append_runtime_event("INFO", f"{_ANALYTICS_PREFIX}{event}", event.replace("_", " "), context)


def analytics_summary(events: list[dict[str, Any]]) -> dict[str, int]:
    """Count of each analytics event in ``events``, most frequent first."""
    counts: dict[str, int] = {}
    for record in events:
        name = str(record.get("event", ""))
        if name.startswith(_ANALYTICS_PREFIX):
            key = name[len(_ANALYTICS_PREFIX) :]
            counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


def read_runtime_events(limit: int = 200, level: str | None = None) -> list[dict[str, Any]]:
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    out: list[dict[str, Any]] = []
    for line in lines:
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            record = {
                "timestamp_utc": _now_iso(),
                "level": "ERROR",
                "event": "log_parse_error",
                "message": "Malformed log line encountered.",
                "context": {"line": line},
            }
        if level and record.get("level") != level.upper():
            continue
        out.append(record)
    return out[-int(limit) :]


def install_global_exception_logging() -> None:
    """Capture uncaught exceptions raised inside Streamlit script runs."""
    global _EXCEPTION_HOOK_INSTALLED
    if _EXCEPTION_HOOK_INSTALLED:
        return
    old_hook = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        try:
            if get_script_run_ctx() is None:
                old_hook(exc_type, exc, exc_tb)
                return
            append_runtime_event(
                level="ERROR",
                event="uncaught_exception",
                message=str(exc),
                context={"traceback": "".join(traceback.format_exception(exc_type, exc, exc_tb))},
                exc=exc,
            )
        except Exception:
            pass
        old_hook(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _EXCEPTION_HOOK_INSTALLED = True


configure_log_root(os.getenv(_STORAGE_ENV_VAR, ""))
