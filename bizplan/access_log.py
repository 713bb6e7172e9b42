"""Page-visit access log with IP geolocation and admin statistics."""

from __future__ import annotations

import json
import math
import os
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import requests

from bizplan.runtime_logging import append_runtime_event


ACCESS_LOG_DIR = Path(".local_store") / "logs"

_STORAGE_ENV_VAR = "BIZPLAN_STORAGE_ROOT"
_GEO_ENV_VAR = "BIZPLAN_GEO_LOOKUP_URL"
DEFAULT_GEO_LOOKUP_URL = "https://ipapi.co/{ip}/json/"
GEO_LOOKUP_TIMEOUT_SECONDS = 3
UNKNOWN = "Unknown"
LOCAL_ADDRESSES = {"", "localhost", "127.0.0.1", "::1"}


def configure_access_log_root(path_value: str | Path | None) -> Path:
    global ACCESS_LOG_DIR
    text = "" if path_value is None else str(path_value).strip()
    root = Path(os.path.expandvars(os.path.expanduser(text))) if text else Path(".local_store")
    ACCESS_LOG_DIR = root / "logs"
    return ACCESS_LOG_DIR


def geo_lookup_url(ip: str) -> str:
    template = os.getenv(_GEO_ENV_VAR, "").strip() or DEFAULT_GEO_LOOKUP_URL
    return template.format(ip=ip)


def lookup_location(ip: str) -> dict[str, str]:
    """Country/city for an IP; any failure degrades to Unknown/Unknown."""
    if str(ip).strip() in LOCAL_ADDRESSES:
        return {"country": UNKNOWN, "city": UNKNOWN}
    try:
        resp = requests.get(geo_lookup_url(ip), timeout=GEO_LOOKUP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        append_runtime_event("WARNING", "geo_lookup_failed", "Failed to get location info.", {"ip": ip}, exc=exc)
        return {"country": UNKNOWN, "city": UNKNOWN}
    if not isinstance(data, dict):
        return {"country": UNKNOWN, "city": UNKNOWN}
    return {
        "country": data.get("country_name") or UNKNOWN,
        "city": data.get("city") or UNKNOWN,
    }


def _log_file_for(day: datetime) -> Path:
    return ACCESS_LOG_DIR / f"access-{day.strftime('%Y-%m-%d')}.log"


def record_access(ip: str, user_agent: str, page: str, session_id: str, now: datetime | None = None) -> None:
    """Append one visit to today's log file; failures are logged, never raised."""
    now = now or datetime.now(timezone.utc)
    try:
        entry = {
            "timestamp": now.isoformat(),
            "ip": ip,
            "userAgent": user_agent,
            "page": page,
            "sessionId": session_id,
            **lookup_location(ip),
        }
        ACCESS_LOG_DIR.mkdir(parents=True, exist_ok=True)
        with _log_file_for(now).open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except Exception as exc:
        append_runtime_event("ERROR", "access_log_failed", "Failed to log access.", {"page": page}, exc=exc)


def read_access_logs(days: int = 30, now: datetime | None = None) -> list[dict[str, Any]]:
    """Entries from the last ``days`` daily files, newest first."""
    now = now or datetime.now(timezone.utc)
    logs: list[dict[str, Any]] = []
    for i in range(max(0, int(days))):
        path = _log_file_for(now - timedelta(days=i))
        if not path.exists():
            continue
        for line in path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                logs.append(json.loads(line))
            except json.JSONDecodeError:
                append_runtime_event("WARNING", "access_log_parse_error", "Failed to parse log line.", {"line": line})
    return sorted(logs, key=lambda e: str(e.get("timestamp", "")), reverse=True)


def _hour_of(timestamp: str) -> int | None:
    try:
        return datetime.fromisoformat(str(timestamp).replace("Z", "+00:00")).hour
    except ValueError:
        return None


def access_stats(logs: list[dict[str, Any]]) -> dict[str, Any]:
    countries = Counter(e.get("country") or UNKNOWN for e in logs)
    pages = Counter(e.get("page", "") for e in logs)
    hours = Counter(h for h in (_hour_of(e.get("timestamp", "")) for e in logs) if h is not None)
    return {
        "total_visits": len(logs),
        "unique_ips": len({e.get("ip") for e in logs}),
        "country_stats": countries.most_common(10),
        "page_stats": pages.most_common(),
        "hour_stats": dict(sorted(hours.items())),
    }


def paginate(logs: list[dict[str, Any]], page: int = 1, limit: int = 50) -> dict[str, Any]:
    page = max(1, int(page))
    limit = max(1, int(limit))
    start = (page - 1) * limit
    return {
        "logs": logs[start : start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": len(logs),
            "pages": math.ceil(len(logs) / limit),
        },
    }


configure_access_log_root(os.getenv(_STORAGE_ENV_VAR, ""))
