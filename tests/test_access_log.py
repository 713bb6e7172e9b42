from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import requests

from bizplan import access_log
from bizplan.access_log import access_stats, lookup_location, paginate, read_access_logs, record_access


class _FakeResponse:
    def __init__(self, payload, status_ok: bool = True):
        self._payload = payload
        self._status_ok = status_ok

    def raise_for_status(self):
        if not self._status_ok:
            raise requests.HTTPError("429 Too Many Requests")

    def json(self):
        return self._payload


NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def test_lookup_location_parses_provider_fields(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse({"country_name": "Indonesia", "city": "Bandung"})

    monkeypatch.setattr(access_log.requests, "get", fake_get)
    assert lookup_location("36.1.2.3") == {"country": "Indonesia", "city": "Bandung"}
    assert calls == [("https://ipapi.co/36.1.2.3/json/", access_log.GEO_LOOKUP_TIMEOUT_SECONDS)]


def test_lookup_location_degrades_to_unknown(monkeypatch):
    def failing_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(access_log.requests, "get", failing_get)
    assert lookup_location("8.8.8.8") == {"country": "Unknown", "city": "Unknown"}

    monkeypatch.setattr(access_log.requests, "get", lambda url, timeout: _FakeResponse({}, status_ok=False))
    assert lookup_location("8.8.4.4") == {"country": "Unknown", "city": "Unknown"}


def test_local_addresses_skip_network(monkeypatch):
    def boom(url, timeout):
        raise AssertionError("network should not be called")

    monkeypatch.setattr(access_log.requests, "get", boom)
    assert lookup_location("127.0.0.1")["country"] == "Unknown"
    assert lookup_location("localhost")["city"] == "Unknown"


def test_geo_url_override(monkeypatch):
    monkeypatch.setenv("BIZPLAN_GEO_LOOKUP_URL", "http://geo.internal/{ip}")
    assert access_log.geo_lookup_url("1.2.3.4") == "http://geo.internal/1.2.3.4"


def test_record_and_read_daily_files(monkeypatch, isolated_storage):
    monkeypatch.setattr(access_log.requests, "get", lambda url, timeout: _FakeResponse({"country_name": "Japan", "city": "Osaka"}))
    record_access("1.1.1.1", "UA/1", "Business Plan", "s1", now=NOW - timedelta(days=1))
    record_access("1.1.1.1", "UA/1", "ROI Simulator", "s1", now=NOW)
    record_access("localhost", "UA/2", "ROI Simulator", "s2", now=NOW + timedelta(minutes=5))

    log_file = isolated_storage / "logs" / "access-2026-03-14.log"
    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    entry = json.loads(lines[0])
    assert set(entry) == {"timestamp", "ip", "userAgent", "page", "sessionId", "country", "city"}
    assert entry["country"] == "Japan"

    logs = read_access_logs(days=7, now=NOW)
    assert [e["page"] for e in logs] == ["ROI Simulator", "ROI Simulator", "Business Plan"]
    assert logs[0]["country"] == "Unknown"
    assert len(read_access_logs(days=1, now=NOW)) == 2


def test_malformed_lines_are_skipped(isolated_storage):
    logs_dir = isolated_storage / "logs"
    logs_dir.mkdir(parents=True)
    (logs_dir / "access-2026-03-14.log").write_text(
        '{"timestamp": "2026-03-14T08:00:00+00:00", "ip": "9.9.9.9", "page": "Admin Logs"}\nnot-json\n\n',
        encoding="utf-8",
    )
    logs = read_access_logs(days=1, now=NOW)
    assert len(logs) == 1


def test_access_stats_and_pagination():
    logs = [
        {"timestamp": "2026-03-14T08:05:00+00:00", "ip": "a", "page": "Business Plan", "country": "Indonesia"},
        {"timestamp": "2026-03-14T08:45:00+00:00", "ip": "b", "page": "Business Plan", "country": "Indonesia"},
        {"timestamp": "2026-03-14T13:10:00+00:00", "ip": "a", "page": "ROI Simulator", "country": "Singapore"},
    ]
    stats = access_stats(logs)
    assert stats["total_visits"] == 3
    assert stats["unique_ips"] == 2
    assert stats["country_stats"][0] == ("Indonesia", 2)
    assert dict(stats["page_stats"]) == {"Business Plan": 2, "ROI Simulator": 1}
    assert stats["hour_stats"] == {8: 2, 13: 1}

    page = paginate(logs, page=2, limit=2)
    assert page["logs"] == logs[2:]
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert paginate([], page=0, limit=50)["pagination"]["pages"] == 0
