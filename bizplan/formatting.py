"""Rupiah formatting and parsing helpers."""

from __future__ import annotations

import re


def _group_thousands(value: float) -> str:
    return f"{int(round(abs(value))):,}".replace(",", ".")


def format_number(value: float) -> str:
    """Dot-separated thousands without currency, '' for 0 (input display)."""
    if not value:
        return ""
    sign = "-" if value < 0 else ""
    return f"{sign}{_group_thousands(value)}"


def parse_formatted_number(text: str | None) -> float:
    """Strip everything except digits; empty input parses to 0."""
    digits = re.sub(r"[^\d]", "", str(text or ""))
    return float(digits) if digits else 0.0


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}Rp {_group_thousands(value)}"


def _scaled(value: float, divisor: float) -> str:
    scaled = value / divisor
    return f"{scaled:.0f}" if scaled >= 10 else f"{scaled:.1f}"


def format_currency_display(value: float) -> str:
    """Human-readable magnitude (Rp 20 Miliar, Rp 1.5 Juta); '' for 0."""
    if not value:
        return ""
    if value >= 1_000_000_000:
        return f"Rp {_scaled(value, 1_000_000_000)} Miliar"
    if value >= 1_000_000:
        return f"Rp {_scaled(value, 1_000_000)} Juta"
    if value >= 1_000:
        return f"Rp {_scaled(value, 1_000)} Ribu"
    return format_currency(value)


def format_currency_short(value: float) -> str:
    if value >= 1_000_000_000:
        return f"Rp {value / 1_000_000_000:.1f}M"
    if value >= 1_000_000:
        return f"Rp {value / 1_000_000:.1f}jt"
    if value >= 1_000:
        return f"Rp {value / 1_000:.0f}rb"
    return format_currency(value)


def format_percent(value: float, digits: int = 2) -> str:
    return f"{value:.{digits}f}%"


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", str(name or "").strip().lower())
    return slug or "plan"
