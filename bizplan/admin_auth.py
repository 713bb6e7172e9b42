"""Shared-secret admin login and expiring session tokens."""

from __future__ import annotations

import base64
import binascii
import hmac
import os
import time


TOKEN_TTL_MS = 8 * 60 * 60 * 1000


class AdminConfigError(RuntimeError):
    """Admin credentials are not configured in the environment."""


def admin_credentials() -> tuple[str, str]:
    username = os.getenv("ADMIN_USERNAME", "")
    password = os.getenv("ADMIN_PASSWORD", "")
    if not username or not password:
        raise AdminConfigError("Admin credentials not configured.")
    return username, password


def _now_ms() -> int:
    return int(time.time() * 1000)


def issue_token(username: str, now_ms: int | None = None) -> str:
    stamp = _now_ms() if now_ms is None else int(now_ms)
    return base64.b64encode(f"{username}:{stamp}".encode("utf-8")).decode("ascii")


def login(username: str, password: str) -> str | None:
    """Token for valid credentials, ``None`` otherwise.

    Raises ``AdminConfigError`` when the environment lacks credentials.
    """
    admin_user, admin_pass = admin_credentials()
    user_ok = hmac.compare_digest(str(username), admin_user)
    pass_ok = hmac.compare_digest(str(password), admin_pass)
    if user_ok and pass_ok:
        return issue_token(admin_user)
    return None


def verify_token(token: str | None, now_ms: int | None = None) -> bool:
    if not token:
        return False
    try:
        decoded = base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")
        username, stamp = decoded.rsplit(":", 1)
        issued = int(stamp)
    except (binascii.Error, UnicodeError, ValueError):
        return False
    now = _now_ms() if now_ms is None else int(now_ms)
    expected = os.getenv("ADMIN_USERNAME", "")
    return bool(expected) and username == expected and (now - issued) < TOKEN_TTL_MS
