from __future__ import annotations

import base64

import pytest

from bizplan.admin_auth import TOKEN_TTL_MS, AdminConfigError, issue_token, login, verify_token


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_USERNAME", "owner")
    monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")


def test_login_requires_configuration(monkeypatch):
    monkeypatch.delenv("ADMIN_USERNAME", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    with pytest.raises(AdminConfigError):
        login("owner", "s3cret")


def test_login_issues_verifiable_token(admin_env):
    token = login("owner", "s3cret")
    assert token is not None
    assert base64.b64decode(token).decode().startswith("owner:")
    assert verify_token(token)


def test_wrong_credentials_are_rejected(admin_env):
    assert login("owner", "nope") is None
    assert login("intruder", "s3cret") is None


def test_token_expires_after_ttl(admin_env):
    token = issue_token("owner", now_ms=1_000)
    assert verify_token(token, now_ms=1_000 + TOKEN_TTL_MS - 1)
    assert not verify_token(token, now_ms=1_000 + TOKEN_TTL_MS)


def test_malformed_or_foreign_tokens(admin_env):
    assert not verify_token(None)
    assert not verify_token("")
    assert not verify_token("***")
    assert not verify_token(base64.b64encode(b"no-separator").decode())
    assert not verify_token(issue_token("someone-else"))
