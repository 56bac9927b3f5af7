from __future__ import annotations

import logging

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from apps.api_gateway.deps import auth_dep
from voice_command_agent.common.config import get_settings


def _make_request(*, path: str, method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": b"",
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "server": ("testserver", 80),
    }
    return Request(scope)


@pytest.fixture()
def auth_settings():
    s = get_settings()
    keys = ["app_env", "auth_mode", "api_keys"]
    snapshot = {k: getattr(s, k) for k in keys}
    try:
        yield s
    finally:
        for k, v in snapshot.items():
            setattr(s, k, v)


def test_auth_dep_allows_valid_key(auth_settings) -> None:
    auth_settings.auth_mode = "api_key"
    auth_settings.api_keys = "user-1"

    req = _make_request(path="/api/commands/analyze", method="POST")
    ctx = auth_dep(request=req, x_api_key="user-1")
    assert ctx.auth_type == "api_key"


def test_auth_dep_logs_deny_401(caplog, auth_settings) -> None:
    auth_settings.auth_mode = "api_key"
    auth_settings.api_keys = "user-1"

    caplog.set_level(logging.INFO, logger="voice-command-agent")
    req = _make_request(path="/api/audio/transcribe", method="POST")
    with pytest.raises(HTTPException) as e:
        auth_dep(request=req, x_api_key="bad")
    assert e.value.status_code == 401
    assert e.value.detail["success"] is False

    rec = next(r for r in caplog.records if r.msg == "security_audit_deny")
    assert rec.payload["endpoint"] == "/api/audio/transcribe"
    assert rec.payload["method"] == "POST"
    assert rec.payload["status_code"] == 401
    assert rec.payload["error_code"] == "unauthorized"
    assert rec.payload["client_ip"] == "127.0.0.1"
