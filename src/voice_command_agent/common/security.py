"""
Утилиты авторизации.

Поддерживаемые режимы (AUTH_MODE):
- none    — без авторизации (по умолчанию, только dev)
- api_key — проверка X-API-Key по списку API_KEYS
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from .config import get_settings
from .errors import UnauthorizedError


def _parse_api_keys(raw: str) -> set[str]:
    """
    Разбор строки API_KEYS из ENV в множество.
    """
    return {k.strip() for k in (raw or "").split(",") if k.strip()}


@dataclass(frozen=True)
class AuthContext:
    subject: str
    auth_type: str


def _is_prod_env(app_env: str | None) -> bool:
    env = (app_env or "").strip().lower()
    return env in {"prod", "production"}


def _key_matches(candidate: str, keys: set[str]) -> bool:
    return any(hmac.compare_digest(candidate, k) for k in keys)


def require_auth(*, x_api_key: str | None) -> AuthContext:
    settings = get_settings()
    mode = (settings.auth_mode or "none").lower().strip()

    if mode == "none":
        if _is_prod_env(settings.app_env):
            raise UnauthorizedError("AUTH_MODE=none is not allowed in APP_ENV=prod")
        return AuthContext(subject="anonymous", auth_type="none")

    if mode != "api_key":
        raise UnauthorizedError("Unknown auth mode")

    keys = _parse_api_keys(settings.api_keys)
    if not x_api_key or not _key_matches(x_api_key, keys):
        raise UnauthorizedError("Invalid API key")
    return AuthContext(subject="api_key", auth_type="api_key")
