"""
FastAPI Depends.

Сюда выносим:
- проверку авторизации (X-API-Key)
- (в будущем) correlation_id, request_id и т.д.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, Request, status

from voice_command_agent.common.errors import UnauthorizedError
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.common.security import AuthContext, require_auth

log = get_project_logger()


def _request_meta(request: Request | None) -> tuple[str, str, str | None]:
    if request is None:
        return "unknown", "UNKNOWN", None
    endpoint = request.url.path
    method = request.method
    client_ip = request.client.host if request.client else None
    return endpoint, method, client_ip


def _audit_deny(*, request: Request | None, reason: str, error_code: str) -> None:
    endpoint, method, client_ip = _request_meta(request)
    log.warning(
        "security_audit_deny",
        extra={
            "payload": {
                "endpoint": endpoint,
                "method": method,
                "status_code": status.HTTP_401_UNAUTHORIZED,
                "reason": reason,
                "error_code": error_code,
                "client_ip": client_ip,
            }
        },
    )


def auth_dep(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthContext:
    """
    Проверка авторизации для HTTP.
    """
    try:
        return require_auth(x_api_key=x_api_key)
    except UnauthorizedError as e:
        _audit_deny(request=request, reason=e.message, error_code=e.code)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"success": False, "error": e.message, "details": {"code": e.code}},
        ) from e
