"""
Единый JSON-конверт ошибок: {success: false, error, details?}.

- 400: отсутствуют/некорректны поля (в т.ч. ошибки валидации тела FastAPI)
- 404: неизвестная сессия
- 409: прогон отменён более новой записью
- 500: ошибка внешнего шлюза или сети
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_command_agent.common.errors import AppError, ErrCode
from voice_command_agent.common.logging import get_project_logger

log = get_project_logger()

_STATUS_BY_CODE = {
    ErrCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrCode.CANCELLED: status.HTTP_409_CONFLICT,
}


def http_status_for(err: AppError) -> int:
    return _STATUS_BY_CODE.get(err.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if details:
        body["details"] = details
    return body


def app_error_response(err: AppError, *, extra: dict[str, Any] | None = None) -> JSONResponse:
    details = dict(err.details or {})
    details["code"] = err.code
    if extra:
        details.update(extra)
    return JSONResponse(
        status_code=http_status_for(err),
        content=jsonable_encoder(error_body(err.message, details)),
    )


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        code = http_status_for(exc)
        log_fn = log.warning if code < 500 else log.error
        log_fn(
            "request_failed",
            extra={
                "payload": {
                    "endpoint": request.url.path,
                    "status_code": code,
                    "code": exc.code,
                    "error": exc.message,
                }
            },
        )
        return app_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip() if field else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(
                error_body(message, {"code": ErrCode.VALIDATION, "errors": errors})
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # auth_dep уже кладёт в detail готовый конверт
        if isinstance(exc.detail, dict) and "success" in exc.detail:
            content = dict(exc.detail)
        else:
            content = error_body(str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)
