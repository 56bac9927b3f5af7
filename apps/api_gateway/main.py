"""
API Gateway (FastAPI).

Функции:
- /health
- /metrics
- /api/audio/*: транскрипция, перевод, каталог моделей
- /api/llm/query: сырой запрос к LLM
- /api/commands/*: полный пайплайн голосовой команды на сервере

Архитектурно:
- роутеры тонкие: валидация тела -> сервис -> JSON
- любые AppError превращаются в конверт {success: false, error, details}
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api_gateway.errors import install_error_handlers
from apps.api_gateway.routers.audio import router as audio_router
from apps.api_gateway.routers.commands import router as commands_router
from apps.api_gateway.routers.llm import router as llm_router
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.common.metrics import setup_metrics_endpoint
from voice_command_agent.common.observability import setup_observability

log = get_project_logger()


def _parse_origins(raw: str) -> list[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or ["*"]


def _is_prod_env(app_env: str | None) -> bool:
    env = (app_env or "").strip().lower()
    return env in {"prod", "production"}


def _cors_params() -> tuple[list[str], bool]:
    settings = get_settings()
    allow_origins = _parse_origins(settings.cors_allowed_origins)
    allow_credentials = bool(settings.cors_allow_credentials)

    if _is_prod_env(settings.app_env) and "*" in allow_origins:
        raise RuntimeError("CORS wildcard '*' запрещён в APP_ENV=prod")

    # '*' нельзя использовать вместе с credentials=true
    if "*" in allow_origins:
        allow_credentials = False

    return allow_origins, allow_credentials


def _create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Voice Command API", version="0.1.0")
    allow_origins, allow_credentials = _cors_params()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=allow_credentials,
    )

    setup_metrics_endpoint(app, service=settings.service_name)
    install_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True}

    app.include_router(audio_router, prefix="/api")
    app.include_router(llm_router, prefix="/api")
    app.include_router(commands_router, prefix="/api")

    return app


setup_observability()
app = _create_app()
log.info("api_ready", extra={"payload": {"port": get_settings().api_port}})


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run(app, host=s.api_host, port=s.api_port)
