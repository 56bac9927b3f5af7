"""
Централизованная конфигурация проекта (ENV / .env).

Важно:
- настройки читаются из .env и переменных окружения
- типизированные значения через pydantic-settings
- любое поле можно подставить из файла через <ALIAS>_FILE (docker secrets)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    app_env: str = Field(default="dev", alias="APP_ENV")
    service_name: str = Field(default="voice-command-api", alias="SERVICE_NAME")
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=3000, alias="API_PORT")
    cors_allowed_origins: str = Field(default="*", alias="CORS_ALLOWED_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------
    auth_mode: str = Field(default="none", alias="AUTH_MODE")  # none|api_key
    api_keys: str = Field(default="", alias="API_KEYS")

    # -------------------------------------------------------------------------
    # OpenAI-compatible upstream (STT + chat completions)
    # -------------------------------------------------------------------------
    openai_api_base: str = Field(default="https://api.openai.com/v1", alias="OPENAI_API_BASE")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")

    # -------------------------------------------------------------------------
    # STT
    # -------------------------------------------------------------------------
    stt_provider: str = Field(default="openai", alias="STT_PROVIDER")  # openai|mock
    stt_model_id: str = Field(default="whisper-1", alias="STT_MODEL_ID")
    stt_request_timeout_sec: int = Field(default=120, alias="STT_REQUEST_TIMEOUT_SEC")
    # Аналог express.json({limit: '50mb'}) из исходного бэкенда
    max_audio_bytes: int = Field(default=50 * 1024 * 1024, alias="MAX_AUDIO_BYTES")

    # -------------------------------------------------------------------------
    # LLM (OpenAI-compatible)
    # -------------------------------------------------------------------------
    llm_provider: str = Field(default="openai_compat", alias="LLM_PROVIDER")  # openai_compat|mock
    llm_model_id: str = Field(default="gpt-3.5-turbo", alias="LLM_MODEL_ID")
    llm_temperature: float = Field(default=0.7, alias="LLM_TEMPERATURE")
    llm_max_tokens: int = Field(default=800, alias="LLM_MAX_TOKENS")
    llm_request_timeout_sec: int = Field(default=60, alias="LLM_REQUEST_TIMEOUT_SEC")
    llm_retries: int = Field(default=1, alias="LLM_RETRIES")
    llm_retry_backoff_ms: int = Field(default=250, alias="LLM_RETRY_BACKOFF_MS")

    translation_model_id: str = Field(default="gpt-4", alias="TRANSLATION_MODEL_ID")
    translation_temperature: float = Field(default=0.3, alias="TRANSLATION_TEMPERATURE")

    # -------------------------------------------------------------------------
    # Voice command pipeline
    # -------------------------------------------------------------------------
    session_registry_max: int = Field(default=1000, alias="SESSION_REGISTRY_MAX")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|text

    def model_post_init(self, __context) -> None:
        _apply_file_overrides(self)


_CSV_ENV_FIELDS = {
    "API_KEYS",
    "CORS_ALLOWED_ORIGINS",
}


def _normalize_file_value(env_key: str, raw: str) -> str:
    value = (raw or "").strip()
    if env_key in _CSV_ENV_FIELDS and "\n" in value and "," not in value:
        parts = [p.strip() for p in value.splitlines() if p.strip()]
        return ",".join(parts)
    return value


def _apply_file_overrides(settings: Settings) -> None:
    alias_to_field = {}
    for name, field in type(settings).model_fields.items():
        alias = field.alias or name
        alias_to_field[str(alias)] = name
        alias_to_field[str(name)] = name

    for key, path in os.environ.items():
        if not key.endswith("_FILE"):
            continue
        base = key[: -len("_FILE")]
        target = alias_to_field.get(base)
        if not target:
            continue
        file_path = (path or "").strip()
        if not file_path:
            continue
        try:
            raw = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            logging.getLogger("voice-command-agent").error(
                "config_file_read_failed",
                extra={"payload": {"env_key": key, "path": file_path, "error": str(e)[:200]}},
            )
            raise RuntimeError(f"Failed to read {key} from {file_path}") from e
        value = _normalize_file_value(base, raw)
        setattr(settings, target, value)


_SETTINGS = Settings()


def get_settings() -> Settings:
    return _SETTINGS
