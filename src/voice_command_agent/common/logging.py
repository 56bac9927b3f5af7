"""
Логирование сервиса голосовых команд.

- stdout, JSON по умолчанию; LOG_FORMAT=text для локальной отладки
- payload из extra={"payload": {...}} попадает в обе формы вывода
- ключи и аудио в payload маскируются до записи в лог
- отдельный логгер для LLM-части (классификатор, перевод, /api/llm/query)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from voice_command_agent.common.config import get_settings

PROJECT_LOGGER = "voice-command-agent"
LLM_LOGGER = f"{PROJECT_LOGGER}.llm"

REDACTED = "***"
_SECRET_KEYS = {
    "api_key",
    "x_api_key",
    "authorization",
    "openai_api_key",
    "audio",
    "audio_data",
    "audiodata",
}

# requests/urllib3 на INFO пишут каждое соединение к шлюзам
_NOISY_LOGGERS = ("urllib3", "multipart")


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in _SECRET_KEYS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact(v) for v in value]
    return value


def _record_payload(record: logging.LogRecord) -> dict[str, Any] | None:
    payload = getattr(record, "payload", None)
    if not isinstance(payload, dict):
        return None
    return redact(payload)


class JsonFormatter(logging.Formatter):
    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload = _record_payload(record)
        if payload is not None:
            out["payload"] = payload
        if record.exc_info:
            out["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(out, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Человекочитаемый вывод: `... msg key=value key=value`."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        payload = _record_payload(record)
        if payload:
            pairs = " ".join(f"{k}={json.dumps(v, ensure_ascii=False, default=str)}" for k, v in payload.items())
            line = f"{line} {pairs}"
        return line


def _build_formatter() -> logging.Formatter:
    s = get_settings()
    if (s.log_format or "").lower() == "text":
        return TextFormatter()
    return JsonFormatter(service=s.service_name)


def setup_logging() -> None:
    s = get_settings()
    root = logging.getLogger()
    level = getattr(logging, (s.log_level or "INFO").upper(), logging.INFO)
    root.setLevel(level)

    # Повторный вызов не добавляет второй хэндлер
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter())
    root.addHandler(handler)

    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_project_logger(name: str = PROJECT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


def get_llm_logger() -> logging.Logger:
    return logging.getLogger(LLM_LOGGER)
