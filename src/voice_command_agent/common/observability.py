"""
Observability bootstrap.

Назначение:
- централизованно включить логирование на старте процесса
- предупредить о незаданном ключе upstream, как делал исходный сервер
"""

from __future__ import annotations

from voice_command_agent.common.config import get_settings
from voice_command_agent.common.logging import get_project_logger, setup_logging

log = get_project_logger()


def setup_observability() -> None:
    """
    Вызывается на старте процесса (api/скрипт).
    Метрики подключаются отдельно через setup_metrics_endpoint.
    """
    setup_logging()
    s = get_settings()
    if not (s.openai_api_key or "").strip():
        log.warning("openai_api_key_missing", extra={"payload": {"env": "OPENAI_API_KEY"}})
    log.info(
        "observability_ready",
        extra={
            "payload": {
                "service": s.service_name,
                "stt_provider": s.stt_provider,
                "llm_provider": s.llm_provider,
            }
        },
    )
