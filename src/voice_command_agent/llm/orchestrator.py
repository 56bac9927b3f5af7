from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, TypeVar

from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import AppError
from voice_command_agent.common.logging import get_llm_logger
from voice_command_agent.common.utils import safe_dict
from voice_command_agent.llm.base import LLMProvider, LLMResult

log = get_llm_logger()

T = TypeVar("T")


class LLMOrchestrator:
    """Оркестратор вызовов LLM: ретраи и единая обработка ошибок.

    Здесь нет логики провайдера, только orchestration.
    Повторяем только retryable ошибки (сеть, 429/5xx); последняя ошибка
    пробрасывается как есть, чтобы вызывающий видел её тип.
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        retries: int | None = None,
        backoff_ms: int | None = None,
    ) -> None:
        self.provider = provider
        s = get_settings()
        self.retries = max(0, int(s.llm_retries if retries is None else retries))
        self.backoff_ms = max(0, int(s.llm_retry_backoff_ms if backoff_ms is None else backoff_ms))

    def _retry(self, fn: Callable[..., T], **kwargs: Any) -> T:
        attempt = 0
        while True:
            try:
                return fn(**kwargs)
            except AppError as e:
                if not e.retryable or attempt >= self.retries:
                    raise
                attempt += 1
                log.warning(
                    "llm_retry",
                    extra={"payload": {"attempt": attempt, "code": e.code, "details": safe_dict(e.details or {})}},
                )
                time.sleep(self.backoff_ms * attempt / 1000.0)

    def complete_text(
        self,
        *,
        user: str,
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> LLMResult:
        return self._retry(
            self.provider.complete_text,
            user=user,
            system=system,
            model=model,
            temperature=temperature,
        )
