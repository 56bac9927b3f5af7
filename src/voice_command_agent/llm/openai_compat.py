from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import (
    ErrCode,
    ProviderError,
    TransportError,
    UpstreamError,
)
from voice_command_agent.common.logging import get_llm_logger
from voice_command_agent.common.metrics import record_upstream_call
from voice_command_agent.llm.base import LLMProvider, LLMResult

log = get_llm_logger()


@dataclass
class OpenAICompatConfig:
    """Настройки OpenAI-compatible API."""

    api_base: str
    api_key: str
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 800
    timeout_s: int = 60


class OpenAICompatProvider(LLMProvider):
    """Минимальный провайдер LLM через OpenAI-compatible endpoint."""

    def __init__(self, cfg: OpenAICompatConfig | None = None) -> None:
        if cfg is None:
            s = get_settings()
            cfg = OpenAICompatConfig(
                api_base=s.openai_api_base or "",
                api_key=s.openai_api_key or "",
                model=s.llm_model_id or "gpt-3.5-turbo",
                temperature=float(s.llm_temperature),
                max_tokens=int(s.llm_max_tokens),
                timeout_s=int(s.llm_request_timeout_sec or 60),
            )
        if not cfg.api_base:
            raise ProviderError(ErrCode.LLM_PROVIDER_ERROR, "OPENAI_API_BASE is not set")
        if not cfg.api_key:
            raise ProviderError(ErrCode.LLM_PROVIDER_ERROR, "OPENAI_API_KEY is not set")
        self.cfg = cfg

    def complete_text(
        self,
        *,
        user: str,
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> LLMResult:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})

        payload: dict[str, Any] = {
            "model": model or self.cfg.model,
            "messages": messages,
            "temperature": self.cfg.temperature if temperature is None else temperature,
            "max_tokens": self.cfg.max_tokens,
        }

        url = self.cfg.api_base.rstrip("/") + "/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.cfg.api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(url, headers=headers, json=payload, timeout=self.cfg.timeout_s)
        except requests.RequestException as e:
            record_upstream_call(gateway="llm", result="transport_error")
            log.error(
                "llm_http_error",
                extra={"payload": {"provider": "openai_compat", "err": str(e)}},
            )
            raise TransportError(
                ErrCode.LLM_PROVIDER_ERROR,
                "Chat-completion service is unreachable",
                {"err": str(e)},
            ) from e

        if resp.status_code >= 400:
            record_upstream_call(gateway="llm", result="upstream_error")
            raise UpstreamError(
                ErrCode.LLM_PROVIDER_ERROR,
                "Chat-completion service returned an error",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            data = resp.json()
            text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            record_upstream_call(gateway="llm", result="upstream_error")
            raise UpstreamError(
                ErrCode.LLM_PROVIDER_ERROR,
                "Could not extract text from chat-completion reply",
                status=resp.status_code,
                body=resp.text,
                details={"err": str(e)},
            ) from e

        record_upstream_call(gateway="llm", result="ok")
        return LLMResult(
            text=text or "",
            model=data.get("model") or payload["model"],
            usage=data.get("usage"),
        )
