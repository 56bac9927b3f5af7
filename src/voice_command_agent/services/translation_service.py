"""
Перевод текста через chat-completion.

Используется и HTTP-эндпоинтом /api/audio/translate, и диспетчером команды translate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from voice_command_agent.commands.prompts import build_translation_system_prompt
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import ValidationError
from voice_command_agent.common.logging import get_llm_logger
from voice_command_agent.domain.models import DEFAULT_TARGET_LANGUAGE
from voice_command_agent.llm.orchestrator import LLMOrchestrator

log = get_llm_logger()


@dataclass
class TranslationResult:
    original: str
    translation: str
    target_language: str
    model: str | None = None


class Translator(Protocol):
    def translate(self, text: str, target_language: str | None = None) -> TranslationResult: ...


class LLMTranslator:
    def __init__(
        self,
        llm: LLMOrchestrator,
        *,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        s = get_settings()
        self.llm = llm
        self.model = model or s.translation_model_id
        self.temperature = s.translation_temperature if temperature is None else temperature

    def translate(self, text: str, target_language: str | None = None) -> TranslationResult:
        if not (text or "").strip():
            raise ValidationError("No content provided for translation")
        target = (target_language or "").strip() or DEFAULT_TARGET_LANGUAGE

        res = self.llm.complete_text(
            system=build_translation_system_prompt(target),
            user=text,
            model=self.model,
            temperature=self.temperature,
        )
        log.info(
            "translation_done",
            extra={"payload": {"target_language": target, "chars": len(text), "model": res.model}},
        )
        return TranslationResult(
            original=text,
            translation=res.text,
            target_language=target,
            model=res.model or self.model,
        )
