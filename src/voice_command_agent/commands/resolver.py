"""
Intent Resolver: transcript -> IntentRecord.

Политика ошибок:
- шлюз недоступен / ответил не-2xx -> TransportError / UpstreamError наружу
  (вызывающий может повторить)
- шлюз ответил, но без понятного JSON -> intent=unknown с полным транскриптом
  (fail-open, без повторов: тот же промпт вряд ли даст другой ответ)
"""

from __future__ import annotations

import re
from typing import Any

from voice_command_agent.common.errors import ParseError
from voice_command_agent.common.logging import get_llm_logger
from voice_command_agent.common.metrics import INTENTS_RESOLVED_TOTAL
from voice_command_agent.domain.enums import IntentKind
from voice_command_agent.domain.models import DEFAULT_TARGET_LANGUAGE, IntentRecord, Transcript
from voice_command_agent.llm.orchestrator import LLMOrchestrator

from .extraction import extract_json_object
from .prompts import build_intent_prompt

log = get_llm_logger()

_KIND_ALIASES: dict[str, IntentKind] = {
    "transcribe": IntentKind.TRANSCRIBE,
    "transcription": IntentKind.TRANSCRIBE,
    "translate": IntentKind.TRANSLATE,
    "translation": IntentKind.TRANSLATE,
    "list_models": IntentKind.LIST_MODELS,
    "listmodels": IntentKind.LIST_MODELS,
    "models": IntentKind.LIST_MODELS,
    "help": IntentKind.HELP,
    "unknown": IntentKind.UNKNOWN,
}

# Что LLM иногда пишет вместо конкретного языка
GENERIC_LANGUAGES = {
    "",
    "language",
    "a language",
    "another language",
    "other language",
    "other",
    "a different language",
    "different language",
    "some language",
    "any language",
    "foreign language",
    "a foreign language",
    "target language",
    "the target language",
    "unspecified",
    "not specified",
    "unknown",
    "none",
    "null",
    "n/a",
}

_KIND_SEP_RE = re.compile(r"[\s\-]+")


def normalize_kind(value: Any) -> IntentKind:
    if not isinstance(value, str):
        return IntentKind.UNKNOWN
    key = _KIND_SEP_RE.sub("_", value.strip().lower())
    return _KIND_ALIASES.get(key, IntentKind.UNKNOWN)


def normalize_target_language(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_TARGET_LANGUAGE
    cleaned = value.strip().strip(".!?\"'")
    if cleaned.lower() in GENERIC_LANGUAGES:
        return DEFAULT_TARGET_LANGUAGE
    return cleaned


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def unknown_intent(transcript: str, raw: str | None = None) -> IntentRecord:
    return IntentRecord(
        kind=IntentKind.UNKNOWN,
        command="unknown",
        content=transcript,
        raw=raw,
        transcript=transcript,
    )


def record_from_payload(data: dict[str, Any], *, transcript: str, raw: str) -> IntentRecord:
    kind = normalize_kind(data.get("commandType"))
    if kind is IntentKind.UNKNOWN:
        return unknown_intent(transcript, raw)

    command = _as_text(data.get("command")).strip()
    content = _as_text(data.get("content")).strip()
    # Команду не нашли -> весь транскрипт считается содержимым
    if not command or command.lower() == "unknown":
        content = transcript

    target_language = None
    if kind is IntentKind.TRANSLATE:
        target_language = normalize_target_language(data.get("targetLanguage"))

    return IntentRecord(
        kind=kind,
        command=command,
        content=content,
        target_language=target_language,
        raw=raw,
        transcript=transcript,
    )


class IntentResolver:
    """Stateless: каждый resolve() — отдельный запрос без истории."""

    def __init__(self, llm: LLMOrchestrator) -> None:
        self.llm = llm

    def resolve(self, transcript: Transcript) -> IntentRecord:
        prompt = build_intent_prompt(transcript.text)
        reply = self.llm.complete_text(user=prompt).text

        try:
            data = extract_json_object(reply)
        except ParseError as e:
            INTENTS_RESOLVED_TOTAL.labels(kind=IntentKind.UNKNOWN.value, outcome="fallback").inc()
            log.warning(
                "intent_parse_fallback",
                extra={
                    "payload": {
                        "audio_id": transcript.audio_id,
                        "reason": e.message,
                        "reply_head": reply[:200],
                    }
                },
            )
            return unknown_intent(transcript.text, reply)

        record = record_from_payload(data, transcript=transcript.text, raw=reply)
        INTENTS_RESOLVED_TOTAL.labels(kind=record.kind.value, outcome="parsed").inc()
        log.info(
            "intent_resolved",
            extra={
                "payload": {
                    "audio_id": transcript.audio_id,
                    "kind": record.kind.value,
                    "command": record.command,
                    "target_language": record.target_language,
                }
            },
        )
        return record
