"""
Intent Dispatcher: IntentRecord -> DispatchResult.

Однократный переход вход -> выход на каждый вызов:
- transcribe   -> content как текст
- translate    -> оригинал + перевод рядом; при ошибке оригинал + ошибка inline
- list_models  -> статический каталог (без сети)
- help         -> фиксированная справка (без сети)
- unknown      -> транскрипт как есть, статус не-ошибочный
"""

from __future__ import annotations

from html import escape

from voice_command_agent.common.errors import AppError
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.common.metrics import INTENTS_DISPATCHED_TOTAL
from voice_command_agent.common.utils import safe_dict
from voice_command_agent.domain.enums import IntentKind, RenderFormat
from voice_command_agent.domain.models import (
    DEFAULT_TARGET_LANGUAGE,
    DispatchResult,
    IntentRecord,
)
from voice_command_agent.services.translation_service import Translator

from .catalog import HELP_HTML, list_models

log = get_project_logger()

STATUS_TRANSCRIPTION_COMPLETE = "Transcription complete"
STATUS_MODELS_FETCHED = "Models fetched successfully"
STATUS_HELP = "Showing help information"


def render_translation(original: str, translation: str, target_language: str) -> str:
    return (
        '<div class="translation-result">\n'
        '  <div class="original">\n'
        "    <h4>Original</h4>\n"
        f"    <p>{escape(original)}</p>\n"
        "  </div>\n"
        '  <div class="translation">\n'
        f"    <h4>Translation ({escape(target_language)})</h4>\n"
        f"    <p>{escape(translation)}</p>\n"
        "  </div>\n"
        "</div>"
    )


def render_translation_error(original: str, message: str) -> str:
    return (
        '<div class="translation-result">\n'
        '  <div class="original">\n'
        "    <h4>Original</h4>\n"
        f"    <p>{escape(original)}</p>\n"
        "  </div>\n"
        '  <div class="translation error">\n'
        "    <h4>Translation Error</h4>\n"
        f'    <p class="error-message">Failed to translate: {escape(message)}</p>\n'
        "  </div>\n"
        "</div>"
    )


def render_models(models: list[dict[str, str]]) -> str:
    items = "".join(
        f"<li><strong>{escape(m['name'])}</strong> ({escape(m['id'])}): "
        f"{escape(m['description'])}</li>"
        for m in models
    )
    return f"<h3>Available Models:</h3><ul>{items}</ul>"


class IntentDispatcher:
    def __init__(self, translator: Translator) -> None:
        self.translator = translator

    def dispatch(self, record: IntentRecord) -> DispatchResult:
        handler = {
            IntentKind.TRANSCRIBE: self._transcribe,
            IntentKind.TRANSLATE: self._translate,
            IntentKind.LIST_MODELS: self._list_models,
            IntentKind.HELP: self._help,
        }.get(record.kind, self._unknown)

        result = handler(record)
        INTENTS_DISPATCHED_TOTAL.labels(
            kind=result.kind.value,
            result="error" if result.is_error else "ok",
        ).inc()
        log.info(
            "intent_dispatched",
            extra={
                "payload": {
                    "kind": result.kind.value,
                    "status": result.status,
                    "is_error": result.is_error,
                }
            },
        )
        return result

    def _transcribe(self, record: IntentRecord) -> DispatchResult:
        body = record.content or record.transcript
        return DispatchResult(
            status=STATUS_TRANSCRIPTION_COMPLETE,
            body=body,
            format=RenderFormat.TEXT,
            kind=IntentKind.TRANSCRIBE,
        )

    def _translate(self, record: IntentRecord) -> DispatchResult:
        content = record.content
        target = record.target_language or DEFAULT_TARGET_LANGUAGE
        if not content.strip():
            return DispatchResult(
                status="Error: No content provided for translation",
                body=record.transcript,
                format=RenderFormat.TEXT,
                is_error=True,
                kind=IntentKind.TRANSLATE,
            )

        try:
            res = self.translator.translate(content, target)
        except AppError as e:
            log.warning(
                "translation_failed",
                extra={"payload": {"code": e.code, "details": safe_dict(e.details or {})}},
            )
            return DispatchResult(
                status=f"Error: {e.message}",
                body=render_translation_error(content, e.message),
                format=RenderFormat.HTML,
                is_error=True,
                kind=IntentKind.TRANSLATE,
            )

        if not (res.translation or "").strip():
            return DispatchResult(
                status="Error: Translation failed or returned empty result",
                body=render_translation_error(content, "Translation returned empty result"),
                format=RenderFormat.HTML,
                is_error=True,
                kind=IntentKind.TRANSLATE,
            )

        language = res.target_language or target
        return DispatchResult(
            status=f"Translation to {language} complete",
            body=render_translation(res.original or content, res.translation, language),
            format=RenderFormat.HTML,
            kind=IntentKind.TRANSLATE,
        )

    def _list_models(self, record: IntentRecord) -> DispatchResult:
        return DispatchResult(
            status=STATUS_MODELS_FETCHED,
            body=render_models(list_models()),
            format=RenderFormat.HTML,
            kind=IntentKind.LIST_MODELS,
        )

    def _help(self, record: IntentRecord) -> DispatchResult:
        return DispatchResult(
            status=STATUS_HELP,
            body=HELP_HTML,
            format=RenderFormat.HTML,
            kind=IntentKind.HELP,
        )

    def _unknown(self, record: IntentRecord) -> DispatchResult:
        # Нераспознанная команда — это просто транскрипция, не ошибка
        return DispatchResult(
            status=STATUS_TRANSCRIPTION_COMPLETE,
            body=record.transcript or record.content,
            format=RenderFormat.TEXT,
            kind=IntentKind.UNKNOWN,
        )
