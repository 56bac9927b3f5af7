"""
Сборка провайдеров и сервисов по настройкам.

Провайдеры создаются лениво и переиспользуются процессом (requests без состояния).
"""

from __future__ import annotations

import threading

from voice_command_agent.commands.dispatcher import IntentDispatcher
from voice_command_agent.commands.resolver import IntentResolver
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.llm.base import LLMProvider
from voice_command_agent.llm.mock import MockLLMProvider
from voice_command_agent.llm.orchestrator import LLMOrchestrator
from voice_command_agent.services.pipeline_service import PipelineRunner
from voice_command_agent.services.transcription_service import TranscriptionClient
from voice_command_agent.services.translation_service import LLMTranslator
from voice_command_agent.stt.base import STTProvider
from voice_command_agent.stt.mock import MockSTTProvider

log = get_project_logger()

_stt_provider: STTProvider | None = None
_llm_provider: LLMProvider | None = None
_lock = threading.Lock()


def _build_stt_provider() -> STTProvider:
    s = get_settings()
    provider = (s.stt_provider or "").strip().lower()

    if provider == "mock":
        return MockSTTProvider()

    from voice_command_agent.stt.openai_whisper import OpenAIWhisperProvider

    return OpenAIWhisperProvider()


def _build_llm_provider() -> LLMProvider:
    s = get_settings()
    provider = (s.llm_provider or "").strip().lower()

    if provider == "mock":
        return MockLLMProvider()

    from voice_command_agent.llm.openai_compat import OpenAICompatProvider

    return OpenAICompatProvider()


def get_stt_provider() -> STTProvider:
    global _stt_provider
    with _lock:
        if _stt_provider is None:
            _stt_provider = _build_stt_provider()
            log.info("stt_provider_ready", extra={"payload": {"type": type(_stt_provider).__name__}})
        return _stt_provider


def get_llm_provider() -> LLMProvider:
    global _llm_provider
    with _lock:
        if _llm_provider is None:
            _llm_provider = _build_llm_provider()
            log.info("llm_provider_ready", extra={"payload": {"type": type(_llm_provider).__name__}})
        return _llm_provider


def reset_providers() -> None:
    """Сбросить кэш провайдеров (после смены настроек)."""
    global _stt_provider, _llm_provider
    with _lock:
        _stt_provider = None
        _llm_provider = None


def get_transcription_client() -> TranscriptionClient:
    return TranscriptionClient(get_stt_provider())


def get_llm_orchestrator() -> LLMOrchestrator:
    return LLMOrchestrator(get_llm_provider())


def get_translator() -> LLMTranslator:
    return LLMTranslator(get_llm_orchestrator())


def get_intent_resolver() -> IntentResolver:
    # Классификатор без автоповторов: повторять ли, решает клиент
    return IntentResolver(LLMOrchestrator(get_llm_provider(), retries=0))


def get_intent_dispatcher() -> IntentDispatcher:
    return IntentDispatcher(get_translator())


def build_pipeline_runner() -> PipelineRunner:
    return PipelineRunner(
        get_transcription_client(),
        get_intent_resolver(),
        get_intent_dispatcher(),
    )
