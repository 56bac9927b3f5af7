"""
Пайплайн голосовой команды: audio -> transcript -> intent -> dispatch.

Архитектурно:
- стадии идут строго последовательно, следующая стартует только с результатом предыдущей
- всё, что нужно прогону, передаётся явно через PipelineContext (никакого глобального
  "текущего анализатора")
- транскрипт показывается сразу после распознавания; ошибка следующих стадий
  меняет только статус и не стирает уже показанный текст
- новая запись в той же сессии отменяет прогон, который ещё не закончился:
  отменённый прогон больше ничего не пишет в ResultView
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from voice_command_agent.commands.dispatcher import IntentDispatcher
from voice_command_agent.commands.resolver import IntentResolver
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import AppError, CancelledError
from voice_command_agent.common.ids import new_run_id
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.common.metrics import PIPELINE_RUNS_TOTAL, track_stage_latency
from voice_command_agent.domain.enums import RenderFormat
from voice_command_agent.domain.models import (
    AudioPayload,
    DispatchResult,
    IntentRecord,
    Transcript,
)
from voice_command_agent.services.transcription_service import TranscriptionClient

log = get_project_logger()

SERVICE = "voice-command-pipeline"
STATUS_ANALYZING = "Analyzing recording for commands..."


@dataclass
class ResultView:
    """Единственный "показанный сейчас" результат. Каждый render целиком его заменяет."""

    status: str = ""
    body: str = ""
    format: RenderFormat = RenderFormat.TEXT
    is_error: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def show_transcript(self, text: str, status: str) -> None:
        self.status = status
        self.body = text
        self.format = RenderFormat.TEXT
        self.is_error = False

    def set_status(self, status: str, *, is_error: bool = False) -> None:
        self.status = status
        self.is_error = is_error

    def render(self, result: DispatchResult) -> None:
        self.status = result.status
        self.body = result.body
        self.format = result.format
        self.is_error = result.is_error

    def snapshot(self) -> dict[str, Any]:
        with self.lock:
            return {
                "status": self.status,
                "body": self.body,
                "format": self.format.value,
                "isError": self.is_error,
            }


@dataclass
class PipelineContext:
    transcriber: TranscriptionClient
    resolver: IntentResolver
    dispatcher: IntentDispatcher
    view: ResultView = field(default_factory=ResultView)
    cancel_event: threading.Event = field(default_factory=threading.Event)
    run_id: str = field(default_factory=new_run_id)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()


@dataclass
class PipelineOutcome:
    run_id: str
    transcript: Transcript | None = None
    intent: IntentRecord | None = None
    result: DispatchResult | None = None
    error: AppError | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled and self.result is not None


def _ensure_active(ctx: PipelineContext) -> None:
    if ctx.cancelled:
        raise CancelledError(details={"run_id": ctx.run_id})


def _commit(ctx: PipelineContext, apply: Callable[[ResultView], None]) -> None:
    with ctx.view.lock:
        _ensure_active(ctx)
        apply(ctx.view)


class VoiceCommandPipeline:
    def run(
        self,
        audio: AudioPayload,
        ctx: PipelineContext,
        *,
        language: str | None = None,
    ) -> PipelineOutcome:
        outcome = PipelineOutcome(run_id=ctx.run_id)
        return self._guarded(ctx, outcome, lambda: self._run_all(audio, ctx, outcome, language))

    def run_transcript(self, transcript: Transcript, ctx: PipelineContext) -> PipelineOutcome:
        """Прогон без STT: транскрипт уже есть у клиента."""
        outcome = PipelineOutcome(run_id=ctx.run_id, transcript=transcript)
        return self._guarded(ctx, outcome, lambda: self._from_transcript(transcript, ctx, outcome))

    def _run_all(
        self,
        audio: AudioPayload,
        ctx: PipelineContext,
        outcome: PipelineOutcome,
        language: str | None,
    ) -> None:
        _ensure_active(ctx)
        with track_stage_latency(SERVICE, "transcribe"):
            transcript = ctx.transcriber.transcribe(audio, language=language)
        outcome.transcript = transcript
        self._from_transcript(transcript, ctx, outcome)

    def _from_transcript(
        self,
        transcript: Transcript,
        ctx: PipelineContext,
        outcome: PipelineOutcome,
    ) -> None:
        _commit(ctx, lambda v: v.show_transcript(transcript.text, STATUS_ANALYZING))

        with track_stage_latency(SERVICE, "resolve"):
            intent = ctx.resolver.resolve(transcript)
        _ensure_active(ctx)
        outcome.intent = intent

        with track_stage_latency(SERVICE, "dispatch"):
            result = ctx.dispatcher.dispatch(intent)
        _commit(ctx, lambda v: v.render(result))
        outcome.result = result

    def _guarded(
        self,
        ctx: PipelineContext,
        outcome: PipelineOutcome,
        body: Callable[[], None],
    ) -> PipelineOutcome:
        try:
            body()
        except CancelledError:
            outcome.cancelled = True
            PIPELINE_RUNS_TOTAL.labels(result="cancelled").inc()
            log.info("pipeline_cancelled", extra={"payload": {"run_id": ctx.run_id}})
            return outcome
        except AppError as e:
            outcome.error = e
            try:
                _commit(ctx, lambda v: v.set_status(f"Error: {e.message}", is_error=True))
            except CancelledError:
                outcome.cancelled = True
                PIPELINE_RUNS_TOTAL.labels(result="cancelled").inc()
                return outcome
            PIPELINE_RUNS_TOTAL.labels(result="failed").inc()
            log.warning(
                "pipeline_failed",
                extra={
                    "payload": {
                        "run_id": ctx.run_id,
                        "code": e.code,
                        "stage_reached": _stage_reached(outcome),
                    }
                },
            )
            return outcome

        PIPELINE_RUNS_TOTAL.labels(result="ok").inc()
        log.info(
            "pipeline_done",
            extra={
                "payload": {
                    "run_id": ctx.run_id,
                    "kind": outcome.intent.kind.value if outcome.intent else None,
                }
            },
        )
        return outcome


def _stage_reached(outcome: PipelineOutcome) -> str:
    if outcome.intent is not None:
        return "dispatch"
    if outcome.transcript is not None:
        return "resolve"
    return "transcribe"


class PipelineRunner:
    """
    Один runner на клиентскую сессию.
    start() отменяет прогон этой сессии, который ещё выполняется, и запускает новый.
    """

    def __init__(
        self,
        transcriber: TranscriptionClient,
        resolver: IntentResolver,
        dispatcher: IntentDispatcher,
        *,
        pipeline: VoiceCommandPipeline | None = None,
        view: ResultView | None = None,
    ) -> None:
        self.transcriber = transcriber
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.pipeline = pipeline or VoiceCommandPipeline()
        self.view = view or ResultView()
        self._lock = threading.Lock()
        self._current: PipelineContext | None = None

    def _new_context(self) -> PipelineContext:
        ctx = PipelineContext(
            transcriber=self.transcriber,
            resolver=self.resolver,
            dispatcher=self.dispatcher,
            view=self.view,
        )
        with self._lock:
            previous = self._current
            self._current = ctx
        if previous is not None:
            previous.cancel()
            log.info(
                "pipeline_superseded",
                extra={"payload": {"cancelled_run_id": previous.run_id, "run_id": ctx.run_id}},
            )
        return ctx

    def _release(self, ctx: PipelineContext) -> None:
        with self._lock:
            if self._current is ctx:
                self._current = None

    def start(self, audio: AudioPayload, *, language: str | None = None) -> PipelineOutcome:
        ctx = self._new_context()
        try:
            return self.pipeline.run(audio, ctx, language=language)
        finally:
            self._release(ctx)

    def start_from_transcript(self, transcript: Transcript) -> PipelineOutcome:
        ctx = self._new_context()
        try:
            return self.pipeline.run_transcript(transcript, ctx)
        finally:
            self._release(ctx)

    def cancel(self) -> bool:
        with self._lock:
            current = self._current
            self._current = None
        if current is None:
            return False
        current.cancel()
        return True

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._current is not None


class SessionRegistry:
    """
    Runner'ы по session_id. Ограничен по размеру: вытесняются самые старые
    простаивающие сессии, занятый runner остаётся до конца своего прогона.
    """

    def __init__(self, max_sessions: int) -> None:
        self.max_sessions = max(1, int(max_sessions))
        self._runners: OrderedDict[str, PipelineRunner] = OrderedDict()
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str, factory: Callable[[], PipelineRunner]) -> PipelineRunner:
        with self._lock:
            runner = self._runners.get(session_id)
            if runner is None:
                runner = factory()
                self._runners[session_id] = runner
            self._runners.move_to_end(session_id)
            self._evict_idle(keep=session_id)
            return runner

    def _evict_idle(self, *, keep: str) -> None:
        overflow = len(self._runners) - self.max_sessions
        if overflow <= 0:
            return
        idle = [sid for sid, r in self._runners.items() if sid != keep and not r.busy]
        for sid in idle[:overflow]:
            del self._runners[sid]
        if len(self._runners) > self.max_sessions:
            log.warning(
                "session_registry_over_capacity",
                extra={"payload": {"size": len(self._runners), "max": self.max_sessions}},
            )

    def get(self, session_id: str) -> PipelineRunner | None:
        with self._lock:
            return self._runners.get(session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._runners)


_registry: SessionRegistry | None = None
_registry_lock = threading.Lock()


def get_session_registry() -> SessionRegistry:
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = SessionRegistry(get_settings().session_registry_max)
        return _registry


def reset_session_registry() -> None:
    global _registry
    with _registry_lock:
        _registry = None
