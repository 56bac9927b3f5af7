"""
Голосовые команды целиком на сервере: audio -> transcript -> intent -> dispatch.

sessionId связывает записи одного клиента: новая запись отменяет незавершённый
прогон той же сессии.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from apps.api_gateway.deps import auth_dep
from apps.api_gateway.errors import app_error_response
from voice_command_agent.common.errors import CancelledError, NotFoundError, ValidationError
from voice_command_agent.common.ids import new_audio_id
from voice_command_agent.domain.models import AudioPayload, Transcript
from voice_command_agent.services.pipeline_service import (
    PipelineOutcome,
    PipelineRunner,
    get_session_registry,
)
from voice_command_agent.services.providers import build_pipeline_runner

router = APIRouter()
AUTH_DEP = Depends(auth_dep)


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_data: str | None = Field(default=None, alias="audioData")
    encoding: str = Field(default="wav", min_length=2, max_length=16)
    language: str | None = Field(default=None, max_length=16)
    session_id: str | None = Field(default=None, alias="sessionId", max_length=128)


class ResolveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcription: str | None = Field(default=None, max_length=100_000)
    session_id: str | None = Field(default=None, alias="sessionId", max_length=128)


def _runner_for(session_id: str | None) -> PipelineRunner:
    if not session_id:
        return build_pipeline_runner()
    return get_session_registry().get_or_create(session_id, build_pipeline_runner)


def _outcome_body(outcome: PipelineOutcome, runner: PipelineRunner) -> dict[str, Any]:
    return {
        "runId": outcome.run_id,
        "transcription": outcome.transcript.text if outcome.transcript else None,
        "intent": outcome.intent.to_dict() if outcome.intent else None,
        "result": outcome.result.to_dict() if outcome.result else None,
        "view": runner.view.snapshot(),
    }


def _respond(outcome: PipelineOutcome, runner: PipelineRunner) -> dict[str, Any] | JSONResponse:
    body = _outcome_body(outcome, runner)
    if outcome.cancelled:
        return app_error_response(CancelledError(details={"run_id": outcome.run_id}), extra=body)
    if outcome.error is not None:
        return app_error_response(outcome.error, extra=body)
    return {"success": True, **body}


@router.post("/commands/analyze")
def analyze_command(req: AnalyzeRequest, _=AUTH_DEP):
    if not (req.audio_data or "").strip():
        raise ValidationError("No audio data provided")
    audio = AudioPayload.from_base64(req.audio_data or "", encoding=req.encoding)
    runner = _runner_for(req.session_id)
    outcome = runner.start(audio, language=req.language)
    return _respond(outcome, runner)


@router.post("/commands/resolve")
def resolve_command(req: ResolveRequest, _=AUTH_DEP):
    text = req.transcription or ""
    if not text.strip():
        raise ValidationError("No transcription provided")
    runner = _runner_for(req.session_id)
    outcome = runner.start_from_transcript(Transcript(text=text, audio_id=new_audio_id()))
    return _respond(outcome, runner)


@router.post("/commands/{session_id}/cancel")
def cancel_command(session_id: str, _=AUTH_DEP) -> dict[str, Any]:
    runner = get_session_registry().get(session_id)
    cancelled = runner.cancel() if runner is not None else False
    return {"success": True, "cancelled": cancelled}


@router.get("/commands/{session_id}/view")
def get_command_view(session_id: str, _=AUTH_DEP) -> dict[str, Any]:
    runner = get_session_registry().get(session_id)
    if runner is None:
        raise NotFoundError("Unknown session")
    return {"success": True, "busy": runner.busy, "view": runner.view.snapshot()}
