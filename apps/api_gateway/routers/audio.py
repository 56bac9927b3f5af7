from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from apps.api_gateway.deps import auth_dep
from apps.api_gateway.errors import app_error_response
from voice_command_agent.commands.catalog import models_document
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import AppError, ValidationError
from voice_command_agent.common.time import utc_now_iso
from voice_command_agent.domain.models import AudioPayload
from voice_command_agent.services.providers import get_transcription_client, get_translator

router = APIRouter()
AUTH_DEP = Depends(auth_dep)


class TranscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_data: str | None = Field(default=None, alias="audioData")
    encoding: str = Field(default="wav", min_length=2, max_length=16)
    language: str | None = Field(default=None, max_length=16)
    prompt: str | None = Field(default=None, max_length=4000)


class TranscriptionMetadata(BaseModel):
    processed_at: str
    model: str
    language: str


class TranscribeResponse(BaseModel):
    success: bool = True
    transcription: str
    metadata: TranscriptionMetadata


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_data: str | None = Field(default=None, alias="audioData")
    content: str | None = Field(default=None, max_length=100_000)
    target_language: str | None = Field(default=None, alias="targetLanguage", max_length=64)
    encoding: str = Field(default="wav", min_length=2, max_length=16)


class TranslationMetadata(BaseModel):
    processed_at: str
    transcription_model: str | None
    translation_model: str | None


class TranslateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    original_transcription: str = Field(alias="originalTranscription")
    translation: str
    target_language: str = Field(alias="targetLanguage")
    metadata: TranslationMetadata


def _decode_audio(audio_data: str | None, encoding: str) -> AudioPayload:
    if not (audio_data or "").strip():
        raise ValidationError("No audio data provided")
    return AudioPayload.from_base64(audio_data or "", encoding=encoding)


@router.post("/audio/transcribe", response_model=TranscribeResponse)
def transcribe_audio(req: TranscribeRequest, _=AUTH_DEP) -> TranscribeResponse:
    audio = _decode_audio(req.audio_data, req.encoding)
    transcript = get_transcription_client().transcribe(
        audio,
        language=req.language,
        prompt=req.prompt,
    )
    return TranscribeResponse(
        transcription=transcript.text,
        metadata=TranscriptionMetadata(
            processed_at=utc_now_iso(),
            model=get_settings().stt_model_id,
            language=req.language or "auto-detect",
        ),
    )


@router.post("/audio/translate", response_model=TranslateResponse)
def translate_audio(req: TranslateRequest, _=AUTH_DEP):
    has_audio = bool((req.audio_data or "").strip())
    has_content = bool((req.content or "").strip())
    if has_audio and has_content:
        raise ValidationError("Provide either audio data or content, not both")
    if not has_audio and not has_content:
        raise ValidationError("Either audio data or content must be provided")

    transcription_model: str | None = None
    if has_content:
        text = req.content or ""
    else:
        audio = _decode_audio(req.audio_data, req.encoding)
        text = get_transcription_client().transcribe(audio).text
        transcription_model = get_settings().stt_model_id

    try:
        res = get_translator().translate(text, req.target_language)
    except AppError as e:
        # Уже полученный транскрипт не теряем
        return app_error_response(e, extra={"transcription": text})

    return TranslateResponse(
        original_transcription=res.original,
        translation=res.translation,
        target_language=res.target_language,
        metadata=TranslationMetadata(
            processed_at=utc_now_iso(),
            transcription_model=transcription_model,
            translation_model=res.model,
        ),
    )


@router.get("/audio/models")
def get_available_models(_=AUTH_DEP) -> dict[str, Any]:
    return models_document()
