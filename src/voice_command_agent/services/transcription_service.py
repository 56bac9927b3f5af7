"""
Transcription Client: AudioPayload -> Transcript.

- пустое/слишком большое аудио -> ValidationError без обращения к сети
- текст шлюза возвращается дословно, без нормализации
"""

from __future__ import annotations

from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import ValidationError
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.domain.models import AudioPayload, Transcript, normalize_encoding
from voice_command_agent.stt.base import STTProvider

log = get_project_logger()


class TranscriptionClient:
    def __init__(self, provider: STTProvider, *, max_audio_bytes: int | None = None) -> None:
        self.provider = provider
        s = get_settings()
        self.max_audio_bytes = int(max_audio_bytes or s.max_audio_bytes)

    def transcribe(
        self,
        audio: AudioPayload,
        *,
        language: str | None = None,
        prompt: str | None = None,
    ) -> Transcript:
        if audio is None or audio.size == 0:
            raise ValidationError("No audio data provided")
        if audio.size > self.max_audio_bytes:
            raise ValidationError(
                "Audio payload is too large",
                {"size": audio.size, "max": self.max_audio_bytes},
            )
        encoding = normalize_encoding(audio.encoding)

        res = self.provider.transcribe(
            audio=audio.data,
            encoding=encoding,
            language=language or None,
            prompt=prompt or None,
        )
        log.info(
            "transcription_done",
            extra={
                "payload": {
                    "audio_id": audio.audio_id,
                    "size": audio.size,
                    "encoding": encoding,
                    "chars": len(res.text),
                }
            },
        )
        return Transcript(text=res.text, audio_id=audio.audio_id)
