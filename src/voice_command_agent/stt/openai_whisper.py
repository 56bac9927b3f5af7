"""
STT через OpenAI-compatible /audio/transcriptions (Whisper).

Что делает:
- пишет аудио во временный файл с расширением исходной кодировки
- отправляет multipart: file, model, (language), (prompt)
- временный файл удаляется всегда, в том числе на ошибках
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

import requests

from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import (
    ErrCode,
    ProviderError,
    TransportError,
    UpstreamError,
)
from voice_command_agent.common.logging import get_project_logger
from voice_command_agent.common.metrics import record_upstream_call

from .base import STTProvider, STTResult

log = get_project_logger()

_MIME_BY_ENCODING = {
    "wav": "audio/wav",
    "webm": "audio/webm",
    "mp3": "audio/mpeg",
    "mpeg": "audio/mpeg",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "flac": "audio/flac",
}


@dataclass
class WhisperConfig:
    """Настройки OpenAI-compatible STT."""

    api_base: str
    api_key: str
    model: str = "whisper-1"
    timeout_s: int = 120


class OpenAIWhisperProvider(STTProvider):
    def __init__(self, cfg: WhisperConfig | None = None) -> None:
        if cfg is None:
            s = get_settings()
            cfg = WhisperConfig(
                api_base=s.openai_api_base or "",
                api_key=s.openai_api_key or "",
                model=s.stt_model_id or "whisper-1",
                timeout_s=int(s.stt_request_timeout_sec or 120),
            )
        if not cfg.api_base:
            raise ProviderError(ErrCode.STT_PROVIDER_ERROR, "OPENAI_API_BASE is not set")
        if not cfg.api_key:
            raise ProviderError(ErrCode.STT_PROVIDER_ERROR, "OPENAI_API_KEY is not set")
        self.cfg = cfg

    def transcribe(
        self,
        *,
        audio: bytes,
        encoding: str,
        language: str | None = None,
        prompt: str | None = None,
    ) -> STTResult:
        suffix = "." + (encoding or "wav")
        fd, tmp_path = tempfile.mkstemp(prefix="audio-", suffix=suffix)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(audio)
            log.info(
                "stt_temp_file_created",
                extra={"payload": {"path": tmp_path, "size": len(audio)}},
            )
            return self._post(tmp_path, encoding=encoding, language=language, prompt=prompt)
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

    def _post(
        self,
        path: str,
        *,
        encoding: str,
        language: str | None,
        prompt: str | None,
    ) -> STTResult:
        url = self.cfg.api_base.rstrip("/") + "/audio/transcriptions"
        headers = {"Authorization": f"Bearer {self.cfg.api_key}"}
        data = {"model": self.cfg.model}
        if language:
            data["language"] = language
        if prompt:
            data["prompt"] = prompt
        mime = _MIME_BY_ENCODING.get(encoding, "application/octet-stream")

        with open(path, "rb") as fh:
            files = {"file": (os.path.basename(path), fh, mime)}
            try:
                resp = requests.post(
                    url,
                    headers=headers,
                    data=data,
                    files=files,
                    timeout=self.cfg.timeout_s,
                )
            except requests.RequestException as e:
                record_upstream_call(gateway="stt", result="transport_error")
                log.error(
                    "stt_http_error",
                    extra={"payload": {"provider": "openai_whisper", "err": str(e)}},
                )
                raise TransportError(
                    ErrCode.STT_PROVIDER_ERROR,
                    "Speech-to-text service is unreachable",
                    {"err": str(e)},
                ) from e

        if resp.status_code >= 400:
            record_upstream_call(gateway="stt", result="upstream_error")
            log.warning(
                "stt_upstream_error",
                extra={"payload": {"status": resp.status_code, "text_head": resp.text[:200]}},
            )
            raise UpstreamError(
                ErrCode.STT_PROVIDER_ERROR,
                "Speech-to-text service returned an error",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            payload = resp.json()
            text = payload["text"]
        except (ValueError, KeyError, TypeError) as e:
            record_upstream_call(gateway="stt", result="upstream_error")
            raise UpstreamError(
                ErrCode.STT_PROVIDER_ERROR,
                "Speech-to-text service returned an unexpected body",
                status=resp.status_code,
                body=resp.text,
                details={"err": str(e)},
            ) from e

        record_upstream_call(gateway="stt", result="ok")
        return STTResult(text=str(text), model=self.cfg.model, language=language)
