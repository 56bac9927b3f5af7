from __future__ import annotations

import base64
import os

import pytest
import requests

from voice_command_agent.common.errors import (
    ErrCode,
    TransportError,
    UpstreamError,
    ValidationError,
)
from voice_command_agent.domain.models import AudioPayload, normalize_encoding
from voice_command_agent.services.transcription_service import TranscriptionClient
from voice_command_agent.stt.mock import MockSTTProvider
from voice_command_agent.stt.openai_whisper import OpenAIWhisperProvider, WhisperConfig


class _FakeResponse:
    def __init__(self, payload: dict | None, *, status_code: int = 200, text: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self) -> dict:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _provider() -> OpenAIWhisperProvider:
    return OpenAIWhisperProvider(
        WhisperConfig(api_base="https://stt.local/v1", api_key="k", model="whisper-1", timeout_s=5)
    )


def test_text_is_returned_verbatim() -> None:
    stt = MockSTTProvider(text="  Translate to Spanish: Good morning!  ")
    client = TranscriptionClient(stt)
    audio = AudioPayload(data=b"RIFF....", encoding="wav")

    tr = client.transcribe(audio, language="en")

    assert tr.text == "  Translate to Spanish: Good morning!  "
    assert tr.audio_id == audio.audio_id
    assert stt.calls == [{"size": 8, "encoding": "wav", "language": "en"}]


def test_empty_audio_rejected_without_gateway_call() -> None:
    stt = MockSTTProvider()
    with pytest.raises(ValidationError) as e:
        TranscriptionClient(stt).transcribe(AudioPayload(data=b""))
    assert e.value.message == "No audio data provided"
    assert stt.calls == []


def test_oversized_audio_rejected() -> None:
    stt = MockSTTProvider()
    with pytest.raises(ValidationError):
        TranscriptionClient(stt, max_audio_bytes=4).transcribe(AudioPayload(data=b"12345"))
    assert stt.calls == []


def test_from_base64_accepts_data_url_and_rejects_garbage() -> None:
    audio = AudioPayload.from_base64("data:audio/webm;base64,aGVsbG8=", encoding=".WEBM")
    assert audio.data == b"hello"
    assert audio.encoding == "webm"

    with pytest.raises(ValidationError):
        AudioPayload.from_base64("not base64 at all!!")


def test_whisper_posts_multipart_and_removes_temp_file(monkeypatch) -> None:
    seen: dict = {}

    def fake_post(url, *, headers, data, files, timeout):
        name, fh, mime = files["file"]
        seen.update(
            url=url,
            headers=headers,
            data=data,
            mime=mime,
            name=name,
            path=fh.name,
            content=fh.read(),
            timeout=timeout,
        )
        return _FakeResponse({"text": "hello world"})

    monkeypatch.setattr("voice_command_agent.stt.openai_whisper.requests.post", fake_post)

    res = _provider().transcribe(audio=b"abc", encoding="webm", language="en", prompt="names")

    assert res.text == "hello world"
    assert seen["url"] == "https://stt.local/v1/audio/transcriptions"
    assert seen["headers"]["Authorization"] == "Bearer k"
    assert seen["data"] == {"model": "whisper-1", "language": "en", "prompt": "names"}
    assert seen["mime"] == "audio/webm"
    assert seen["name"].endswith(".webm")
    assert seen["content"] == b"abc"
    assert not os.path.exists(seen["path"])


def test_whisper_removes_temp_file_on_transport_error(monkeypatch) -> None:
    seen: dict = {}

    def fake_post(url, *, headers, data, files, timeout):
        seen["path"] = files["file"][1].name
        raise requests.ConnectionError("refused")

    monkeypatch.setattr("voice_command_agent.stt.openai_whisper.requests.post", fake_post)

    with pytest.raises(TransportError) as e:
        _provider().transcribe(audio=b"abc", encoding="wav")
    assert e.value.code == ErrCode.STT_PROVIDER_ERROR
    assert e.value.retryable is True
    assert not os.path.exists(seen["path"])


def test_whisper_non_2xx_is_upstream_error(monkeypatch) -> None:
    monkeypatch.setattr(
        "voice_command_agent.stt.openai_whisper.requests.post",
        lambda *_a, **_k: _FakeResponse({"error": "bad"}, status_code=400, text='{"error": "bad"}'),
    )
    with pytest.raises(UpstreamError) as e:
        _provider().transcribe(audio=b"abc", encoding="wav")
    assert e.value.details["status"] == 400
    assert e.value.retryable is False


def test_whisper_reply_without_text_is_upstream_error(monkeypatch) -> None:
    monkeypatch.setattr(
        "voice_command_agent.stt.openai_whisper.requests.post",
        lambda *_a, **_k: _FakeResponse({"unexpected": True}, text="{}"),
    )
    with pytest.raises(UpstreamError):
        _provider().transcribe(audio=b"abc", encoding="wav")


def test_from_base64_accepts_line_wrapped_input() -> None:
    raw = bytes(range(256)) * 2
    wrapped = base64.encodebytes(raw).decode("ascii")
    assert "\n" in wrapped

    assert AudioPayload.from_base64(wrapped).data == raw
    assert AudioPayload.from_base64("data:audio/wav;base64,\r\n" + wrapped).data == raw


@pytest.mark.parametrize("encoding", ["x/../y", "web m", "w", "wav;rm", "a" * 17])
def test_unusable_encoding_is_validation_error(encoding) -> None:
    with pytest.raises(ValidationError):
        normalize_encoding(encoding)
    with pytest.raises(ValidationError):
        AudioPayload.from_base64("aGVsbG8=", encoding=encoding)


def test_client_rejects_bad_encoding_before_gateway_call() -> None:
    stt = MockSTTProvider()
    with pytest.raises(ValidationError) as e:
        TranscriptionClient(stt).transcribe(AudioPayload(data=b"abc", encoding="../../etc/x"))
    assert e.value.message == "Unsupported audio encoding"
    assert stt.calls == []

    TranscriptionClient(stt).transcribe(AudioPayload(data=b"abc", encoding=" MP3 "))
    assert stt.calls[0]["encoding"] == "mp3"
