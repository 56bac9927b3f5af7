from __future__ import annotations

import base64

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api_gateway.errors import install_error_handlers
from apps.api_gateway.routers.audio import router as audio_router
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import ErrCode, UpstreamError
from voice_command_agent.llm.mock import MockLLMProvider
from voice_command_agent.llm.orchestrator import LLMOrchestrator
from voice_command_agent.services.transcription_service import TranscriptionClient
from voice_command_agent.services.translation_service import LLMTranslator
from voice_command_agent.stt.mock import MockSTTProvider

AUDIO_B64 = base64.b64encode(b"RIFF-fake-wav").decode("ascii")


@pytest.fixture()
def client():
    s = get_settings()
    keys = ["app_env", "auth_mode", "stt_model_id"]
    snapshot = {k: getattr(s, k) for k in keys}
    s.app_env = "dev"
    s.auth_mode = "none"
    s.stt_model_id = "whisper-1"
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(audio_router, prefix="/api")
    try:
        yield TestClient(app)
    finally:
        for k, v in snapshot.items():
            setattr(s, k, v)


def _stt(monkeypatch, text: str = "hello there") -> MockSTTProvider:
    stt = MockSTTProvider(text)
    monkeypatch.setattr(
        "apps.api_gateway.routers.audio.get_transcription_client",
        lambda: TranscriptionClient(stt),
    )
    return stt


def _llm(monkeypatch, provider) -> None:
    monkeypatch.setattr(
        "apps.api_gateway.routers.audio.get_translator",
        lambda: LLMTranslator(LLMOrchestrator(provider, retries=0, backoff_ms=0), model="gpt-4"),
    )


def test_transcribe_returns_text_and_metadata(client, monkeypatch) -> None:
    stt = _stt(monkeypatch)
    resp = client.post("/api/audio/transcribe", json={"audioData": AUDIO_B64, "language": "en"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["transcription"] == "hello there"
    assert body["metadata"]["model"] == "whisper-1"
    assert body["metadata"]["language"] == "en"
    assert body["metadata"]["processed_at"].endswith("Z")
    assert stt.calls[0]["size"] == len(b"RIFF-fake-wav")


def test_transcribe_language_defaults_to_auto_detect(client, monkeypatch) -> None:
    _stt(monkeypatch)
    resp = client.post("/api/audio/transcribe", json={"audioData": AUDIO_B64})
    assert resp.json()["metadata"]["language"] == "auto-detect"


def test_transcribe_missing_audio_is_400(client, monkeypatch) -> None:
    stt = _stt(monkeypatch)
    resp = client.post("/api/audio/transcribe", json={})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "No audio data provided"
    assert stt.calls == []


def test_transcribe_bad_base64_is_400(client, monkeypatch) -> None:
    _stt(monkeypatch)
    resp = client.post("/api/audio/transcribe", json={"audioData": "%%%not-base64%%%"})
    assert resp.status_code == 400
    assert resp.json()["details"]["code"] == ErrCode.VALIDATION


def test_transcribe_upstream_failure_is_500(client, monkeypatch) -> None:
    class _Failing:
        def transcribe(self, **_kw):
            raise UpstreamError(ErrCode.STT_PROVIDER_ERROR, "Speech-to-text service returned an error", status=401)

    monkeypatch.setattr(
        "apps.api_gateway.routers.audio.get_transcription_client",
        lambda: TranscriptionClient(_Failing()),
    )
    resp = client.post("/api/audio/transcribe", json={"audioData": AUDIO_B64})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Speech-to-text service returned an error"
    assert body["details"]["status"] == 401


def test_translate_content(client, monkeypatch) -> None:
    provider = MockLLMProvider(reply="Hallo Welt")
    _llm(monkeypatch, provider)
    resp = client.post("/api/audio/translate", json={"content": "Hello world", "targetLanguage": "German"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["originalTranscription"] == "Hello world"
    assert body["translation"] == "Hallo Welt"
    assert body["targetLanguage"] == "German"
    assert body["metadata"]["translation_model"] == "gpt-4"
    assert body["metadata"]["transcription_model"] is None


def test_translate_audio_transcribes_first(client, monkeypatch) -> None:
    _stt(monkeypatch, text="Bonjour")
    provider = MockLLMProvider(reply="Hello")
    _llm(monkeypatch, provider)
    resp = client.post("/api/audio/translate", json={"audioData": AUDIO_B64})

    assert resp.status_code == 200
    body = resp.json()
    assert body["originalTranscription"] == "Bonjour"
    assert body["targetLanguage"] == "English"
    assert body["metadata"]["transcription_model"] == "whisper-1"
    assert provider.calls[0]["user"] == "Bonjour"


def test_translate_requires_exactly_one_source(client, monkeypatch) -> None:
    _llm(monkeypatch, MockLLMProvider())

    resp = client.post("/api/audio/translate", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Either audio data or content must be provided"

    resp = client.post("/api/audio/translate", json={"audioData": AUDIO_B64, "content": "hi"})
    assert resp.status_code == 400


def test_translate_failure_keeps_transcription(client, monkeypatch) -> None:
    _stt(monkeypatch, text="Guten Tag")

    class _Down(MockLLMProvider):
        def complete_text(self, **_kw):
            raise UpstreamError(ErrCode.LLM_PROVIDER_ERROR, "Chat-completion service returned an error", status=502)

    _llm(monkeypatch, _Down())
    resp = client.post("/api/audio/translate", json={"audioData": AUDIO_B64})

    assert resp.status_code == 500
    assert resp.json()["details"]["transcription"] == "Guten Tag"


def test_models_catalog(client) -> None:
    resp = client.get("/api/audio/models")
    assert resp.status_code == 200
    body = resp.json()
    assert [m["id"] for m in body["models"]] == ["whisper-1", "whisper-multilingual"]
    assert body["default_model"] == "whisper-1"
    assert "translation" in body["capabilities"]["features"]


def test_api_key_guard_returns_envelope(client, monkeypatch) -> None:
    stt = _stt(monkeypatch)
    s = get_settings()
    snapshot = (s.auth_mode, s.api_keys)
    try:
        s.auth_mode = "api_key"
        s.api_keys = "secret-1"

        resp = client.post("/api/audio/transcribe", json={"audioData": AUDIO_B64})
        assert resp.status_code == 401
        assert resp.json() == {
            "success": False,
            "error": "Invalid API key",
            "details": {"code": ErrCode.UNAUTHORIZED},
        }
        assert stt.calls == []

        resp = client.post(
            "/api/audio/transcribe",
            json={"audioData": AUDIO_B64},
            headers={"X-API-Key": "secret-1"},
        )
        assert resp.status_code == 200
    finally:
        s.auth_mode, s.api_keys = snapshot


def test_transcribe_path_like_encoding_is_400(client, monkeypatch) -> None:
    stt = _stt(monkeypatch)
    resp = client.post("/api/audio/transcribe", json={"audioData": AUDIO_B64, "encoding": "x/../y"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Unsupported audio encoding"
    assert body["details"]["code"] == ErrCode.VALIDATION
    assert stt.calls == []


def test_transcribe_accepts_line_wrapped_base64(client, monkeypatch) -> None:
    stt = _stt(monkeypatch)
    raw = b"RIFF" + bytes(range(200))
    resp = client.post(
        "/api/audio/transcribe",
        json={"audioData": base64.encodebytes(raw).decode("ascii"), "encoding": "WAV"},
    )

    assert resp.status_code == 200
    assert stt.calls == [{"size": len(raw), "encoding": "wav", "language": None}]
