from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api_gateway.errors import install_error_handlers
from apps.api_gateway.routers.llm import router as llm_router
from voice_command_agent.common.config import get_settings
from voice_command_agent.common.errors import ErrCode, TransportError
from voice_command_agent.llm.mock import MockLLMProvider
from voice_command_agent.llm.orchestrator import LLMOrchestrator


def _client() -> TestClient:
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(llm_router, prefix="/api")
    return TestClient(app)


def test_query_embeds_openapi_in_system_prompt(monkeypatch) -> None:
    provider = MockLLMProvider(reply='```json\n{"commandType": "help"}\n```')
    monkeypatch.setattr(
        "apps.api_gateway.routers.llm.get_llm_orchestrator",
        lambda: LLMOrchestrator(provider, retries=0, backoff_ms=0),
    )

    settings = get_settings()
    snapshot_auth = settings.auth_mode
    try:
        settings.auth_mode = "none"
        resp = _client().post("/api/llm/query", json={"query": "help"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["response"] == '```json\n{"commandType": "help"}\n```'
        assert body["metadata"]["processed_at"]

        call = provider.calls[0]
        assert call["user"] == "help"
        assert "/api/llm/query" in call["system"]
    finally:
        settings.auth_mode = snapshot_auth


def test_query_missing_is_400(monkeypatch) -> None:
    provider = MockLLMProvider()
    monkeypatch.setattr(
        "apps.api_gateway.routers.llm.get_llm_orchestrator",
        lambda: LLMOrchestrator(provider, retries=0, backoff_ms=0),
    )

    settings = get_settings()
    snapshot_auth = settings.auth_mode
    try:
        settings.auth_mode = "none"
        resp = _client().post("/api/llm/query", json={"query": "   "})
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "No query provided",
            "details": {"code": ErrCode.VALIDATION},
        }
        assert provider.calls == []
    finally:
        settings.auth_mode = snapshot_auth


def test_query_transport_failure_is_500(monkeypatch) -> None:
    class _Down(MockLLMProvider):
        def complete_text(self, **_kw):
            raise TransportError(ErrCode.LLM_PROVIDER_ERROR, "Chat-completion service is unreachable")

    monkeypatch.setattr(
        "apps.api_gateway.routers.llm.get_llm_orchestrator",
        lambda: LLMOrchestrator(_Down(), retries=0, backoff_ms=0),
    )

    settings = get_settings()
    snapshot_auth = settings.auth_mode
    try:
        settings.auth_mode = "none"
        resp = _client().post("/api/llm/query", json={"query": "list models"})
        assert resp.status_code == 500
        assert resp.json()["error"] == "Chat-completion service is unreachable"
    finally:
        settings.auth_mode = snapshot_auth
