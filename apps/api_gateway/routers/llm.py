from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from apps.api_gateway.deps import auth_dep
from voice_command_agent.commands.prompts import build_api_assistant_prompt
from voice_command_agent.common.errors import ValidationError
from voice_command_agent.common.logging import get_llm_logger
from voice_command_agent.common.time import utc_now_iso
from voice_command_agent.services.providers import get_llm_orchestrator

router = APIRouter()
AUTH_DEP = Depends(auth_dep)
log = get_llm_logger()


class LLMQueryRequest(BaseModel):
    query: str | None = Field(default=None, max_length=20_000)


class LLMQueryMetadata(BaseModel):
    model: str | None
    processed_at: str


class LLMQueryResponse(BaseModel):
    success: bool = True
    response: str
    metadata: LLMQueryMetadata


@router.post("/llm/query", response_model=LLMQueryResponse)
def query_llm(req: LLMQueryRequest, request: Request, _=AUTH_DEP) -> LLMQueryResponse:
    """
    Сырой ответ LLM. Системный промпт содержит OpenAPI-описание этого же сервиса,
    чтобы модель могла подсказывать, какой эндпоинт вызвать.
    """
    query = (req.query or "").strip()
    if not query:
        raise ValidationError("No query provided")

    system = build_api_assistant_prompt(request.app.openapi())
    res = get_llm_orchestrator().complete_text(system=system, user=query)
    log.info("llm_query_done", extra={"payload": {"chars": len(res.text), "model": res.model}})
    return LLMQueryResponse(
        response=res.text,
        metadata=LLMQueryMetadata(model=res.model, processed_at=utc_now_iso()),
    )
