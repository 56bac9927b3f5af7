"""
Mock LLM для тестов и dev.

Назначение:
- Быстро гонять пайплайн без реальных вызовов LLM
- Предсказуемый результат: ответ задаётся в конструкторе
"""

from __future__ import annotations

from .base import LLMProvider, LLMResult


class MockLLMProvider(LLMProvider):
    def __init__(self, reply: str = "mock_text") -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def complete_text(
        self,
        *,
        user: str,
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> LLMResult:
        self.calls.append({"user": user, "system": system, "model": model})
        return LLMResult(text=self.reply, model=model or "mock", usage={"mock": True})
