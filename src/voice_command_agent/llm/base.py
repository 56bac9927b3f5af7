"""
Базовые типы для LLM.

- единый контракт провайдера chat-completion
- простой результат генерации
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class LLMResult:
    """
    Результат генерации LLM.
    """

    text: str
    model: str | None = None
    usage: dict[str, Any] | None = None


class LLMProvider(ABC):
    """
    Интерфейс провайдера LLM.
    """

    @abstractmethod
    def complete_text(
        self,
        *,
        user: str,
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> LLMResult:
        """
        Один запрос: (опциональный) system + один user-ход, без истории.
        """
        raise NotImplementedError
