"""
Базовый интерфейс STT (Speech-to-Text).

Назначение:
- единый контракт для всех провайдеров
- провайдер отвечает только за транспорт, валидация входа — в TranscriptionClient
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass
class STTResult:
    text: str
    model: str | None = None
    language: str | None = None


class STTProvider(Protocol):
    def transcribe(
        self,
        *,
        audio: bytes,
        encoding: str,
        language: str | None = None,
        prompt: str | None = None,
    ) -> STTResult: ...
