from __future__ import annotations

from voice_command_agent.stt.base import STTProvider, STTResult


class MockSTTProvider(STTProvider):
    """Заглушка STT: возвращает предсказуемый текст для проверки пайплайна end-to-end."""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.calls: list[dict] = []

    def transcribe(
        self,
        *,
        audio: bytes,
        encoding: str,
        language: str | None = None,
        prompt: str | None = None,
    ) -> STTResult:
        self.calls.append({"size": len(audio), "encoding": encoding, "language": language})
        text = self.text if self.text is not None else f"mock_transcript bytes={len(audio)}"
        return STTResult(text=text, model="mock", language=language)
