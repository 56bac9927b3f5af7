"""
Значения, которые передаются между стадиями пайплайна.

Каждая стадия владеет своим входом и создаёт новое значение для следующей:
AudioPayload -> Transcript -> IntentRecord -> DispatchResult.
"""

from __future__ import annotations

import binascii
import re
from dataclasses import asdict, dataclass, field
from typing import Any

from voice_command_agent.common.errors import ValidationError
from voice_command_agent.common.ids import new_audio_id
from voice_command_agent.common.utils import b64_decode

from .enums import IntentKind, RenderFormat

DEFAULT_TARGET_LANGUAGE = "English"

# encoding становится расширением временного файла
_ENCODING_RE = re.compile(r"^[a-z0-9]{2,16}$")


@dataclass(frozen=True)
class AudioPayload:
    """Аудио одной записи. Живёт только на время прогона пайплайна."""

    data: bytes
    encoding: str = "wav"
    audio_id: str = field(default_factory=new_audio_id)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_base64(cls, data_b64: str, *, encoding: str = "wav") -> AudioPayload:
        try:
            data = b64_decode(data_b64)
        except (binascii.Error, ValueError) as e:
            raise ValidationError("audioData is not valid base64", {"err": str(e)[:200]}) from e
        return cls(data=data, encoding=normalize_encoding(encoding))


@dataclass(frozen=True)
class Transcript:
    text: str
    audio_id: str


@dataclass(frozen=True)
class IntentRecord:
    """
    Структурированный результат классификации.
    - command: фраза-команда (только для диагностики)
    - content: полезная часть транскрипта
    - target_language: только для translate
    - raw: сырой ответ LLM, когда разбор не удался
    - transcript: исходный транскрипт дословно
    """

    kind: IntentKind
    command: str = ""
    content: str = ""
    target_language: str | None = None
    raw: str | None = None
    transcript: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "commandType": self.kind.value,
            "command": self.command,
            "content": self.content,
            "targetLanguage": self.target_language,
            "raw": self.raw,
        }


@dataclass(frozen=True)
class DispatchResult:
    """То, что видит пользователь. Каждый dispatch целиком заменяет предыдущий."""

    status: str
    body: str
    format: RenderFormat = RenderFormat.TEXT
    is_error: bool = False
    kind: IntentKind = IntentKind.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["format"] = self.format.value
        out["kind"] = self.kind.value
        out["isError"] = out.pop("is_error")
        return out


def normalize_encoding(encoding: str | None) -> str:
    """"WEBM" / ".webm" -> "webm". Всё, что не похоже на расширение файла, отклоняется."""
    value = (encoding or "wav").strip().lower().lstrip(".")
    if not _ENCODING_RE.match(value):
        raise ValidationError("Unsupported audio encoding", {"encoding": (encoding or "")[:32]})
    return value
