from __future__ import annotations

from enum import Enum


class IntentKind(str, Enum):
    """Закрытый набор голосовых команд."""

    TRANSCRIBE = "transcribe"
    TRANSLATE = "translate"
    LIST_MODELS = "list_models"
    HELP = "help"
    UNKNOWN = "unknown"


class RenderFormat(str, Enum):
    TEXT = "text"
    HTML = "html"
