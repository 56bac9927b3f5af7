"""
Статические данные для команд list_models и help.

Каталог моделей — конфигурация, а не кэш живого upstream: сеть не нужна.
"""

from __future__ import annotations

from typing import Any

DEFAULT_MODEL_ID = "whisper-1"

AVAILABLE_MODELS: tuple[dict[str, str], ...] = (
    {
        "id": "whisper-1",
        "name": "Whisper",
        "description": "OpenAI's speech-to-text model optimized for transcription",
    },
    {
        "id": "whisper-multilingual",
        "name": "Whisper Multilingual",
        "description": "Optimized for multiple languages and accents",
    },
)

SUPPORTED_LANGUAGES: tuple[dict[str, str], ...] = (
    {"code": "en", "name": "English"},
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "zh", "name": "Chinese"},
    {"code": "ja", "name": "Japanese"},
)

FEATURES: tuple[str, ...] = ("transcription", "translation", "voice-commands")


def list_models() -> list[dict[str, str]]:
    return [dict(m) for m in AVAILABLE_MODELS]


def models_document() -> dict[str, Any]:
    """Тело ответа GET /api/audio/models."""
    return {
        "models": list_models(),
        "default_model": DEFAULT_MODEL_ID,
        "capabilities": {
            "languages": [dict(lang) for lang in SUPPORTED_LANGUAGES],
            "features": list(FEATURES),
        },
    }


HELP_HTML = """\
<div class="help-info">
  <h3>Voice Command Help</h3>
  <p>You can use the following voice commands while recording:</p>
  <ul>
    <li><strong>Transcribe this: [your content]</strong> - Transcribe specific content</li>
    <li><strong>Translate to [language]: [your content]</strong> - Translate to a specific language</li>
    <li><strong>Translate this for me</strong> - Translate to English (default)</li>
    <li><strong>List models</strong> or <strong>Show available models</strong> - Lists transcription models</li>
    <li><strong>Help</strong> - Shows this help information</li>
  </ul>
  <p>Translation is flexible - try phrases like "translate this to Japanese" or "can you translate the following to French".</p>
  <p>Or just speak naturally and the AI will transcribe your entire recording.</p>
</div>"""
