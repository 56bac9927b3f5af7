"""
Промпты для LLM.

- INTENT: классификация транскрипта в одну из команд + выделение слотов
- TRANSLATION: системный промпт переводчика
- API_ASSISTANT: системный промпт для /api/llm/query (со спецификацией API)
"""

from __future__ import annotations

import json
from typing import Any

_INTENT_TEMPLATE = """\
I have an audio transcription that may contain both a command and content.
Please analyze this transcription: "{transcript}"

Identify if there's a command like:
- "transcribe this:" or similar phrases indicating transcription, followed by content to transcribe
- Any translation-related phrase like "translate", "translate for me", "translate this", "translate to [language]", "can you translate", etc.
- "list models" or "show me available models" or similar phrases asking to see available models
- "help" or any requests for assistance

Return a JSON object with:
1. commandType: "transcribe", "translate", "list_models", "help", or "unknown"
2. content: The actual content to transcribe or translate (if present)
3. command: The specific command detected
4. targetLanguage: The target language for translation (if a translation command)
   - If a specific language is mentioned (e.g., "translate to Spanish"), extract that language
   - If no language is specified, default to "English"
   - Be flexible in language detection, recognizing names like "Japanese", "German", "French", etc.
   - If the user just says "translate" without specifying a language, assume English as the target

IMPORTANT: Be very flexible in command detection. Users might phrase things in many different ways.
Reply with the JSON object inside a ```json fenced code block and nothing else.

Examples:
- "transcribe this: Hello world" -> {{"commandType": "transcribe", "command": "transcribe this", "content": "Hello world"}}
- "please transcribe the following" -> {{"commandType": "transcribe", "command": "please transcribe", "content": "the following"}}
- "translate this to Spanish: Hello how are you?" -> {{"commandType": "translate", "command": "translate this to Spanish", "content": "Hello how are you?", "targetLanguage": "Spanish"}}
- "can you translate the following to Japanese" -> {{"commandType": "translate", "command": "translate to Japanese", "content": "the following", "targetLanguage": "Japanese"}}
- "translate for me" -> {{"commandType": "translate", "command": "translate", "content": "for me", "targetLanguage": "English"}}
- "show me available models" -> {{"commandType": "list_models", "command": "show me available models", "content": ""}}
- "help me understand how this works" -> {{"commandType": "help", "command": "help", "content": "me understand how this works"}}
"""

TRANSLATION_SYSTEM_TEMPLATE = """\
You are a professional translator fluent in all languages. Translate the following text to {target_language}.
If the target language is unclear or generic (e.g., just "language" or "another language"), translate to English.
Maintain the tone, meaning, and style as closely as possible.
If the text is already in the target language, mention this and return the original text."""

_API_ASSISTANT_TEMPLATE = """\
You are an AI assistant that helps users interact with an Audio Transcription API.
The API has the following OpenAPI specification. Use this to determine which endpoints to call:
{spec}
Always analyze the API spec to determine the correct endpoints, parameters, and response formats. When recommending actions,
provide the exact endpoint URL, HTTP method, required parameters, and explain why this endpoint is appropriate."""


def build_intent_prompt(transcript: str) -> str:
    """Транскрипт вставляется дословно: без нормализации регистра и пунктуации."""
    return _INTENT_TEMPLATE.format(transcript=transcript)


def build_translation_system_prompt(target_language: str) -> str:
    return TRANSLATION_SYSTEM_TEMPLATE.format(target_language=target_language)


def build_api_assistant_prompt(openapi_spec: dict[str, Any] | None) -> str:
    spec = json.dumps(openapi_spec or {}, ensure_ascii=False, indent=2)
    return _API_ASSISTANT_TEMPLATE.format(spec=spec)
