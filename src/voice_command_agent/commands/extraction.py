"""
Поиск JSON внутри свободного текста ответа LLM.

Порядок:
1) fenced-блок, помеченный как json
2) первая сбалансированная подстрока {...} где угодно в ответе

Скобки внутри JSON-строк (с учётом экранирования) не считаются.
"""

from __future__ import annotations

import json
import re
from typing import Any

from voice_command_agent.common.errors import ParseError

FENCED_JSON_RE = re.compile(r"```[ \t]*json[ \t]*\r?\n(.*?)```", re.IGNORECASE | re.DOTALL)


def find_fenced_json(text: str) -> str | None:
    m = FENCED_JSON_RE.search(text or "")
    if not m:
        return None
    return m.group(1).strip()


def find_balanced_object(text: str) -> str | None:
    """
    Первая подстрока от "{" до парной "}".
    Если первая открытая скобка так и не закрылась, пробуем со следующей.
    """
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        end = _match_brace(text, start)
        if end is not None:
            return text[start : end + 1]
        start = text.find("{", start + 1)
    return None


def _match_brace(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def locate_json(text: str) -> str | None:
    fenced = find_fenced_json(text)
    if fenced is not None:
        return fenced
    return find_balanced_object(text)


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Возвращает распарсенный JSON-объект из ответа.
    ParseError, если JSON не найден, не парсится или это не объект.
    """
    located = locate_json(text)
    if located is None:
        raise ParseError("No JSON found in classifier reply", {"text_head": (text or "")[:200]})
    try:
        data = json.loads(located)
    except json.JSONDecodeError as e:
        raise ParseError(
            "Classifier reply contains malformed JSON",
            {"err": str(e), "json_head": located[:200]},
        ) from e
    if not isinstance(data, dict):
        raise ParseError("Classifier JSON is not an object", {"type": type(data).__name__})
    return data
