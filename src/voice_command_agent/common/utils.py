"""
Общие утилиты проекта.

Правила:
- сюда кладём только реально общие функции
- без бизнес-логики
"""

from __future__ import annotations

import base64
from typing import Any


def b64_decode(data_b64: str) -> bytes:
    """
    base64(str) -> bytes. Допускает data-URL префикс ("data:audio/webm;base64,...") и пробельные символы внутри.
    Бросает binascii.Error на мусоре.
    """
    raw = (data_b64 or "").strip()
    if raw.startswith("data:") and "," in raw:
        raw = raw.split(",", 1)[1]
    # base64 с переносами строк (MIME) тоже допустим
    raw = "".join(raw.split())
    return base64.b64decode(raw.encode("utf-8"), validate=True)


def safe_dict(d: dict[str, Any], max_len: int = 500) -> dict[str, Any]:
    """
    Безопасное "обрезание" полей для логов (чтобы не утащить большие тексты).
    """
    out: dict[str, Any] = {}
    for k, v in d.items():
        if isinstance(v, str) and len(v) > max_len:
            out[k] = v[:max_len] + "...(truncated)"
        else:
            out[k] = v
    return out
