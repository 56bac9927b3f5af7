"""
Генерация идентификаторов.

Назначение:
- audio_id для привязки transcript к записи
- run_id для трассировки одного прогона пайплайна
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime


def new_event_id(prefix: str = "evt") -> str:
    """
    Идентификатор события (лог/трассировка).
    Формат: <prefix>_<UTCYYYYMMDDHHMMSS>_<rand>
    """
    ts = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    rnd = secrets.token_hex(6)
    return f"{prefix}_{ts}_{rnd}"


def new_audio_id() -> str:
    return new_event_id("aud")


def new_run_id() -> str:
    return new_event_id("run")
