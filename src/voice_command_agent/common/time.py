"""
Утилиты времени.

Назначение:
- единый формат времени (ISO UTC) для metadata.processed_at
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Текущее время в UTC (datetime).
    """
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """
    Текущее время в UTC в ISO формате (миллисекунды, суффикс Z).
    """
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
