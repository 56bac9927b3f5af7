#!/usr/bin/env python3
"""Отправить записанный аудиофайл в /api/commands/analyze и напечатать результат."""

from __future__ import annotations

import argparse
import base64
import json
import os
import sys
from pathlib import Path
from typing import Any

import requests


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run a voice command recording through the API")
    p.add_argument("file", help="Audio file (wav/webm/mp3)")
    p.add_argument("--base-url", default=os.getenv("VOICE_COMMAND_BASE_URL", "http://127.0.0.1:3000"))
    p.add_argument("--api-key", default=os.getenv("VOICE_COMMAND_API_KEY"))
    p.add_argument("--language", default=None, help="ISO-639-1 hint for STT")
    p.add_argument("--session-id", default=None, help="Reuse a session so a new run cancels the previous one")
    p.add_argument("--timeout-sec", type=float, default=float(os.getenv("VOICE_COMMAND_TIMEOUT_SEC", "180")))
    return p.parse_args(argv)


def build_payload(path: Path, *, language: str | None = None, session_id: str | None = None) -> dict[str, Any]:
    data = path.read_bytes()
    if not data:
        raise ValueError(f"{path} is empty")
    payload: dict[str, Any] = {
        "audioData": base64.b64encode(data).decode("ascii"),
        "encoding": (path.suffix.lstrip(".") or "wav").lower(),
    }
    if language:
        payload["language"] = language
    if session_id:
        payload["sessionId"] = session_id
    return payload


def analyze(
    base_url: str,
    payload: dict[str, Any],
    *,
    api_key: str | None = None,
    timeout_sec: float = 180.0,
) -> tuple[int, dict[str, Any]]:
    headers = {"X-API-Key": api_key} if api_key else {}
    r = requests.post(
        f"{base_url.rstrip('/')}/api/commands/analyze",
        json=payload,
        headers=headers,
        timeout=timeout_sec,
    )
    try:
        body = r.json()
    except ValueError:
        body = {"success": False, "error": r.text[:500]}
    return r.status_code, body


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    path = Path(args.file)
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 2

    try:
        payload = build_payload(path, language=args.language, session_id=args.session_id)
        status, body = analyze(args.base_url, payload, api_key=args.api_key, timeout_sec=args.timeout_sec)
    except (OSError, ValueError, requests.RequestException) as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(body, indent=2, ensure_ascii=False))
    return 0 if status < 400 and body.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
