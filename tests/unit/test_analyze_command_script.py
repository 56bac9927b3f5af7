from __future__ import annotations

import base64
import importlib.util
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SCRIPT = PROJECT_ROOT / "scripts" / "analyze_command.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("analyze_command", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class _FakeResponse:
    def __init__(self, payload: dict, *, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = ""

    def json(self) -> dict:
        return self._payload


def test_build_payload_encodes_file(tmp_path) -> None:
    mod = _load_script()
    path = tmp_path / "note.WEBM"
    path.write_bytes(b"abc")

    payload = mod.build_payload(path, language="en", session_id="s-1")

    assert base64.b64decode(payload["audioData"]) == b"abc"
    assert payload["encoding"] == "webm"
    assert payload["language"] == "en"
    assert payload["sessionId"] == "s-1"


def test_build_payload_rejects_empty_file(tmp_path) -> None:
    mod = _load_script()
    path = tmp_path / "empty.wav"
    path.write_bytes(b"")
    with pytest.raises(ValueError):
        mod.build_payload(path)


def test_main_posts_to_analyze_endpoint(tmp_path, monkeypatch, capsys) -> None:
    mod = _load_script()
    path = tmp_path / "cmd.wav"
    path.write_bytes(b"RIFF")
    seen: dict = {}

    def fake_post(url, *, json, headers, timeout):
        seen.update(url=url, json=json, headers=headers)
        return _FakeResponse({"success": True, "transcription": "help"})

    monkeypatch.setattr(mod.requests, "post", fake_post)

    rc = mod.main([str(path), "--base-url", "http://api.local/", "--api-key", "k"])

    assert rc == 0
    assert seen["url"] == "http://api.local/api/commands/analyze"
    assert seen["headers"] == {"X-API-Key": "k"}
    assert '"transcription": "help"' in capsys.readouterr().out


def test_main_missing_file_returns_2(tmp_path) -> None:
    mod = _load_script()
    assert mod.main([str(tmp_path / "missing.wav")]) == 2
