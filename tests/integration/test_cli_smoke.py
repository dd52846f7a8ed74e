"""
nexus-wire — CLI subprocess smoke contracts

File: tests/integration/test_cli_smoke.py
Last updated: 2026-10-17

Purpose
- Enforce CLI behavior for `python -m nexus_wire` render/decode/models/config.
- Verify exit codes, command output and that API keys never reach stdout or stderr.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

OPENAI_KEY = "sk-smoke-openai-0123456789abcdef"
ANTHROPIC_KEY = "sk-ant-REDACTED"
GEMINI_KEY = "AIzaSmokeKey0123456789abcdefghijklmn"

_CONVERSATION = {
    "system_instruction": "Be brief.",
    "turns": [
        {"role": "user", "text": "What is the weather in Oslo?"},
        {
            "role": "assistant",
            "tool_calls": [
                {"call_id": "call_1", "name": "get_weather", "arguments": {"city": "Oslo"}}
            ],
        },
        {"role": "tool-output", "tool_results": [{"call_id": "call_1", "output": "rain"}]},
        {"role": "user", "text": "Thanks"},
    ],
    "tools": [
        {
            "name": "get_weather",
            "description": "Look up weather.",
            "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
        }
    ],
}

_CONVERSATION_YAML = """
turns:
  - role: user
    text: Hello from YAML
"""


def _run_cli(
    cwd: Path,
    *args: str,
    env_overrides: dict[str, str] | None = None,
    stdin: str | None = None,
) -> subprocess.CompletedProcess[str]:
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith("NEXUS_WIRE_")
        and key not in {"OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY"}
    }
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}:{existing_pythonpath}"
    )
    env.update(env_overrides or {})
    return subprocess.run(
        [sys.executable, "-m", "nexus_wire", *args],
        cwd=cwd,
        text=True,
        input=stdin,
        capture_output=True,
        check=False,
        env=env,
    )


def _write(path: Path, contents: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")
    return path


def _all_keys() -> dict[str, str]:
    return {
        "OPENAI_API_KEY": OPENAI_KEY,
        "ANTHROPIC_API_KEY": ANTHROPIC_KEY,
        "GEMINI_API_KEY": GEMINI_KEY,
    }


def _assert_no_keys(completed: subprocess.CompletedProcess[str]) -> None:
    for key in (OPENAI_KEY, ANTHROPIC_KEY, GEMINI_KEY):
        assert key not in completed.stdout
        assert key not in completed.stderr


@pytest.mark.integration
def test_render_defaults_to_openai_and_redacts_credentials(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.json", json.dumps(_CONVERSATION))

    completed = _run_cli(tmp_path, "render", str(conversation), env_overrides=_all_keys())

    assert completed.returncode == 0, completed.stderr
    _assert_no_keys(completed)
    payload = json.loads(completed.stdout)
    assert payload["provider"] == "openai"
    assert payload["url"] == "https://api.openai.com/v1/chat/completions"
    assert ["Authorization", "***REDACTED***"] in payload["headers"]
    messages = payload["body"]["messages"]
    assert [message["role"] for message in messages] == [
        "system",
        "user",
        "assistant",
        "tool",
        "user",
    ]
    assert payload["body"]["tools"][0]["function"]["name"] == "get_weather"


@pytest.mark.integration
def test_render_raw_envelope_scrubs_key(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.yaml", _CONVERSATION_YAML)

    completed = _run_cli(
        tmp_path,
        "render",
        str(conversation),
        "--provider",
        "anthropic",
        "--raw",
        env_overrides=_all_keys(),
    )

    assert completed.returncode == 0, completed.stderr
    _assert_no_keys(completed)
    lines = completed.stdout.splitlines()
    assert lines[0] == "POST /v1/messages HTTP/1.1"
    assert lines[1] == "Host: api.anthropic.com"
    assert lines[2] == "x-api-key: ***REDACTED***"
    assert lines[3].startswith("Content-Length: ")
    assert '"content":"Hello from YAML"' in completed.stdout


@pytest.mark.integration
def test_render_infers_provider_from_catalog_model(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.yaml", _CONVERSATION_YAML)

    completed = _run_cli(
        tmp_path,
        "render",
        str(conversation),
        "--model",
        "gemini-2.0-flash-001",
        "--stream",
        env_overrides=_all_keys(),
    )

    assert completed.returncode == 0, completed.stderr
    _assert_no_keys(completed)
    payload = json.loads(completed.stdout)
    assert payload["provider"] == "gemini"
    assert payload["streaming"] is True
    assert payload["url"].startswith(
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.0-flash-001:streamGenerateContent?key="
    )


@pytest.mark.integration
def test_render_unknown_model_without_provider_is_config_error(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.yaml", _CONVERSATION_YAML)

    completed = _run_cli(tmp_path, "render", str(conversation), "--model", "mystery-model")

    assert completed.returncode == 2
    assert "unknown model 'mystery-model'" in completed.stderr


@pytest.mark.integration
def test_render_missing_key_is_adapter_error(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.yaml", _CONVERSATION_YAML)

    completed = _run_cli(tmp_path, "render", str(conversation), "--provider", "gemini")

    assert completed.returncode == 3
    assert "code=missing_credential" in completed.stderr
    assert completed.stdout == ""


@pytest.mark.integration
def test_render_invalid_conversation_is_config_error(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.json", json.dumps({"turns": [{"role": "user"}]}))

    completed = _run_cli(tmp_path, "render", str(conversation), env_overrides=_all_keys())

    assert completed.returncode == 2
    assert "user turns require text" in completed.stderr


@pytest.mark.integration
def test_render_verbose_logs_debug_lines_without_keys(tmp_path: Path) -> None:
    conversation = _write(tmp_path / "chat.yaml", _CONVERSATION_YAML)

    completed = _run_cli(
        tmp_path, "render", str(conversation), "--verbose", env_overrides=_all_keys()
    )

    assert completed.returncode == 0, completed.stderr
    _assert_no_keys(completed)
    records = [json.loads(line) for line in completed.stderr.splitlines() if line.strip()]
    built = [record for record in records if record["message"] == "built openai request"]
    assert len(built) == 1
    assert built[0]["level"] == "DEBUG"
    assert built[0]["command"] == "render"
    assert built[0]["fields"]["host"] == "api.openai.com"


@pytest.mark.integration
def test_decode_prints_text_and_reports_missing_field(tmp_path: Path) -> None:
    good = _write(
        tmp_path / "good.json",
        json.dumps({"choices": [{"message": {"role": "assistant", "content": "It is raining."}}]}),
    )
    bad = _write(tmp_path / "bad.json", json.dumps({"choices": [{"message": {}}]}))

    ok = _run_cli(tmp_path, "decode", "openai", str(good))
    failed = _run_cli(tmp_path, "decode", "openai", str(bad))
    failed_json = _run_cli(tmp_path, "decode", "openai", str(bad), "--json")

    assert ok.returncode == 0
    assert ok.stdout == "It is raining.\n"
    assert failed.returncode == 1
    assert "decode failed:" in failed.stderr
    assert "choices[0].message.content" in failed.stderr
    assert failed_json.returncode == 1
    assert json.loads(failed_json.stdout)["error"]["field_path"] == "choices[0].message.content"


@pytest.mark.integration
def test_decode_reads_stdin_and_extracts_tool_calls(tmp_path: Path) -> None:
    gemini_body = json.dumps(
        {"candidates": [{"content": {"parts": [{"text": "Bon"}, {"text": "jour"}]}}]}
    )
    anthropic_body = json.dumps(
        {"content": [{"type": "tool_use", "id": "toolu_9", "name": "lookup", "input": {"q": 1}}]}
    )

    text = _run_cli(tmp_path, "decode", "gemini", "-", stdin=gemini_body)
    calls = _run_cli(tmp_path, "decode", "anthropic", "-", "--tool-calls", stdin=anthropic_body)

    assert text.returncode == 0
    assert text.stdout == "Bonjour\n"
    assert calls.returncode == 0
    assert json.loads(calls.stdout) == {
        "tool_calls": [{"call_id": "toolu_9", "name": "lookup", "arguments": {"q": 1}}]
    }


@pytest.mark.integration
def test_decode_non_json_body_is_failure(tmp_path: Path) -> None:
    completed = _run_cli(tmp_path, "decode", "anthropic", "-", stdin="<html>502</html>")

    assert completed.returncode == 1
    assert "code=invalid_envelope" in completed.stderr


@pytest.mark.integration
def test_models_lists_catalog_with_default_markers(tmp_path: Path) -> None:
    listing = _run_cli(tmp_path, "models")
    gemini_json = _run_cli(tmp_path, "models", "--provider", "gemini", "--json")

    assert listing.returncode == 0
    assert "* openai     gpt-4o-mini" in listing.stdout.splitlines()
    assert gemini_json.returncode == 0
    payload = json.loads(gemini_json.stdout)
    assert {entry["provider"] for entry in payload["models"]} == {"gemini"}
    defaults = [entry["model"] for entry in payload["models"] if entry["default"]]
    assert defaults == ["gemini-2.0-flash"]


@pytest.mark.integration
def test_config_shows_env_overrides_and_redacts_env_names(tmp_path: Path) -> None:
    completed = _run_cli(
        tmp_path,
        "config",
        "--json",
        env_overrides={"NEXUS_WIRE_PROVIDERS_OPENAI_MODEL": "gpt-4.1"},
    )

    assert completed.returncode == 0, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload["providers"]["openai"]["model"] == "gpt-4.1"
    assert payload["providers"]["openai"]["api_key_env"] == "<redacted>"


@pytest.mark.integration
def test_config_with_embedded_secret_is_rejected(tmp_path: Path) -> None:
    config_path = _write(
        tmp_path / "wire.toml",
        '[providers.openai]\napi_key = "sk-embedded-0123456789abcdef"\n',
    )

    completed = _run_cli(tmp_path, "config", "--config", str(config_path))

    assert completed.returncode == 2
    assert "error: invalid config" in completed.stderr
    assert "embedded secret values are forbidden" in completed.stderr
    assert "sk-embedded-0123456789abcdef" not in completed.stderr
