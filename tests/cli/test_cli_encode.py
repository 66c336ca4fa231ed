"""Tests for ``genai-bridge encode`` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from genai_bridge.cli import main

if TYPE_CHECKING:
    from pathlib import Path

CONVERSATION_YAML = """\
messages:
  - role: system
    content: Be brief.
  - role: human
    content: hello
  - role: human
    content: again
"""


def _write_conversation(tmp_path: Path) -> Path:
    f = tmp_path / "conversation.yaml"
    f.write_text(CONVERSATION_YAML)
    return f


class TestEncodeCommand:
    def test_encode_standard(self, tmp_path: Path) -> None:
        f = _write_conversation(tmp_path)

        runner = CliRunner()
        result = runner.invoke(main, ["encode", str(f), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
        assert payload["contents"] == [{"role": "user", "parts": [{"text": "hello"}, {"text": "again"}]}]

    def test_encode_interactions(self, tmp_path: Path) -> None:
        f = _write_conversation(tmp_path)

        runner = CliRunner()
        result = runner.invoke(main, ["encode", str(f), "--protocol", "interactions", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["system_instruction"] == "Be brief."
        assert len(payload["input"]) == 1

    def test_encode_full_request(self, tmp_path: Path) -> None:
        f = _write_conversation(tmp_path)

        runner = CliRunner()
        result = runner.invoke(main, ["encode", str(f), "--model", "gemini-2.5-flash", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["model"] == "gemini-2.5-flash"
        assert payload["config"] == {"candidateCount": 1}

    def test_encode_json_list(self, tmp_path: Path) -> None:
        f = tmp_path / "conversation.json"
        f.write_text(json.dumps([{"role": "human", "content": "hi"}]))

        runner = CliRunner()
        result = runner.invoke(main, ["encode", str(f)])

        assert result.exit_code == 0
        assert "Encoded 1 message(s)" in result.output

    def test_encode_malformed_image(self, tmp_path: Path) -> None:
        f = tmp_path / "conversation.json"
        f.write_text(
            json.dumps([{"role": "human", "content": [{"type": "image", "url": "data:nope"}]}])
        )

        runner = CliRunner()
        result = runner.invoke(main, ["encode", str(f)])

        assert result.exit_code == 1
        assert "Encode error" in result.output

    def test_encode_invalid_message(self, tmp_path: Path) -> None:
        f = tmp_path / "conversation.json"
        f.write_text(json.dumps([{"role": "robot", "content": "hi"}]))

        runner = CliRunner()
        result = runner.invoke(main, ["encode", str(f)])

        assert result.exit_code == 1
        assert "Encode error" in result.output

    def test_encode_missing_file(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["encode", "/nonexistent/conversation.yaml"])

        assert result.exit_code != 0
