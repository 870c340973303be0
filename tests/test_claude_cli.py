"""Tests for the Claude CLI adapter."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from briefly.adapters.claude_cli import ClaudeCLIService, build_prompt
from briefly.errors import BrieflyError


class TestBuildPrompt:
    def test_without_history(self):
        assert build_prompt("fix it") == "fix it"

    def test_with_history(self):
        prompt = build_prompt("and now?", ["User: hi", "Claude: hello"])
        assert prompt == "Recent conversation:\n- User: hi\n- Claude: hello\n\nCurrent request: and now?"


class TestClaudeCLIService:
    @patch("briefly.adapters.claude_cli.subprocess.run")
    def test_generate(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="answer\n", stderr="")

        service = ClaudeCLIService(cwd=tmp_path, timeout=30)

        assert service.respond("question") == "answer"
        mock_run.assert_called_once_with(
            ["claude", "-p", "question"],
            cwd=tmp_path,
            capture_output=True,
            text=True,
            timeout=30,
        )

    @patch("briefly.adapters.claude_cli.subprocess.run")
    def test_nonzero_exit(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="bad flag")
        with pytest.raises(BrieflyError, match="bad flag"):
            ClaudeCLIService().generate("x")

    @patch("briefly.adapters.claude_cli.subprocess.run", side_effect=FileNotFoundError)
    def test_missing_binary(self, _run):
        with pytest.raises(BrieflyError, match="not found"):
            ClaudeCLIService().generate("x")

    @patch(
        "briefly.adapters.claude_cli.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="claude", timeout=5),
    )
    def test_timeout(self, _run):
        with pytest.raises(BrieflyError, match="timed out after 5s"):
            ClaudeCLIService(timeout=5).generate("x")
