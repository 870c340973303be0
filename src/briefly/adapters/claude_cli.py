"""Claude CLI adapter - subprocess wrapper for Claude Code."""

import logging
import subprocess
from pathlib import Path

from briefly.errors import BrieflyError

logger = logging.getLogger(__name__)

INSTALL_HINT = "Claude CLI not found. Install with: npm install -g @anthropic-ai/claude-code"


def build_prompt(request: str, history: list[str] | None = None) -> str:
    """Prefix a chat request with the recent conversation, oldest first."""
    if not history:
        return request
    context = "\n".join(f"- {line}" for line in history)
    return f"Recent conversation:\n{context}\n\nCurrent request: {request}"


class ClaudeCLIService:
    """
    Claude CLI subprocess adapter.

    Implements LLMService protocol. Wraps the claude CLI tool.
    """

    def __init__(
        self,
        cwd: Path | str | None = None,
        timeout: int = 600,  # 10 minutes default
    ):
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout

    def generate(self, prompt: str) -> str:
        """Generate text from a prompt. Returns complete response."""
        try:
            proc = subprocess.run(
                ["claude", "-p", prompt],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BrieflyError(INSTALL_HINT) from e
        except subprocess.TimeoutExpired as e:
            raise BrieflyError(f"Claude CLI timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            logger.error(f"Claude CLI failed: {proc.stderr}")
            raise BrieflyError(f"Claude CLI failed: {proc.stderr.strip()}")
        return proc.stdout

    def respond(self, request: str, history: list[str] | None = None) -> str:
        """Answer a chat request in the context of the chat's recent history."""
        logger.info(f"Running Claude CLI for request: {request[:80]}")
        return self.generate(build_prompt(request, history)).strip()
