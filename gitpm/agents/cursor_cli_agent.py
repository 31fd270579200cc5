"""
Cursor CLI agent: headless mode, prompt in, stdout out.

Runs `agent -p --force [--model M] <prompt>` and returns what the agent
prints. The agent token is passed as CURSOR_API_KEY.
"""

import logging
import os
import subprocess

from gitpm.agents.base import TextGenerator
from gitpm.errors import GenerationError


class CursorCLIGenerator(TextGenerator):
    """Run Cursor CLI in headless mode (-p --force) for plain text generation.

    The provider argument is accepted for interface compatibility; the
    model is fixed by config.
    """

    default_provider = "cursor_cli"

    def __init__(
        self,
        command: str = "agent",
        timeout: int = 120,
        working_directory: str = ".",
        token: str | None = None,
        model: str | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.command = command
        self.timeout = timeout
        self.working_directory = working_directory
        self.token = token
        self.model = model
        self._log = log or logging.getLogger("gitpm.agents.cursor_cli")

    def build_command(self, prompt: str) -> list[str]:
        cmd = [self.command, "-p", "--force"]
        if self.model:
            cmd.extend(["--model", self.model])
        cmd.append(prompt)
        return cmd

    def generate(self, prompt: str, provider: str | None = None) -> str:
        env = os.environ.copy()
        if self.token:
            env["CURSOR_API_KEY"] = self.token
        self._log.info("Running Cursor CLI (headless): %s (timeout=%ss)", self.command, self.timeout)
        try:
            result = subprocess.run(
                self.build_command(prompt),
                cwd=self.working_directory,
                env=env,
                timeout=self.timeout,
                check=False,
                capture_output=True,
                text=True,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise GenerationError(f"Cursor CLI failed: {e}") from e
        if result.returncode != 0:
            raise GenerationError(f"Cursor CLI exited with {result.returncode}: {(result.stderr or '').strip()}")
        out = (result.stdout or "").strip()
        if not out:
            raise GenerationError("Cursor CLI produced no output")
        return out
