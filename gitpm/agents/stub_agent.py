"""
Stub generator: returns a canned text without calling any model.

Use for development or until an LLM provider is configured.
"""

import logging

from gitpm.agents.base import TextGenerator


class StubGenerator(TextGenerator):
    """Generator that returns a fixed response and remembers prompts."""

    default_provider = "stub"

    def __init__(self, response: str = "chore: update project files") -> None:
        self.response = response
        self.prompts: list[str] = []

    def generate(self, prompt: str, provider: str | None = None) -> str:
        log = logging.getLogger("gitpm.agents.stub")
        log.info("Text generation (stub): provider=%s, %s chars", self.resolve_provider(provider), len(prompt))
        self.prompts.append(prompt)
        return self.response
