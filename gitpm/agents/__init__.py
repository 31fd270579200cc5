"""Text generation agents."""

from gitpm.agents.assistant import GitAssistant
from gitpm.agents.base import TextGenerator
from gitpm.agents.chat_api_agent import ChatCompletionsGenerator
from gitpm.agents.cursor_cli_agent import CursorCLIGenerator
from gitpm.agents.stub_agent import StubGenerator
from gitpm.config import AppConfig
from gitpm.errors import ValidationError


def make_text_generator(config: AppConfig) -> TextGenerator:
    """Build the generator selected by config.llm.backend (chat_api, cursor_cli, stub)."""
    backend = config.llm.backend
    if backend == "cursor_cli":
        cli = config.llm.cursor_cli
        return CursorCLIGenerator(
            command=cli.command,
            timeout=cli.timeout,
            token=config.cursor_agent_token_resolved,
            model=cli.model,
        )
    if backend == "stub":
        return StubGenerator()
    if backend == "chat_api":
        return ChatCompletionsGenerator(
            providers=config.llm.providers,
            default_provider=config.llm.default_provider,
            key_resolver=config.provider_api_key,
        )
    raise ValidationError(f"Unknown LLM backend: {backend}")


__all__ = [
    "ChatCompletionsGenerator",
    "CursorCLIGenerator",
    "GitAssistant",
    "StubGenerator",
    "TextGenerator",
    "make_text_generator",
]
