"""Abstract base for text generation agents (commit messages, PR titles, reports)."""

from abc import ABC, abstractmethod


class TextGenerator(ABC):
    """
    Pluggable text-in/text-out generator.

    Implementations can use a chat completions HTTP API, the Cursor CLI or
    other backends. Failures raise GenerationError.
    """

    default_provider: str = "default"

    @abstractmethod
    def generate(self, prompt: str, provider: str | None = None) -> str:
        """Return generated text for prompt.

        provider selects a backend-specific model/endpoint; None means the
        generator's default_provider.
        """
        ...

    def resolve_provider(self, provider: str | None) -> str:
        return provider or self.default_provider
