"""
Chat completions agent: any OpenAI-compatible HTTP endpoint.

Each named provider (openai, deepseek, gemini, ...) maps to a base URL and
model in config; the API key is resolved per provider at call time.
"""

import logging
from typing import Callable, Dict

import requests

from gitpm.agents.base import TextGenerator
from gitpm.config import LLMProviderConfig
from gitpm.errors import GenerationError

KeyResolver = Callable[[str], str | None]


class ChatCompletionsGenerator(TextGenerator):
    """POST {api_url}/chat/completions with a single user message."""

    def __init__(
        self,
        providers: Dict[str, LLMProviderConfig],
        default_provider: str,
        key_resolver: KeyResolver,
        session: requests.Session | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.providers = providers
        self.default_provider = default_provider
        self._key_resolver = key_resolver
        self._session = session or requests.Session()
        self._log = log or logging.getLogger("gitpm.agents.chat_api")

    def generate(self, prompt: str, provider: str | None = None) -> str:
        name = self.resolve_provider(provider)
        cfg = self.providers.get(name)
        if cfg is None:
            raise GenerationError(f"Unknown LLM provider: {name}")
        api_key = self._key_resolver(name)
        if not api_key:
            raise GenerationError(f"No API key configured for LLM provider {name}")

        url = f"{cfg.api_url.rstrip('/')}/chat/completions"
        payload = {
            "model": cfg.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": cfg.temperature,
        }
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        self._log.info("Text generation via %s (%s), %s chars", name, cfg.model, len(prompt))
        try:
            resp = self._session.post(url, json=payload, headers=headers, timeout=cfg.timeout)
        except requests.RequestException as e:
            raise GenerationError(f"{name} request failed: {e}") from e
        if resp.status_code >= 400:
            raise GenerationError(f"{name} returned {resp.status_code}: {resp.text[:500]}")
        try:
            text = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"{name} returned an unexpected response: {e}") from e
        text = (text or "").strip()
        if not text:
            raise GenerationError(f"{name} returned an empty completion")
        return text
