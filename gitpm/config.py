"""Configuration loading from YAML and environment.

Secrets (GitHub token, LLM API keys) are taken from environment variables
or from files (Docker secrets). Never put real tokens in config files
committed to the repo.
"""

from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


def _is_placeholder(value: str | None) -> bool:
    return not value or value.startswith("${") or value.startswith("your-")


# Injected by load_config so validators can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    per_page: int = Field(default=100, ge=1, le=100, description="Page size for list calls")
    max_pages: int = Field(default=10, ge=1, description="Upper bound on pages fetched per list call")
    timeout: int = Field(default=30, ge=1, description="HTTP timeout in seconds")


class StorageConfig(BaseSettings):
    """Where registered repositories and cached PR records live."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore")

    data_dir: str = Field(default="~/.gitpm", description="Root directory for YAML records")

    @property
    def path(self) -> Path:
        return Path(self.data_dir).expanduser()


class GitConfig(BaseSettings):
    """Local git command runner settings."""

    model_config = SettingsConfigDict(env_prefix="GIT_", extra="ignore")

    binary: str = Field(default="git", description="git executable")
    timeout: int = Field(default=120, ge=1, description="Per-command timeout in seconds")


class LLMProviderConfig(BaseModel):
    """One OpenAI-compatible chat completions endpoint."""

    api_url: str = Field(..., description="Base URL, e.g. https://api.openai.com/v1")
    model: str = Field(..., description="Model name sent with each request")
    api_key: str | None = Field(default=None, description="API key; prefer env or secret file")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    timeout: int = Field(default=120, ge=1, description="HTTP timeout in seconds")


def _default_providers() -> dict[str, LLMProviderConfig]:
    return {
        "openai": LLMProviderConfig(api_url="https://api.openai.com/v1", model="gpt-4o-mini"),
        "deepseek": LLMProviderConfig(api_url="https://api.deepseek.com/v1", model="deepseek-chat"),
        "gemini": LLMProviderConfig(
            api_url="https://generativelanguage.googleapis.com/v1beta/openai",
            model="gemini-2.0-flash",
        ),
    }


class CursorCLIConfig(BaseSettings):
    """Cursor CLI text generation backend (cursor.com/docs/cli/headless)."""

    model_config = SettingsConfigDict(env_prefix="CURSOR_CLI_", extra="ignore")

    command: str = Field(default="agent", description="CLI command name (agent from Cursor install)")
    timeout: int = Field(default=120, ge=1, description="Timeout in seconds")
    model: str | None = Field(default=None, description="--model: model to use")
    token: str | None = Field(default=None, description="Agent token; prefer env or secret file")


class LLMConfig(BaseSettings):
    """Text generation settings (commit messages, PR titles, weekly reports)."""

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore")

    backend: str = Field(default="chat_api", description="chat_api, cursor_cli or stub")
    default_provider: str = Field(default="openai", description="Provider key from providers")
    providers: dict[str, LLMProviderConfig] = Field(default_factory=_default_providers)
    cursor_cli: CursorCLIConfig = Field(default_factory=CursorCLIConfig)


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    library_level: str = Field(default="WARNING", description="Floor for HTTP client library loggers")
    loggers: Dict[str, str] = Field(default_factory=dict, description="Per-logger level overrides")


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if not _is_placeholder(t):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")

    def provider_api_key(self, provider: str) -> str | None:
        """Resolve API key for an LLM provider: config value, then
        {PROVIDER}_API_KEY or {PROVIDER}_API_KEY_FILE."""
        cfg = self.llm.providers.get(provider)
        if cfg is not None and not _is_placeholder(cfg.api_key):
            return cfg.api_key
        env_key = f"{provider.upper()}_API_KEY"
        return _read_secret(env_key, f"{env_key}_FILE")

    @property
    def cursor_agent_token_resolved(self) -> str | None:
        """Resolve Cursor Agent token from config, env or Docker secret file."""
        t = self.llm.cursor_cli.token
        if not _is_placeholder(t):
            return t
        return _read_secret("CURSOR_AGENT_TOKEN", "CURSOR_AGENT_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE, <PROVIDER>_API_KEY or
    <PROVIDER>_API_KEY_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    # Env override for the storage root (e.g. STORAGE_DATA_DIR in containers)
    storage_raw = raw.get("storage") or {}
    if _current_env.get("STORAGE_DATA_DIR"):
        storage_raw = {**storage_raw, "data_dir": _current_env.get("STORAGE_DATA_DIR")}

    llm_raw = dict(raw.get("llm") or {})
    providers = _default_providers()
    for key, val in (llm_raw.pop("providers", None) or {}).items():
        base = providers[key].model_dump() if key in providers else {}
        providers[key] = LLMProviderConfig(**{**base, **(val or {})})
    cursor_cli = CursorCLIConfig(**(llm_raw.pop("cursor_cli", None) or {}))

    return AppConfig(
        github=GitHubConfig(**(raw.get("github") or {})),
        storage=StorageConfig(**storage_raw),
        git=GitConfig(**(raw.get("git") or {})),
        llm=LLMConfig(**llm_raw, providers=providers, cursor_cli=cursor_cli),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
