"""Logging for the gitpm CLI.

The configured level applies to the ``gitpm`` logger tree:

- gitpm.services.store.*: registrations and deletions (INFO), record writes (DEBUG)
- gitpm.services.resolver: remote detection fallbacks (WARNING)
- gitpm.services.pipeline: step transitions (INFO), failed steps (WARNING)
- gitpm.services.git: failed git invocations (DEBUG)
- gitpm.adapters.*, gitpm.agents.*: host and LLM calls

HTTP client libraries (urllib3, requests) never log below library_level, so
request chatter stays out of pipeline output at DEBUG. ``loggers`` sets
single loggers, e.g. ``{"gitpm.services.git": "DEBUG"}``.

Configure via config.yaml (logging.*) or env (LOGGING_LEVEL, LOGGING_FORMAT,
LOGGING_LIBRARY_LEVEL, LOGGING_LOGGERS as JSON).
"""

import logging
from typing import Dict

from gitpm.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "gitpm"
LIBRARY_LOGGERS = ("urllib3", "requests")


def parse_level(name: str | None, default: int = logging.INFO) -> int:
    """Level constant for a name; default when unknown or empty."""
    return LEVELS.get((name or "").upper().strip(), default)


class GitPMLogging:
    """Applies LoggingConfig to the root handler and the gitpm loggers."""

    def __init__(self, config: LoggingConfig) -> None:
        self.level = parse_level(config.level)
        self.format = config.format or DEFAULT_FORMAT
        # Libraries are never more verbose than the application
        self.library_level = max(self.level, parse_level(config.library_level, logging.WARNING))
        self.overrides: Dict[str, int] = {
            name: parse_level(value, self.level) for name, value in config.loggers.items()
        }

    def setup(self) -> None:
        logging.basicConfig(level=self.level, format=self.format, force=True)
        logging.getLogger(PACKAGE_LOGGER).setLevel(self.level)
        for name in LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(self.library_level)
        for name, level in self.overrides.items():
            logging.getLogger(name).setLevel(level)
