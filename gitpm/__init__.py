"""gitpm: git workflow automation for GitHub-hosted repositories."""

__version__ = "0.1.0"
