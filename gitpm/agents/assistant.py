"""Git assistant: prompt building on top of a TextGenerator."""

import logging
from typing import Iterable

from gitpm.agents.base import TextGenerator
from gitpm.agents.prompts import commit_message_prompt, pr_title_prompt, weekly_report_prompt
from gitpm.errors import ValidationError
from gitpm.models import PRActivity

LOG = logging.getLogger("gitpm.agents.assistant")


def _strip_fences(text: str) -> str:
    """Models sometimes wrap output in ``` fences despite instructions."""
    lines = text.strip().splitlines()
    if len(lines) >= 2 and lines[0].startswith("```") and lines[-1].strip() == "```":
        lines = lines[1:-1]
    return "\n".join(lines).strip()


class GitAssistant:
    """Commit message, PR title and weekly report generation."""

    def __init__(self, generator: TextGenerator, provider: str | None = None) -> None:
        self.generator = generator
        self.provider = provider

    def generate_commit_message(self, change_description: str) -> str:
        if not change_description.strip():
            raise ValidationError("Change description is empty")
        text = self.generator.generate(commit_message_prompt(change_description), self.provider)
        return _strip_fences(text)

    def generate_pr_title(self, change_description: str) -> str:
        if not change_description.strip():
            raise ValidationError("Change description is empty")
        text = self.generator.generate(pr_title_prompt(change_description), self.provider)
        return _strip_fences(text).splitlines()[0].strip().strip('"')

    def generate_weekly_report(self, activities: Iterable[PRActivity]) -> str:
        """Report text is returned verbatim."""
        items = list(activities)
        LOG.info("Generating weekly report from %s PRs", len(items))
        return self.generator.generate(weekly_report_prompt(items), self.provider)
