"""Prompt templates for commit messages, PR titles and weekly reports."""

import json
from typing import Iterable

from gitpm.models import PRActivity

COMMIT_TYPES = ("feat", "fix", "docs", "chore", "refactor", "perf", "test", "build", "ci", "style", "revert")

COMMIT_MESSAGE_PROMPT = """Generate a Git commit message from the change description below.

Strict requirements:
- Use English and Conventional Commits format: type(scope?): subject
- type must be one of: {types}
- Subject: imperative mood, no trailing period, <= 72 characters
- Avoid emojis, quotes, code fences, or extra commentary
- If more context is needed, add a body after one blank line:
  - Wrap each line at 72 characters
  - Use concise bullet points for key changes
- Output ONLY the commit message content that can be used directly by git.

Change description:
{description}

Return only the commit message:"""

PR_TITLE_PROMPT = """Write a pull request title for the change described below.

Requirements:
- English, imperative mood, no trailing period, <= 72 characters
- No quotes, emojis or markdown
- Output ONLY the title.

Change description:
{description}

Return only the title:"""

WEEKLY_REPORT_PROMPT = """You are a senior engineer writing a weekly work report. Based on the pull request \
activity below, write a summary ready to paste into a report. Use English, keep it structured and avoid \
exaggeration.

Requirements:
- Output Markdown with these sections (only when they have content):
  1. Overview (one sentence)
  2. Key outputs (grouped by project/repository; list PRs as title (#number), state, main changes; merge similar PRs)
  3. Metrics (merged PRs, commits, reviews, changed lines)
  4. Issues and risks (write "None" if there are none)
  5. Next week plan (3-5 actionable items)
  6. Collaboration / support needs (write "None" if there are none)
- Order content by time, most recent activity first.
- Professional, objective and concise wording; prefer project/repository names.
- Aim for 200-400 words.
- If the input is empty or has no meaningful activity, output "No PR activity to report this week" and a short \
placeholder plan for next week.

PR activity (JSON):
{activities}

Start the report:"""


def commit_message_prompt(description: str) -> str:
    return COMMIT_MESSAGE_PROMPT.format(types=", ".join(COMMIT_TYPES), description=description.strip())


def pr_title_prompt(description: str) -> str:
    return PR_TITLE_PROMPT.format(description=description.strip())


def weekly_report_prompt(activities: Iterable[PRActivity]) -> str:
    """Embed activities as indented JSON (ISO-8601 timestamps)."""
    payload = [a.model_dump(mode="json") for a in activities]
    return WEEKLY_REPORT_PROMPT.format(activities=json.dumps(payload, indent=2, ensure_ascii=False))
