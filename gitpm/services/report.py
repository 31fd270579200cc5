"""Weekly report: selected cached PRs -> activity list -> generated text."""

import logging

from gitpm.agents import GitAssistant, TextGenerator
from gitpm.errors import NoSelectionError
from gitpm.models import PRActivity, PRRecord, WeeklyReportRequest, WeeklyReportResult
from gitpm.services.store import PRRecordStore

LOG = logging.getLogger("gitpm.services.report")


def to_activity(record: PRRecord) -> PRActivity:
    return PRActivity(
        id=record.id,
        title=record.title,
        url=record.html_url,
        author=record.author,
        created_at=record.created_at,
        closed_at=record.closed_at,
    )


class WeeklyReportAggregator:
    """Builds a report from the local PR cache only; never hits the host."""

    def __init__(self, store: PRRecordStore) -> None:
        self._store = store

    def select(self, request: WeeklyReportRequest) -> list[PRActivity]:
        """Selected ids resolved against the time-range query; unknown ids are dropped."""
        if not request.selected_pr_ids:
            raise NoSelectionError("Select at least one pull request for the report")
        records = self._store.get_by_time_range(request.repository_ids, request.start_time, request.end_time)
        chosen = [r for r in records if r.id in request.selected_pr_ids]
        dropped = len(request.selected_pr_ids) - len({r.id for r in chosen})
        if dropped:
            LOG.warning("Ignoring %s selected PR ids not found in range", dropped)
        return [to_activity(r) for r in chosen]

    def generate(self, request: WeeklyReportRequest, text_gen: TextGenerator) -> WeeklyReportResult:
        """Raises NoSelectionError (before any generation) or GenerationError."""
        activities = self.select(request)
        provider = text_gen.resolve_provider(request.provider)
        report = GitAssistant(text_gen, provider).generate_weekly_report(activities)
        LOG.info("Weekly report generated with %s from %s PRs", provider, len(activities))
        return WeeklyReportResult(report=report, provider=provider, pr_count=len(activities))
