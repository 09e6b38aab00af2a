"""NewsletterService: fetches Jira issues for a date range and shapes the preview payload."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any

from newsletter_app.editorial.content import summarize_executive, summarize_one_liner
from newsletter_app.editorial.generator import OfflineTextGenerator, TextGenerator

from .config import (
    DEFAULT_AUTHOR,
    DEFAULT_TITLE,
    INTERNAL_LABEL,
    JIRA_FETCH_BASE_FIELDS,
    QUICK_WINS_FIELDS,
    QUICK_WINS_LOOKBACK,
    NewsletterSettings,
)
from .dates import resolve_date_range, within_range
from .jira_client import JiraAPI, build_jql, build_quick_wins_jql
from .mappers import map_comment, map_issue, map_quick_win
from .models import CommentModel, IssueModel, NewsletterPreview, PreviewIssue, PrioritiesSection, QuickWin
from .status import is_done_status

DEFAULT_FIELDS: Sequence[str] = tuple(JIRA_FETCH_BASE_FIELDS)
logger = logging.getLogger(__name__)
ProgressCallback = Callable[[str, int | None, int | None], None]

# Progress messages emitted by build_preview, in order
STAGE_SEARCH = "Querying Jira issues"
STAGE_COMMENTS = "Loading issue comments"
STAGE_COMMENTS_DONE = "Comments loaded"
STAGE_SUMMARIES = "Summarizing issue updates"
STAGE_SUMMARIES_DONE = "Summaries ready"
STAGE_QUICK_WINS = "Fetching Quick Wins"


def fan_out(func, items: Sequence[Any]) -> list[Any]:
    """Run ``func`` over every item at once; results keep input order, errors propagate."""
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as pool:
        return list(pool.map(func, items))


def has_internal_label(labels: Sequence[str]) -> bool:
    return INTERNAL_LABEL in {str(label).lower() for label in labels}


def should_include(issue: IssueModel, comments_in_range: Sequence[CommentModel], start: datetime, end: datetime) -> bool:
    """Inclusion rule for the newsletter window.

    Delivered issues count when they were resolved in the window (or, with no
    resolution date, changed status category in it). Everything else needs at
    least one comment inside the window.
    """
    if is_done_status(issue.status):
        if issue.resolution_date is not None:
            return within_range(issue.resolution_date, start, end)
        return within_range(issue.status_changed_date, start, end)
    return len(comments_in_range) > 0


def setup_instructions_payload(title: str | None = None, author: str | None = None) -> dict[str, Any]:
    """Legacy-shaped preview shown when Jira credentials are not configured."""
    return {
        "title": title or DEFAULT_TITLE,
        "author": author or DEFAULT_AUTHOR,
        "date": None,
        "items": [
            {
                "heading": "Setup",
                "body": "Configure JIRA_EMAIL, JIRA_API_TOKEN, JIRA_DOMAIN, and optionally JIRA_PROJECT_KEY.",
            }
        ],
    }


class NewsletterService:
    def __init__(
        self,
        api: JiraAPI,
        generator: TextGenerator | None = None,
        settings: NewsletterSettings | None = None,
    ):
        self.api = api
        self.generator = generator or OfflineTextGenerator()
        self.settings = settings or NewsletterSettings()

    # ------------------ Fetch Methods ------------------
    def fetch_comments_in_range(self, issue_key: str, start: datetime, end: datetime) -> list[CommentModel]:
        comments = [map_comment(c) for c in self.api.fetch_comments(issue_key)]
        return [c for c in comments if within_range(c.created, start, end)]

    def fetch_quick_wins(self) -> list[QuickWin]:
        """Recently resolved quick-win issues; a failure here never blocks the newsletter."""
        projects = self.settings.quick_wins_projects
        if not projects:
            return []
        jql = build_quick_wins_jql(projects, self.settings.quick_wins_issue_type, QUICK_WINS_LOOKBACK)
        logger.debug("Quick Wins JQL: %s", jql)
        try:
            raw = self.api.search_enhanced(jql, fields=list(QUICK_WINS_FIELDS))
        except Exception as exc:
            logger.error("Error fetching Quick Wins: %s", exc)
            return []
        return [map_quick_win(r, url=self.api.browse_url(r.get("key") or "")) for r in raw]

    def build_preview(
        self,
        from_value,
        to_value,
        *,
        project_keys: Sequence[str] | None = None,
        statuses: Sequence[str] | None = None,
        title: str | None = None,
        author: str | None = None,
        priorities: PrioritiesSection | None = None,
        progress: ProgressCallback | None = None,
    ) -> NewsletterPreview:
        """Fetch, filter, and summarize the issues for one newsletter window.

        Dates are validated before any request is made. Issue search and
        per-issue comment fetches are not retried: any failure aborts the
        preview. Quick Wins are best-effort.
        """
        start, end = resolve_date_range(from_value, to_value, self.settings.timezone)
        projects = list(project_keys or self.settings.project_keys)
        status_list = list(statuses or self.settings.statuses)

        jql = build_jql(projects, status_list)
        if progress:
            progress(STAGE_SEARCH, None, None)
        raw_issues = self.api.search_enhanced(jql, fields=list(DEFAULT_FIELDS))
        logger.info("Fetched %s issue(s) for %s", len(raw_issues), jql)

        if progress:
            progress(STAGE_COMMENTS, 0, len(raw_issues))
        comment_lists = fan_out(
            lambda raw: self.fetch_comments_in_range(raw.get("key") or "", start, end), raw_issues
        )
        if progress:
            progress(STAGE_COMMENTS_DONE, len(raw_issues), len(raw_issues))

        selected: list[tuple[IssueModel, list[CommentModel]]] = []
        for raw, comments in zip(raw_issues, comment_lists):
            issue = map_issue(raw, comments, url=self.api.browse_url(raw.get("key") or ""))
            if not should_include(issue, comments, start, end):
                continue
            if has_internal_label(issue.labels):
                logger.debug("Skipping internal issue %s", issue.key)
                continue
            selected.append((issue, comments))

        if progress:
            progress(STAGE_SUMMARIES, 0, len(selected))
        preview_issues = fan_out(self._summarize, selected)
        if progress:
            progress(STAGE_SUMMARIES_DONE, len(selected), len(selected))
            progress(STAGE_QUICK_WINS, None, None)
        quick_wins = self.fetch_quick_wins()

        return NewsletterPreview(
            title=title or DEFAULT_TITLE,
            author=author or DEFAULT_AUTHOR,
            date=start.strftime("%Y-%m-%d"),
            issues=preview_issues,
            quick_wins=quick_wins,
            priorities=priorities,
        )

    def fetch_issues_between(
        self,
        from_value,
        to_value,
        *,
        project_keys: Sequence[str] | None = None,
        statuses: Sequence[str] | None = None,
    ) -> list[IssueModel]:
        """Issues updated in the window, without comments or AI summaries.

        Used for longer historical windows (category analysis) where a
        per-issue comment fetch would be too expensive.
        """
        start, end = resolve_date_range(from_value, to_value, self.settings.timezone)
        projects = list(project_keys or self.settings.project_keys)
        window = (start.strftime("%Y-%m-%d"), (end + timedelta(days=1)).strftime("%Y-%m-%d"))
        jql = build_jql(projects, list(statuses or ()), updated_between=window)
        raw_issues = self.api.search_enhanced(jql, fields=list(DEFAULT_FIELDS))
        issues = [map_issue(r, url=self.api.browse_url(r.get("key") or "")) for r in raw_issues]
        return [i for i in issues if not has_internal_label(i.labels)]

    # ------------------ Internal Helpers ------------------
    def _summarize(self, selected: tuple[IssueModel, list[CommentModel]]) -> PreviewIssue:
        issue, comments = selected
        return PreviewIssue(
            issue=issue,
            bullets=summarize_executive(self.generator, issue, comments),
            one_liner=summarize_one_liner(self.generator, issue, comments),
        )
