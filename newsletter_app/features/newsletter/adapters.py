"""Input adapters: both preview payload shapes converge on ``SourceItem``.

Modern previews carry ``issues`` (from ``NewsletterService.build_preview`` or a
stored JSON payload). Legacy previews carry ``items`` whose heading reads
``"KEY — Status"`` and may already provide an icon, colour, and HTML body; the
body is reduced to plain-text bullets when no bullets are given.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from newsletter_app.analytics.sanitizer import html_to_lines
from newsletter_app.core.mappers import issue_from_payload
from newsletter_app.core.models import CommentModel, NewsletterPreview, PreviewIssue

HEADING_SEPARATOR = "—"


@dataclass(slots=True)
class SourceItem:
    key: str
    summary: str
    status: str = ""
    labels: tuple[str, ...] = ()
    bullets: list[str] = field(default_factory=list)
    comments: tuple[CommentModel, ...] = ()
    description: str = ""
    one_liner: str = ""
    url: str | None = None
    provided_icon: str | None = None
    provided_color: str | None = None


def source_item_from_preview_issue(entry: PreviewIssue) -> SourceItem:
    issue = entry.issue
    return SourceItem(
        key=issue.key,
        summary=issue.summary,
        status=issue.status,
        labels=tuple(issue.labels),
        bullets=list(entry.bullets),
        comments=tuple(issue.comments),
        description=issue.description,
        one_liner=entry.one_liner,
        url=issue.url,
    )


def source_items_from_issues(issues: Iterable[PreviewIssue | Mapping[str, Any]]) -> list[SourceItem]:
    """Adapt ``PreviewIssue`` objects or modern payload dicts."""
    out: list[SourceItem] = []
    for entry in issues:
        if isinstance(entry, PreviewIssue):
            out.append(source_item_from_preview_issue(entry))
            continue
        issue = issue_from_payload(dict(entry))
        out.append(
            SourceItem(
                key=issue.key,
                summary=issue.summary,
                status=issue.status,
                labels=issue.labels,
                bullets=[str(b) for b in entry.get("bullets") or []],
                comments=issue.comments,
                description=issue.description,
                one_liner=str(entry.get("oneLiner") or ""),
                url=issue.url,
            )
        )
    return out


def source_items_from_legacy_items(items: Iterable[Mapping[str, Any]]) -> list[SourceItem]:
    """Adapt legacy ``items`` entries; a provided icon is only a candidate, checked later."""
    out: list[SourceItem] = []
    for item in items:
        heading = str(item.get("heading") or "")
        parts = [p.strip() for p in heading.split(HEADING_SEPARATOR)]
        title = parts[0] or str(item.get("id") or "")
        status = parts[1] if len(parts) > 1 else ""
        out.append(
            SourceItem(
                key=str(item.get("id") or parts[0] or ""),
                summary=str(item.get("summary") or title),
                status=status,
                labels=tuple(str(label) for label in item.get("labels") or []),
                bullets=[str(b) for b in item.get("bullets") or []] or html_to_lines(item.get("body")),
                description=str(item.get("description") or ""),
                one_liner=str(item.get("oneLiner") or ""),
                url=item.get("url"),
                provided_icon=item.get("icon") or None,
                provided_color=item.get("color") or None,
            )
        )
    return out


def source_items_from_preview(preview: NewsletterPreview | Mapping[str, Any]) -> list[SourceItem]:
    """Pick the adapter for whichever shape ``preview`` has; modern wins when both are present."""
    if isinstance(preview, NewsletterPreview):
        return source_items_from_issues(preview.issues)
    issues = preview.get("issues")
    if isinstance(issues, list) and issues:
        return source_items_from_issues(issues)
    items = preview.get("items")
    if isinstance(items, list) and items:
        return source_items_from_legacy_items(items)
    return []
