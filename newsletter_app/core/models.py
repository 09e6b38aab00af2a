"""Domain data models for Jira issues, preview payloads, and the newsletter template."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(slots=True, frozen=True)
class CommentModel:
    author: str
    created: datetime | None
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"author": self.author, "created": _iso(self.created), "text": self.text}


@dataclass(slots=True, frozen=True)
class IssueModel:
    key: str
    summary: str
    status: str
    labels: tuple[str, ...] = ()
    comments: tuple[CommentModel, ...] = ()
    description: str = ""
    resolution_date: datetime | None = None
    status_changed_date: datetime | None = None
    url: str | None = None


@dataclass(slots=True)
class PreviewIssue:
    """An issue selected for the newsletter plus its per-issue summaries."""

    issue: IssueModel
    bullets: list[str] = field(default_factory=list)
    one_liner: str = ""

    def to_payload(self) -> dict[str, Any]:
        issue = self.issue
        return {
            "key": issue.key,
            "summary": issue.summary,
            "status": issue.status,
            "resolutionDate": _iso(issue.resolution_date),
            "labels": list(issue.labels),
            "description": issue.description,
            "comments": [c.to_payload() for c in issue.comments],
            "bullets": list(self.bullets),
            "oneLiner": self.one_liner,
            "url": issue.url,
        }


@dataclass(slots=True, frozen=True)
class QuickWin:
    key: str
    summary: str
    resolution_date: datetime | None = None
    url: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "summary": self.summary,
            "resolutionDate": _iso(self.resolution_date),
            "url": self.url,
        }


@dataclass(slots=True)
class PrioritiesSection:
    heading: str
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"heading": self.heading, "content": self.content}


@dataclass(slots=True)
class NewsletterPreview:
    """Aggregator output; serializes to the stored JSON preview payload."""

    title: str
    author: str
    date: str | None
    issues: list[PreviewIssue] = field(default_factory=list)
    quick_wins: list[QuickWin] = field(default_factory=list)
    priorities: PrioritiesSection | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "date": self.date,
            "issues": [i.to_payload() for i in self.issues],
            "quickWins": [q.to_payload() for q in self.quick_wins],
        }
        if self.priorities is not None:
            payload["priorities"] = self.priorities.to_payload()
        return payload


# =============================================================================
# Template model (render pass only)
# =============================================================================
@dataclass(slots=True)
class EnrichedItem:
    id: str
    key: str
    heading: str
    summary: str
    status: str
    url: str | None
    color: str
    icon: str
    bullets: list[str] = field(default_factory=list)
    one_liner: str = ""
    card_summary: str = ""
    closing_statement: str = ""
    category: str = ""
    category_label: str = ""
    category_color: str = ""
    done: bool = False


@dataclass(slots=True)
class TocEntry:
    id: str
    icon: str
    heading: str
    done: bool = False


@dataclass(slots=True)
class QuickWinEntry:
    title: str
    description: str
    resolution_date: str | None = None
    url: str | None = None


@dataclass(slots=True)
class CategorySlice:
    category: str
    label: str
    color: str
    count: int
    percent: float
    start_angle: float = 0.0
    end_angle: float = 0.0
    path: str = ""


@dataclass(slots=True)
class InvestmentOverview:
    categories: list[CategorySlice] = field(default_factory=list)
    total: int = 0
    narrative: str = ""


@dataclass(slots=True)
class TemplateModel:
    title: str
    author: str
    date: str
    priorities_section: PrioritiesSection
    toc_left: list[TocEntry] = field(default_factory=list)
    toc_right: list[TocEntry] = field(default_factory=list)
    left_items: list[EnrichedItem] = field(default_factory=list)
    right_items: list[EnrichedItem] = field(default_factory=list)
    quick_wins: list[QuickWinEntry] = field(default_factory=list)
    quick_wins_description: str = ""
    investment_overview: InvestmentOverview = field(default_factory=InvestmentOverview)

    @property
    def items(self) -> list[EnrichedItem]:
        return [*self.left_items, *self.right_items]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
