"""Mapping raw Jira issue and comment JSON into domain models."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .models import CommentModel, IssueModel, QuickWin

NO_SUMMARY = "(no summary)"
UNKNOWN_AUTHOR = "Unknown"

# Block-level ADF nodes end a line of flattened text
_ADF_BLOCK_TYPES = frozenset(
    {"paragraph", "heading", "listItem", "blockquote", "codeBlock", "rule", "panel", "tableRow"}
)


def parse_dt(val):
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _adf_text(node: Any) -> str:
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(_adf_text(n) for n in node)
    if not isinstance(node, dict):
        return ""
    node_type = node.get("type")
    if node_type == "text":
        return node.get("text") or ""
    if node_type == "hardBreak":
        return "\n"
    if node_type in {"mention", "emoji", "status"}:
        attrs = node.get("attrs") or {}
        return attrs.get("text") or ""
    inner = "".join(_adf_text(child) for child in node.get("content") or [])
    if node_type in _ADF_BLOCK_TYPES:
        return inner + "\n"
    return inner


def extract_text_from_adf(node: Any) -> str:
    """Flatten an Atlassian Document Format tree to plain text.

    Text nodes are concatenated; block nodes (paragraphs, list items...) and
    hard breaks become line breaks. Blank lines are dropped. Plain string
    bodies (REST v2) pass through unchanged apart from trimming.
    """
    text = _adf_text(node)
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def map_comment(raw: dict[str, Any]) -> CommentModel:
    author = (raw.get("author") or {}).get("displayName") or UNKNOWN_AUTHOR
    return CommentModel(
        author=author,
        created=parse_dt(raw.get("created")),
        text=extract_text_from_adf(raw.get("body")),
    )


def map_issue(
    raw: dict[str, Any],
    comments: Iterable[CommentModel] = (),
    *,
    url: str | None = None,
) -> IssueModel:
    fields = raw.get("fields") or {}
    return IssueModel(
        key=raw.get("key") or "",
        summary=fields.get("summary") or NO_SUMMARY,
        status=(fields.get("status") or {}).get("name") or "",
        labels=tuple(str(label) for label in fields.get("labels") or []),
        comments=tuple(comments),
        description=extract_text_from_adf(fields.get("description")),
        resolution_date=parse_dt(fields.get("resolutiondate")),
        status_changed_date=parse_dt(fields.get("statuscategorychangedate")),
        url=url,
    )


def map_quick_win(raw: dict[str, Any], *, url: str | None = None) -> QuickWin:
    fields = raw.get("fields") or {}
    return QuickWin(
        key=raw.get("key") or "",
        summary=fields.get("summary") or NO_SUMMARY,
        resolution_date=parse_dt(fields.get("resolutiondate")),
        url=url,
    )


def issue_from_payload(payload: dict[str, Any]) -> IssueModel:
    """Rebuild an IssueModel from a stored preview payload entry."""
    comments = tuple(
        CommentModel(
            author=str(c.get("author") or UNKNOWN_AUTHOR),
            created=parse_dt(c.get("created")),
            text=str(c.get("text") or ""),
        )
        for c in payload.get("comments") or []
        if isinstance(c, dict)
    )
    return IssueModel(
        key=str(payload.get("key") or ""),
        summary=str(payload.get("summary") or ""),
        status=str(payload.get("status") or ""),
        labels=tuple(str(label) for label in payload.get("labels") or []),
        comments=comments,
        description=str(payload.get("description") or ""),
        resolution_date=parse_dt(payload.get("resolutionDate")),
        url=payload.get("url"),
    )
