"""Bullet and free-text cleanup for newsletter copy.

Every helper is a pure string transform: ``None`` or empty input yields an
empty string and nothing here raises.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable

from newsletter_app.core.config import BULLET_MAX_WORDS, BULLETS_MAX, BULLETS_MIN

TEAM_PLACEHOLDER = "[team]"
ELLIPSIS = "…"

METADATA_LABELS = (
    "highlight",
    "status",
    "note",
    "update",
    "progress",
    "achievement",
    "activity",
    "task",
    "item",
    "point",
    "info",
    "detail",
    "finding",
    "result",
    "outcome",
    "action",
    "step",
    "milestone",
    "accomplishment",
)

_METADATA_PREFIX = re.compile(
    r"^\s*(?:[-*•]\s+)?(?:\*\*)?(?:key\s+)?(?:" + "|".join(METADATA_LABELS) + r")\s*(?:\*\*)?\s*:\s*(?:\*\*)?\s*",
    re.IGNORECASE,
)
_ISSUE_CODE = re.compile(r"\b[A-Z]{1,10}-?\d{1,6}\b")
_STORY_POINTS = re.compile(r"\d+\s*(?:story\s*)?points?\b", re.IGNORECASE)
_SPRINT_REF = re.compile(r"\bsprint\s*-?\s*\d+", re.IGNORECASE)
_LIST_MARKER = re.compile(r"^\s*[-*•]\s*")
_PERSON_NAME = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b")
_PLACEHOLDER = re.compile(re.escape(TEAM_PLACEHOLDER), re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_SCRIPT_BLOCK = re.compile(r"<(script|style)\b.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_LINE_BREAK_TAG = re.compile(r"<\s*(?:br|/p|/li|/div|/h\d)\b[^>]*>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")


def collapse_whitespace(text: str | None) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", str(text)).strip()


def clean_bullet_metadata(text: str | None) -> str:
    """Drop a leading metadata label, issue codes, and sprint/story-point references.

    >>> clean_bullet_metadata("update: EBP-142 shipped in sprint 12 (5 points)")
    'shipped in ()'
    """
    if not text:
        return ""
    cleaned = _METADATA_PREFIX.sub("", str(text), count=1)
    cleaned = _ISSUE_CODE.sub("", cleaned)
    cleaned = _STORY_POINTS.sub("", cleaned)
    cleaned = _SPRINT_REF.sub("", cleaned)
    return collapse_whitespace(cleaned)


def clean_bullet_line(text: str | None) -> str:
    """Remove a leading list marker (``-``, ``*``, ``•``)."""
    if not text:
        return ""
    return _LIST_MARKER.sub("", str(text)).strip()


def html_to_lines(body: str | None) -> list[str]:
    """Plain-text lines of a stored HTML body; script and style blocks are dropped.

    >>> html_to_lines("<ul><li>Faster bids</li><li>Fewer &amp; smaller errors</li></ul>")
    ['Faster bids', 'Fewer & smaller errors']
    """
    if not body:
        return []
    text = _SCRIPT_BLOCK.sub("", str(body))
    text = _LINE_BREAK_TAG.sub("\n", text)
    text = html.unescape(_TAG.sub("", text))
    lines = (collapse_whitespace(line) for line in text.splitlines())
    return [line for line in lines if line]


def strip_names(text: str | None) -> str:
    """Replace capitalized, name-like words (one or two in a row) with ``[team]``."""
    if not text:
        return ""
    return _PERSON_NAME.sub(TEAM_PLACEHOLDER, str(text))


def clean_markdown_and_placeholders(text: str | None) -> str:
    """Remove ``[team]`` placeholders and ``**`` bold markers."""
    if not text:
        return ""
    cleaned = _PLACEHOLDER.sub("", str(text))
    cleaned = cleaned.replace("**", "")
    return collapse_whitespace(cleaned)


def cap_words(text: str | None, max_words: int = BULLET_MAX_WORDS) -> str:
    """Keep the first ``max_words`` words, appending an ellipsis when truncated."""
    parts = str(text or "").split()
    capped = " ".join(parts[:max_words])
    if len(parts) > max_words:
        return capped + ELLIPSIS
    return capped


def sanitize_bullet(text: str | None, max_words: int = BULLET_MAX_WORDS) -> str:
    """Full cleanup for one bullet; metadata is stripped before the word cap.

    >>> sanitize_bullet("note: Alice Smith fixed EBP-142 in sprint 9")
    'fixed in'
    """
    cleaned = clean_bullet_metadata(text)
    cleaned = clean_bullet_line(cleaned)
    cleaned = clean_markdown_and_placeholders(strip_names(cleaned))
    return cap_words(cleaned, max_words)


def pick_bullets(
    bullets: Iterable[str] | None,
    *,
    minimum: int = BULLETS_MIN,
    maximum: int = BULLETS_MAX,
    max_words: int = BULLET_MAX_WORDS,
) -> list[str]:
    """Choose up to ``maximum`` bullets (preferring the first ones) and sanitize them."""
    candidates = [clean_bullet_metadata(str(b)) for b in bullets or () if b is not None]
    candidates = [c for c in candidates if c]
    count = max(0, min(maximum, max(minimum, len(candidates))))
    picked = (sanitize_bullet(c, max_words) for c in candidates[:count])
    return [b for b in picked if b]
