"""Status normalization and status-driven display helpers.

Centralizes the workflow status sets from config.py (DONE_STATUSES,
REVIEW_STATUSES) so the aggregator and the template mapper agree on which
issues count as delivered.
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import DONE_STATUSES, REVIEW_STATUSES, STATUS_COLORS


def normalize_status(value: str | None) -> str:
    """Lowercase, whitespace-trimmed status for set membership checks.

    Examples
    --------
    >>> normalize_status("  Live in Production ")
    'live in production'
    >>> normalize_status(None)
    ''
    """
    if not value:
        return ""
    return " ".join(str(value).split()).lower()


def is_done_status(value: str | None) -> bool:
    """Check if status indicates delivered work (Done, Deployed, Released...).

    Parameters
    ----------
    value : str | None
        Raw status string from Jira.

    Returns
    -------
    bool
        True if the status is one of the done-like states.
    """
    return normalize_status(value) in DONE_STATUSES


def is_review_status(value: str | None) -> bool:
    """Check if status indicates work under test or review (UAT, QA...)."""
    return normalize_status(value) in REVIEW_STATUSES


def pick_color_for_status(status: str | None, labels: Iterable[str] | None = None) -> str:
    """Accent colour for a newsletter card.

    Done-like statuses are green and review statuses grey; otherwise a
    ``hotfix`` label wins over the default blue.
    """
    if is_done_status(status):
        return STATUS_COLORS["done"]
    if is_review_status(status):
        return STATUS_COLORS["review"]
    lowered = {str(label).lower() for label in labels or ()}
    if "hotfix" in lowered:
        return STATUS_COLORS["hotfix"]
    return STATUS_COLORS["default"]
