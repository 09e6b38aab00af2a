"""Streamlit progress for a newsletter build: Jira fetch stages, then editorial copy."""

from __future__ import annotations

import streamlit as st

from newsletter_app.core.models import NewsletterPreview
from newsletter_app.core.service import (
    STAGE_COMMENTS,
    STAGE_COMMENTS_DONE,
    STAGE_QUICK_WINS,
    STAGE_SEARCH,
    STAGE_SUMMARIES,
    STAGE_SUMMARIES_DONE,
)

STAGE_EDITORIAL = "Writing editorial copy"

# Share of the bar (start, stop) owned by each stage
STAGE_BANDS: dict[str, tuple[float, float]] = {
    STAGE_SEARCH: (0.0, 0.1),
    STAGE_COMMENTS: (0.1, 0.55),
    STAGE_COMMENTS_DONE: (0.1, 0.55),
    STAGE_SUMMARIES: (0.55, 0.85),
    STAGE_SUMMARIES_DONE: (0.55, 0.85),
    STAGE_QUICK_WINS: (0.85, 0.9),
    STAGE_EDITORIAL: (0.9, 1.0),
}


def stage_fraction(message: str, current: int | None = None, total: int | None = None) -> float | None:
    """Overall bar position for a stage message; ``None`` for messages outside the build stages."""
    band = STAGE_BANDS.get(message)
    if band is None:
        return None
    start, stop = band
    if current is None or not total or total <= 0:
        return start
    return start + (stop - start) * min(max(current / total, 0.0), 1.0)


def stage_label(message: str, current: int | None = None, total: int | None = None) -> str:
    if current is not None and total:
        return f"{message} ({current}/{total})"
    return message


def preview_summary(preview: NewsletterPreview) -> str:
    done = sum(1 for entry in preview.issues if entry.issue.resolution_date is not None)
    return (
        f"Newsletter ready: {len(preview.issues)} item(s) ({done} resolved), "
        f"{len(preview.quick_wins)} quick win(s)."
    )


class ProgressReporter:
    """Banner + progress bar; ``callback`` plugs into ``NewsletterService.build_preview``.

    The bar only moves forward: each stage owns a slice of it and a stage
    reporting ``current/total`` fills its own slice.
    """

    def __init__(self, title: str):
        self._container = st.container()
        self._container.info(title)
        self._message_placeholder = self._container.empty()
        self._progress_placeholder = self._container.progress(0.0)
        self._fraction: float = 0.0
        self._finalized: bool = False

    def callback(self, message: str, current: int | None = None, total: int | None = None) -> None:
        self.update(message, current=current, total=total)

    def update(self, message: str, *, current: int | None = None, total: int | None = None) -> None:
        if self._finalized:
            return
        fraction = stage_fraction(message, current, total)
        if fraction is not None:
            self._fraction = max(self._fraction, fraction)
        self._message_placeholder.write(stage_label(message, current, total))
        self._progress_placeholder.progress(self._fraction)

    def complete_preview(self, preview: NewsletterPreview) -> None:
        self.complete(preview_summary(preview))

    def complete(self, message: str) -> None:
        if self._finalized:
            return
        self._progress_placeholder.progress(1.0)
        self._container.success(message)
        self._finalized = True

    def error(self, message: str) -> None:
        if self._finalized:
            return
        self._container.error(message)
        self._finalized = True
