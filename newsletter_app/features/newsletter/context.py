"""Pure helpers to build the newsletter template model (no Streamlit)."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping, Sequence
from datetime import date as date_type
from datetime import datetime
from typing import Any, TypeVar

import pandas as pd

from newsletter_app.analytics.categorizer import categorize_issue, category_color, category_label
from newsletter_app.analytics.distribution import build_distribution
from newsletter_app.analytics.sanitizer import clean_markdown_and_placeholders, pick_bullets
from newsletter_app.core.cache import FileCache
from newsletter_app.core.config import (
    DEFAULT_AUTHOR,
    DEFAULT_TITLE,
    INTERNAL_LABEL,
    PRIORITIES_HEADING,
    QUICK_WINS_ANCHOR,
    QUICK_WINS_ICON,
    TITLE_SUFFIX,
    NewsletterSettings,
)
from newsletter_app.core.models import (
    EnrichedItem,
    InvestmentOverview,
    NewsletterPreview,
    PrioritiesSection,
    QuickWin,
    QuickWinEntry,
    TemplateModel,
    TocEntry,
)
from newsletter_app.core.service import fan_out
from newsletter_app.core.status import is_done_status, pick_color_for_status
from newsletter_app.editorial.content import (
    ItemContext,
    claim_icon,
    fallback_priorities,
    generate_bullets,
    generate_card_summary,
    generate_closing_statement,
    generate_icon,
    generate_investment_narrative,
    generate_priorities,
    generate_quick_wins_description,
    is_valid_icon,
)
from newsletter_app.editorial.generator import TextGenerator

from .adapters import SourceItem, source_items_from_preview

logger = logging.getLogger(__name__)

T = TypeVar("T")
_ID_UNSAFE = re.compile(r"[^a-z0-9]+")
_HEX_COLOR = re.compile(r"#[0-9a-fA-F]{3,8}")


# =============================================================================
# Small pure helpers
# =============================================================================
def item_id(key: str) -> str:
    """Anchor id for a card, e.g. ``"EBP-142"`` -> ``"ebp-142"``."""
    return _ID_UNSAFE.sub("-", str(key).lower())


def derive_title(date_value: str | None, fallback: str | None = None) -> str:
    """Title for the month after ``date_value``.

    >>> derive_title("2025-09-01")
    'October 2025 Engineering Newsletter'
    >>> derive_title("2025-12-01")
    'January 2026 Engineering Newsletter'
    """
    default = fallback or DEFAULT_TITLE
    if not date_value:
        return default
    ts = pd.to_datetime(date_value, errors="coerce")
    if ts is None or pd.isna(ts):
        return default
    following = ts + pd.DateOffset(months=1)
    return f"{following:%B} {following.year} {TITLE_SUFFIX}"


def display_date(date_value: str | None, today: date_type | None = None) -> str:
    if date_value:
        return date_value
    today = today or datetime.now().date()
    return f"{today:%B} {today.day}, {today.year}"


def split_columns(items: Sequence[T]) -> tuple[list[T], list[T]]:
    """Left column gets ``ceil(n/2)`` entries, right the rest; order is preserved."""
    left_count = math.ceil(len(items) / 2)
    return list(items[:left_count]), list(items[left_count:])


def is_excluded(item: SourceItem, excluded_terms: Sequence[str] = ()) -> bool:
    """Internal-labeled items and items mentioning an excluded term are left out."""
    labels = {label.lower() for label in item.labels}
    if INTERNAL_LABEL in labels:
        return True
    haystack = " ".join([item.key, item.summary, *item.labels]).lower()
    return any(term.lower() in haystack for term in excluded_terms if term)


def _strip_bold(text: str) -> str:
    return text.replace("**", "").strip()


# =============================================================================
# Per-item enrichment
# =============================================================================
def base_item(source: SourceItem) -> EnrichedItem:
    """Deterministic card fields: id, colour, cleaned bullets, done flag.

    A provided colour is kept only when it is a hex colour; a provided icon
    only when it is a single emoji-like glyph. Otherwise both are derived.
    """
    heading = clean_markdown_and_placeholders(source.summary or source.key)
    provided_color = source.provided_color if _HEX_COLOR.fullmatch(source.provided_color or "") else None
    provided_icon = source.provided_icon if is_valid_icon(source.provided_icon) else ""
    return EnrichedItem(
        id=item_id(source.key or heading),
        key=source.key,
        heading=heading,
        summary=source.summary,
        status=source.status,
        url=source.url,
        color=provided_color or pick_color_for_status(source.status, source.labels),
        icon=provided_icon,
        bullets=pick_bullets(source.bullets),
        one_liner=source.one_liner,
        done=is_done_status(source.status),
    )


def enrich_item(
    item: EnrichedItem,
    source: SourceItem,
    generator: TextGenerator | None,
) -> EnrichedItem:
    """Editorial fields for one card; every call has its own fallback."""
    context = ItemContext(
        summary=item.heading,
        status=item.status,
        description=source.description or item.heading,
        labels=source.labels,
        bullets=list(item.bullets),
    )
    item.bullets = generate_bullets(generator, context)
    if not item.icon:
        item.icon = generate_icon(generator, context)
    item.closing_statement = generate_closing_statement(generator, context)
    item.card_summary = generate_card_summary(generator, context)
    category = categorize_issue(source)
    item.category = category
    item.category_label = category_label(category)
    item.category_color = category_color(category)
    return item


def enrich_items(
    sources: Sequence[SourceItem],
    generator: TextGenerator | None,
    used_icons: set[str] | None = None,
) -> list[EnrichedItem]:
    """Enrich all cards concurrently, then claim icons in display order."""
    used_icons = set() if used_icons is None else used_icons
    items = fan_out(lambda s: enrich_item(base_item(s), s, generator), list(sources))
    for item in items:
        item.icon = claim_icon(item.icon, used_icons)
    return items


# =============================================================================
# Newsletter-level sections
# =============================================================================
def build_toc(items: Sequence[EnrichedItem]) -> tuple[list[TocEntry], list[TocEntry]]:
    entries = [TocEntry(id=i.id, icon=i.icon, heading=i.heading, done=i.done) for i in items]
    entries.append(TocEntry(id=QUICK_WINS_ANCHOR, icon=QUICK_WINS_ICON, heading="Quick Wins"))
    return split_columns(entries)


def quick_win_entries(quick_wins: Sequence[QuickWin | Mapping[str, Any]]) -> list[QuickWinEntry]:
    out: list[QuickWinEntry] = []
    for qw in quick_wins:
        if isinstance(qw, QuickWin):
            resolved = qw.resolution_date.isoformat() if qw.resolution_date else None
            out.append(QuickWinEntry(title=qw.key, description=qw.summary, resolution_date=resolved, url=qw.url))
        else:
            out.append(
                QuickWinEntry(
                    title=str(qw.get("key") or ""),
                    description=str(qw.get("summary") or ""),
                    resolution_date=qw.get("resolutionDate"),
                    url=qw.get("url"),
                )
            )
    return out


def build_investment_overview(items: Sequence[EnrichedItem], generator: TextGenerator | None) -> InvestmentOverview:
    slices = build_distribution(i.category for i in items)
    total = len(items)
    return InvestmentOverview(
        categories=slices,
        total=total,
        narrative=generate_investment_narrative(generator, slices, total),
    )


def _coerce_priorities(value: Any) -> PrioritiesSection | None:
    if isinstance(value, PrioritiesSection):
        return value
    if isinstance(value, Mapping) and (value.get("heading") or value.get("content")):
        return PrioritiesSection(
            heading=str(value.get("heading") or PRIORITIES_HEADING),
            content=str(value.get("content") or ""),
        )
    return None


def resolve_priorities(
    explicit: PrioritiesSection | Mapping[str, Any] | None,
    *,
    date_value: str | None,
    issue_lines: Sequence[str],
    quick_win_lines: Sequence[str],
    generator: TextGenerator | None = None,
    cache: FileCache | None = None,
    ttl_days: int = 30,
    issue_count: int | None = None,
) -> PrioritiesSection:
    """Priorities section: explicit, then cached, then generated (and cached), then keyword fallback.

    ``issue_count`` is the project count quoted by the fallback sentence; it
    defaults to ``len(issue_lines)``.

    The keyword fallback is not cached so a later run with a working
    generator can still produce a proper section for the same date.
    """
    section = _coerce_priorities(explicit)
    cache_key = f"priorities:{date_value or 'unknown'}"
    if section is None and cache is not None:
        section = _coerce_priorities(cache.read(cache_key))
        if section is not None:
            logger.debug("Using cached priorities for %s", cache_key)
    if section is None:
        section = generate_priorities(generator, issue_lines, quick_win_lines)
        if section is not None and cache is not None:
            cache.write(cache_key, section.to_payload(), ttl_days=ttl_days)
    if section is None:
        count = len(issue_lines) if issue_count is None else issue_count
        section = fallback_priorities(issue_lines, count, len(quick_win_lines))
    return PrioritiesSection(
        heading=_strip_bold(section.heading) or PRIORITIES_HEADING,
        content=_strip_bold(section.content),
    )


# =============================================================================
# Entry point
# =============================================================================
def _preview_field(preview: NewsletterPreview | Mapping[str, Any], name: str, payload_name: str | None = None) -> Any:
    if isinstance(preview, NewsletterPreview):
        return getattr(preview, name)
    return preview.get(payload_name or name)


def build_template_context(
    preview: NewsletterPreview | Mapping[str, Any],
    generator: TextGenerator | None = None,
    cache: FileCache | None = None,
    settings: NewsletterSettings | None = None,
    *,
    used_icons: set[str] | None = None,
    today: date_type | None = None,
) -> TemplateModel:
    """Map a preview (object, modern payload, or legacy payload) to the template model.

    Parameters
    ----------
    preview : NewsletterPreview | Mapping
        Aggregator output or its stored JSON payload (``issues`` or legacy ``items``).
    generator : TextGenerator | None
        Text-generation collaborator; ``None`` or an offline generator yields
        deterministic copy throughout.
    cache : FileCache | None
        Where generated priorities are kept between runs; ``None`` disables caching.
    settings : NewsletterSettings | None
        Exclusion terms and priorities cache TTL.
    used_icons : set[str] | None
        Icons already taken in this render pass.
    """
    settings = settings or NewsletterSettings()
    date_value = _preview_field(preview, "date")
    if isinstance(date_value, (datetime, date_type)):
        date_value = date_value.strftime("%Y-%m-%d")

    all_sources = source_items_from_preview(preview)
    sources = [s for s in all_sources if not is_excluded(s, settings.excluded_terms)]
    items = enrich_items(sources, generator, used_icons)
    logger.info("Mapped %s newsletter item(s)", len(items))

    toc_left, toc_right = build_toc(items)
    left_items, right_items = split_columns(items)

    quick_wins = quick_win_entries(_preview_field(preview, "quick_wins", "quickWins") or [])
    priorities = resolve_priorities(
        _preview_field(preview, "priorities"),
        date_value=date_value,
        issue_lines=[s.summary for s in sources],
        quick_win_lines=[qw.description for qw in quick_wins],
        generator=generator,
        cache=cache,
        ttl_days=settings.priorities_cache_days,
        issue_count=len(all_sources),
    )

    return TemplateModel(
        title=derive_title(date_value, _preview_field(preview, "title")),
        author=_preview_field(preview, "author") or DEFAULT_AUTHOR,
        date=display_date(date_value, today),
        priorities_section=priorities,
        toc_left=toc_left,
        toc_right=toc_right,
        left_items=left_items,
        right_items=right_items,
        quick_wins=quick_wins,
        quick_wins_description=generate_quick_wins_description(generator, date_value),
        investment_overview=build_investment_overview(items, generator),
    )
