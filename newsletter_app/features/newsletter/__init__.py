"""Newsletter feature module: preview payloads to the two-column template model."""

from newsletter_app.features.newsletter.adapters import (
    SourceItem,
    source_items_from_issues,
    source_items_from_legacy_items,
    source_items_from_preview,
)
from newsletter_app.features.newsletter.context import (
    build_template_context,
    derive_title,
    resolve_priorities,
    split_columns,
)

__all__ = [
    "SourceItem",
    "build_template_context",
    "derive_title",
    "resolve_priorities",
    "source_items_from_issues",
    "source_items_from_legacy_items",
    "source_items_from_preview",
    "split_columns",
]
