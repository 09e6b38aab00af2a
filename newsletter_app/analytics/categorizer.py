"""Rule-based issue categorization.

Categories are assigned by an explicit, ordered rule list: the first rule whose
pattern matches the issue text or its labels wins, so more specific areas
(client portals) are listed ahead of broad ones (product work). Anything left
unmatched is ``general_improvements``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import pandas as pd

from newsletter_app.core.config import CATEGORY_COLORS, CATEGORY_LABELS, GENERAL_CATEGORY


@dataclass(slots=True, frozen=True)
class CategoryRule:
    category: str
    pattern: re.Pattern[str]

    def matches(self, text: str, label_text: str) -> bool:
        return bool(self.pattern.search(text) or self.pattern.search(label_text))


def _rule(category: str, *alternatives: str) -> CategoryRule:
    return CategoryRule(category, re.compile("|".join(alternatives), re.IGNORECASE))


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    _rule(
        "client_experience",
        r"client portal",
        r"customer portal",
        r"front[- ]end portal",
        r"user portal",
        r"self[- ]service",
    ),
    _rule(
        "integration_apis",
        r"integration",
        r"\bapis?\b",
        r"\bsso\b",
        r"azure ad",
        r"authentication.*api",
        r"maven",
        r"hubspot",
        r"nexmo",
        r"third[- ]party",
        r"webhook",
        r"consent.*recording",
        r"expert.*network",
    ),
    _rule(
        "financial_systems",
        r"\bbilling\b",
        r"\binvoice\b",
        r"revenue",
        r"payment",
        r"pricing",
        r"\bfinance\b",
        r"financial system",
        r"discount program",
        r"incentive program",
        r"accrual",
    ),
    _rule(
        "internal_tools",
        r"admin tool",
        r"contact management",
        r"\bcontact.{0,15}table",
        r"account management",
        r"client contact",
        r"master.*tool",
        r"duplicate",
        r"system tool",
        r"internal tool",
        r"\bcrm\b",
    ),
    _rule(
        "data_analytics",
        r"\bdata\b.*tool",
        r"\breport",
        r"analytic",
        r"business intelligence",
        r"desk research",
        r"purchased data",
        r"centrali[sz]ed.*data",
        r"\bkpi",
        r"intel",
    ),
    _rule(
        "product_features",
        r"bidding",
        r"dragonfly",
        r"audience.*dynamic",
        r"dynamic.*audience",
        r"wallet.*note",
        r"registration.*process",
        r"discount.*calculat",
        r"bulk.*email",
        r"campaign.*automat",
        r"list.*match",
        r"verification.*tool",
        r"m3teor",
        r"feasibility",
    ),
    _rule(
        "testing_quality",
        r"\buat\b",
        r"user acceptance test",
        r"testing phase",
        r"test coverage",
        r"qa phase",
        r"quality assurance",
        r"bug fix.*phase",
        r"defect",
    ),
    _rule(
        "performance_reliability",
        r"performance",
        r"speed improvement",
        r"latency",
        r"optimi[zs]ation",
        r"scalab",
        r"throughput",
        r"efficiency gain",
        r"reliability",
        r"stability",
        r"monitor",
        r"uptime",
        r"boost",
    ),
    _rule(
        "infrastructure_platform",
        r"infrastructure",
        r"migration",
        r"upgrade.*platform",
        r"platform.*upgrade",
        r"architecture",
        r"moderni[zs]",
        r"docker",
        r"kubernetes",
        r"deployment.*automat",
        r"devops",
    ),
    _rule(
        "security_compliance",
        r"security",
        r"encrypt",
        r"compliance",
        r"gdpr",
        r"risk.*assess",
        r"privacy",
        r"\bpci\b",
        r"vulnerability",
        r"audit",
        r"pen[- ]?test",
        r"authentication.*permission",
    ),
)

CATEGORY_ORDER: tuple[str, ...] = tuple(r.category for r in CATEGORY_RULES) + (GENERAL_CATEGORY,)


def _field(issue: Any, name: str, default: Any = None) -> Any:
    if isinstance(issue, Mapping):
        return issue.get(name, default)
    return getattr(issue, name, default)


def _comment_text(comment: Any) -> str:
    if isinstance(comment, Mapping):
        return str(comment.get("text") or comment.get("body") or "")
    if isinstance(comment, str):
        return comment
    return str(getattr(comment, "text", "") or "")


def searchable_text(issue: Any) -> tuple[str, str]:
    """Case-folded (free text, label text) pair used for rule matching."""
    parts = [
        str(_field(issue, "summary") or ""),
        str(_field(issue, "status") or ""),
        " ".join(_comment_text(c) for c in _field(issue, "comments") or ()),
        str(_field(issue, "description") or ""),
    ]
    text = " ".join(p for p in parts if p).casefold()
    label_text = " ".join(str(label) for label in _field(issue, "labels") or ()).casefold()
    return text, label_text


def categorize_text(text: str, label_text: str = "") -> str:
    folded_text = (text or "").casefold()
    folded_labels = (label_text or "").casefold()
    for rule in CATEGORY_RULES:
        if rule.matches(folded_text, folded_labels):
            return rule.category
    return GENERAL_CATEGORY


def categorize_issue(issue: Any) -> str:
    """Category for an IssueModel, a preview payload dict, or any issue-like object."""
    text, label_text = searchable_text(issue)
    return categorize_text(text, label_text)


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, CATEGORY_LABELS[GENERAL_CATEGORY])


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, CATEGORY_COLORS[GENERAL_CATEGORY])


def count_categories(categories: Iterable[str]) -> pd.Series:
    """Counts per present category, in rule priority order."""
    series = pd.Series(list(categories), dtype="object")
    if series.empty:
        return pd.Series(dtype="int64")
    counts = series.value_counts()
    ordered = [c for c in CATEGORY_ORDER if c in counts.index]
    ordered += sorted(c for c in counts.index if c not in CATEGORY_ORDER)
    return counts.reindex(ordered).astype("int64")


def summarize_categories(issues: Iterable[Any], examples: int = 3) -> pd.DataFrame:
    """Distribution table for a batch of issues, most frequent category first.

    Columns: category, label, count, percent (one decimal), examples (first
    ``examples`` summaries seen for the category).
    """
    columns = ["category", "label", "count", "percent", "examples"]
    examples_by_category: dict[str, list[str]] = {}
    categories: list[str] = []
    for issue in issues:
        category = categorize_issue(issue)
        categories.append(category)
        seen = examples_by_category.setdefault(category, [])
        if len(seen) < examples:
            seen.append(str(_field(issue, "summary") or ""))
    if not categories:
        return pd.DataFrame(columns=columns)
    counts = count_categories(categories)
    total = int(counts.sum())
    out = pd.DataFrame({"category": counts.index, "count": counts.to_numpy()})
    out["label"] = out["category"].apply(category_label)
    out["percent"] = (out["count"] / total * 100).round(1)
    out["examples"] = out["category"].apply(lambda c: examples_by_category.get(c, []))
    # Stable sort keeps rule priority order among equal counts
    out = out.sort_values(by="count", ascending=False, kind="mergesort")
    return out[columns].reset_index(drop=True)


def category_insights(summary: pd.DataFrame) -> list[str]:
    """Editorial observations about a distribution from ``summarize_categories``."""
    if summary.empty:
        return []
    total = int(summary["count"].sum())
    by_category = dict(zip(summary["category"], summary["count"]))
    notes: list[str] = []
    general = int(by_category.get(GENERAL_CATEGORY, 0))
    if general > total * 0.2:
        notes.append(
            f"{general} issues ({general / total * 100:.1f}%) are general improvements; "
            "the categorization rules may need more specific patterns."
        )
    product = int(by_category.get("product_features", 0))
    if product > total * 0.4:
        notes.append(
            f"Product & Features is {product / total * 100:.1f}% of the work: "
            "a healthy product development focus."
        )
    return notes
