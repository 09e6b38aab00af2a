"""Central configuration, constants, and environment-driven newsletter settings."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

# =============================================================================
# Jira Connection Settings
# =============================================================================
TIMEZONE = "UTC"
JIRA_SEARCH_PAGE_SIZE: int = 100
# Upper bound on accumulated search results; protects against a pagination
# cursor that never reports the last page.
JIRA_SEARCH_MAX_RESULTS: int = 50_000

# Fields requested from the enhanced search endpoint
JIRA_FETCH_BASE_FIELDS: Sequence[str] = (
    "summary",
    "status",
    "resolutiondate",
    "statuscategorychangedate",
    "labels",
    "description",
)
QUICK_WINS_FIELDS: Sequence[str] = ("summary", "resolutiondate")
QUICK_WINS_LOOKBACK = "-4w"

# =============================================================================
# Workflow Status Configuration
# =============================================================================
# Statuses that count as delivered (lowercase for matching)
DONE_STATUSES: frozenset[str] = frozenset(
    {
        "done",
        "deployed",
        "live in production",
        "released",
    }
)

REVIEW_STATUSES: frozenset[str] = frozenset(
    {
        "uat",
        "testing",
        "in review",
        "in qa",
        "qa",
    }
)

STATUS_COLORS: dict[str, str] = {
    "done": "#28a745",
    "review": "#6c757d",
    "hotfix": "#ff6b6b",
    "default": "#0052cc",
}

# =============================================================================
# Editorial Defaults
# =============================================================================
DEFAULT_TITLE = "Engineering Update"
DEFAULT_AUTHOR = "Engineering"
TITLE_SUFFIX = "Engineering Newsletter"
DEFAULT_ICON = "⚙️"
QUICK_WINS_ICON = "⚡"
QUICK_WINS_ANCHOR = "quick-wins"
PRIORITIES_HEADING = "Strategic Focus"
INTERNAL_LABEL = "internal"

BULLET_MAX_WORDS: int = 15
BULLETS_MIN: int = 3
BULLETS_MAX: int = 5
PRIORITIES_MAX_CHARS: int = 300

DEFAULT_STATUSES: Sequence[str] = ("In Progress", "UAT", "Done")
DEFAULT_QUICK_WINS_ISSUE_TYPE = "Quick Wins"
DEFAULT_PRIORITIES_CACHE_DAYS: int = 30
DEFAULT_CACHE_DIR = ".cache"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# =============================================================================
# Category Configuration
# =============================================================================
GENERAL_CATEGORY = "general_improvements"

CATEGORY_LABELS: dict[str, str] = {
    "client_experience": "Client Experience",
    "integration_apis": "Integrations & APIs",
    "financial_systems": "Financial Systems",
    "internal_tools": "Internal Tools & Admin",
    "data_analytics": "Data & Analytics",
    "product_features": "Product & Features",
    "testing_quality": "Testing & Quality",
    "performance_reliability": "Performance & Reliability",
    "infrastructure_platform": "Infrastructure & Platform",
    "security_compliance": "Security & Compliance",
    GENERAL_CATEGORY: "General Improvements",
}

CATEGORY_COLORS: dict[str, str] = {
    "client_experience": "#4e79a7",
    "integration_apis": "#f28e2b",
    "financial_systems": "#59a14f",
    "internal_tools": "#b07aa1",
    "data_analytics": "#76b7b2",
    "product_features": "#e15759",
    "testing_quality": "#edc948",
    "performance_reliability": "#ff9da7",
    "infrastructure_platform": "#9c755f",
    "security_compliance": "#bab0ac",
    GENERAL_CATEGORY: "#8cd17d",
}

# Pie chart geometry used by the HTML template
CHART_CENTER: float = 100.0
CHART_RADIUS: float = 90.0


def _split_csv(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _positive_int(value: str | None, default: int) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


@dataclass(slots=True)
class NewsletterSettings:
    jira_email: str | None = None
    jira_api_token: str | None = None
    jira_domain: str | None = None
    project_keys: list[str] = field(default_factory=list)
    statuses: list[str] = field(default_factory=lambda: list(DEFAULT_STATUSES))
    quick_wins_projects: list[str] = field(default_factory=list)
    quick_wins_issue_type: str = DEFAULT_QUICK_WINS_ISSUE_TYPE
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    priorities_cache_days: int = DEFAULT_PRIORITIES_CACHE_DAYS
    cache_dir: str = DEFAULT_CACHE_DIR
    excluded_terms: list[str] = field(default_factory=list)
    timezone: str = TIMEZONE

    @property
    def jira_server(self) -> str | None:
        """Base URL for the Jira instance, accepting a bare domain or a full URL."""
        if not self.jira_domain:
            return None
        domain = self.jira_domain.strip().rstrip("/")
        if domain.startswith(("http://", "https://")):
            return domain
        return f"https://{domain}"

    @property
    def missing_jira_credentials(self) -> bool:
        return not (self.jira_email and self.jira_api_token and self.jira_domain)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> NewsletterSettings:
        """Build settings from environment-style keys (``os.environ`` by default).

        Also accepts a Streamlit secrets mapping, which exposes the same keys.
        """
        env = os.environ if environ is None else environ
        statuses = _split_csv(env.get("JIRA_STATUSES")) or list(DEFAULT_STATUSES)
        return cls(
            jira_email=env.get("JIRA_EMAIL") or None,
            jira_api_token=env.get("JIRA_API_TOKEN") or env.get("JIRA_TOKEN") or None,
            jira_domain=env.get("JIRA_DOMAIN") or env.get("JIRA_SERVER") or None,
            project_keys=_split_csv(env.get("JIRA_PROJECT_KEY")),
            statuses=statuses,
            quick_wins_projects=_split_csv(env.get("QUICK_WINS_PROJECTS")),
            quick_wins_issue_type=env.get("QUICK_WINS_ISSUE_TYPE") or DEFAULT_QUICK_WINS_ISSUE_TYPE,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_model=env.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            priorities_cache_days=_positive_int(
                env.get("OPENAI_PRIORITIES_CACHE_DAYS"), DEFAULT_PRIORITIES_CACHE_DAYS
            ),
            cache_dir=env.get("NEWSLETTER_CACHE_DIR") or DEFAULT_CACHE_DIR,
            excluded_terms=_split_csv(env.get("NEWSLETTER_EXCLUDE")),
            timezone=env.get("NEWSLETTER_TIMEZONE") or TIMEZONE,
        )
