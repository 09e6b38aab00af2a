from datetime import date, datetime

import pytest

from newsletter_app.app import PAGES, SETUP_PAGE
from newsletter_app.core.models import IssueModel, NewsletterPreview, PreviewIssue
from newsletter_app.core.service import STAGE_COMMENTS, STAGE_QUICK_WINS, STAGE_SEARCH
from newsletter_app.pages import category_analysis, setup  # noqa: F401
from newsletter_app.pages import newsletter as newsletter_page
from newsletter_app.visual.progress import STAGE_EDITORIAL, preview_summary, stage_fraction, stage_label


def test_pages_register_themselves():
    assert {"Newsletter", "Category Analysis", SETUP_PAGE} <= set(PAGES)


def test_previous_month_window():
    assert newsletter_page._previous_month(date(2025, 10, 19)) == (date(2025, 9, 1), date(2025, 9, 30))
    assert newsletter_page._previous_month(date(2026, 1, 5)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_stage_fraction_fills_each_stage_band():
    assert stage_fraction(STAGE_SEARCH) == 0.0
    assert stage_fraction(STAGE_COMMENTS, 0, 10) == 0.1
    assert stage_fraction(STAGE_COMMENTS, 5, 10) == pytest.approx(0.325)
    assert stage_fraction(STAGE_COMMENTS, 50, 10) == pytest.approx(0.55)
    assert stage_fraction(STAGE_QUICK_WINS) == 0.85
    assert stage_fraction(STAGE_EDITORIAL) == 0.9
    assert stage_fraction("Something else", 1, 2) is None
    assert stage_label(STAGE_COMMENTS, 3, 10) == "Loading issue comments (3/10)"
    assert stage_label(STAGE_SEARCH) == "Querying Jira issues"


def test_preview_summary():
    preview = NewsletterPreview(
        title="T",
        author="A",
        date="2025-09-01",
        issues=[
            PreviewIssue(IssueModel(key="EBP-1", summary="a", status="Done", resolution_date=datetime(2025, 9, 3)), [], ""),
            PreviewIssue(IssueModel(key="EBP-2", summary="b", status="In Progress"), [], ""),
        ],
    )
    assert preview_summary(preview) == "Newsletter ready: 2 item(s) (1 resolved), 0 quick win(s)."
