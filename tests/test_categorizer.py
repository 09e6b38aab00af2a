from collections import Counter

from conftest import FIXTURE_ISSUES

from newsletter_app.analytics.categorizer import (
    CATEGORY_ORDER,
    CATEGORY_RULES,
    categorize_issue,
    categorize_text,
    category_insights,
    count_categories,
    summarize_categories,
)
from newsletter_app.core.config import CATEGORY_LABELS, GENERAL_CATEGORY
from newsletter_app.core.models import CommentModel, IssueModel


def test_rule_order_is_fixed():
    assert [r.category for r in CATEGORY_RULES] == [
        "client_experience",
        "integration_apis",
        "financial_systems",
        "internal_tools",
        "data_analytics",
        "product_features",
        "testing_quality",
        "performance_reliability",
        "infrastructure_platform",
        "security_compliance",
    ]
    assert CATEGORY_ORDER[-1] == GENERAL_CATEGORY
    assert set(CATEGORY_ORDER) == set(CATEGORY_LABELS)


def test_client_portal_wins_over_product_keywords():
    issue = {"summary": "Client portal bidding flow", "status": "In Progress"}
    assert categorize_issue(issue) == "client_experience"


def test_empty_and_unmatched_fall_back_to_general():
    assert categorize_issue({}) == GENERAL_CATEGORY
    assert categorize_issue({"summary": "", "status": ""}) == GENERAL_CATEGORY
    assert categorize_text("tidy up the office plants") == GENERAL_CATEGORY


def test_deterministic():
    issue = {"summary": "Expert Networks Phase 2", "status": "UAT"}
    assert len({categorize_issue(issue) for _ in range(5)}) == 1


def test_labels_are_matched_separately():
    issue = {"summary": "Small tweak", "status": "In Progress", "labels": ["Security"]}
    assert categorize_issue(issue) == "security_compliance"


def test_word_boundaries_avoid_false_positives():
    # "rapid" contains "api"
    assert categorize_text("rapid rollout of the description field") == GENERAL_CATEGORY
    assert categorize_text("public api for partners") == "integration_apis"


def test_comments_and_description_are_searched():
    issue = IssueModel(
        key="EBP-1",
        summary="Misc work",
        status="In Progress",
        comments=(CommentModel(author="A", created=None, text="Finished the HubSpot sync"),),
    )
    assert categorize_issue(issue) == "integration_apis"
    issue = IssueModel(key="EBP-2", summary="Misc work", status="Done", description="Monthly invoice export")
    assert categorize_issue(issue) == "financial_systems"


def test_fixture_categories(fixture_issues):
    for issue, expected in FIXTURE_ISSUES:
        assert categorize_issue(issue) == expected, issue["summary"]

    counts = Counter(categorize_issue(i) for i in fixture_issues)
    assert counts == {
        "product_features": 6,
        "integration_apis": 2,
        "client_experience": 1,
        "data_analytics": 1,
        "internal_tools": 1,
        "financial_systems": 1,
    }


def test_count_categories_keeps_rule_order():
    counts = count_categories(["product_features", "client_experience", "product_features", GENERAL_CATEGORY])
    assert list(counts.index) == ["client_experience", "product_features", GENERAL_CATEGORY]
    assert counts["product_features"] == 2
    assert count_categories([]).empty


def test_summarize_categories_table(fixture_issues):
    summary = summarize_categories(fixture_issues, examples=2)
    assert list(summary.columns) == ["category", "label", "count", "percent", "examples"]
    top = summary.iloc[0]
    assert top["category"] == "product_features"
    assert top["count"] == 6
    assert top["percent"] == 50.0
    assert top["examples"] == ["Bidding 2.3", "Automatic discount calculation - Phase 2"]
    # ties keep rule priority order
    assert list(summary["category"].iloc[2:]) == [
        "client_experience",
        "financial_systems",
        "internal_tools",
        "data_analytics",
    ]
    assert summary["count"].sum() == 12


def test_summarize_categories_empty():
    summary = summarize_categories([])
    assert summary.empty
    assert category_insights(summary) == []


def test_category_insights(fixture_issues):
    notes = category_insights(summarize_categories(fixture_issues))
    assert any("healthy product development focus" in n for n in notes)

    vague = [{"summary": f"Chore {i}"} for i in range(3)] + [{"summary": "Bidding 3"}]
    notes = category_insights(summarize_categories(vague))
    assert any("more specific patterns" in n for n in notes)
