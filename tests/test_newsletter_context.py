from datetime import date

import pytest

from conftest import FIXTURE_ISSUES, FakeGenerator

from newsletter_app.core.cache import FileCache
from newsletter_app.core.config import DEFAULT_ICON, STATUS_COLORS, NewsletterSettings
from newsletter_app.core.models import IssueModel, NewsletterPreview, PreviewIssue, PrioritiesSection
from newsletter_app.editorial.content import FALLBACK_CARD_SUMMARY, FALLBACK_QUICK_WINS
from newsletter_app.features.newsletter import (
    build_template_context,
    derive_title,
    resolve_priorities,
    source_items_from_legacy_items,
    split_columns,
)
from newsletter_app.visual.render import render_newsletter


def _payload(n=3, **extra):
    issues = [
        {
            "key": f"EBP-{i}",
            "summary": issue["summary"],
            "status": issue["status"],
            "labels": [],
            "bullets": ["note: shipped the first milestone", "update: EBP-12 finished review in sprint 4"],
            "comments": [],
            "oneLiner": "",
        }
        for i, (issue, _) in enumerate(FIXTURE_ISSUES[:n], start=1)
    ]
    return {"title": "Engineering Update", "author": "Eng", "date": "2025-09-01", "issues": issues, **extra}


@pytest.mark.parametrize("n,left", [(0, 0), (1, 1), (2, 1), (7, 4), (8, 4)])
def test_split_columns(n, left):
    lhs, rhs = split_columns(list(range(n)))
    assert len(lhs) == left
    assert len(rhs) == n - left
    assert lhs + rhs == list(range(n))


def test_derive_title():
    assert derive_title("2025-09-01") == "October 2025 Engineering Newsletter"
    assert derive_title("2025-12-01") == "January 2026 Engineering Newsletter"
    assert derive_title(None, "Custom") == "Custom"
    assert derive_title("not a date") == "Engineering Update"


def test_offline_context_for_fixture(tmp_path):
    payload = _payload(n=12, quickWins=[{"key": "QW-1", "summary": "Faster exports", "url": "u"}])
    model = build_template_context(payload, None, FileCache(tmp_path))
    assert model.title == "October 2025 Engineering Newsletter"
    assert len(model.left_items) == 6 and len(model.right_items) == 6
    # 12 items + the Quick Wins entry
    assert len(model.toc_left) == 7 and len(model.toc_right) == 6
    assert model.toc_right[-1].id == "quick-wins"
    assert model.quick_wins[0].title == "QW-1"
    assert model.quick_wins_description == FALLBACK_QUICK_WINS

    first = model.items[0]
    assert first.id == "ebp-1"
    assert first.bullets == ["shipped the first milestone", "finished review in"]
    assert first.card_summary == FALLBACK_CARD_SUMMARY
    assert first.closing_statement == "⚙️ Great progress ahead!"
    assert first.color == STATUS_COLORS["default"]

    done = next(i for i in model.items if i.heading == "Wallet Member Notes")
    assert done.done is True
    assert done.icon == "✅"
    assert done.closing_statement == "✅ Delivered and live!"

    overview = model.investment_overview
    assert overview.total == 12
    assert overview.categories[0].category == "product_features"
    assert overview.categories[0].count == 6
    assert sum(s.percent for s in overview.categories) == pytest.approx(100.0, abs=0.5)
    assert overview.narrative.startswith("Investment centered on product & features")

    assert model.priorities_section.heading == "Strategic Focus"
    assert "12 project(s) and 1 quick win(s)" in model.priorities_section.content


def test_icons_are_unique_per_render():
    model = build_template_context(_payload(n=12), None)
    icons = [i.icon for i in model.items if i.icon != DEFAULT_ICON]
    assert len(icons) == len(set(icons))
    assert [i.icon for i in model.items].count("✅") == 1
    toc_icons = [t.icon for t in model.toc_left + model.toc_right][:-1]
    assert toc_icons == [i.icon for i in model.items]


def test_generated_copy_and_icon_collisions():
    generator = FakeGenerator(
        {
            "single emoji": "🚀",
            "closing statement": "🎯 Nailed it.",
            "summarizing this project card": "Streamlines bidding for faster client deals.",
            "2-3 concise bullet points": "- Faster bids\n- Fewer errors",
            "Quick Wins": "Polished the small things.",
            "Strategic Direction": "Growth Focus\nWe doubled down on product.",
            "Impact & Investment Overview": "Most effort went to product.",
        }
    )
    model = build_template_context(_payload(n=3), generator)
    assert [i.icon for i in model.items] == ["🚀", DEFAULT_ICON, DEFAULT_ICON]
    assert model.items[0].bullets == ["Faster bids", "Fewer errors"]
    assert model.items[0].closing_statement == "🎯 Nailed it."
    assert model.items[0].card_summary == "Streamlines bidding for faster client deals."
    assert model.quick_wins_description == "Polished the small things."
    assert model.priorities_section.heading == "Growth Focus"
    assert model.investment_overview.narrative == "Most effort went to product."


def test_generator_failures_fall_back():
    model = build_template_context(_payload(n=2), FakeGenerator(fail=True))
    assert model.items[0].card_summary == FALLBACK_CARD_SUMMARY
    assert model.items[0].icon == DEFAULT_ICON
    assert model.priorities_section.heading == "Strategic Focus"


def test_internal_and_excluded_items_are_dropped():
    payload = _payload(n=3)
    payload["issues"][0]["labels"] = ["INTERNAL"]
    settings = NewsletterSettings(excluded_terms=["expert"])
    model = build_template_context(payload, None, settings=settings)
    assert [i.heading for i in model.items] == ["DragonFly (Consent with recordings)"]


def test_accepts_preview_objects():
    preview = NewsletterPreview(
        title="T",
        author="A",
        date="2025-12-01",
        issues=[PreviewIssue(IssueModel(key="EBP-1", summary="Client Portal", status="UAT"), ["- tested"], "ok")],
    )
    model = build_template_context(preview)
    assert model.title == "January 2026 Engineering Newsletter"
    assert model.items[0].category == "client_experience"
    assert model.items[0].color == STATUS_COLORS["review"]
    assert model.items[0].icon == "🧪"


def test_legacy_items_keep_valid_provided_fields():
    payload = {
        "title": "Setup",
        "author": "Eng",
        "date": None,
        "items": [
            {"heading": "EBP-7 — Done", "icon": "🛠", "color": "#123456", "body": "<p>custom</p>"},
            {"heading": "EBP-8 — In Progress", "bullets": ["status: halfway there"], "body": "<p>ignored</p>"},
        ],
    }
    sources = source_items_from_legacy_items(payload["items"])
    assert (sources[0].key, sources[0].status) == ("EBP-7", "Done")

    model = build_template_context(payload, today=date(2025, 10, 3))
    assert model.title == "Setup"
    assert model.date == "October 3, 2025"
    first, second = model.items
    assert (first.icon, first.color) == ("🛠", "#123456")
    assert first.bullets == ["custom"]
    assert first.done is True
    assert second.bullets == ["halfway there"]


def test_legacy_invalid_icon_and_color_are_replaced():
    payload = {
        "date": "2025-09-01",
        "items": [
            {"heading": "EBP-1 — Done", "icon": "NOT AN EMOJI", "color": "red;background:url(x)"},
            {"heading": "EBP-2 — In Progress", "icon": "🛠"},
        ],
    }
    model = build_template_context(payload)
    assert [i.icon for i in model.items] == ["✅", "🛠"]
    assert model.items[0].color == STATUS_COLORS["done"]


def test_legacy_html_body_renders_as_escaped_text():
    payload = {
        "date": "2025-09-01",
        "items": [
            {
                "heading": "EBP-3 — In Progress",
                "body": "<script>alert(1)</script><p>shipped the export flow</p><p>&lt;script&gt;x&lt;/script&gt;</p>",
            }
        ],
    }
    model = build_template_context(payload)
    assert model.items[0].bullets == ["shipped the export flow", "<script>x</script>"]
    html = render_newsletter(model)
    assert "<script" not in html
    assert "alert(1)" not in html
    assert "&lt;script&gt;x&lt;/script&gt;" in html
    assert "<li>shipped the export flow</li>" in html


def test_empty_preview():
    model = build_template_context({"date": "2025-09-01"})
    assert model.items == []
    assert [t.id for t in model.toc_left] == ["quick-wins"]
    assert model.toc_right == []
    assert model.investment_overview.categories == []


def test_priorities_resolution_order(tmp_path):
    store = FileCache(tmp_path)
    explicit = resolve_priorities(
        {"heading": "**Bold**", "content": "Given **text**"},
        date_value="2025-09-01",
        issue_lines=[],
        quick_win_lines=[],
        cache=store,
    )
    assert (explicit.heading, explicit.content) == ("Bold", "Given text")

    generator = FakeGenerator({"Strategic Direction": "Growth Focus\nWe shipped **a lot**."})
    generated = resolve_priorities(
        None, date_value="2025-09-01", issue_lines=["Bidding"], quick_win_lines=[], generator=generator, cache=store
    )
    assert generated == PrioritiesSection("Growth Focus", "We shipped a lot.")
    assert store.read("priorities:2025-09-01")["heading"] == "Growth Focus"

    # second run reads the cache without calling the generator
    again = FakeGenerator({"Strategic Direction": "Other\nText"})
    cached = resolve_priorities(
        None, date_value="2025-09-01", issue_lines=["Bidding"], quick_win_lines=[], generator=again, cache=store
    )
    assert cached.heading == "Growth Focus"
    assert again.prompts == []


def test_priorities_fallback_is_not_cached(tmp_path):
    store = FileCache(tmp_path)
    section = resolve_priorities(
        None,
        date_value="2025-09-01",
        issue_lines=["Client Portal", "Payment retries"],
        quick_win_lines=["x"],
        cache=store,
    )
    assert "customer experience and payments" in section.content
    assert store.read("priorities:2025-09-01") is None


def test_fallback_priorities_count_items_before_exclusion():
    payload = _payload(n=3)
    payload["issues"][0]["labels"] = ["internal"]
    model = build_template_context(payload, None, settings=NewsletterSettings(excluded_terms=["expert"]))
    assert len(model.items) == 1
    assert "3 project(s) and 0 quick win(s)" in model.priorities_section.content
