import json

from click.testing import CliRunner

from conftest import FIXTURE_ISSUES

from newsletter_app.cli import main
from newsletter_app.features.newsletter import build_template_context
from newsletter_app.visual.charts import category_pie
from newsletter_app.visual.render import render_newsletter


def _payload():
    return {
        "title": "Engineering Update",
        "author": "Eng",
        "date": "2025-09-01",
        "issues": [
            {"key": f"EBP-{i}", "summary": issue["summary"], "status": issue["status"], "bullets": ["shipped it"]}
            for i, (issue, _) in enumerate(FIXTURE_ISSUES, start=1)
        ],
        "quickWins": [{"key": "QW-1", "summary": "Faster <exports>", "url": "https://x/browse/QW-1"}],
    }


def test_render_smoke():
    model = build_template_context(_payload())
    html = render_newsletter(model)
    assert "October 2025 Engineering Newsletter" in html
    assert 'id="ebp-1"' in html
    assert 'href="#quick-wins"' in html
    assert "Faster &lt;exports&gt;" in html
    assert html.count("<path ") == len(model.investment_overview.categories)


def test_category_pie():
    model = build_template_context(_payload())
    chart, frame = category_pie(model.investment_overview.categories)
    assert chart is not None
    assert list(frame["label"])[0] == "Product & Features"
    empty_chart, empty_frame = category_pie([])
    assert empty_chart is None
    assert empty_frame.empty


def test_cli_renders_stored_preview(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("NEWSLETTER_CACHE_DIR", str(tmp_path / "cache"))
    preview = tmp_path / "preview.json"
    preview.write_text(json.dumps(_payload()), encoding="utf-8")
    out = tmp_path / "out.html"
    result = CliRunner().invoke(main, ["--input", str(preview), "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert "12 item(s)" in result.output
    assert "October 2025" in out.read_text(encoding="utf-8")


def test_cli_requires_dates_without_input():
    result = CliRunner().invoke(main, ["--from", "2025-09-01"])
    assert result.exit_code == 2
    assert "--from and --to" in result.output


def test_cli_reports_bad_dates(tmp_path, monkeypatch):
    for key, value in {"JIRA_EMAIL": "a@b.c", "JIRA_API_TOKEN": "t", "JIRA_DOMAIN": "x.atlassian.net"}.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setattr("newsletter_app.cli.JiraAPI", lambda *a, **k: object())
    result = CliRunner().invoke(main, ["--from", "2025-09-30", "--to", "2025-09-01", "--out", str(tmp_path / "o.html")])
    assert result.exit_code == 2
    assert "earlier" in result.output
