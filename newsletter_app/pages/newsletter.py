"""Newsletter page: build a preview for a date range, render it, and offer downloads."""

from __future__ import annotations

import json
from datetime import date, timedelta

import streamlit as st
import streamlit.components.v1 as components

from newsletter_app.app import register_page
from newsletter_app.core.cache import FileCache
from newsletter_app.core.config import DEFAULT_AUTHOR, DEFAULT_TITLE
from newsletter_app.core.errors import JiraRequestError, NewsletterDateError
from newsletter_app.core.service import setup_instructions_payload
from newsletter_app.features.newsletter import build_template_context
from newsletter_app.visual.charts import category_pie
from newsletter_app.visual.progress import STAGE_EDITORIAL, ProgressReporter
from newsletter_app.visual.render import render_newsletter


def _previous_month(today: date) -> tuple[date, date]:
    last = today.replace(day=1) - timedelta(days=1)
    return last.replace(day=1), last


def _show_outputs(payload: dict, model, html: str) -> None:
    tab_html, tab_chart, tab_json = st.tabs(["Newsletter", "Investment", "Preview payload"])
    with tab_html:
        components.html(html, height=900, scrolling=True)
    with tab_chart:
        chart, frame = category_pie(model.investment_overview.categories)
        if chart is None:
            st.info("No categorized items for this period.")
        else:
            st.altair_chart(chart, use_container_width=True)
            st.dataframe(frame.drop(columns=["color"]), hide_index=True)
        st.write(model.investment_overview.narrative)
    with tab_json:
        st.json(payload)

    slug = (payload.get("date") or "newsletter").replace(" ", "-")
    col_a, col_b = st.columns(2)
    col_a.download_button("Download HTML", html, file_name=f"newsletter-{slug}.html", mime="text/html")
    col_b.download_button(
        "Download preview JSON",
        json.dumps(payload, indent=2, ensure_ascii=False),
        file_name=f"preview-{slug}.json",
        mime="application/json",
    )


@register_page("Newsletter")
def newsletter_page():
    st.title("Engineering Newsletter")
    service = st.session_state.get("newsletter_service")
    if service is None:
        st.warning("Jira is not configured yet. Showing setup instructions; use the Setup page to connect.")
        payload = setup_instructions_payload()
        model = build_template_context(payload)
        _show_outputs(payload, model, render_newsletter(model))
        return

    default_start, default_end = _previous_month(date.today())
    col1, col2 = st.columns(2)
    start = col1.date_input("From", value=default_start)
    end = col2.date_input("To", value=default_end)
    title = st.text_input("Fallback title", value=DEFAULT_TITLE)
    author = st.text_input("Author", value=DEFAULT_AUTHOR)

    if st.button("Build newsletter", type="primary"):
        reporter = ProgressReporter("Building newsletter preview…")
        try:
            preview = service.build_preview(start, end, title=title, author=author, progress=reporter.callback)
            reporter.update(STAGE_EDITORIAL)
            model = build_template_context(
                preview,
                service.generator,
                FileCache(service.settings.cache_dir),
                service.settings,
            )
            html = render_newsletter(model)
        except NewsletterDateError as e:
            reporter.error(str(e))
            return
        except JiraRequestError as e:
            reporter.error(f"Jira request failed: {e}")
            return
        reporter.complete_preview(preview)
        st.session_state["newsletter_output"] = (preview.to_payload(), model, html)

    if "newsletter_output" in st.session_state:
        _show_outputs(*st.session_state["newsletter_output"])
