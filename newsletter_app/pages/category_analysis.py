"""Category Analysis page: how work split across categories over a longer window."""

from __future__ import annotations

from datetime import date, timedelta

import streamlit as st

from newsletter_app.analytics.categorizer import categorize_issue, category_insights, summarize_categories
from newsletter_app.analytics.distribution import build_distribution
from newsletter_app.app import register_page
from newsletter_app.core.errors import JiraRequestError, NewsletterDateError
from newsletter_app.visual.charts import category_bar, category_pie


@register_page("Category Analysis")
def category_analysis_page():
    st.title("Category Analysis")
    st.caption("Categorizes issues updated in the window with the same rules the newsletter uses.")
    service = st.session_state.get("newsletter_service")
    if service is None:
        st.warning("Connect to Jira on the Setup page first.")
        return

    today = date.today()
    col1, col2 = st.columns(2)
    start = col1.date_input("From", value=today - timedelta(days=182))
    end = col2.date_input("To", value=today)
    examples = st.slider("Examples per category", min_value=1, max_value=10, value=3)

    if not st.button("Analyze", type="primary"):
        return
    try:
        with st.spinner("Fetching issues…"):
            issues = service.fetch_issues_between(start, end)
    except NewsletterDateError as e:
        st.error(str(e))
        return
    except JiraRequestError as e:
        st.error(f"Jira request failed: {e}")
        return

    if not issues:
        st.info("No issues updated in this window.")
        return

    summary = summarize_categories(issues, examples=examples)
    st.metric("Issues analyzed", len(issues))

    left, right = st.columns(2)
    pie, _ = category_pie(build_distribution(categorize_issue(i) for i in issues))
    if pie is not None:
        left.altair_chart(pie, use_container_width=True)
    bar = category_bar(summary)
    if bar is not None:
        right.altair_chart(bar, use_container_width=True)

    table = summary.copy()
    table["examples"] = table["examples"].apply(lambda items: " | ".join(items))
    st.dataframe(table.drop(columns=["category"]), hide_index=True)

    for note in category_insights(summary):
        st.info(note)
