"""Chart builders (Altair) for the category distribution."""

from __future__ import annotations

from collections.abc import Sequence

import altair as alt
import pandas as pd

from newsletter_app.core.models import CategorySlice


def distribution_frame(slices: Sequence[CategorySlice]) -> pd.DataFrame:
    columns = ["category", "label", "count", "percent", "color"]
    if not slices:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "category": s.category,
                "label": s.label,
                "count": s.count,
                "percent": s.percent,
                "color": s.color,
            }
            for s in slices
        ],
        columns=columns,
    )


def category_pie(slices: Sequence[CategorySlice]):
    """Donut chart of the category distribution, coloured like the HTML pie.

    Returns ``(chart, frame)``; ``chart`` is None when there is nothing to plot.
    """
    df = distribution_frame(slices)
    if df.empty:
        return None, df
    # Keep slice order (largest first) in both the arcs and the legend
    df["order"] = range(len(df))
    chart = (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("count:Q", stack=True),
            color=alt.Color(
                "label:N",
                scale=alt.Scale(domain=list(df["label"]), range=list(df["color"])),
                sort=list(df["label"]),
                legend=alt.Legend(title="Category"),
            ),
            order=alt.Order("order:Q"),
            tooltip=[
                alt.Tooltip("label:N", title="Category"),
                alt.Tooltip("count:Q", title="Issues"),
                alt.Tooltip("percent:Q", title="Share (%)", format=".1f"),
            ],
        )
        .properties(height=300)
    )
    return chart, df


def category_bar(summary: pd.DataFrame):
    """Horizontal bar chart for a ``summarize_categories`` table."""
    if summary is None or summary.empty:
        return None
    return (
        alt.Chart(summary)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", title="Issues"),
            y=alt.Y("label:N", sort="-x", title="Category"),
            tooltip=[
                alt.Tooltip("label:N", title="Category"),
                alt.Tooltip("count:Q", title="Issues"),
                alt.Tooltip("percent:Q", title="Share (%)", format=".1f"),
            ],
        )
        .properties(height=alt.Step(24))
    )
