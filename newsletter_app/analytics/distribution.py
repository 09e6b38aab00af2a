"""Category distribution and pie-chart geometry for the investment overview."""

from __future__ import annotations

import math
from collections.abc import Iterable

from newsletter_app.analytics.categorizer import category_color, category_label, count_categories
from newsletter_app.core.config import CHART_CENTER, CHART_RADIUS
from newsletter_app.core.models import CategorySlice


def _point(angle_deg: float, center: float, radius: float) -> tuple[float, float]:
    # 0 degrees at twelve o'clock, sweeping clockwise
    rad = math.radians(angle_deg)
    return round(center + radius * math.sin(rad), 2), round(center - radius * math.cos(rad), 2)


def arc_path(start_angle: float, end_angle: float, center: float = CHART_CENTER, radius: float = CHART_RADIUS) -> str:
    """SVG path for one pie wedge between two angles (degrees)."""
    sweep = end_angle - start_angle
    if sweep <= 0:
        return ""
    if sweep >= 359.999:
        top = round(center - radius, 2)
        bottom = round(center + radius, 2)
        return (
            f"M {center} {top} A {radius} {radius} 0 1 1 {center} {bottom} "
            f"A {radius} {radius} 0 1 1 {center} {top} Z"
        )
    x1, y1 = _point(start_angle, center, radius)
    x2, y2 = _point(end_angle, center, radius)
    large_arc = 1 if sweep > 180 else 0
    return f"M {center} {center} L {x1} {y1} A {radius} {radius} 0 {large_arc} 1 {x2} {y2} Z"


def build_distribution(categories: Iterable[str]) -> list[CategorySlice]:
    """Per-category counts, percentages, and wedge angles.

    Slices are ordered by percentage (largest first, ties in rule priority
    order). Angles come from exact shares so the sweep always closes at 360;
    displayed percentages are rounded to one decimal.
    """
    counts = count_categories(categories)
    total = int(counts.sum()) if not counts.empty else 0
    if total == 0:
        return []
    ordered = counts.sort_values(ascending=False, kind="mergesort")
    slices: list[CategorySlice] = []
    cumulative = 0
    for category, count in ordered.items():
        start = cumulative / total * 360.0
        cumulative += int(count)
        end = cumulative / total * 360.0
        slices.append(
            CategorySlice(
                category=category,
                label=category_label(category),
                color=category_color(category),
                count=int(count),
                percent=round(int(count) / total * 100, 1),
                start_angle=round(start, 2),
                end_angle=round(end, 2),
                path=arc_path(start, end),
            )
        )
    return slices
