"""Date-range parsing and timezone-aware range checks."""

from __future__ import annotations

import re
from datetime import date, datetime, time

import pandas as pd
import pytz

from .config import TIMEZONE
from .errors import NewsletterDateError

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _tz(tz):
    return pytz.timezone(tz) if isinstance(tz, str) else tz


def parse_date_param(value, tz=TIMEZONE) -> datetime:
    """Parse ``YYYY-MM-DD`` (or an ISO timestamp) into an aware datetime in ``tz``.

    Raises
    ------
    NewsletterDateError
        If the value is empty or not a recognizable date.
    """
    tzinfo = _tz(tz)
    if isinstance(value, datetime):
        return value.astimezone(tzinfo) if value.tzinfo else tzinfo.localize(value)
    if isinstance(value, date):
        return tzinfo.localize(datetime.combine(value, time.min))
    text = str(value or "").strip()
    if not text:
        raise NewsletterDateError("A date is required (YYYY-MM-DD).")
    ts = pd.to_datetime(text, errors="coerce")
    if ts is None or pd.isna(ts):
        raise NewsletterDateError(f"Invalid date {text!r}; use YYYY-MM-DD.")
    parsed = ts.to_pydatetime()
    return parsed.astimezone(tzinfo) if parsed.tzinfo else tzinfo.localize(parsed)


def resolve_date_range(from_value, to_value, tz=TIMEZONE) -> tuple[datetime, datetime]:
    """Validated inclusive ``(start, end)`` range.

    A date-only ``to`` value covers that whole day. Both bounds are required
    and ``start`` may not be after ``end``.
    """
    if not from_value or not to_value:
        raise NewsletterDateError(
            "Please provide both `from` and `to` dates in YYYY-MM-DD format, e.g. from=2025-09-01 to=2025-09-30."
        )
    start = parse_date_param(from_value, tz)
    end = parse_date_param(to_value, tz)
    to_is_day = (isinstance(to_value, date) and not isinstance(to_value, datetime)) or bool(
        _DATE_ONLY.match(str(to_value).strip())
    )
    if to_is_day:
        end = end.replace(hour=23, minute=59, second=59, microsecond=999999)
    if start > end:
        raise NewsletterDateError("`from` must be the same or earlier than `to`.")
    return start, end


def within_range(value: datetime | None, start: datetime, end: datetime) -> bool:
    """Inclusive check; naive values are treated as UTC."""
    if value is None:
        return False
    if value.tzinfo is None:
        value = pytz.UTC.localize(value)
    return start <= value <= end
