"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_RELATIVE_OFFSET_RE = re.compile(r"^(\d+)\s+(day|week|month|year)s?\s+(ago|from now)$")


def parse_date(date_str: str, today: date | None = None) -> date:
    """Parse a date string into a date object.

    Supports:
    - Absolute dates: "2024-01-15", "Jan 15 2024", ...
    - Keywords: "today", "yesterday", "tomorrow"
    - Offsets: "3 days ago", "2 months from now"
    - Month starts: "this month", "last month", "next month"

    Args:
        date_str: Date string
        today: Reference date (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = (date_str or "").strip().lower()
    if not text:
        raise ValueError("Empty date string")
    today = today or date.today()

    keywords = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": today.replace(day=1) - relativedelta(months=1),
        "next month": today.replace(day=1) + relativedelta(months=1),
    }
    if text in keywords:
        return keywords[text]

    match = _RELATIVE_OFFSET_RE.match(text)
    if match:
        count = int(match.group(1))
        unit = match.group(2)
        sign = -1 if match.group(3) == "ago" else 1
        delta = {
            "day": relativedelta(days=count),
            "week": relativedelta(weeks=count),
            "month": relativedelta(months=count),
            "year": relativedelta(years=count),
        }[unit]
        return today + delta if sign > 0 else today - delta

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates for a named reporting period.

    Args:
        period: One of this-month, last-month, this-year, last-year, last-90-days

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "last-month":
        end = today.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, today.replace(month=1, day=1) - timedelta(days=1)
    if period == "last-90-days":
        return today - timedelta(days=90), today

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
        "this-year, last-year, last-90-days"
    )
