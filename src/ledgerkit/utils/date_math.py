"""Calendar stepping and invoice-month arithmetic."""

import re
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta

DAYS = "days"
MONTHS = "months"
YEARS = "years"

_INVOICE_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def _step_from_first_of_month(value: date, delta: relativedelta) -> date:
    # Day-of-month is re-applied as an offset from the 1st, so Jan 31 + 1 month
    # rolls over into March instead of being clamped to Feb 28.
    first = value.replace(day=1) + delta
    return first + timedelta(days=value.day - 1)


def step_date(value: date, unit: str, n: int) -> date:
    """Move a date by ``n`` days, calendar months or years.

    Month and year steps do not clamp the day of month: when the target month
    is shorter, the surplus days overflow into the following month
    (2025-01-31 + 1 month is 2025-03-03, 2024-02-29 + 1 year is 2025-03-01).

    Args:
        value: Starting date
        unit: One of DAYS, MONTHS, YEARS
        n: Number of units (may be negative)

    Returns:
        The stepped date

    Raises:
        ValueError: If the unit is unknown
    """
    if unit == DAYS:
        return value + timedelta(days=n)
    if unit == MONTHS:
        return _step_from_first_of_month(value, relativedelta(months=n))
    if unit == YEARS:
        return _step_from_first_of_month(value, relativedelta(years=n))
    raise ValueError(f"Unknown date step unit: '{unit}'")


def invoice_month_label(value: date) -> str:
    """Return the ``YYYY-MM`` billing-cycle label for a date."""
    return f"{value.year:04d}-{value.month:02d}"


def parse_invoice_month(label: str) -> date:
    """Parse a ``YYYY-MM`` label into the first day of that month.

    Raises:
        ValueError: If the label is malformed
    """
    match = _INVOICE_MONTH_RE.match(label or "")
    if match is None:
        raise ValueError(f"Invalid invoice month '{label}': expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid invoice month '{label}': month out of range")
    return date(year, month, 1)


def shift_invoice_month(label: str, n: int) -> str:
    """Shift a ``YYYY-MM`` label by ``n`` months."""
    return invoice_month_label(parse_invoice_month(label) + relativedelta(months=n))


def compute_invoice_month(purchase_date: date, closing_day: int) -> str:
    """Return the invoice a card purchase belongs to.

    Purchases made after the closing day go to next month's invoice; purchases
    on or before it stay in the current month's invoice.
    """
    first_of_month = purchase_date.replace(day=1)
    if purchase_date.day > closing_day:
        first_of_month = first_of_month + relativedelta(months=1)
    return invoice_month_label(first_of_month)


def month_bounds(label: str) -> tuple[date, date]:
    """Return the first and last day of the month named by a ``YYYY-MM`` label."""
    start = parse_invoice_month(label)
    end = start + relativedelta(months=1) - timedelta(days=1)
    return start, end


def iter_days(start: date, end: date):
    """Yield every day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
