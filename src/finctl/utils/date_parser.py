"""Date parsing and calendar arithmetic."""

import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_DAY_FIRST_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")

_DAY_OFFSETS = {"yesterday": -1, "today": 0, "tomorrow": 1}
_SHIFTS = {"last": -1, "this": 0, "next": 1}


def _week_start(value: date) -> date:
    return value - timedelta(days=value.weekday())


# Start of the period containing a date, and the distance to the next period
_PERIODS: dict[str, tuple[Callable[[date], date], relativedelta]] = {
    "week": (_week_start, relativedelta(weeks=1)),
    "month": (lambda value: value.replace(day=1), relativedelta(months=1)),
    "year": (lambda value: value.replace(month=1, day=1), relativedelta(years=1)),
}


def period_start(period: str, shift: int = 0, today: Optional[date] = None) -> date:
    """First day of the week, month or year ``shift`` periods away from today."""
    start_of, step = _PERIODS[period]
    return start_of(today or date.today()) + step * shift


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Accepts absolute dates ("2024-01-15", "15/01/2024", "January 15, 2024")
    and relative ones: "today", "yesterday", "tomorrow", and "last", "this"
    or "next" followed by "week", "month" or "year", which mean the first day
    of that period. Slash-separated numeric dates are read day first.

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    if text in _DAY_OFFSETS:
        return today + timedelta(days=_DAY_OFFSETS[text])

    shift, _, period = text.partition(" ")
    if shift in _SHIFTS and period in _PERIODS:
        return period_start(period, _SHIFTS[shift], today)

    try:
        parsed = date_parser.parse(text, dayfirst=bool(_DAY_FIRST_PATTERN.match(text)))
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e
    return parsed.date()


def parse_datetime(value: str) -> datetime:
    """Parse a payment timestamp; bare dates become noon of that day."""
    parsed = parse_date(value)
    return datetime(parsed.year, parsed.month, parsed.day, 12, 0, 0)


def add_months(base: date, months: int) -> date:
    """Shift a date by whole months, clamping to the end of shorter months."""
    return base + relativedelta(months=months)


def month_start(value: date) -> date:
    """First day of the month containing value."""
    return value.replace(day=1)


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Start and end dates of a named period.

    Periods are "this-" or "last-" followed by "week", "month" or "year".
    Current periods end today; past periods end on their last day.

    Raises:
        ValueError: If period string is not recognized
    """
    today = today or date.today()
    shift, _, unit = period.strip().lower().partition("-")
    if shift not in ("this", "last") or unit not in _PERIODS:
        supported = ", ".join(f"{s}-{u}" for s in ("this", "last") for u in _PERIODS)
        raise ValueError(f"Unknown period: '{period}'. Supported periods: {supported}")

    start = period_start(unit, _SHIFTS[shift], today)
    if shift == "this":
        return start, today
    return start, period_start(unit, 0, today) - timedelta(days=1)
