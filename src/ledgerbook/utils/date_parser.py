"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = ("this-week", "this-month", "this-year", "last-week", "last-month", "last-year")


def _relative_date(text: str, today: date) -> date | None:
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in relative_dates:
        return relative_dates[text]

    if text.startswith(("this ", "last ")):
        which, _, period = text.partition(" ")
        week_start = today - timedelta(days=today.weekday())
        starts = {
            "week": week_start,
            "month": today.replace(day=1),
            "year": today.replace(month=1, day=1),
        }
        if period not in starts:
            return None
        if which == "this":
            return starts[period]
        if period == "week":
            return week_start - timedelta(days=7)
        step = relativedelta(months=1) if period == "month" else relativedelta(years=1)
        return starts[period] - step
    return None


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    words: "today", "yesterday", "tomorrow", "this week/month/year" and
    "last week/month/year" (the first day of that period).

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    relative = _relative_date(text, date.today())
    if relative is not None:
        return relative

    try:
        return date_parser.parse(text).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(date_str: str) -> datetime:
    """Parse a date string that may carry a time of day.

    Relative words resolve to midnight; "now" keeps the current time.

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    if text == "now":
        return datetime.now().replace(microsecond=0)
    relative = _relative_date(text, date.today())
    if relative is not None:
        return datetime.combine(relative, time.min)

    try:
        return date_parser.parse(text)
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Periods starting with "this-" end today; "last-" periods end on the day
    before the current period starts.

    Raises:
        ValueError: If period string is not recognized
    """
    key = period.strip().lower()
    if key not in PERIODS:
        raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")

    today = date.today()
    which, _, unit = key.partition("-")
    current_start = _relative_date(f"this {unit}", today)
    if which == "this":
        return (current_start, today)
    return (_relative_date(f"last {unit}", today), current_start - timedelta(days=1))
