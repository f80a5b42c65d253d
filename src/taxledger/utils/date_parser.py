"""Date parsing and tax-period utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "15/01/2024", "January 15, 2024")
    and a few relative words ("today", "yesterday", "this month",
    "last month", "this year", "last year"). Numeric dates are read day
    first, the way Nigerian bank statements print them.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    # ISO dates must not be reinterpreted as day-first
    dayfirst = not (len(date_str) >= 10 and date_str[4] == "-")
    try:
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_period(value: date) -> str:
    """Return the monthly tax period label ("YYYY-MM") containing a date."""
    return f"{value.year:04d}-{value.month:02d}"


def year_period(value: date) -> str:
    """Return the yearly tax period label ("YYYY") containing a date."""
    return f"{value.year:04d}"


def get_period_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a tax period label.

    Args:
        period: "YYYY-MM" for a month or "YYYY" for a calendar year

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If the label is not a month or a year
    """
    period = period.strip()
    try:
        if len(period) == 7 and period[4] == "-":
            start_date = date(int(period[:4]), int(period[5:]), 1)
            end_date = start_date + relativedelta(months=1) - timedelta(days=1)
            return (start_date, end_date)
        if len(period) == 4:
            year = int(period)
            return (date(year, 1, 1), date(year, 12, 31))
    except ValueError as e:
        raise ValueError(f"Unknown period: '{period}': {e}")
    raise ValueError(f"Unknown period: '{period}'. Use YYYY-MM or YYYY")


def next_month_day(period_end: date, day: int) -> date:
    """Return the given day of the month after period_end."""
    return (period_end.replace(day=1) + relativedelta(months=1)).replace(day=day)
