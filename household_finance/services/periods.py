import calendar
import re
from datetime import date
from typing import Optional, Tuple


MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def is_valid_month(month: str) -> bool:
    return bool(MONTH_RE.match(month)) and not month.startswith("0000")


def parse_month(month: str) -> Tuple[int, int]:
    if not is_valid_month(month):
        raise ValueError(f"Invalid month: {month!r} (expected YYYY-MM)")
    year, mon = month.split("-")
    return int(year), int(mon)


def resolve_month(month: Optional[str], *, today: Optional[date] = None) -> str:
    """Return ``month`` when given, otherwise the calendar month of ``today``.

    This is the only place a default month is derived from the clock.
    """
    if month:
        parse_month(month)
        return month
    today = today or date.today()
    return month_key(today)


def days_in_month(month: str) -> int:
    year, mon = parse_month(month)
    return calendar.monthrange(year, mon)[1]


def month_bounds(month: str) -> Tuple[date, date]:
    year, mon = parse_month(month)
    return date(year, mon, 1), date(year, mon, days_in_month(month))


def previous_month(month: str) -> str:
    year, mon = parse_month(month)
    if mon == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{mon - 1:02d}"


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def in_month(day: date, month: str) -> bool:
    return month_key(day) == month
