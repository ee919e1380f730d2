"""
Calendar-month bucketing.

All arithmetic is on UTC calendar dates; a bucket is always one whole
month and is anchored on its first day so month lengths never drift.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, NamedTuple, Union

from backend.app.errors import InvalidInput

DateLike = Union[date, datetime]

AVG_DAYS_PER_MONTH = 30.44


class YearMonth(NamedTuple):
    year: int
    month: int  # 1..12


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc_date(value: DateLike) -> date:
    """Drop time-of-day, converting aware datetimes to UTC first."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def as_utc_datetime(value: DateLike) -> datetime:
    """Dates become UTC midnight; naive datetimes are read as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def year_month(value: DateLike) -> YearMonth:
    d = as_utc_date(value)
    return YearMonth(d.year, d.month)


def format_month(ym: YearMonth) -> str:
    return f"{ym.year:04d}-{ym.month:02d}"


def month_key(value: DateLike) -> str:
    return format_month(year_month(value))


def parse_month_key(key: str) -> YearMonth:
    """
    Parse 'YYYY-MM' -> YearMonth. Inverse of format_month.
    """
    try:
        y_str, m_str = key.split("-")
        if len(y_str) != 4 or len(m_str) != 2:
            raise ValueError(key)
        y, m = int(y_str), int(m_str)
    except (AttributeError, ValueError) as exc:
        raise InvalidInput(f"invalid month key: {key!r}") from exc
    if m < 1 or m > 12:
        raise InvalidInput(f"invalid month key: {key!r}")
    return YearMonth(y, m)


def start_of_month(value: DateLike) -> date:
    d = as_utc_date(value)
    return date(d.year, d.month, 1)


def add_months(value: DateLike, delta: int) -> date:
    d = as_utc_date(value)
    index = d.year * 12 + (d.month - 1) + delta
    try:
        return date(index // 12, index % 12 + 1, 1)
    except ValueError as exc:
        raise InvalidInput(f"month offset {delta} from {d.isoformat()} is out of range") from exc


def shift_months(value: DateLike, delta: int) -> date:
    """Same day `delta` months away, clamped to the end of a shorter month."""
    d = as_utc_date(value)
    first, last = month_bounds(add_months(d, delta))
    return first.replace(day=min(d.day, last.day))


def month_span(start: DateLike, end: DateLike) -> int:
    """Number of calendar months touched by [start, end], both endpoints included."""
    s, e = year_month(start), year_month(end)
    return (e.year - s.year) * 12 + (e.month - s.month) + 1


def days_between(start: DateLike, end: DateLike) -> int:
    return (as_utc_date(end) - as_utc_date(start)).days


def month_window(end: DateLike, months: int) -> List[date]:
    """
    `months` contiguous month starts ending at the month of `end`, oldest first.
    """
    last = start_of_month(end)
    return [add_months(last, offset) for offset in range(-months + 1, 1)]


def trailing_window_start(today: DateLike, months: int = 6) -> date:
    """First day of a window of `months` calendar months that includes the current one."""
    return add_months(start_of_month(today), -(max(1, months) - 1))


def month_bounds(value: DateLike) -> tuple[date, date]:
    first = start_of_month(value)
    last = date.fromordinal(add_months(first, 1).toordinal() - 1)
    return first, last


def parse_date(value: Union[str, DateLike]) -> date:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, (date, datetime)):
        return as_utc_date(value)
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidInput(f"invalid date: {value!r}, expected YYYY-MM-DD") from exc
