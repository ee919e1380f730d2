from datetime import date, datetime, timedelta, timezone
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.errors import InvalidInput
from backend.app.insights.time_buckets import (
    YearMonth,
    add_months,
    as_utc_date,
    as_utc_datetime,
    days_between,
    format_month,
    month_bounds,
    month_key,
    month_span,
    month_window,
    parse_date,
    parse_month_key,
    shift_months,
    trailing_window_start,
)


def test_month_key_and_parse_are_inverse():
    assert month_key(date(2024, 3, 15)) == "2024-03"
    assert parse_month_key("2024-03") == YearMonth(2024, 3)
    assert format_month(parse_month_key("1999-12")) == "1999-12"


@pytest.mark.parametrize("bad", ["2024-13", "2024-3", "24-03", "march", ""])
def test_parse_month_key_rejects_malformed_keys(bad):
    with pytest.raises(InvalidInput):
        parse_month_key(bad)


def test_add_months_anchors_on_first_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 1)
    assert add_months(date(2024, 1, 15), -1) == date(2023, 12, 1)
    assert add_months(date(2024, 11, 2), 14) == date(2026, 1, 1)


def test_month_span_counts_both_endpoints():
    assert month_span(date(2024, 1, 20), date(2024, 3, 1)) == 3
    assert month_span(date(2024, 5, 1), date(2024, 5, 31)) == 1
    assert month_span(date(2023, 12, 1), date(2024, 1, 1)) == 2


def test_month_window_is_contiguous_and_oldest_first():
    window = month_window(date(2024, 2, 10), 3)
    assert window == [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]


def test_trailing_window_includes_current_month():
    assert trailing_window_start(date(2024, 6, 15), 6) == date(2024, 1, 1)
    assert trailing_window_start(date(2024, 6, 15), 1) == date(2024, 6, 1)


def test_month_bounds_handles_leap_february():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_aware_datetimes_are_bucketed_in_utc():
    local = datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc_date(local) == date(2023, 12, 31)
    assert month_key(local) == "2023-12"


def test_parse_date_accepts_iso_strings_and_dates():
    assert parse_date("2024-05-01") == date(2024, 5, 1)
    assert parse_date(date(2024, 5, 1)) == date(2024, 5, 1)
    assert parse_date(datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc)) == date(2024, 5, 1)
    with pytest.raises(InvalidInput):
        parse_date("05/01/2024")


def test_days_between_is_signed():
    assert days_between(date(2024, 1, 1), date(2024, 1, 31)) == 30
    assert days_between(date(2024, 1, 31), date(2024, 1, 1)) == -30


def test_add_months_out_of_calendar_range_is_invalid_input():
    with pytest.raises(InvalidInput):
        add_months(date(2024, 3, 15), -30000)
    with pytest.raises(InvalidInput):
        add_months(date(9999, 12, 1), 1)


def test_shift_months_keeps_day_and_clamps_short_months():
    assert shift_months(date(2024, 5, 15), -4) == date(2024, 1, 15)
    assert shift_months(date(2024, 6, 30), -4) == date(2024, 2, 29)


def test_as_utc_datetime_reads_dates_as_midnight():
    assert as_utc_datetime(date(2024, 1, 2)) == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert as_utc_datetime(datetime(2024, 1, 2, 6, 0)) == datetime(2024, 1, 2, 6, 0, tzinfo=timezone.utc)
