from datetime import date, datetime, timezone

import pytest

from habit_tracker.dates import day_bounds, get_zone, local_date, local_noon, parse_day, parse_timestamp
from habit_tracker.errors import ValidationError
from habit_tracker.weekly import build_weekly_log, month_grid, week_window


@pytest.mark.parametrize("value", ["2024-1-05", "2024-02-30", "05/01/2024", "", None, 20240105])
def test_parse_day_rejects_malformed(value):
    with pytest.raises(ValidationError):
        parse_day(value)


def test_parse_day():
    assert parse_day("2024-02-29") == date(2024, 2, 29)


def test_parse_timestamp_normalizes_to_utc():
    assert parse_timestamp("2024-01-01T02:00:00+02:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(ValidationError):
        parse_timestamp("yesterday")


def test_local_day_boundaries():
    zone = get_zone("America/New_York")
    start, end = day_bounds(date(2024, 1, 15), zone)
    assert start == datetime(2024, 1, 15, 5, tzinfo=timezone.utc)
    assert end == datetime(2024, 1, 16, 5, tzinfo=timezone.utc)
    assert local_date(datetime(2024, 1, 16, 3, tzinfo=timezone.utc), zone) == date(2024, 1, 15)


def test_local_noon():
    assert local_noon(date(2024, 1, 15), get_zone("Asia/Tokyo")) == datetime(2024, 1, 15, 3, tzinfo=timezone.utc)
    assert local_noon(date(2024, 1, 15), get_zone("UTC"), 2) == datetime(2024, 1, 15, 12, 2, tzinfo=timezone.utc)


def test_unknown_zone():
    with pytest.raises(ValidationError):
        get_zone("Mars/Olympus")


def test_week_window_ends_today():
    window = week_window(date(2024, 1, 7))
    assert len(window) == 7
    assert window[0] == date(2024, 1, 1)
    assert window[-1] == date(2024, 1, 7)


def test_weekly_log_counts():
    counts = {date(2024, 1, 2): 1, date(2024, 1, 5): 3}
    log = build_weekly_log(counts, date(2024, 1, 7))
    by_date = {day.date: day for day in log}
    assert by_date[date(2024, 1, 1)].to_dict() == {"date": "2024-01-01", "completed": False, "count": 0}
    assert by_date[date(2024, 1, 5)].completed
    assert by_date[date(2024, 1, 5)].count == 3
    assert sum(day.completed for day in log) == 2


def test_month_grid_pads_weeks():
    weeks = month_grid({date(2024, 2, 14): 2}, 2024, 2)
    assert all(len(week) == 7 for week in weeks)
    assert weeks[0][0].date == date(2024, 1, 29)
    assert not weeks[0][0].in_month
    flat = [day for week in weeks for day in week]
    assert [day.count for day in flat if day.date == date(2024, 2, 14)] == [2]
    assert sum(day.in_month for day in flat) == 29
