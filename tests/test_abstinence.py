from datetime import datetime, timedelta, timezone

import pytest

from habit_tracker.abstinence import compute_time_display, elapsed_seconds, format_elapsed, resolve_anchor
from habit_tracker.goals import find_goal


def test_format_drops_leading_zero_units():
    assert format_elapsed(12) == "12s"
    assert format_elapsed(45 * 60 + 12) == "45m 12s"
    assert format_elapsed(3600) == "1h 0m 0s"
    assert format_elapsed(0) == "0s"
    assert format_elapsed(2 * 86400 + 5) == "2d 0h 0m 5s"


def test_quit_without_events_counts_from_creation():
    anchor = resolve_anchor("2024-01-01T00:00:00Z")
    now = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)
    display = compute_time_display(anchor, now)
    assert display.time_string == "1d 12h 0m 0s"
    assert display.total_hours == 36
    assert display.current_goal.name == "3 Days"
    assert display.progress_percent == pytest.approx(50.0)


def test_fractional_hours_progress():
    anchor = datetime(2024, 1, 1, tzinfo=timezone.utc)
    display = compute_time_display(anchor, anchor + timedelta(hours=36, minutes=30))
    assert display.to_dict()["progressPercent"] == pytest.approx(50.69, abs=0.01)


def test_unmarked_timestamp_is_utc():
    marked = resolve_anchor("2024-01-01T00:00:00+00:00")
    assert resolve_anchor("2024-01-01T00:00:00") == marked
    assert resolve_anchor(datetime(2024, 1, 1)) == marked


def test_last_event_wins_over_creation():
    anchor = resolve_anchor(datetime(2024, 1, 1), datetime(2024, 1, 3, 8))
    assert anchor == datetime(2024, 1, 3, 8, tzinfo=timezone.utc)


def test_elapsed_floors_and_clamps():
    anchor = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert elapsed_seconds(anchor, anchor + timedelta(seconds=1.9)) == 1
    assert elapsed_seconds(anchor, anchor - timedelta(hours=1)) == 0


def test_selected_goal_is_used():
    anchor = datetime(2024, 1, 1, tzinfo=timezone.utc)
    display = compute_time_display(anchor, anchor + timedelta(hours=12), find_goal("1 Week"))
    assert display.current_goal.name == "1 Week"
    assert not display.goal_advanced
