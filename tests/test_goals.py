import pytest

from habit_tracker.errors import ValidationError
from habit_tracker.goals import (
    GOAL_LADDER,
    Goal,
    GoalState,
    find_goal,
    goal_options,
    goal_state,
    select_goal,
    validate_manual_goal,
)


def test_ladder_is_ascending():
    hours = [goal.hours for goal in GOAL_LADDER]
    assert hours == [24, 72, 168, 240, 336, 720, 2160, 4320, 8760, 43800]


def test_auto_select_without_goal():
    selection = select_goal(30)
    assert selection.goal.name == "3 Days"
    assert selection.progress_percent == pytest.approx(41.67, abs=0.01)
    assert selection.advanced


def test_pinned_past_top():
    selection = select_goal(50000)
    assert selection.goal.name == "5 Years"
    assert selection.progress_percent == 100


def test_pinned_goal_is_not_advanced_again():
    selection = select_goal(50000, find_goal("5 Years"))
    assert selection.goal.name == "5 Years"
    assert not selection.advanced


def test_active_goal_is_kept():
    selection = select_goal(30, Goal("1 Week", 168))
    assert selection.goal.name == "1 Week"
    assert selection.progress_percent == pytest.approx(30 / 168 * 100)
    assert not selection.advanced


def test_reached_goal_advances():
    selection = select_goal(80, find_goal("3 Days"))
    assert selection.goal.name == "1 Week"
    assert selection.advanced


def test_goal_states():
    assert goal_state(10, None) is GoalState.NO_GOAL_SELECTED
    assert goal_state(10, find_goal("24 Hours")) is GoalState.ACTIVE
    assert goal_state(24, find_goal("24 Hours")) is GoalState.COMPLETED


def test_goal_options_mark_reached_entries():
    options = goal_options(100)
    assert [o["completed"] for o in options[:3]] == [True, True, False]
    assert options[0]["progressPercent"] == 100
    assert options[2]["selectable"]


def test_manual_goal_accepts_unreached():
    assert validate_manual_goal("1 Week", 168, 30) == find_goal("1 Week")


def test_manual_goal_rejects_reached():
    with pytest.raises(ValidationError):
        validate_manual_goal("24 Hours", 24, 30)


def test_manual_goal_rejects_unknown():
    with pytest.raises(ValidationError):
        validate_manual_goal("2 Days", 48, 0)
    with pytest.raises(ValidationError):
        validate_manual_goal("1 Week", 100, 0)


def test_manual_goal_allows_pinned_top():
    assert validate_manual_goal("5 Years", 43800, 50000).name == "5 Years"
