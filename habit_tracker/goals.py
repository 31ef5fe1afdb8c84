"""Milestone goals for quit activities.

The ladder is fixed and shared by the server (activity detail) and the live
ticker on the client, so both always agree on which goal is current.
"""

import enum
from dataclasses import dataclass

from .errors import ValidationError


@dataclass(frozen=True)
class Goal:
    name: str
    hours: float

    def to_dict(self):
        return {"name": self.name, "hours": self.hours}


GOAL_LADDER = (
    Goal("24 Hours", 24),
    Goal("3 Days", 72),
    Goal("1 Week", 168),
    Goal("10 Days", 240),
    Goal("2 Weeks", 336),
    Goal("1 Month", 720),
    Goal("3 Months", 2160),
    Goal("6 Months", 4320),
    Goal("1 Year", 8760),
    Goal("5 Years", 43800),
)


class GoalState(enum.Enum):
    NO_GOAL_SELECTED = "no_goal_selected"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class GoalSelection:
    goal: Goal
    progress_percent: float
    # True when the goal differs from the stored selection and should be persisted
    advanced: bool = False


def find_goal(name):
    for goal in GOAL_LADDER:
        if goal.name == name:
            return goal
    return None


def progress_percent(total_hours, goal_hours):
    if not goal_hours or goal_hours <= 0:
        return 0.0
    return max(0.0, min(100.0, total_hours / goal_hours * 100))


def next_goal(total_hours):
    """First ladder entry not yet reached; the top entry once all are."""
    for goal in GOAL_LADDER:
        if total_hours < goal.hours:
            return goal
    return GOAL_LADDER[-1]


def goal_state(total_hours, selected):
    if selected is None:
        return GoalState.NO_GOAL_SELECTED
    if total_hours >= selected.hours:
        return GoalState.COMPLETED
    return GoalState.ACTIVE


def select_goal(total_hours, selected=None):
    """Pick the goal to report progress against.

    Keeps ``selected`` while it is still ahead; otherwise advances to the next
    unreached milestone (pinned to the top entry past the end of the ladder).
    """
    if goal_state(total_hours, selected) is GoalState.ACTIVE:
        return GoalSelection(selected, progress_percent(total_hours, selected.hours))
    goal = next_goal(total_hours)
    return GoalSelection(
        goal=goal,
        progress_percent=progress_percent(total_hours, goal.hours),
        advanced=goal != selected,
    )


def stored_goal(name, hours):
    if not name or not hours:
        return None
    return Goal(name, float(hours))


def goal_options(total_hours):
    """Every ladder entry with its progress; reached entries are not selectable."""
    options = []
    for goal in GOAL_LADDER:
        completed = total_hours >= goal.hours
        options.append({
            "name": goal.name,
            "hours": goal.hours,
            "completed": completed,
            "selectable": not completed,
            "progressPercent": round(progress_percent(total_hours, goal.hours), 1),
        })
    return options


def validate_manual_goal(name, hours, total_hours):
    """Resolve a user-picked goal, rejecting unknown or already reached ones."""
    if not name or hours in (None, ""):
        raise ValidationError("Goal name and hours are required")
    goal = find_goal(name)
    try:
        hours = float(hours)
    except (TypeError, ValueError):
        raise ValidationError("Goal hours must be a number") from None
    if goal is None or goal.hours != hours:
        raise ValidationError(f"Unknown goal: {name}")
    # The pinned top entry stays selectable once the whole ladder is reached
    if total_hours >= goal.hours and goal != next_goal(total_hours):
        raise ValidationError(f"Goal {name} has already been reached")
    return goal
