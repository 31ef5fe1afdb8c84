from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .dates import as_utc, isoformat_utc, parse_timestamp, utcnow
from .goals import Goal, goal_options, select_goal


@dataclass
class TimeDisplay:
    time_string: str
    progress_percent: float
    current_goal: Goal
    total_hours: float
    anchor: Optional[datetime] = None
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    goal_advanced: bool = field(default=False, repr=False)

    def to_dict(self, include_options=False):
        data = {
            "timeString": self.time_string,
            "progressPercent": round(self.progress_percent, 2),
            "currentGoal": self.current_goal.name,
            "currentGoalHours": self.current_goal.hours,
            "totalHours": self.total_hours,
            "anchor": isoformat_utc(self.anchor),
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
        }
        if include_options:
            data["goalOptions"] = goal_options(self.total_hours)
        return data


def resolve_anchor(created_at, last_event_timestamp=None):
    """Last slip-up, or the activity's creation when nothing was logged."""
    anchor = last_event_timestamp if last_event_timestamp is not None else created_at
    return parse_timestamp(anchor)


def elapsed_seconds(anchor, now=None):
    now = as_utc(now) if now is not None else utcnow()
    seconds = int((now - as_utc(anchor)).total_seconds())
    return max(seconds, 0)


def split_elapsed(total_seconds):
    minutes, seconds = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    return days, hours, minutes, seconds


def format_elapsed(total_seconds):
    """``"1d 2h 3m 4s"`` with leading zero units dropped."""
    days, hours, minutes, seconds = split_elapsed(total_seconds)
    if days:
        return f"{days}d {hours}h {minutes}m {seconds}s"
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def compute_time_display(anchor, now=None, selected_goal=None):
    total_seconds = elapsed_seconds(anchor, now)
    total_hours = total_seconds / 3600
    selection = select_goal(total_hours, selected_goal)
    days, hours, minutes, seconds = split_elapsed(total_seconds)
    return TimeDisplay(
        time_string=format_elapsed(total_seconds),
        progress_percent=selection.progress_percent,
        current_goal=selection.goal,
        total_hours=total_hours,
        anchor=as_utc(anchor),
        days=days,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        goal_advanced=selection.advanced,
    )
