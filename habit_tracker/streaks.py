from dataclasses import dataclass
from datetime import timedelta


@dataclass
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    total_events: int = 0

    def to_dict(self):
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalEvents": self.total_events,
        }


def current_streak(event_dates, today):
    """Consecutive days ending today, or yesterday when today is still open."""
    dates = set(event_dates)
    if not dates:
        return 0
    yesterday = today - timedelta(days=1)
    most_recent = max(dates)
    if most_recent != today and most_recent != yesterday:
        return 0

    day = today if today in dates else yesterday
    streak = 0
    while day in dates:
        streak += 1
        day -= timedelta(days=1)
    return streak


def longest_streak(event_dates):
    dates = sorted(set(event_dates))
    if not dates:
        return 0
    longest = 1
    running = 1
    for previous, day in zip(dates, dates[1:]):
        if (day - previous).days == 1:
            running += 1
        else:
            running = 1
        longest = max(longest, running)
    return longest


def calculate_streaks(event_dates, today, total_events=None):
    dates = set(event_dates)
    if total_events is None:
        total_events = len(dates)
    return StreakState(
        current_streak=current_streak(dates, today),
        longest_streak=longest_streak(dates),
        total_events=total_events,
    )
