import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from .dates import day_range
from .errors import ValidationError

WEEK_LENGTH = 7


@dataclass
class WeeklyDay:
    date: date
    count: int = 0
    in_month: bool = True

    @property
    def completed(self):
        return self.count > 0

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "completed": self.completed,
            "count": self.count,
        }

    def to_calendar_dict(self):
        data = self.to_dict()
        data["in_month"] = self.in_month
        return data


def week_window(end_day, days=WEEK_LENGTH):
    return list(day_range(end_day - timedelta(days=days - 1), end_day))


def build_weekly_log(counts, end_day, days=WEEK_LENGTH):
    """One WeeklyDay per date of the trailing window ending at ``end_day``.

    ``counts`` maps date -> number of events; missing dates count as zero.
    """
    return [WeeklyDay(date=day, count=counts.get(day, 0)) for day in week_window(end_day, days)]


def weekly_log_for(store, activity_id, end_day, days=WEEK_LENGTH):
    window = week_window(end_day, days)
    counts = store.count_by_day(activity_id, window[0], window[-1])
    return build_weekly_log(counts, end_day, days)


def month_grid(counts, year, month, first_weekday=calendar.MONDAY):
    """Calendar weeks covering the month, padded with adjacent-month days."""
    weeks = calendar.Calendar(firstweekday=first_weekday).monthdatescalendar(year, month)
    return [
        [WeeklyDay(date=day, count=counts.get(day, 0), in_month=day.month == month) for day in week]
        for week in weeks
    ]


def month_grid_for(store, activity_id, year, month):
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 1 <= year <= 9998:
        raise ValidationError("Year is out of range")
    weeks = calendar.Calendar(firstweekday=calendar.MONDAY).monthdatescalendar(year, month)
    counts = store.count_by_day(activity_id, weeks[0][0], weeks[-1][-1])
    return month_grid(counts, year, month)
