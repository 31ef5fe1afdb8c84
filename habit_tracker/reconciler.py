"""Write path that brings a habit's events for one day in line with the
requested day state, then re-derives the day count and streaks."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Union

from .dates import local_noon, local_today, parse_day
from .errors import ValidationError
from .streaks import StreakState, calculate_streaks

logger = logging.getLogger(__name__)

# Adjusted entries sit one minute apart from local noon up to 23:59
MAX_ENTRIES_PER_DAY = 12 * 60


@dataclass(frozen=True)
class Toggle:
    completed: bool


@dataclass(frozen=True)
class Adjust:
    delta: int


DayStatusRequest = Union[Toggle, Adjust]


@dataclass
class DayStatusResult:
    date: date
    completed: bool
    count: int
    statistics: StreakState
    changed: int = 0

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "completed": self.completed,
            "count": self.count,
            "statistics": self.statistics.to_dict(),
        }


def parse_day_status_request(payload):
    """Validate ``{date, completed | delta}`` into ``(day, Toggle | Adjust)``."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    if "date" not in payload:
        raise ValidationError("Date is required")
    day = parse_day(payload["date"])

    has_completed = payload.get("completed") is not None
    has_delta = payload.get("delta") is not None
    if has_completed == has_delta:
        raise ValidationError("Provide exactly one of completed or delta")

    if has_completed:
        completed = payload["completed"]
        if not isinstance(completed, bool):
            raise ValidationError("completed must be a boolean")
        return day, Toggle(completed)

    delta = payload["delta"]
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")
    if delta == 0:
        raise ValidationError("delta must not be zero")
    return day, Adjust(delta)


class DayStatusReconciler:
    def __init__(self, store, session, now=None):
        self.store = store
        self.session = session
        self.now = now

    def reconcile(self, activity, day, request):
        self._validate(activity, request)

        if isinstance(request, Toggle):
            changed = self._toggle(activity, day, request.completed)
        else:
            changed = self._adjust(activity, day, request.delta)
        result = self.day_result(activity, day, changed)
        self.session.commit()

        if changed:
            logger.info(f"Day status for activity {activity.id} on {day}: {request} ({changed} events changed)")
        return result

    def day_result(self, activity, day, changed=0):
        count = self.store.count_events(activity.id, day)
        statistics = calculate_streaks(
            self.store.list_event_dates(activity.id),
            local_today(self.store.zone, self.now),
            total_events=self.store.total_events(activity.id),
        )
        return DayStatusResult(date=day, completed=count > 0, count=count, statistics=statistics, changed=changed)

    def _validate(self, activity, request):
        if not activity.is_habit:
            raise ValidationError("Day status can only be set for habits")
        if isinstance(request, Adjust):
            if not activity.allow_multiple_entries_per_day:
                raise ValidationError("This habit only allows one entry per day")
            if request.delta == 0:
                raise ValidationError("delta must not be zero")
        elif not isinstance(request, Toggle):
            raise ValidationError("Unsupported day status request")

    def _toggle(self, activity, day, completed):
        if not completed:
            return self.store.delete_events_for_day(activity.id, day)
        if self.store.count_events(activity.id, day) > 0:
            return 0
        self.store.insert_event(activity.id, local_noon(day, self.store.zone))
        return 1

    def _adjust(self, activity, day, delta):
        if delta > 0:
            # Continue the minute offsets after any entries already on the day
            first = self.store.count_events(activity.id, day)
            if first + delta > MAX_ENTRIES_PER_DAY:
                raise ValidationError(f"A day can hold at most {MAX_ENTRIES_PER_DAY} entries")
            for offset in range(first, first + delta):
                self.store.insert_event(activity.id, local_noon(day, self.store.zone, offset_minutes=offset))
            return delta

        existing = self.store.list_events(activity.id, day)
        to_remove = existing[:min(len(existing), -delta)]
        return self.store.delete_events(event.id for event in to_remove)
