"""Client-side application state.

Everything the views render from lives on one ``AppState`` that is passed
around explicitly; derived values (timers, progress) are recomputed from it.
"""

import threading
from dataclasses import dataclass, field
from typing import Optional

from ..goals import stored_goal


@dataclass
class AppState:
    user: Optional[dict] = None
    activities: dict = field(default_factory=dict)
    current_activity_id: Optional[int] = None
    _in_flight: set = field(default_factory=set, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def load(self, activities):
        with self._lock:
            self.activities = {activity["id"]: dict(activity) for activity in activities}
            if self.current_activity_id not in self.activities:
                self.current_activity_id = None

    def replace_activity(self, activity):
        with self._lock:
            self.activities[activity["id"]] = dict(activity)

    def clear(self):
        with self._lock:
            self.user = None
            self.activities = {}
            self.current_activity_id = None
            self._in_flight.clear()

    def show(self, activity_id):
        self.current_activity_id = activity_id

    def is_current(self, activity_id):
        """Guard for late responses: is this activity still on screen?"""
        return self.current_activity_id == activity_id

    def quit_activities(self):
        with self._lock:
            return [a for a in self.activities.values() if a.get("type") == "quit"]

    def selected_goal(self, activity_id):
        activity = self.activities.get(activity_id) or {}
        return stored_goal(activity.get("selected_goal_name"), activity.get("selected_goal_hours"))

    def set_selected_goal(self, activity_id, goal):
        with self._lock:
            activity = self.activities.get(activity_id)
            if activity is not None:
                activity["selected_goal_name"] = goal.name
                activity["selected_goal_hours"] = goal.hours

    def begin_submission(self, activity_id, day):
        """Claim the (activity, day) slot; False while another submit is pending."""
        key = (activity_id, day)
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def end_submission(self, activity_id, day):
        with self._lock:
            self._in_flight.discard((activity_id, day))

    def apply_day_status(self, activity_id, payload):
        """Fold a day-status response into the cached weekly log and stats."""
        with self._lock:
            activity = self.activities.get(activity_id)
            if activity is None:
                return False
            if "statistics" in payload:
                activity["statistics"] = {**activity.get("statistics", {}), **payload["statistics"]}
            days = (activity.get("weekly_log") or {}).get("days") or []
            for day in days:
                if day["date"] == payload["date"]:
                    day["count"] = payload["count"]
                    day["completed"] = payload["completed"]
            return True
