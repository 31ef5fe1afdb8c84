import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import requests

from ..abstinence import compute_time_display, resolve_anchor
from ..dates import utcnow
from .api import ApiError

logger = logging.getLogger(__name__)


class LiveTicker:
    """Re-derives every cached quit's timer once per interval.

    Works only from ``AppState``; the sole network call is the fire-and-forget
    write of an auto-advanced goal, which runs on a background executor.
    """

    def __init__(self, state, on_update, persist_goal=None, interval=1.0, clock=utcnow):
        self.state = state
        self.on_update = on_update
        self.persist_goal = persist_goal
        self.interval = interval
        self.clock = clock
        self._stop = threading.Event()
        self._thread = None
        self._executor = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def tick(self):
        now = self.clock()
        displays = {}
        for activity in self.state.quit_activities():
            activity_id = activity["id"]
            last_event = activity.get("lastEvent") or {}
            anchor = resolve_anchor(activity["created_at"], last_event.get("timestamp"))
            display = compute_time_display(anchor, now, self.state.selected_goal(activity_id))
            if display.goal_advanced:
                self.state.set_selected_goal(activity_id, display.current_goal)
                self._persist_later(activity_id, display.current_goal)
            displays[activity_id] = display
            self.on_update(activity_id, display)
        return displays

    def _persist_later(self, activity_id, goal):
        if self.persist_goal is None or self._stop.is_set():
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="goal-persist")
        self._executor.submit(self._persist, activity_id, goal)

    def _persist(self, activity_id, goal):
        try:
            self.persist_goal(activity_id, goal.name, goal.hours)
        except (ApiError, requests.RequestException) as e:
            # The next refresh derives the same goal again
            logger.warning(f"Error auto-updating goal for activity {activity_id}: {e}")

    def _run(self):
        while not self._stop.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Live ticker update failed")

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self.tick()
        self._thread = threading.Thread(target=self._run, name="live-ticker", daemon=True)
        self._thread.start()

    def stop(self, wait=True):
        """Cancel the tick; called on logout and view teardown."""
        self._stop.set()
        if self._thread is not None and wait:
            self._thread.join(timeout=self.interval * 2)
        self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
