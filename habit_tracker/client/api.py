import logging
import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code, message):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TrackerClient:
    """Thin wrapper over the REST API using a shared requests session."""

    def __init__(self, base_url, token=None, session=None, timeout=10):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, json=None, params=None):
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.session.request(
            method, f"{self.base_url}/api{path}",
            json=json, params=params, headers=headers, timeout=self.timeout
        )
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not response.ok:
            message = data.get("message") or response.reason or "Request failed"
            logger.error(f"{method} {path} failed: {response.status_code} {message}")
            raise ApiError(response.status_code, message)
        return data

    def login(self, identifier, password):
        data = self._request("POST", "/login", json={"identifier": identifier, "password": password})
        self.token = data["token"]
        return data["user"]

    def logout(self):
        self.token = None

    def get_current_user(self):
        return self._request("GET", "/me")["user"]

    def get_activities(self, include_stats=True, include_last_event=True, include_weekly=True, include_time=False):
        params = {
            "include_stats": str(include_stats).lower(),
            "include_last_event": str(include_last_event).lower(),
            "include_weekly": str(include_weekly).lower(),
            "include_time": str(include_time).lower(),
        }
        return self._request("GET", "/activities", params=params)["activities"]

    def get_activity(self, activity_id):
        return self._request("GET", f"/activities/{activity_id}")["activity"]

    def set_day_status(self, activity_id, day, completed):
        return self._request("POST", f"/activities/{activity_id}/day-status",
                             json={"date": day, "completed": completed})

    def adjust_day_count(self, activity_id, day, delta):
        return self._request("POST", f"/activities/{activity_id}/day-status",
                             json={"date": day, "delta": delta})

    def update_activity_goal(self, activity_id, goal_name, goal_hours):
        return self._request("PATCH", f"/activities/{activity_id}/goal",
                             json={"goal_name": goal_name, "goal_hours": goal_hours})

    def quick_log(self, activity_id):
        return self._request("POST", "/events/quick-log", json={"activity_id": activity_id})

    def log_event(self, activity_id, timestamp=None, note=None):
        payload = {"activity_id": activity_id, "note": note}
        if timestamp:
            payload["timestamp"] = timestamp
        return self._request("POST", "/events", json=payload)

    def delete_event(self, event_id):
        return self._request("DELETE", f"/events/{event_id}")
