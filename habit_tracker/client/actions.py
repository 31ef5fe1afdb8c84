import logging

logger = logging.getLogger(__name__)


def toggle_day(client, state, activity_id, day, completed):
    """Mark a habit day complete or incomplete and fold the result into state."""
    if not state.begin_submission(activity_id, day):
        logger.debug(f"Toggle for activity {activity_id} on {day} already in flight")
        return None
    try:
        response = client.set_day_status(activity_id, day, completed)
    finally:
        state.end_submission(activity_id, day)
    state.apply_day_status(activity_id, response)
    return response


def adjust_day(client, state, activity_id, day, delta):
    """Add or remove entries on a multi-entry habit day.

    Deltas are not idempotent on the server, so a second submit for the same
    day is dropped while the first is still pending.
    """
    if delta == 0:
        return None
    activity = state.activities.get(activity_id)
    if activity is None or not activity.get("allow_multiple_entries_per_day"):
        return None
    if delta < 0 and _cached_count(activity, day) <= 0:
        return None
    if not state.begin_submission(activity_id, day):
        logger.debug(f"Adjust for activity {activity_id} on {day} already in flight")
        return None
    try:
        response = client.adjust_day_count(activity_id, day, delta)
    finally:
        state.end_submission(activity_id, day)
    state.apply_day_status(activity_id, response)
    return response


def refresh_activity(client, state, activity_id):
    """Reload one activity; the result is dropped if the view moved on."""
    activity = client.get_activity(activity_id)
    if not state.is_current(activity_id):
        logger.debug(f"Discarding stale response for activity {activity_id}")
        return None
    state.replace_activity(activity)
    return activity


def _cached_count(activity, day):
    for entry in (activity.get("weekly_log") or {}).get("days") or []:
        if entry["date"] == day:
            return entry.get("count", 0)
    # Outside the cached week: let the server decide
    return 1
