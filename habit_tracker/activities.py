import logging
from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from . import app, db
from .abstinence import compute_time_display, resolve_anchor
from .auth import get_owned_activity, token_required, user_zone
from .dates import isoformat_utc, local_today, parse_day, utcnow
from .errors import ValidationError
from .event_store import EventStore
from .goals import goal_options, stored_goal, validate_manual_goal
from .models import Activity, ACTIVITY_TYPES, DEFAULT_COLOR
from .reconciler import DayStatusReconciler, parse_day_status_request
from .streaks import calculate_streaks
from .weekly import month_grid_for, weekly_log_for

logger = logging.getLogger(__name__)


def activity_statistics(store, activity, now=None):
    first = store.first_event(activity.id)
    last = store.last_event(activity.id)
    streaks = calculate_streaks(
        store.list_event_dates(activity.id),
        local_today(store.zone, now),
        total_events=store.total_events(activity.id),
    )
    statistics = streaks.to_dict()
    statistics["firstEvent"] = isoformat_utc(first.timestamp) if first else None
    statistics["lastEvent"] = isoformat_utc(last.timestamp) if last else None
    return statistics


def persist_selected_goal(activity, goal):
    """Best-effort write of an auto-advanced goal; never fails the request."""
    try:
        activity.selected_goal_name = goal.name
        activity.selected_goal_hours = goal.hours
        db.session.commit()
        logger.info(f"Goal for activity {activity.id} advanced to {goal.name}")
    except SQLAlchemyError as e:
        logger.error(f"Error auto-updating goal for activity {activity.id}: {str(e)}")
        db.session.rollback()


def quit_time_display(store, activity, now=None, persist=True):
    last = store.last_event(activity.id)
    anchor = resolve_anchor(activity.created_at, last.timestamp if last else None)
    selected = stored_goal(activity.selected_goal_name, activity.selected_goal_hours)
    display = compute_time_display(anchor, now, selected)
    if display.goal_advanced and persist:
        persist_selected_goal(activity, display.current_goal)
    return display


def serialize_activity(activity, store, now=None, include_stats=False, include_last_event=False,
                       include_weekly=False, include_time=False):
    data = activity.to_dict()
    if include_stats:
        data["statistics"] = activity_statistics(store, activity, now)
    if include_last_event:
        last = store.last_event(activity.id)
        data["lastEvent"] = {"timestamp": isoformat_utc(last.timestamp), "note": last.note} if last else None
    if include_weekly and activity.is_habit:
        days = weekly_log_for(store, activity.id, local_today(store.zone, now))
        data["weekly_log"] = {"days": [day.to_dict() for day in days]}
    if include_time and activity.is_quit:
        data["time_display"] = quit_time_display(store, activity, now).to_dict(include_options=True)
        # The goal may just have been advanced
        data["selected_goal_name"] = activity.selected_goal_name
        data["selected_goal_hours"] = activity.selected_goal_hours
    return data


def _flag(name):
    return request.args.get(name, "false").lower() == "true"


def _validate_name(name):
    if not isinstance(name, str) or not 1 <= len(name.strip()) <= 100:
        raise ValidationError("Name must be between 1 and 100 characters")
    return name.strip()


def _apply_abstinence_text(activity, data):
    if data.get("use_default_abstinence_text"):
        activity.abstinence_text = None
        activity.use_default_abstinence_text = True
    elif data.get("abstinence_text"):
        activity.abstinence_text = data["abstinence_text"].strip()[:100]
        activity.use_default_abstinence_text = False


@app.route("/api/activities", methods=["GET"])
@token_required
def list_activities(user):
    store = EventStore(user_zone(user))
    now = utcnow()
    try:
        activities = Activity.query.filter_by(user_id=user.id, archived=False).order_by(
            Activity.created_at.desc(), Activity.id.desc()).all()
        logger.debug(f"Fetched {len(activities)} activities for user {user.username}")
        return jsonify({"activities": [
            serialize_activity(
                activity, store, now,
                include_stats=_flag("include_stats"),
                include_last_event=_flag("include_last_event"),
                include_weekly=_flag("include_weekly"),
                include_time=_flag("include_time"),
            ) for activity in activities
        ]}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching activities: {str(e)}")
        return jsonify({"message": "Failed to fetch activities"}), 500


@app.route("/api/activities", methods=["POST"])
@token_required
def create_activity(user):
    data = request.get_json(silent=True) or {}
    logger.debug(f"Create activity payload: {data}")
    if not data.get("name") or not data.get("type"):
        return jsonify({"message": "Name and type are required"}), 400
    if data["type"] not in ACTIVITY_TYPES:
        return jsonify({"message": 'Type must be either "habit" or "quit"'}), 400
    name = _validate_name(data["name"])
    activity = Activity(
        user_id=user.id,
        name=name,
        type=data["type"],
        color=data.get("color") or DEFAULT_COLOR,
        icon=data.get("icon"),
        allow_multiple_entries_per_day=data["type"] == "habit" and bool(data.get("allow_multiple_entries_per_day")),
    )
    if activity.type == "quit":
        _apply_abstinence_text(activity, data)
    try:
        db.session.add(activity)
        db.session.commit()
        logger.info(f"Activity created: {name} ({activity.type}) for user {user.username}")
        return jsonify({"message": "Activity created successfully", "activity": activity.to_dict()}), 201
    except SQLAlchemyError as e:
        logger.error(f"Database error creating activity: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to create activity"}), 500


@app.route("/api/activities/<int:id>", methods=["GET"])
@token_required
def get_activity(user, id):
    activity = get_owned_activity(user, id)
    store = EventStore(user_zone(user))
    try:
        data = serialize_activity(activity, store, utcnow(), include_stats=True, include_last_event=True,
                                  include_weekly=True, include_time=True)
        return jsonify({"activity": data}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching activity {id}: {str(e)}")
        return jsonify({"message": "Failed to fetch activity"}), 500


@app.route("/api/activities/<int:id>", methods=["PUT"])
@token_required
def update_activity(user, id):
    activity = get_owned_activity(user, id)
    data = request.get_json(silent=True) or {}
    logger.debug(f"Update activity {id} payload: {data}")
    if "name" in data:
        activity.name = _validate_name(data["name"])
    if "type" in data:
        if data["type"] not in ACTIVITY_TYPES:
            return jsonify({"message": 'Type must be either "habit" or "quit"'}), 400
        activity.type = data["type"]
    activity.color = data.get("color", activity.color) or DEFAULT_COLOR
    activity.icon = data.get("icon", activity.icon)
    if "allow_multiple_entries_per_day" in data:
        activity.allow_multiple_entries_per_day = bool(data["allow_multiple_entries_per_day"])
    if not activity.is_habit:
        activity.allow_multiple_entries_per_day = False
    if activity.is_quit:
        _apply_abstinence_text(activity, data)
    try:
        db.session.commit()
        logger.info(f"Activity {id} updated for user {user.username}")
        return jsonify({"message": "Activity updated successfully", "activity": activity.to_dict()}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error updating activity: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to update activity"}), 500


@app.route("/api/activities/<int:id>", methods=["DELETE"])
@token_required
def archive_activity(user, id):
    activity = get_owned_activity(user, id)
    try:
        activity.archived = True
        db.session.commit()
        logger.info(f"Activity {id} archived by user {user.id}")
        return jsonify({"message": "Activity archived successfully"}), 200
    except SQLAlchemyError as e:
        logger.error(f"Error archiving activity {id}: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to archive activity"}), 500


@app.route("/api/activities/<int:id>/restore", methods=["POST"])
@token_required
def restore_activity(user, id):
    activity = get_owned_activity(user, id, include_archived=True)
    try:
        activity.archived = False
        db.session.commit()
        logger.info(f"Activity {id} restored by user {user.id}")
        return jsonify({"message": "Activity restored successfully", "activity": activity.to_dict()}), 200
    except SQLAlchemyError as e:
        logger.error(f"Error restoring activity {id}: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to restore activity"}), 500


@app.route("/api/activities/<int:id>/stats", methods=["GET"])
@token_required
def get_activity_stats(user, id):
    activity = get_owned_activity(user, id)
    store = EventStore(user_zone(user))
    try:
        return jsonify({"activity_id": activity.id, "statistics": activity_statistics(store, activity)}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching stats for activity {id}: {str(e)}")
        return jsonify({"message": "Failed to get activity statistics"}), 500


@app.route("/api/activities/<int:id>/goals", methods=["GET"])
@token_required
def get_goal_options(user, id):
    activity = get_owned_activity(user, id)
    if not activity.is_quit:
        raise ValidationError("Goals are only available for quits")
    display = quit_time_display(EventStore(user_zone(user)), activity)
    return jsonify({
        "activity_id": activity.id,
        "currentGoal": display.current_goal.to_dict(),
        "options": goal_options(display.total_hours)
    }), 200


@app.route("/api/activities/<int:id>/goal", methods=["PATCH"])
@token_required
def update_goal(user, id):
    activity = get_owned_activity(user, id)
    if not activity.is_quit:
        raise ValidationError("Goals are only available for quits")
    data = request.get_json(silent=True) or {}
    store = EventStore(user_zone(user))
    current = quit_time_display(store, activity, persist=False)
    goal = validate_manual_goal(data.get("goal_name"), data.get("goal_hours"), current.total_hours)
    try:
        activity.selected_goal_name = goal.name
        activity.selected_goal_hours = goal.hours
        db.session.commit()
        logger.info(f"Goal for activity {id} set to {goal.name} by user {user.username}")
    except SQLAlchemyError as e:
        logger.error(f"Database error updating goal: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to update goal"}), 500
    display = quit_time_display(store, activity, persist=False)
    return jsonify({
        "message": "Goal updated successfully",
        "activity": activity.to_dict(),
        "time_display": display.to_dict()
    }), 200


@app.route("/api/activities/<int:id>/day-status", methods=["POST"])
@token_required
def set_day_status(user, id):
    activity = get_owned_activity(user, id)
    day, day_request = parse_day_status_request(request.get_json(silent=True))
    logger.debug(f"Day status request for activity {id}: {day} {day_request}")
    reconciler = DayStatusReconciler(EventStore(user_zone(user)), db.session)
    try:
        result = reconciler.reconcile(activity, day, day_request)
    except SQLAlchemyError as e:
        logger.error(f"Database error updating day status: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to update habit day"}), 500
    payload = result.to_dict()
    payload["message"] = "Marked day as complete" if result.completed else "Marked day as incomplete"
    return jsonify(payload), 200


@app.route("/api/activities/<int:id>/weekly", methods=["GET"])
@token_required
def get_weekly_log(user, id):
    activity = get_owned_activity(user, id)
    store = EventStore(user_zone(user))
    end = request.args.get("end")
    end_day = parse_day(end) if end else local_today(store.zone)
    days = weekly_log_for(store, activity.id, end_day)
    return jsonify({
        "activity_id": activity.id,
        "allow_multiple_entries_per_day": activity.allow_multiple_entries_per_day,
        "days": [day.to_dict() for day in days]
    }), 200


@app.route("/api/activities/<int:id>/calendar", methods=["GET"])
@token_required
def get_calendar(user, id):
    activity = get_owned_activity(user, id)
    store = EventStore(user_zone(user))
    today = local_today(store.zone)
    try:
        year = int(request.args.get("year", today.year))
        month = int(request.args.get("month", today.month))
    except ValueError:
        raise ValidationError("Year and month must be integers") from None
    weeks = month_grid_for(store, activity.id, year, month)
    return jsonify({
        "activity_id": activity.id,
        "year": year,
        "month": month,
        "weeks": [[day.to_calendar_dict() for day in week] for week in weeks]
    }), 200
