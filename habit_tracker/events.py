import logging
from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from . import app, db
from .auth import get_owned_activity, token_required, user_zone
from .dates import day_bounds, local_today, parse_timestamp, to_storage, utcnow
from .errors import NotFoundError, ValidationError
from .event_store import EventStore
from .models import Activity, Event

logger = logging.getLogger(__name__)


def _owned_event(user, event_id):
    event = Event.query.join(Activity).filter(Event.id == event_id, Activity.user_id == user.id).first()
    if event is None:
        raise NotFoundError("Event not found or you do not have permission to access it")
    return event


def _with_activity(event):
    data = event.to_dict()
    activity = event.activity
    data["activity"] = {
        "id": activity.id,
        "name": activity.name,
        "type": activity.type,
        "color": activity.color,
        "icon": activity.icon
    }
    return data


def _pagination():
    try:
        limit = int(request.args["limit"]) if request.args.get("limit") else None
        offset = int(request.args.get("offset", 0))
    except ValueError:
        raise ValidationError("limit and offset must be integers") from None
    if limit is not None and limit < 1:
        raise ValidationError("limit must be at least 1")
    if offset < 0:
        raise ValidationError("offset must not be negative")
    return limit, offset


@app.route("/api/events", methods=["GET"])
@token_required
def list_events(user):
    limit, offset = _pagination()
    activity_id = request.args.get("activity_id")
    include_activity = request.args.get("include_activity") == "true"
    query = Event.query.join(Activity).filter(Activity.user_id == user.id)

    if request.args.get("today") == "true":
        zone = user_zone(user)
        start, end = day_bounds(local_today(zone), zone)
        query = query.filter(Activity.archived.is_(False),
                             Event.timestamp >= to_storage(start), Event.timestamp < to_storage(end))
        include_activity = True
    elif activity_id:
        activity = get_owned_activity(user, activity_id)
        query = query.filter(Event.activity_id == activity.id)
    elif include_activity:
        query = query.filter(Activity.archived.is_(False))

    query = query.order_by(Event.timestamp.desc(), Event.id.desc())
    if limit is not None:
        query = query.limit(limit).offset(offset)
    try:
        events = query.all()
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching events: {str(e)}")
        return jsonify({"message": "Failed to get events"}), 500
    logger.debug(f"Fetched {len(events)} events for user {user.username}")
    return jsonify({
        "events": [_with_activity(event) if include_activity else event.to_dict() for event in events],
        "pagination": {"limit": limit, "offset": offset, "hasMore": len(events) == limit} if limit is not None else None
    }), 200


@app.route("/api/events/<int:id>", methods=["GET"])
@token_required
def get_event(user, id):
    return jsonify({"event": _owned_event(user, id).to_dict()}), 200


@app.route("/api/events", methods=["POST"])
@token_required
def create_event(user):
    data = request.get_json(silent=True) or {}
    logger.debug(f"Create event payload: {data}")
    if not data.get("activity_id"):
        return jsonify({"message": "Activity ID is required"}), 400
    activity = get_owned_activity(user, data["activity_id"])
    # Retroactive logs carry their own timestamp
    timestamp = parse_timestamp(data["timestamp"]) if data.get("timestamp") else utcnow()
    store = EventStore(user_zone(user))
    try:
        event = store.insert_event(activity.id, timestamp, data.get("note"))
        db.session.commit()
        logger.info(f"Event logged for activity {activity.id} by user {user.username}")
        return jsonify({"message": "Event logged successfully", "event": event.to_dict()}), 201
    except SQLAlchemyError as e:
        logger.error(f"Database error logging event: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to log event"}), 500


@app.route("/api/events/quick-log", methods=["POST"])
@token_required
def quick_log(user):
    data = request.get_json(silent=True) or {}
    if not data.get("activity_id"):
        return jsonify({"message": "Activity ID is required"}), 400
    activity = get_owned_activity(user, data["activity_id"])
    store = EventStore(user_zone(user))
    try:
        event = store.insert_event(activity.id, utcnow())
        db.session.commit()
        logger.info(f"Quick log for activity {activity.id} by user {user.username}")
        return jsonify({
            "message": "Event logged successfully",
            "event": event.to_dict(),
            "activity": activity.to_dict()
        }), 201
    except SQLAlchemyError as e:
        logger.error(f"Database error on quick log: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to log event"}), 500


@app.route("/api/events/<int:id>", methods=["PUT"])
@token_required
def update_event(user, id):
    event = _owned_event(user, id)
    data = request.get_json(silent=True) or {}
    logger.debug(f"Update event {id} payload: {data}")
    if data.get("timestamp"):
        event.timestamp = to_storage(parse_timestamp(data["timestamp"]))
    if "note" in data:
        event.note = data["note"]
    try:
        db.session.commit()
        logger.info(f"Event {id} updated by user {user.username}")
        return jsonify({"message": "Event updated successfully", "event": event.to_dict()}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error updating event: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to update event"}), 500


@app.route("/api/events/<int:id>", methods=["DELETE"])
@token_required
def delete_event(user, id):
    event = _owned_event(user, id)
    store = EventStore(user_zone(user))
    try:
        store.delete_events([event.id])
        db.session.commit()
        logger.info(f"Event {id} deleted by user {user.id}")
        return jsonify({"message": "Event deleted successfully"}), 200
    except SQLAlchemyError as e:
        logger.error(f"Error deleting event {id}: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to delete event"}), 500


@app.route("/api/events/activity/<int:activity_id>/range", methods=["GET"])
@token_required
def get_events_in_range(user, activity_id):
    activity = get_owned_activity(user, activity_id)
    start_date = request.args.get("start_date")
    end_date = request.args.get("end_date")
    if not start_date or not end_date:
        return jsonify({"message": "start_date and end_date are required"}), 400
    start = parse_timestamp(start_date)
    end = parse_timestamp(end_date)
    if start > end:
        raise ValidationError("start_date must not be after end_date")
    events = EventStore(user_zone(user)).list_events_between(activity.id, start, end)
    return jsonify({
        "activity_id": activity.id,
        "start_date": start_date,
        "end_date": end_date,
        "events": [event.to_dict() for event in events]
    }), 200
