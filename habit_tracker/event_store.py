import logging
from collections import Counter

from .dates import as_utc, day_bounds, local_date, to_storage
from .models import db, Event

logger = logging.getLogger(__name__)


class EventStore:
    """Event log queries bucketed by the owner's calendar day.

    Mutations only flush; the caller commits so that a write and the recount
    that follows it land in the same transaction.
    """

    def __init__(self, zone, session=None):
        self.zone = zone
        self.session = session or db.session

    def _query(self, activity_id):
        return self.session.query(Event).filter(Event.activity_id == activity_id)

    def _day_filter(self, query, day):
        start, end = day_bounds(day, self.zone)
        return query.filter(Event.timestamp >= to_storage(start), Event.timestamp < to_storage(end))

    def list_event_dates(self, activity_id):
        """Distinct local dates with at least one event, most recent first."""
        rows = self._query(activity_id).with_entities(Event.timestamp).all()
        dates = {local_date(timestamp, self.zone) for (timestamp,) in rows}
        return sorted(dates, reverse=True)

    def count_events(self, activity_id, day):
        return self._day_filter(self._query(activity_id), day).count()

    def list_events(self, activity_id, day):
        """Events on ``day``, earliest created first."""
        query = self._day_filter(self._query(activity_id), day)
        return query.order_by(Event.created_at.asc(), Event.id.asc()).all()

    def list_events_between(self, activity_id, start, end):
        query = self._query(activity_id).filter(
            Event.timestamp >= to_storage(start),
            Event.timestamp <= to_storage(end),
        )
        return query.order_by(Event.timestamp.desc()).all()

    def count_by_day(self, activity_id, first_day, last_day):
        """Map of local date -> event count for the inclusive day range."""
        start, _ = day_bounds(first_day, self.zone)
        _, end = day_bounds(last_day, self.zone)
        rows = self._query(activity_id).with_entities(Event.timestamp).filter(
            Event.timestamp >= to_storage(start),
            Event.timestamp < to_storage(end),
        ).all()
        return Counter(local_date(timestamp, self.zone) for (timestamp,) in rows)

    def total_events(self, activity_id):
        return self._query(activity_id).count()

    def last_event(self, activity_id):
        return self._query(activity_id).order_by(Event.timestamp.desc(), Event.id.desc()).first()

    def first_event(self, activity_id):
        return self._query(activity_id).order_by(Event.timestamp.asc(), Event.id.asc()).first()

    def insert_event(self, activity_id, timestamp, note=None):
        event = Event(activity_id=activity_id, timestamp=to_storage(as_utc(timestamp)), note=note)
        self.session.add(event)
        self.session.flush()
        logger.debug(f"Inserted event {event.id} for activity {activity_id} at {event.timestamp}")
        return event

    def delete_events(self, ids):
        ids = list(ids)
        if not ids:
            return 0
        deleted = self.session.query(Event).filter(Event.id.in_(ids)).delete(synchronize_session="fetch")
        logger.debug(f"Deleted {deleted} events by id")
        return deleted

    def delete_events_for_day(self, activity_id, day):
        """Single-statement delete of every event on ``day``; 0 when empty."""
        deleted = self._day_filter(self._query(activity_id), day).delete(synchronize_session="fetch")
        logger.debug(f"Deleted {deleted} events for activity {activity_id} on {day}")
        return deleted

