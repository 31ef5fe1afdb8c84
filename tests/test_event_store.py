from datetime import date, datetime, timezone

from conftest import make_activity
from habit_tracker import db
from habit_tracker.dates import get_zone
from habit_tracker.event_store import EventStore
from habit_tracker.weekly import weekly_log_for


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_dates_follow_owner_timezone(user):
    habit = make_activity(user)
    store = EventStore(get_zone("America/Los_Angeles"))
    # 03:00 UTC on the 10th is still the 9th in Los Angeles
    store.insert_event(habit.id, utc(2024, 3, 10, 3))
    store.insert_event(habit.id, utc(2024, 3, 10, 20))
    store.insert_event(habit.id, utc(2024, 3, 10, 21))
    db.session.commit()
    assert store.list_event_dates(habit.id) == [date(2024, 3, 10), date(2024, 3, 9)]
    assert store.count_events(habit.id, date(2024, 3, 10)) == 2
    assert store.count_events(habit.id, date(2024, 3, 9)) == 1


def test_delete_for_empty_day_is_zero(user):
    habit = make_activity(user)
    store = EventStore(get_zone("UTC"))
    assert store.delete_events_for_day(habit.id, date(2024, 1, 1)) == 0
    assert store.delete_events([]) == 0


def test_events_scoped_to_activity(user):
    first = make_activity(user)
    second = make_activity(user, name="Swim")
    store = EventStore(get_zone("UTC"))
    store.insert_event(first.id, utc(2024, 1, 1, 9))
    store.insert_event(second.id, utc(2024, 1, 1, 9))
    db.session.commit()
    assert store.delete_events_for_day(first.id, date(2024, 1, 1)) == 1
    assert store.total_events(second.id) == 1


def test_weekly_log_from_store(user):
    habit = make_activity(user, allow_multiple_entries_per_day=True)
    store = EventStore(get_zone("UTC"))
    store.insert_event(habit.id, utc(2024, 1, 6, 9))
    store.insert_event(habit.id, utc(2024, 1, 6, 10), note="again")
    store.insert_event(habit.id, utc(2023, 12, 31, 9))
    db.session.commit()
    log = weekly_log_for(store, habit.id, date(2024, 1, 7))
    assert [day.count for day in log] == [0, 0, 0, 0, 0, 2, 0]


def test_first_and_last_event(user):
    habit = make_activity(user)
    store = EventStore(get_zone("UTC"))
    store.insert_event(habit.id, utc(2024, 1, 3))
    store.insert_event(habit.id, utc(2024, 1, 1))
    db.session.commit()
    assert store.first_event(habit.id).timestamp == datetime(2024, 1, 1)
    assert store.last_event(habit.id).timestamp == datetime(2024, 1, 3)
