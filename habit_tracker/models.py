from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy
from .dates import isoformat_utc

db = SQLAlchemy()

ACTIVITY_TYPES = ("habit", "quit")
DEFAULT_COLOR = "#6366f1"
DEFAULT_ABSTINENCE_TEXT = "Abstinence time"


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password = db.Column(db.String(120), nullable=False)
    default_abstinence_text = db.Column(db.String(100), nullable=False, default=DEFAULT_ABSTINENCE_TEXT)
    timezone = db.Column(db.String(64), nullable=True)  # IANA name, e.g. "Europe/Berlin"
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    activities = db.relationship("Activity", backref="user", lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "default_abstinence_text": self.default_abstinence_text,
            "timezone": self.timezone,
        }


class Activity(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(10), nullable=False)  # "habit" or "quit"
    color = db.Column(db.String(20), nullable=False, default=DEFAULT_COLOR)
    icon = db.Column(db.String(20))
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    archived = db.Column(db.Boolean, nullable=False, default=False)
    allow_multiple_entries_per_day = db.Column(db.Boolean, nullable=False, default=False)
    selected_goal_name = db.Column(db.String(50))
    selected_goal_hours = db.Column(db.Float)
    abstinence_text = db.Column(db.String(100))
    use_default_abstinence_text = db.Column(db.Boolean, nullable=False, default=True)
    events = db.relationship("Event", backref="activity", lazy=True, cascade="all, delete-orphan")

    @property
    def is_habit(self):
        return self.type == "habit"

    @property
    def is_quit(self):
        return self.type == "quit"

    @property
    def abstinence_label(self):
        if not self.use_default_abstinence_text and self.abstinence_text:
            return self.abstinence_text
        return self.user.default_abstinence_text or DEFAULT_ABSTINENCE_TEXT

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "type": self.type,
            "color": self.color,
            "icon": self.icon,
            "created_at": isoformat_utc(self.created_at),
            "archived": self.archived,
            "allow_multiple_entries_per_day": self.allow_multiple_entries_per_day,
            "selected_goal_name": self.selected_goal_name,
            "selected_goal_hours": self.selected_goal_hours,
            "abstinence_text": self.abstinence_label if self.is_quit else None,
            "use_default_abstinence_text": self.use_default_abstinence_text,
        }


class Event(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(db.Integer, db.ForeignKey("activity.id"), nullable=False, index=True)
    timestamp = db.Column(db.DateTime, nullable=False, index=True)  # naive UTC
    note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "activity_id": self.activity_id,
            "timestamp": isoformat_utc(self.timestamp),
            "note": self.note,
        }
