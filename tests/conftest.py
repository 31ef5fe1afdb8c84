import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["DEFAULT_TIMEZONE"] = "UTC"

import pytest

from habit_tracker import app as flask_app, db
from habit_tracker.models import Activity, User


@pytest.fixture
def app():
    flask_app.config["TESTING"] = True
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, username="alice", password="secret123", **extra):
    response = client.post("/api/register", json={"username": username, "password": password, **extra})
    assert response.status_code == 201, response.get_json()
    return {"Authorization": f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def headers(client):
    return register(client)


def create_activity(client, headers, **fields):
    payload = {"name": "Read", "type": "habit", **fields}
    response = client.post("/api/activities", json=payload, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["activity"]


@pytest.fixture
def user(app):
    user = User(username="bob", password="x")
    db.session.add(user)
    db.session.commit()
    return user


def make_activity(user, **fields):
    activity = Activity(user_id=user.id, name=fields.pop("name", "Run"), type=fields.pop("type", "habit"), **fields)
    db.session.add(activity)
    db.session.commit()
    return activity
