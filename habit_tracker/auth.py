import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import bcrypt
import jwt
from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from . import app, db
from .dates import get_zone
from .errors import NotFoundError, ValidationError
from .models import Activity, User, DEFAULT_ABSTINENCE_TEXT

logger = logging.getLogger(__name__)


# JWT middleware
def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = request.headers.get("Authorization")
        if not token:
            logger.error("Token missing in request")
            return jsonify({"message": "Token required"}), 401
        if token.startswith("Bearer "):
            token = token[7:]
        try:
            payload = jwt.decode(token, app.config["JWT_SECRET_KEY"], algorithms=["HS256"])
            user = db.session.get(User, payload["user_id"])
            if not user:
                logger.error("User not found for token")
                return jsonify({"message": "Invalid token"}), 403
        except jwt.ExpiredSignatureError:
            logger.error("Token expired")
            return jsonify({"message": "Token expired"}), 401
        except jwt.InvalidTokenError:
            logger.error("Invalid token")
            return jsonify({"message": "Invalid token"}), 401
        return f(user, *args, **kwargs)
    return decorated


def generate_token(user_id, username):
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "username": username,
        "exp": now + timedelta(hours=app.config["JWT_EXPIRES_HOURS"]),
        "iat": now
    }
    return jwt.encode(payload, app.config["JWT_SECRET_KEY"], algorithm="HS256")


def user_zone(user):
    return get_zone(user.timezone, fallback=app.config["DEFAULT_TIMEZONE"])


def get_owned_activity(user, activity_id, include_archived=False):
    query = Activity.query.filter_by(id=activity_id, user_id=user.id)
    if not include_archived:
        query = query.filter_by(archived=False)
    activity = query.first()
    if activity is None:
        logger.error(f"Activity {activity_id} not found for user {user.id}")
        raise NotFoundError("Activity not found or you do not have permission to access it")
    return activity


# Register endpoint
@app.route("/api/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    email = data.get("email")
    password = data.get("password")
    if not username or not password:
        return jsonify({"message": "Username and password required"}), 400
    if len(password) < 6:
        return jsonify({"message": "Password must be at least 6 characters"}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({"message": "Username already exists"}), 400
    if email and User.query.filter_by(email=email).first():
        return jsonify({"message": "Email already exists"}), 400
    if data.get("timezone"):
        get_zone(data["timezone"])
    hashed_password = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    try:
        new_user = User(
            username=username,
            email=email,
            password=hashed_password.decode("utf-8"),
            timezone=data.get("timezone")
        )
        db.session.add(new_user)
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error registering user: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to register user"}), 500
    logger.info(f"User registered: {username}")
    token = generate_token(new_user.id, new_user.username)
    return jsonify({"message": "User registered", "token": token, "user": new_user.to_dict()}), 201


# Login endpoint
@app.route("/api/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    identifier = data.get("identifier") or data.get("username")  # Can be username or email
    password = data.get("password")
    if not identifier or not password:
        return jsonify({"message": "Username and password required"}), 400
    user = User.query.filter((User.username == identifier) | (User.email == identifier)).first()
    if not user or not bcrypt.checkpw(password.encode("utf-8"), user.password.encode("utf-8")):
        logger.error(f"Failed login for {identifier}")
        return jsonify({"message": "Invalid credentials"}), 401
    token = generate_token(user.id, user.username)
    return jsonify({"token": token, "user": user.to_dict()}), 200


@app.route("/api/me", methods=["GET"])
@token_required
def me(user):
    return jsonify({"user": user.to_dict()}), 200


@app.route("/api/preferences", methods=["PUT"])
@token_required
def update_preferences(user):
    data = request.get_json(silent=True) or {}
    logger.debug(f"Update preferences payload: {data}")
    if "default_abstinence_text" in data:
        text = (data["default_abstinence_text"] or "").strip()
        if not text or len(text) > 100:
            raise ValidationError("Abstinence text must be between 1 and 100 characters")
        user.default_abstinence_text = text
    if "timezone" in data:
        if data["timezone"]:
            get_zone(data["timezone"])
        user.timezone = data["timezone"] or None
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error updating preferences: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to update preferences"}), 500
    logger.info(f"Preferences updated for user {user.username}")
    return jsonify({"message": "Preferences updated", "user": user.to_dict()}), 200


@app.route("/api/preferences/restore-defaults", methods=["POST"])
@token_required
def restore_default_preferences(user):
    user.default_abstinence_text = DEFAULT_ABSTINENCE_TEXT
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error restoring preferences: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to restore preferences"}), 500
    return jsonify({"message": "Preferences restored", "user": user.to_dict()}), 200
