import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from .config import Config
from .errors import TrackerError
from .models import db

# Configure logging
logging.basicConfig(level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config.from_object(Config)
CORS(app, resources={r"/api/*": {
    "origins": app.config["FRONTEND_URL"],
    "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    "allow_headers": ["Content-Type", "Authorization"]
}})
db.init_app(app)
migrate = Migrate(app, db)


@app.errorhandler(TrackerError)
def handle_tracker_error(error):
    logger.warning(f"{type(error).__name__}: {error.message}")
    return jsonify({"message": error.message}), error.status_code


@app.route("/api/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"}), 200


# Route modules register themselves on import
from . import auth, activities, events  # noqa: E402,F401


@app.cli.command("init-db")
def init_db():
    """Create database tables."""
    db.create_all()
    logger.info("Database tables created")
