import os

from . import app, db

if __name__ == "__main__":
    # Create database tables
    with app.app_context():
        db.create_all()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)))
