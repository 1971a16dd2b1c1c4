"""
API gateway: combines the users and events blueprints.
This is the local entrypoint for development.
"""

from flask import Flask, jsonify
from flask_cors import CORS
from typing import Callable, Optional
from datetime import datetime
import os
import logging
from dotenv import load_dotenv

from backend.common.app_context import REPOSITORY_KEY, CLOCK_KEY, utc_now

load_dotenv()

# Basic console logging during API requests
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(levelname)s] %(asctime)s - %(message)s",
)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",  # Vite default port
    "http://localhost:5174",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def cors_origins() -> list:
    configured = os.getenv("CORS_ORIGINS", "")
    origins = [o.strip() for o in configured.split(",") if o.strip()]
    return origins or DEFAULT_CORS_ORIGINS


def create_app(repository=None, clock: Optional[Callable[[], datetime]] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        repository: Storage repository shared by all requests. Defaults to
            a PostgresRepository on DATABASE_URL.
        clock (callable, optional): Returns the current aware datetime.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    CORS(app, resources={
        r"/*": {
            "origins": cors_origins(),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
            "supports_credentials": True
        }
    })

    if repository is None:
        from backend.database.repository import PostgresRepository
        repository = PostgresRepository()

    app.extensions[REPOSITORY_KEY] = repository
    app.extensions[CLOCK_KEY] = clock or utc_now

    # --- REGISTER BLUEPRINTS ---
    from backend.auth_service.routes import auth_bp
    from backend.events_service.routes import events_bp

    app.register_blueprint(auth_bp, url_prefix="/users")
    app.register_blueprint(events_bp, url_prefix="/events")

    logging.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"message": "Event registration API is running"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    # --- ERROR HANDLERS ---
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"success": False, "error": "NOT_FOUND", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({"success": False, "error": "METHOD_NOT_ALLOWED", "message": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logging.error(f"Unhandled error: {error}")
        return jsonify({"success": False, "error": "INTERNAL", "message": "Internal server error"}), 500

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("GATEWAY_PORT", 5050))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG") == "1")
