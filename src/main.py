import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from src.config import Config
from src.extensions import db, migrate

# register blueprints dynamically
from routes import register_routes

logger = logging.getLogger(__name__)


def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Enable CORS for all routes
    CORS(app, origins=app.config["CORS_ORIGINS"], methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"], allow_headers=["Content-Type", "Authorization"], supports_credentials=True)

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import all models within app context to resolve relationships
    with app.app_context():
        import models  # noqa: F401

    # register routes/blueprints
    register_routes(app)
    register_error_handlers(app)

    @app.get("/")
    def index():
        return jsonify({"message": "Hotel Billing API"}), 200

    @app.route('/api/health')
    def health():
        return jsonify({"status": "healthy"}), 200

    logger.info("Application created (database: %s)", app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1])
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=app.config["DEBUG"])
