# backend/storefront/__init__.py
from datetime import timedelta

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db
from .services.session_service import SessionStore
from .storage import Storage


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)

    # Import models so create_all() sees every table
    from . import models  # noqa: F401

    storage = Storage(db)
    app.extensions["storage"] = storage
    app.extensions["sessions"] = SessionStore(ttl=timedelta(hours=app.config["SESSION_TTL_HOURS"]))

    with app.app_context():
        db.create_all()
        if app.config["SEED_ON_STARTUP"]:
            from .seed import seed_admin, seed_catalog
            seed_catalog(storage)
            seed_admin(storage)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.catalog import catalog_bp
    from .routes.cart import cart_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"message": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "Internal server error"}), 500

    allowed_origins = {
        origin.strip()
        for origin in app.config["CORS_ALLOWED_ORIGINS"].split(",")
        if origin.strip()
    }

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, session-id"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
