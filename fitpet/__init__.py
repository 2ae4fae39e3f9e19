# backend/fitpet/__init__.py

import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager

from config import Config

db = SQLAlchemy()
jwt = JWTManager()

# BIGINT ids, but sqlite only autoincrements INTEGER PRIMARY KEY
BigId = db.BigInteger().with_variant(db.Integer(), "sqlite")


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger("fitpet").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    from .clock import Clock
    from .errors import FitPetError

    # One clock per app; every service takes it explicitly
    app.clock = Clock(app.config.get("TIMEZONE") or None)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)

    # CORS: allow the mobile app (and others) to call /api/*
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # -----------------------------
    # JWT error handlers
    # -----------------------------
    @jwt.unauthorized_loader
    def unauthorized_callback(reason):
        return (
            jsonify(
                {
                    "message": "Missing or invalid auth token",
                    "error": reason,
                }
            ),
            401,
        )

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return (
            jsonify(
                {
                    "message": "Invalid auth token",
                    "error": reason,
                }
            ),
            422,
        )

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"message": "Token has expired"}), 401

    # -----------------------------
    # Service errors -> JSON
    # -----------------------------
    @app.errorhandler(FitPetError)
    def handle_service_error(err):
        if err.status_code >= 500:
            app.logger.error("Service error: %s", err.message)
        return jsonify(err.to_dict()), err.status_code

    # -----------------------------
    # IMPORT BLUEPRINTS (all routes)
    # -----------------------------
    from .routes.auth_routes import auth_bp
    from .routes.pet_routes import pet_bp
    from .routes.schedule_routes import schedule_bp
    from .routes.workout_routes import plans_bp, workout_logs_bp
    from .routes.debug_routes import debug_bp

    # -----------------------------
    # REGISTER BLUEPRINTS
    # -----------------------------
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(pet_bp, url_prefix="/api/pet")
    app.register_blueprint(schedule_bp, url_prefix="/api/schedule")
    app.register_blueprint(plans_bp, url_prefix="/api/workout-plans")
    app.register_blueprint(workout_logs_bp, url_prefix="/api/workout-logs")
    if app.config.get("DEBUG_TIME_CONTROL"):
        app.register_blueprint(debug_bp, url_prefix="/api/debug")

    @app.route("/api/health")
    def health():
        return {"status": "ok"}

    # -----------------------------
    # Jobs: `flask jobs ...` + optional in-process scheduler
    # -----------------------------
    from .jobs import JobScheduler, jobs_cli

    app.cli.add_command(jobs_cli)
    app.scheduler = JobScheduler(app)

    # -----------------------------
    # DB init
    # -----------------------------
    from . import models  # noqa: F401

    with app.app_context():
        db.create_all()

    if app.config.get("SCHEDULER_ENABLED"):
        app.scheduler.start()

    return app
