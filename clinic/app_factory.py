import logging
import os

import click
from flask import Flask, jsonify
from pydantic import ValidationError

from extensions import db, migrate
from config import DevConfig, ProdConfig
from logging_setup import setup_logger
from clinic.errors import ClinicError


logger = logging.getLogger("clinic.app")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ClinicError)
    def handle_clinic_error(err: ClinicError):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        details = [
            {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
            for e in err.errors()
        ]
        return jsonify({"error": "Validation failed", "details": details}), 400


def _register_commands(app: Flask) -> None:
    @app.cli.command("create-admin")
    @click.argument("username")
    @click.password_option()
    def create_admin_command(username, password):
        """Create an admin account for the portal."""
        from clinic.services.clinic_service import create_admin

        create_admin(username, password)
        click.echo(f"Admin {username} created.")


def create_app(config_object=None) -> Flask:
    """Initialize Flask app with DB + configuration."""
    app = Flask(__name__)

    if config_object is not None:
        app.config.from_object(config_object)
    elif os.getenv("FLASK_ENV") == "production":
        app.config.from_object(ProdConfig)
    else:
        app.config.from_object(DevConfig)

    if not app.config.get("TESTING"):
        setup_logger(app.config["LOG_DIR"])

    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so SQLAlchemy registers tables.
    with app.app_context():
        from clinic.models import Admin, Appointment, Doctor, DoctorAvailableTime, Patient  # noqa: F401
        # Ensure tables exist (useful for SQLite/dev). For production, prefer migrations.
        db.create_all()

    # Register HTTP blueprints
    from clinic.routes.admin import admin_bp
    from clinic.routes.appointments import appointments_bp
    from clinic.routes.dashboard import dashboard_bp
    from clinic.routes.doctor import doctor_bp
    from clinic.routes.patient import patient_bp
    from clinic.routes.prescription import prescription_bp

    app.register_blueprint(dashboard_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(doctor_bp)
    app.register_blueprint(patient_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(prescription_bp)

    _register_error_handlers(app)
    _register_commands(app)

    logger.info(f"[create_app] started with {app.config['SQLALCHEMY_DATABASE_URI'].split('://')[0]} backend")
    return app
