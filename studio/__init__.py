"""
Studio Management System
Flask application factory.

    from studio import create_app
    app = create_app()           # APP_ENV, else "development"
    app = create_app("testing")
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from studio.config import config
from studio.core.exceptions import ConflictError, NotFoundError, ValidationError
from studio.middleware.logging_config import configure_logging
from studio.middleware.rate_limiter import init_rate_limits
from studio.middleware.timing import init_request_timing
from studio.models import db
from studio.services.permission import PermissionDenied
from studio.utils.errors import E, api_error

logger = logging.getLogger(__name__)

migrate = Migrate()
# storage comes from RATELIMIT_STORAGE_URI; limits are attached per blueprint
limiter = Limiter(key_func=get_remote_address, default_limits=[])


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Crew rows rely on ON DELETE CASCADE, which SQLite ignores unless asked."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _register_error_handlers(app):
    """Map the service exception hierarchy to HTTP responses once."""

    @app.errorhandler(ValidationError)
    def _validation(e):
        return api_error(E.VALIDATION_INVALID, str(e), status=422, details=e.details or None)

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return api_error(E.NOT_FOUND, str(e))

    @app.errorhandler(ConflictError)
    def _conflict(e):
        return api_error(E.CONFLICT_DUPLICATE, str(e), details={"field": e.field})

    @app.errorhandler(PermissionDenied)
    def _forbidden(e):
        logger.warning("Permission denied: %s", e, extra={"actor_id": e.user_id})
        return api_error(E.FORBIDDEN, str(e))

    @app.errorhandler(IntegrityError)
    def _integrity(e):
        db.session.rollback()
        logger.warning("Integrity error: %s", e.orig)
        return api_error(E.CONFLICT_DUPLICATE, "Conflicting or duplicate data")

    @app.errorhandler(SQLAlchemyError)
    def _database(e):
        db.session.rollback()
        logger.exception("Database error")
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(404)
    def _no_route(e):
        return api_error(E.NOT_FOUND, "Not found")

    @app.errorhandler(405)
    def _bad_method(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(429)
    def _rate_limited(e):
        return api_error(E.VALIDATION_INVALID, "Too many requests", status=429,
                         details={"limit": e.description})

    @app.errorhandler(500)
    def _internal(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("full_name")
    def create_admin_cmd(email, full_name):
        """Bootstrap the first super_admin profile."""
        from studio.services.user_service import create_user

        user = create_user(email, full_name, ["super_admin"], skip_permission=True)
        click.echo(f"Created super_admin {user.email} (id={user.id})")


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: "development", "testing" or "production".
                     Defaults to the APP_ENV env var, then "development".
    """
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    origins = app.config.get("CORS_ORIGINS", "*")
    if origins and origins != "*":
        CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])
    else:
        CORS(app)
    init_request_timing(app)

    # Registers every table on db.metadata (create_all and Flask-Migrate need them)
    from studio.models import audit, auth, event, freelancer, meeting, shooting, task  # noqa: F401

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and not app.testing:
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()

    from studio.blueprints.event_bp import event_bp
    from studio.blueprints.freelancer_bp import freelancer_bp
    from studio.blueprints.meeting_bp import meeting_bp
    from studio.blueprints.shooting_bp import shooting_bp
    from studio.blueprints.task_bp import task_bp
    from studio.blueprints.user_bp import user_bp

    for bp in (shooting_bp, event_bp, task_bp, meeting_bp, freelancer_bp, user_bp):
        app.register_blueprint(bp)

    _register_error_handlers(app)
    _register_cli(app)

    @app.route("/api/v1/health")
    def health():
        return {"status": "ok", "app": "Studio Management System"}

    # after blueprint registration, limits attach to registered blueprints
    init_rate_limits(app, limiter)

    return app
