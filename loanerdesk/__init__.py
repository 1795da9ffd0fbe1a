"""
Application factory for the LoanerDesk device checkout service.

Usage::

    from loanerdesk import create_app
    app = create_app()           # Uses FLASK_ENV to pick config.
    app = create_app("testing")  # Explicit config for tests.
"""

import logging
import os

from flask import Flask, jsonify, request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from werkzeug.exceptions import HTTPException

from .config import config_by_name
from .errors import LoanerDeskError
from .extensions import db, login_manager, migrate

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: One of 'development', 'testing', or 'production'.
                     Defaults to the FLASK_ENV environment variable,
                     falling back to 'development'.

    Returns:
        A fully configured Flask application instance.
    """
    # Resolve the configuration class.
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")
    config_class = config_by_name.get(config_name)
    if config_class is None:
        raise ValueError(
            f"Unknown config '{config_name}'. "
            f"Valid options: {list(config_by_name.keys())}"
        )

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Safety check: refuse to run production with insecure settings.
    if config_name == "production":
        config_class.validate_production_secrets(app.config)

    # -- Configure logging -------------------------------------------------
    _configure_logging(app)

    # -- Initialize extensions ---------------------------------------------
    _register_extensions(app)

    # -- Register blueprints -----------------------------------------------
    _register_blueprints(app)

    # -- Register error handlers -------------------------------------------
    _register_error_handlers(app)

    # -- Register custom CLI commands --------------------------------------
    _register_cli_commands(app)

    return app


def _register_extensions(app: Flask) -> None:
    """Bind all Flask extensions to the application instance."""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Imported here to avoid circular imports with models.
    from .services import auth_service  # pylint: disable=import-outside-toplevel

    @login_manager.request_loader
    def load_user_from_request(req):
        """Resolve ``Authorization: Bearer <token>`` to an active user."""
        token = auth_service.bearer_token(req.headers.get("Authorization"))
        return auth_service.resolve_token(token)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked on every connection."""
    # pylint: disable=unused-argument
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _register_blueprints(app: Flask) -> None:
    """
    Import and register each blueprint with its URL prefix.

    Blueprints are imported inside this function to avoid circular
    imports: models and services can safely import ``db`` from
    extensions at module level.
    """
    # pylint: disable=import-outside-toplevel

    # Main blueprint: health check.
    from .blueprints.main import bp as main_bp

    app.register_blueprint(main_bp)

    # Authentication: login, logout, current user.
    from .blueprints.auth import bp as auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    # Schools: settings and logos.
    from .blueprints.schools import bp as schools_bp

    app.register_blueprint(schools_bp, url_prefix="/api/schools")

    # Devices: registration, checkout, check-in, removal.
    from .blueprints.devices import bp as devices_bp

    app.register_blueprint(devices_bp, url_prefix="/api/devices")

    # Device logs: checkout/check-in history (admin).
    from .blueprints.logs import bp as logs_bp

    app.register_blueprint(logs_bp, url_prefix="/api/logs")

    # Repairs: helpdesk ticket submission and listing.
    from .blueprints.repairs import bp as repairs_bp

    app.register_blueprint(repairs_bp, url_prefix="/api/repairs")

    # Users: account administration (admin).
    from .blueprints.users import bp as users_bp

    app.register_blueprint(users_bp, url_prefix="/api/users")


def _register_error_handlers(app: Flask) -> None:
    """Render every error as ``{"error": message}`` JSON."""

    @app.errorhandler(LoanerDeskError)
    def application_error(error: LoanerDeskError):
        """Handle expected service-layer errors."""
        if error.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error.message)
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        """Handle 400/401/403/404/405 raised by Flask or ``abort()``."""
        messages = {
            401: "Authentication required",
            403: "Admin access required",
            404: "Not found",
            405: "Method not allowed",
        }
        message = messages.get(error.code, error.description or error.name)
        return jsonify({"error": message}), error.code

    @app.errorhandler(500)
    def internal_error(error):  # pylint: disable=unused-argument
        """Handle 500 Internal Server Error."""
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "An unexpected error occurred"}), 500


def _register_cli_commands(app: Flask) -> None:
    """Register custom Flask CLI commands (e.g., flask db-check)."""
    from .cli import register_commands  # pylint: disable=import-outside-toplevel

    register_commands(app)


def _configure_logging(app: Flask) -> None:
    """
    Set the root log level from ``LOG_LEVEL``.

    SQL statement logging stays off unless ``SQLALCHEMY_ECHO`` turns it
    on, even at DEBUG.
    """
    log_level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if not app.config.get("SQLALCHEMY_ECHO"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
