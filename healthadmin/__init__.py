"""
Application factory for the healthcare organization administration API.

Usage::

    from healthadmin import create_app
    app = create_app()           # Uses FLASK_ENV to pick config.
    app = create_app("testing")  # Explicit config for tests.
"""

import logging
import os

from flask import Flask, g, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .config import config_by_name
from .errors import (
    AuthenticationRequired,
    Conflict,
    NotFound,
    ServiceError,
    TokenExpired,
    TokenInvalid,
    ValidationFailed,
)
from .extensions import db, login_manager, migrate
from .services import EXTENSION_KEY, build_services, get_services

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None, mailer=None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: One of 'development', 'testing', or 'production'.
                     Defaults to the FLASK_ENV environment variable,
                     falling back to 'development'.
        mailer:      Optional mailer replacing the SMTP one (tests).

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
    app.json.sort_keys = False

    # Refuse to run production with default secrets or no database.
    if config_name == "production":
        config_class.validate_production_secrets(app.config)

    # -- Configure logging -------------------------------------------------
    _configure_logging(app)

    # -- Initialize extensions ---------------------------------------------
    _register_extensions(app)

    # -- Wire services -----------------------------------------------------
    app.extensions[EXTENSION_KEY] = build_services(db.session, app.config, mailer)

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
    from .models.user import User  # pylint: disable=import-outside-toplevel
    from .security import ACCESS  # pylint: disable=import-outside-toplevel

    @login_manager.request_loader
    def load_user_from_bearer(req):
        """
        Resolve ``current_user`` from ``Authorization: Bearer <token>``.

        Token failures are remembered on ``g`` so the unauthorized
        handler can say why the request was refused.
        """
        header = req.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None

        tokens = get_services().tokens
        try:
            claims = tokens.verify_token(token.strip(), ACCESS)
        except (TokenExpired, TokenInvalid) as exc:
            g.auth_error = exc
            return None

        user = db.session.get(User, claims.get("id"))
        if user is None or not user.is_active:
            g.auth_error = AuthenticationRequired("User not found or inactive.")
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        error = g.pop("auth_error", None)
        if isinstance(error, TokenExpired):
            raise AuthenticationRequired("Access token has expired.")
        if isinstance(error, TokenInvalid):
            raise AuthenticationRequired("Invalid access token.")
        if error is not None:
            raise error
        raise AuthenticationRequired("Authentication required. No token provided.")


def _register_blueprints(app: Flask) -> None:
    """
    Import and register each blueprint with its URL prefix.

    Blueprints are imported inside this function to avoid circular
    imports — models and services can safely import ``db`` from
    extensions at module level.
    """
    # pylint: disable=import-outside-toplevel
    base = app.config["API_BASE_PATH"].rstrip("/")

    # Main blueprint: health check at the root URL.
    from .blueprints.main import bp as main_bp

    app.register_blueprint(main_bp)

    # Authentication: register, login, tokens, password reset.
    from .blueprints.auth import bp as auth_bp

    app.register_blueprint(auth_bp, url_prefix=f"{base}/auth")

    # Organization: public registration.
    from .blueprints.organization import bp as org_bp

    app.register_blueprint(org_bp, url_prefix=f"{base}/organizations")

    # Admin: user management and organization review.
    from .blueprints.admin import bp as admin_bp

    app.register_blueprint(admin_bp, url_prefix=f"{base}/admin")

    # Staff: one blueprint per organization admin type.
    from .blueprints.staff import staff_blueprints

    for staff_bp, prefix in staff_blueprints():
        app.register_blueprint(staff_bp, url_prefix=f"{base}/{prefix}")


def _register_error_handlers(app: Flask) -> None:
    """Render every error as the JSON error envelope."""

    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        db.session.rollback()
        if error.status_code >= 500:
            logger.error("%s on %s %s: %s", error.kind, request.method, request.path, error.message)
        else:
            logger.info("%s on %s %s: %s", error.kind, request.method, request.path, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(IntegrityError)
    def integrity_error(error: IntegrityError):
        """Storage constraint violations not translated by a service."""
        db.session.rollback()
        logger.warning("Unhandled integrity error: %s", error.orig)
        text = str(error.orig).lower()
        if "unique" in text or "duplicate key" in text:
            mapped: ServiceError = Conflict()
        elif "foreign key" in text:
            mapped = NotFound("A related record was not found.")
        else:
            mapped = ValidationFailed("The request violates a data constraint.")
        return jsonify(mapped.to_dict()), mapped.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return (
            jsonify(
                {
                    "status": "error",
                    "kind": error.name.lower().replace(" ", "_"),
                    "message": error.description,
                }
            ),
            error.code,
        )

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        body = ServiceError().to_dict()
        # Stack traces only leave the process in development.
        if app.debug:
            body["detail"] = repr(error)
        return jsonify(body), 500


def _register_cli_commands(app: Flask) -> None:
    """Register custom Flask CLI commands (e.g., flask db-check)."""
    from .cli import register_commands  # pylint: disable=import-outside-toplevel

    register_commands(app)


def _configure_logging(app: Flask) -> None:
    """Set the root log level from ``LOG_LEVEL``."""
    log_level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # SQL echo goes through SQLAlchemy's own logger when enabled.
    if not app.config.get("SQLALCHEMY_ECHO"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
