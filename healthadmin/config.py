"""
Application configuration classes.

Each class represents a deployment environment. The factory function
``create_app`` in ``healthadmin/__init__.py`` selects the appropriate
config based on the FLASK_ENV environment variable.

The database connection string comes from ``DATABASE_URL`` when set.
Otherwise it is assembled from the individual ``DB_*`` variables as a
PostgreSQL URL, which is what the deployed service runs against.

Access and refresh tokens are signed with two different secrets so a
leaked refresh secret cannot be used to mint access tokens.
"""

import logging
import os

# Module-level logger for startup warnings emitted by config classes.
_logger = logging.getLogger(__name__)

# =========================================================================
# Sentinels for detecting unset secrets in production.
# =========================================================================
_DEFAULT_SECRET_KEY = "dev-secret-change-me"
_DEFAULT_ACCESS_SECRET = "dev-access-secret-change-me"
_DEFAULT_REFRESH_SECRET = "dev-refresh-secret-change-me"


def _env_bool(name: str, default: str = "false") -> bool:
    """Read a "true"/"false" environment variable."""
    return os.environ.get(name, default).strip().lower() == "true"


def _build_database_url() -> str:
    """
    Return ``DATABASE_URL`` or build a PostgreSQL URL from ``DB_*`` parts.

    Falls back to a local SQLite file when no database host is configured
    so that ``flask`` CLI commands work on a fresh checkout.
    """
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    host = os.environ.get("DB_HOST")
    if not host:
        return "sqlite:///healthadmin-dev.db"

    user = os.environ.get("DB_USER", "")
    password = os.environ.get("DB_PASSWORD", "")
    port = os.environ.get("DB_PORT", "5432")
    name = os.environ.get("DB_NAME", "healthadmin")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


class BaseConfig:
    """
    Shared configuration values inherited by all environments.

    Secrets and connection strings are loaded from environment variables
    so they never appear in source control.
    """

    # -- Flask core --------------------------------------------------------
    SECRET_KEY: str = os.environ.get("SECRET_KEY", _DEFAULT_SECRET_KEY)
    API_BASE_PATH: str = os.environ.get("API_BASE_PATH", "/api/v1")

    # -- SQLAlchemy --------------------------------------------------------
    SQLALCHEMY_DATABASE_URI: str = _build_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ECHO: bool = False

    # -- JWT ---------------------------------------------------------------
    JWT_ACCESS_SECRET: str = os.environ.get("JWT_SECRET", _DEFAULT_ACCESS_SECRET)
    JWT_REFRESH_SECRET: str = os.environ.get(
        "JWT_REFRESH_TOKEN_SECRET", _DEFAULT_REFRESH_SECRET
    )
    JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRES_MINUTES: int = int(
        os.environ.get("JWT_ACCESS_TOKEN_EXPIRES_MINUTES", "15")
    )
    JWT_REFRESH_TOKEN_EXPIRES_DAYS: int = int(
        os.environ.get("JWT_REFRESH_TOKEN_EXPIRES_DAYS", "7")
    )

    # -- Passwords and reset tokens ---------------------------------------
    PASSWORD_HASH_ROUNDS: int = int(os.environ.get("PASSWORD_HASH_ROUNDS", "10"))
    PASSWORD_RESET_TOKEN_BYTES: int = int(
        os.environ.get("PASSWORD_RESET_TOKEN_LENGTH_BYTES", "32")
    )
    PASSWORD_RESET_TOKEN_EXPIRES_MINUTES: int = int(
        os.environ.get("PASSWORD_RESET_TOKEN_EXPIRES_MINUTES", "60")
    )

    # -- Outbound email ----------------------------------------------------
    # When disabled, the mailer logs recipient and subject only.
    EMAIL_SERVICE_ENABLED: bool = _env_bool("EMAIL_SERVICE_ENABLED")
    SMTP_HOST: str = os.environ.get("SMTP_HOST", "localhost")
    SMTP_PORT: int = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USER: str = os.environ.get("SMTP_USER", "")
    SMTP_PASS: str = os.environ.get("SMTP_PASS", "")
    SMTP_USE_TLS: bool = _env_bool("SMTP_USE_TLS", "true")
    SMTP_FROM_EMAIL: str = os.environ.get("SMTP_FROM_EMAIL", "no-reply@localhost")
    CLIENT_URL: str = os.environ.get("CLIENT_URL", "http://localhost:3000")
    APP_NAME: str = os.environ.get("APP_NAME", "Health Admin")

    # -- Seed data ---------------------------------------------------------
    DEFAULT_ADMIN_EMAIL: str = os.environ.get(
        "DEFAULT_ADMIN_EMAIL", "admin@example.com"
    )
    DEFAULT_ADMIN_PASSWORD: str = os.environ.get("DEFAULT_ADMIN_PASSWORD", "")

    # -- Logging -----------------------------------------------------------
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # =====================================================================
    # Production validation helpers
    # =====================================================================

    @classmethod
    def validate_production_secrets(cls, app_config: dict) -> None:
        """
        Verify that all required secrets are set for production.

        Called by ``create_app()`` when ``config_name == 'production'``.
        Raises ``RuntimeError`` for hard requirements and logs warnings
        for soft requirements.

        Args:
            app_config: The ``app.config`` dict after loading the
                        config class.

        Raises:
            RuntimeError: If any critical secret is missing or still
                          set to its insecure default value.
        """
        errors: list[str] = []

        if app_config.get("SECRET_KEY") == _DEFAULT_SECRET_KEY:
            errors.append(
                "SECRET_KEY is still the insecure default. "
                "Generate one with: python -c "
                '"import secrets; print(secrets.token_hex(32))"'
            )

        access_secret = app_config.get("JWT_ACCESS_SECRET")
        refresh_secret = app_config.get("JWT_REFRESH_SECRET")
        if access_secret == _DEFAULT_ACCESS_SECRET:
            errors.append("JWT_SECRET is still the insecure default.")
        if refresh_secret == _DEFAULT_REFRESH_SECRET:
            errors.append("JWT_REFRESH_TOKEN_SECRET is still the insecure default.")
        if access_secret and access_secret == refresh_secret:
            errors.append(
                "JWT_SECRET and JWT_REFRESH_TOKEN_SECRET must be different values."
            )

        db_uri = app_config.get("SQLALCHEMY_DATABASE_URI", "")
        if db_uri.startswith("sqlite"):
            errors.append(
                "No production database configured. Set DATABASE_URL or "
                "DB_HOST, DB_USER, DB_PASSWORD and DB_NAME."
            )
        elif not os.environ.get("DATABASE_URL") and (
            not os.environ.get("DB_USER") or not os.environ.get("DB_PASSWORD")
        ):
            errors.append("Database credentials (DB_USER, DB_PASSWORD) are not set.")

        if errors:
            combined = "\n  - ".join(errors)
            raise RuntimeError(f"Production configuration errors:\n  - {combined}")

        if not app_config.get("EMAIL_SERVICE_ENABLED"):
            _logger.warning(
                "EMAIL_SERVICE_ENABLED is false: password reset links and "
                "temporary passwords will not be delivered."
            )

        if app_config.get("LOG_LEVEL", "").upper() == "DEBUG":
            _logger.warning(
                "LOG_LEVEL=DEBUG is not recommended in production. "
                "SQL statements and request details may appear in logs."
            )


class DevelopmentConfig(BaseConfig):
    """Development environment: verbose logging, SQL echo enabled."""

    DEBUG: bool = True
    SQLALCHEMY_ECHO: bool = _env_bool("SQLALCHEMY_ECHO", "true")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """
    Testing environment: in-memory SQLite and cheap password hashing.

    Email is always disabled so tests never reach an SMTP server.
    """

    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    JWT_ACCESS_SECRET: str = "test-access-secret"
    JWT_REFRESH_SECRET: str = "test-refresh-secret"
    # bcrypt's minimum cost keeps the suite fast.
    PASSWORD_HASH_ROUNDS: int = 4
    EMAIL_SERVICE_ENABLED: bool = False
    LOG_LEVEL: str = "DEBUG"


class ProductionConfig(BaseConfig):
    """
    Production environment: strict settings, no debug output.

    All secrets must be set via environment variables. The application
    factory calls ``validate_production_secrets()`` at startup and will
    refuse to launch if critical values are missing.
    """

    DEBUG: bool = False
    SQLALCHEMY_ECHO: bool = False
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "WARNING")


# Lookup dict used by the application factory.
config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
