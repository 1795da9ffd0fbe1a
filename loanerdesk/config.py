"""
Application configuration classes.

Each class represents a deployment environment. The factory function
``create_app`` in ``loanerdesk/__init__.py`` selects the appropriate
config based on the FLASK_ENV environment variable.

The default database is a SQLite file in the Flask instance folder;
point ``DATABASE_URL`` at any SQLAlchemy URL to use another server.
"""

import logging
import os

# Module-level logger for startup warnings emitted by config classes.
_logger = logging.getLogger(__name__)

# =========================================================================
# Sentinel for detecting unset SECRET_KEY in production.
# =========================================================================
_DEFAULT_SECRET_KEY = "dev-secret-change-me"


def _env_list(name: str, default: str) -> list[str]:
    """Split a comma-separated environment variable into a clean list."""
    return [
        item.strip() for item in os.environ.get(name, default).split(",") if item.strip()
    ]


def _school_locations(default: dict[str, str]) -> dict[str, str]:
    """
    Build the school -> Operations Hero location map.

    ``OPERATIONS_HERO_LOCATIONS`` may override it with
    ``school-id=location-id`` pairs separated by commas.
    """
    raw = _env_list("OPERATIONS_HERO_LOCATIONS", "")
    if not raw:
        return dict(default)
    locations = {}
    for pair in raw:
        school_id, _, location_id = pair.partition("=")
        if school_id and location_id:
            locations[school_id.strip()] = location_id.strip()
    return locations


class BaseConfig:
    """
    Shared configuration values inherited by all environments.

    Secrets and connection strings are loaded from environment variables
    so they never appear in source control.
    """

    # -- Flask core --------------------------------------------------------
    SECRET_KEY: str = os.environ.get("SECRET_KEY", _DEFAULT_SECRET_KEY)

    # -- SQLAlchemy --------------------------------------------------------
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL", "sqlite:///loanerdesk.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Echo SQL statements to the log for debugging (override per env).
    SQLALCHEMY_ECHO: bool = False

    # -- Bearer-token sessions ---------------------------------------------
    # Admin sessions are short-lived; kiosk (checkout) sessions last
    # two weeks so the cart laptop stays signed in.
    ADMIN_SESSION_MINUTES: int = int(os.environ.get("ADMIN_SESSION_MINUTES", "30"))
    USER_SESSION_MINUTES: int = int(
        os.environ.get("USER_SESSION_MINUTES", str(14 * 24 * 60))
    )

    # -- Operations Hero (external ticketing service) ----------------------
    OPERATIONS_HERO_API_BASE_URL: str = os.environ.get(
        "OPERATIONS_HERO_API_BASE_URL", "https://api.operationshero.com/v1"
    )
    OPERATIONS_HERO_API_KEY: str = os.environ.get("OPERATIONS_HERO_API_KEY", "")
    OPERATIONS_HERO_ACCOUNT_ID: str = os.environ.get(
        "OPERATIONS_HERO_ACCOUNT_ID", "bfb5ba24-de95-4eb9-aa25-7c118300b568"
    )
    OPERATIONS_HERO_REPORTING_CATEGORY: str = os.environ.get(
        "OPERATIONS_HERO_REPORTING_CATEGORY", "089b147c-ba5a-40ac-b059-3fc015d5ef87"
    )
    OPERATIONS_HERO_REQUESTER: str = os.environ.get(
        "OPERATIONS_HERO_REQUESTER", "fc027fe5-89f2-4b47-ac7f-391fd6741d22"
    )
    OPERATIONS_HERO_WORKFLOW: str = os.environ.get(
        "OPERATIONS_HERO_WORKFLOW", "f701bb6e-266c-44bf-8af6-d57a9178b2dc"
    )
    OPERATIONS_HERO_ROOM: str = os.environ.get("OPERATIONS_HERO_ROOM", "Loaner Cart")
    OPERATIONS_HERO_TIMEOUT: float = float(
        os.environ.get("OPERATIONS_HERO_TIMEOUT", "15")
    )

    # School id -> Operations Hero location id.
    OPERATIONS_HERO_LOCATIONS: dict[str, str] = _school_locations(
        {
            "kossman": "748dba0b-9b01-4408-b2c2-d6bc7f8fc536",
            "cucinella": "5cba7ac4-15f2-40d4-8299-2ef48c3d728e",
            "central-office": "76863b6d-0bf7-43d3-83f4-754677f7a962",
            "long-valley": "399acf3a-8515-473e-86b1-ac1f7237b945",
            "old-farmers": "b80ca82a-d847-4229-a454-417639eb044f",
            "flocktown": "9a33a5d7-73a8-4d46-b452-c883423a3cfb",
        }
    )

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

        # -- SECRET_KEY (hard fail) ----------------------------------------
        if app_config.get("SECRET_KEY") == _DEFAULT_SECRET_KEY:
            errors.append(
                "SECRET_KEY is still the insecure default. "
                "Generate one with: python -c "
                '"import secrets; print(secrets.token_hex(32))"'
            )

        # -- Operations Hero base URL must be HTTPS (hard fail) ------------
        # The API key travels in a request header.
        base_url = app_config.get("OPERATIONS_HERO_API_BASE_URL", "")
        if base_url and not base_url.startswith("https://"):
            errors.append(
                f"OPERATIONS_HERO_API_BASE_URL ({base_url}) must use HTTPS "
                "in production."
            )

        if errors:
            combined = "\n  - ".join(errors)
            raise RuntimeError(f"Production configuration errors:\n  - {combined}")

        # -- Operations Hero API key (soft warning) ------------------------
        # Checkout and check-in still work without it; repair tickets fail.
        if not app_config.get("OPERATIONS_HERO_API_KEY"):
            _logger.warning(
                "OPERATIONS_HERO_API_KEY is not set; repair ticket "
                "submission will be rejected by the helpdesk."
            )

        if app_config.get("LOG_LEVEL", "").upper() == "DEBUG":
            _logger.warning(
                "LOG_LEVEL=DEBUG is not recommended in production; "
                "SQL statements and request payloads may appear in logs."
            )


class DevelopmentConfig(BaseConfig):
    """Development environment: verbose logging, SQL echo enabled."""

    DEBUG: bool = True
    SQLALCHEMY_ECHO: bool = True
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """
    Testing environment: in-memory SQLite unless TEST_DATABASE_URL is set.

    The Operations Hero client is always replaced by a fake in tests;
    the key below only keeps the client from short-circuiting.
    """

    TESTING: bool = True

    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    OPERATIONS_HERO_API_KEY: str = "test-key"
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
