"""
Application Configuration Module

Centralizes configuration for all three services using environment variables
with Pydantic Settings. Every service reads the same Settings object and only
looks at the section it needs:

    - Auth:     FIREBASE_* service-account values
    - Orders:   DB_* MySQL connection values (or ORDERS_DATABASE_URL)
    - Feedback: MONGODB_* connection values

The ENV_MODE variable selects the identity provider: development uses an
in-memory mock, staging and production talk to Firebase.

Usage:
    from restaurant_services.core.config import get_settings

    settings = get_settings()
    engine = create_async_engine(settings.orders_database_dsn)
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local work with the mock identity provider
        PRODUCTION: Live Firebase project
        STAGING: Firebase project used for pre-production checks
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Settings shared by the auth, orders and feedback services.

    All settings can be overridden via environment variables or .env file.
    Credentials (DB_PASSWORD, FIREBASE_PRIVATE_KEY) should never be
    committed to version control.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # HTTP SERVERS
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host every service binds to"
    )
    auth_port: int = Field(default=3001, description="Auth service port")
    orders_port: int = Field(default=3002, description="Orders service port")
    feedback_port: int = Field(default=3003, description="Feedback service port")
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # ORDERS - MYSQL
    # ==========================================================================

    db_host: str = Field(default="localhost", description="MySQL host")
    db_port: int = Field(default=3306, description="MySQL port")
    db_user: str = Field(default="root", description="MySQL user")
    db_password: str = Field(default="", description="MySQL password")
    db_name: str = Field(default="restaurant_orders", description="MySQL database")
    db_pool_size: int = Field(
        default=10,
        description="Maximum pooled MySQL connections"
    )
    db_max_overflow: int = Field(
        default=0,
        description="Extra connections allowed when the pool is exhausted"
    )
    db_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    orders_database_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL, overrides the DB_* values"
    )

    # ==========================================================================
    # FEEDBACK - MONGODB
    # ==========================================================================

    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string"
    )
    mongodb_database: str = Field(
        default="restaurant_feedback",
        description="MongoDB database name"
    )
    mongodb_collection: str = Field(
        default="feedback",
        description="MongoDB collection holding feedback documents"
    )
    mongodb_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout in milliseconds"
    )

    # ==========================================================================
    # AUTH - FIREBASE
    # ==========================================================================

    firebase_project_id: str = Field(
        default="restaurant-microservices",
        description="Firebase project ID"
    )
    firebase_private_key_id: Optional[str] = Field(default=None)
    firebase_private_key: Optional[str] = Field(
        default=None,
        description="Service account private key (\\n escapes allowed)"
    )
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_client_id: Optional[str] = Field(default=None)
    firebase_client_x509_cert_url: Optional[str] = Field(default=None)
    firebase_app_name: str = Field(
        default="restaurant-auth",
        description="Name of the firebase_admin app instance"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Check if the real identity provider should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def orders_database_dsn(self) -> str:
        """
        Effective SQLAlchemy URL for the orders store.

        ORDERS_DATABASE_URL wins when set; otherwise the URL is assembled
        from the DB_* values with escaped credentials.
        """
        if self.orders_database_url:
            return self.orders_database_url

        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        return (
            f"mysql+aiomysql://{user}:{password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def firebase_credentials(self) -> dict[str, Optional[str]]:
        """Service account mapping accepted by firebase_admin.credentials."""
        private_key = self.firebase_private_key
        if private_key:
            private_key = private_key.replace("\\n", "\n")

        return {
            "type": "service_account",
            "project_id": self.firebase_project_id,
            "private_key_id": self.firebase_private_key_id,
            "private_key": private_key,
            "client_email": self.firebase_client_email,
            "client_id": self.firebase_client_id,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
            "client_x509_cert_url": self.firebase_client_x509_cert_url,
        }

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that the Firebase credentials are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.firebase_private_key:
                missing.append("FIREBASE_PRIVATE_KEY")
            if not self.firebase_client_email:
                missing.append("FIREBASE_CLIENT_EMAIL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure process-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-32s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    return logging.getLogger("restaurant_services")
