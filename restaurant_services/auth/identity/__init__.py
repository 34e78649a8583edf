"""
Identity Service Factory

Provides a single entry point for obtaining the identity provider.

Usage:
    from restaurant_services.auth.identity import get_identity_service

    # Returns MockIdentityService or FirebaseIdentityService based on ENV_MODE
    identity = get_identity_service()
    claims = await identity.verify_id_token(token)

Environment Switching:
    - ENV_MODE=development → MockIdentityService (no Firebase project needed)
    - ENV_MODE=staging     → FirebaseIdentityService
    - ENV_MODE=production  → FirebaseIdentityService
"""

import logging
from functools import lru_cache

from restaurant_services.core.config import get_settings
from restaurant_services.auth.identity.base import (
    BaseIdentityService,
    IdentityError,
    IdentityUser,
    InvalidTokenError,
    EmailAlreadyExistsError,
    InvalidUserDataError,
)
from restaurant_services.auth.identity.mock import MockIdentityService
from restaurant_services.auth.identity.firebase import FirebaseIdentityService

logger = logging.getLogger(__name__)


@lru_cache()
def get_identity_service() -> BaseIdentityService:
    """
    Get the configured identity service instance.

    The instance is cached so the mock keeps its registered users and
    Firebase is initialised only once per process.
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Identity Service: Using MockIdentityService (development mode)")
        return MockIdentityService()

    logger.info(
        f"Identity Service: Using FirebaseIdentityService "
        f"({settings.env_mode.value} mode)"
    )
    return FirebaseIdentityService()


def reset_identity_service() -> None:
    """
    Clear the cached identity service instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_identity_service.cache_clear()
    logger.debug("Identity service cache cleared")


__all__ = [
    "get_identity_service",
    "reset_identity_service",
    "BaseIdentityService",
    "IdentityError",
    "IdentityUser",
    "InvalidTokenError",
    "EmailAlreadyExistsError",
    "InvalidUserDataError",
    "MockIdentityService",
    "FirebaseIdentityService",
]
