"""
Firebase Identity Service Implementation

Production implementation using the firebase-admin SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - FIREBASE_PRIVATE_KEY and FIREBASE_CLIENT_EMAIL must be set
    - The remaining FIREBASE_* values come from the service account JSON

If the credentials are missing or rejected, the service stays up but
reports itself unavailable; the auth routes then answer 503.
"""

import asyncio
import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from restaurant_services.core.config import get_settings
from restaurant_services.auth.identity.base import (
    BaseIdentityService,
    EmailAlreadyExistsError,
    IdentityError,
    IdentityUser,
    InvalidTokenError,
    InvalidUserDataError,
    DEFAULT_DISPLAY_NAME,
)

logger = logging.getLogger(__name__)


class FirebaseIdentityService(BaseIdentityService):
    """
    Identity provider backed by Firebase Authentication.

    The SDK is synchronous, so every call is pushed to a worker thread
    to keep the event loop free.
    """

    def __init__(self):
        settings = get_settings()
        self._app: Optional[firebase_admin.App] = None

        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Firebase credentials missing: {missing}")
            logger.warning("⚠️ Auth service will run without Firebase authentication")
            return

        # The named app outlives reset_identity_service()
        try:
            self._app = firebase_admin.get_app(settings.firebase_app_name)
            logger.info("✅ Firebase Admin app reused")
            return
        except ValueError:
            logger.debug(f"No Firebase app named {settings.firebase_app_name} yet")

        try:
            certificate = credentials.Certificate(settings.firebase_credentials)
            self._app = firebase_admin.initialize_app(
                certificate,
                name=settings.firebase_app_name,
            )
            logger.info("✅ Firebase Admin initialized")
        except (ValueError, IOError) as e:
            logger.warning(f"⚠️ Firebase Admin could not be initialized: {e}")
            logger.warning("⚠️ Auth service will run without Firebase authentication")

    @property
    def provider_name(self) -> str:
        return "firebase"

    @property
    def is_available(self) -> bool:
        return self._app is not None

    async def verify_id_token(self, id_token: str) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(auth.verify_id_token, id_token, app=self._app)
        except (ValueError, FirebaseError) as e:
            logger.debug(f"Firebase: token rejected - {e}")
            raise InvalidTokenError(str(e)) from e

    async def create_user(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> IdentityUser:
        try:
            record = await asyncio.to_thread(
                auth.create_user,
                email=email,
                password=password,
                display_name=display_name or DEFAULT_DISPLAY_NAME,
                app=self._app,
            )
        except auth.EmailAlreadyExistsError as e:
            raise EmailAlreadyExistsError(email) from e
        except ValueError as e:
            raise InvalidUserDataError(str(e)) from e
        except FirebaseError as e:
            logger.error(f"Firebase: create_user failed - {e}")
            raise IdentityError(str(e)) from e

        logger.info(f"Firebase: user {record.uid} registered")

        return IdentityUser(
            uid=record.uid,
            email=record.email,
            name=record.display_name or DEFAULT_DISPLAY_NAME,
        )
