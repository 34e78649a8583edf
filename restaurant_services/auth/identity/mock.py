"""
Mock Identity Service

In-memory identity provider for development and tests.
Accounts live only as long as the process.

Tokens are plain strings of the form "mock-<uid>"; use issue_token()
to get one for a registered user.
"""

import logging
import re
import uuid
from typing import Any, Optional

from restaurant_services.auth.identity.base import (
    BaseIdentityService,
    EmailAlreadyExistsError,
    IdentityUser,
    InvalidTokenError,
    InvalidUserDataError,
    DEFAULT_DISPLAY_NAME,
)

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "mock-"
MIN_PASSWORD_LENGTH = 6


class MockIdentityService(BaseIdentityService):
    """Mock identity provider for development."""

    def __init__(self):
        self._users: dict[str, IdentityUser] = {}
        logger.info("MockIdentityService initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def is_available(self) -> bool:
        return True

    def issue_token(self, uid: str) -> str:
        """Return an ID token that verify_id_token() will accept."""
        return f"{TOKEN_PREFIX}{uid}"

    async def verify_id_token(self, id_token: str) -> dict[str, Any]:
        if not id_token.startswith(TOKEN_PREFIX):
            raise InvalidTokenError("Malformed mock token")

        user = self._users.get(id_token[len(TOKEN_PREFIX):])
        if user is None:
            raise InvalidTokenError("Unknown user")

        return {"uid": user.uid, "email": user.email, "name": user.name}

    async def create_user(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> IdentityUser:
        # Same input rules Firebase applies
        if not re.match(r'^[\w\.\+-]+@[\w\.-]+\.\w+$', email):
            raise InvalidUserDataError("Invalid email format")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidUserDataError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if any(u.email == email for u in self._users.values()):
            raise EmailAlreadyExistsError(email)

        user = IdentityUser(
            uid=uuid.uuid4().hex[:28],
            email=email,
            name=display_name or DEFAULT_DISPLAY_NAME,
        )
        self._users[user.uid] = user

        logger.info(f"Mock: user {user.uid} registered ({email})")
        return user
