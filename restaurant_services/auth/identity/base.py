"""
Identity Service Abstract Base Class

Defines the interface contract for identity providers. The auth routes
only talk to this interface, so the in-memory mock used in development
and the Firebase implementation are interchangeable.

Design Pattern: Strategy Pattern
    - Provider chosen at startup from ENV_MODE
    - Tests and local runs need no Firebase project
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_DISPLAY_NAME = "Usuário"


class IdentityError(Exception):
    """Base class for identity provider failures."""


class InvalidTokenError(IdentityError):
    """The ID token is malformed, expired, revoked or not ours."""


class EmailAlreadyExistsError(IdentityError):
    """Registration attempted with an email that already has an account."""


class InvalidUserDataError(IdentityError):
    """The provider rejected the email, password or display name."""


@dataclass
class IdentityUser:
    """
    The public view of a user, as returned by the auth endpoints.

    Attributes:
        uid: Provider-assigned user ID
        email: Account email, if the provider knows it
        name: Display name, falling back to "Usuário"
    """
    uid: str
    email: Optional[str] = None
    name: str = DEFAULT_DISPLAY_NAME

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "IdentityUser":
        """Build from decoded ID token claims."""
        return cls(
            uid=claims["uid"],
            email=claims.get("email"),
            name=claims.get("name") or claims.get("display_name") or DEFAULT_DISPLAY_NAME,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"uid": self.uid, "email": self.email, "name": self.name}


class BaseIdentityService(ABC):
    """
    Abstract base class for identity providers.

    All implementations must inherit from this class and implement
    every abstract member.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the identity provider (e.g. "mock", "firebase")."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider was initialised and can take requests."""
        pass

    @abstractmethod
    async def verify_id_token(self, id_token: str) -> dict[str, Any]:
        """
        Verify an ID token and return its decoded claims.

        Args:
            id_token: Token issued to the client by the provider

        Returns:
            dict: Claims, always including "uid"

        Raises:
            InvalidTokenError: If the token cannot be verified
        """
        pass

    @abstractmethod
    async def create_user(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> IdentityUser:
        """
        Register a new account.

        Raises:
            EmailAlreadyExistsError: If the email is taken
            InvalidUserDataError: If the provider rejects the input
            IdentityError: For any other provider failure
        """
        pass

    async def health_check(self) -> bool:
        """Verify the provider is usable."""
        return self.is_available
