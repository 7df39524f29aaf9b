"""Abstract authentication provider interface.

The chat engine only needs to know who is calling. Any identity system that
can turn a bearer token into an ``AuthUser`` can be plugged in here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthUser:
    """Authenticated caller."""

    id: str
    email: str | None = None
    full_name: str | None = None


class AuthProvider(ABC):
    """Abstract authentication provider.

    Implementations:
    - JWTAuthProvider: HS256 session tokens signed with the app secret
    - DevAuthProvider: fixed user for local development
    """

    @abstractmethod
    async def verify_token(self, token: str) -> AuthUser:
        """Verify a bearer token and return the authenticated user.

        Raises:
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is invalid
            AuthenticationError: For other auth failures
        """

    async def close(self) -> None:
        """Release provider resources."""
