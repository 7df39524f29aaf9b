"""Development authentication provider for local testing.

Accepts any token and returns a fixed user. Refused in production by the
settings validator.
"""

from finsight.infrastructure.auth.provider import AuthProvider, AuthUser
from finsight.shared.logging import get_logger

logger = get_logger(__name__)

DEV_USER_ID = "00000000-0000-0000-0000-000000000001"


class DevAuthProvider(AuthProvider):
    """Development auth provider that accepts any token."""

    async def verify_token(self, token: str) -> AuthUser:
        logger.warning(
            "dev_auth_used",
            message="Using development auth - DO NOT USE IN PRODUCTION",
        )
        return AuthUser(id=DEV_USER_ID, email="dev@finsight.local", full_name="Dev User")
