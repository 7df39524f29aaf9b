"""JWT session token verification (HS256)."""

from jose import JWTError, jwt

from finsight.infrastructure.auth.provider import AuthProvider, AuthUser
from finsight.shared.exceptions import TokenExpiredError, TokenInvalidError
from finsight.shared.logging import get_logger

logger = get_logger(__name__)

ALGORITHM = "HS256"


class JWTAuthProvider(AuthProvider):
    """Verifies tokens issued by the app's session layer."""

    def __init__(self, secret: str, audience: str | None = None) -> None:
        self.secret = secret
        self.audience = audience

    async def verify_token(self, token: str) -> AuthUser:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTError as e:
            logger.warning("jwt_decode_failed", error=str(e))
            raise TokenInvalidError("Token is invalid")

        user_id = payload.get("sub")
        if not user_id:
            raise TokenInvalidError("Token does not contain a user id")

        return AuthUser(
            id=str(user_id),
            email=payload.get("email"),
            full_name=payload.get("name"),
        )
