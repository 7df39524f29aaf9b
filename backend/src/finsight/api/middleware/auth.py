"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from finsight.config import Settings, get_settings
from finsight.infrastructure.auth.provider import AuthProvider, AuthUser
from finsight.shared.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from finsight.shared.logging import bind_request_context, get_logger

logger = get_logger(__name__)

# HTTP Bearer scheme
security = HTTPBearer(auto_error=False)


def build_auth_provider(settings: Settings) -> AuthProvider:
    """Build the configured auth provider.

    Set AUTH_PROVIDER env var to "dev" for local testing without a session layer.
    """
    if settings.auth_provider == "dev":
        from finsight.infrastructure.auth.dev import DevAuthProvider

        return DevAuthProvider()

    from finsight.infrastructure.auth.jwt import JWTAuthProvider

    return JWTAuthProvider(secret=settings.app_secret_key, audience=settings.jwt_audience)


def get_auth_provider(request: Request) -> AuthProvider:
    """Get a cached auth provider instance (per FastAPI app)."""
    provider = getattr(request.app.state, "auth_provider", None)
    if provider is None:
        provider = build_auth_provider(get_settings())
        request.app.state.auth_provider = provider
    return provider


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
) -> AuthUser:
    """Dependency to get the current authenticated user.

    Usage:
        @router.get("/chat/history")
        async def history(user: CurrentUser):
            ...
    """
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await auth_provider.verify_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=401,
            detail="Session expired. Please sign in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except TokenInvalidError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e.message),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AuthenticationError as e:
        logger.warning("auth_failed", error=str(e))
        raise HTTPException(
            status_code=401,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Rate limiter keys on the user when one is known
    request.state.user = user
    bind_request_context(user_id=user.id)
    logger.debug("user_authenticated", user_id=user.id, email=user.email)
    return user


async def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth_provider: Annotated[AuthProvider, Depends(get_auth_provider)],
) -> AuthUser | None:
    """Dependency to get the current user if authenticated, None otherwise."""
    if credentials is None:
        return None

    try:
        user = await auth_provider.verify_token(credentials.credentials)
    except AuthenticationError:
        return None
    request.state.user = user
    return user


# Type aliases for route signatures
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
OptionalUser = Annotated[AuthUser | None, Depends(get_optional_user)]
