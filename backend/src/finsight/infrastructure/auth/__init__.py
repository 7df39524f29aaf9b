"""Authentication providers."""

from finsight.infrastructure.auth.provider import AuthProvider, AuthUser

__all__ = ["AuthProvider", "AuthUser"]
