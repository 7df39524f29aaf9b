"""Custom exception hierarchy for Finsight."""

from typing import Any


class FinsightError(Exception):
    """Base exception for all Finsight errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Authentication Errors -----


class AuthenticationError(FinsightError):
    """Authentication failed."""

    pass


class TokenExpiredError(AuthenticationError):
    """JWT token has expired."""

    pass


class TokenInvalidError(AuthenticationError):
    """JWT token is invalid."""

    pass


class UnauthorizedError(FinsightError):
    """Caller does not own the resource it is acting on."""

    pass


# ----- Resource Errors -----


class NotFoundError(FinsightError):
    """Requested resource was not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found",
            details={"resource": resource, "identifier": identifier},
        )


# ----- Validation / Configuration Errors -----


class ValidationError(FinsightError):
    """Request content is invalid."""

    pass


class ConfigurationError(FinsightError):
    """The request cannot be served with the available configuration."""

    pass


class MissingApiKeyError(ConfigurationError):
    """No usable API key for the selected provider."""

    PROVIDER_LABELS = {"openai": "OpenAI", "gemini": "Gemini", "claude": "Claude"}

    def __init__(self, provider: str, reason: str | None = None) -> None:
        label = self.PROVIDER_LABELS.get(provider, provider)
        message = f"{label} API key is required"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message=message, details={"provider": provider})
        self.provider = provider


# ----- External Service Errors -----


class ExternalServiceError(FinsightError):
    """Error from an external service."""

    pass


class ProviderError(ExternalServiceError):
    """Error from an LLM vendor, tagged with the provider id."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message=message, details={"provider": provider})
        self.provider = provider


class ToolError(ExternalServiceError):
    """A tool body failed; surfaced to the model as an in-band result."""

    pass


class PersistenceError(FinsightError):
    """Reading or writing chat state failed."""

    pass
