"""Per-request credential resolution.

Keys supplied with a request take precedence over the server's own keys. The
resolved bundle is passed explicitly to every adapter and tool so nothing
below the route reads the process environment.
"""

from dataclasses import dataclass

from finsight.config import Settings
from finsight.infrastructure.ai.models import Provider


@dataclass(frozen=True)
class Credentials:
    """Resolved secrets for one chat request."""

    openai: str | None = None
    google: str | None = None
    anthropic: str | None = None
    market_data: str | None = None
    # Providers whose key came from the server rather than the caller
    server_supplied: frozenset[str] = frozenset()

    def for_provider(self, provider: Provider) -> str | None:
        match provider:
            case "openai":
                return self.openai
            case "gemini":
                return self.google
            case "claude":
                return self.anthropic

    def uses_server_key(self, provider: Provider) -> bool:
        return provider in self.server_supplied

    def __repr__(self) -> str:
        present = [
            name
            for name in ("openai", "google", "anthropic", "market_data")
            if getattr(self, name)
        ]
        return f"Credentials(present={present}, server_supplied={sorted(self.server_supplied)})"


def resolve_credentials(
    settings: Settings,
    *,
    openai_api_key: str | None = None,
    google_api_key: str | None = None,
    anthropic_api_key: str | None = None,
    financial_datasets_api_key: str | None = None,
) -> Credentials:
    """Merge request-supplied keys over server settings."""
    server_supplied: set[str] = set()

    def pick(provider: str, supplied: str | None, fallback: str) -> str | None:
        if supplied and supplied.strip():
            return supplied.strip()
        if fallback:
            server_supplied.add(provider)
            return fallback
        return None

    openai_key = pick("openai", openai_api_key, settings.openai_api_key)
    google_key = pick("gemini", google_api_key, settings.google_api_key)
    anthropic_key = pick("claude", anthropic_api_key, settings.anthropic_api_key)
    market_key = pick("market_data", financial_datasets_api_key, settings.financial_datasets_api_key)

    return Credentials(
        openai=openai_key,
        google=google_key,
        anthropic=anthropic_key,
        market_data=market_key,
        server_supplied=frozenset(server_supplied),
    )
