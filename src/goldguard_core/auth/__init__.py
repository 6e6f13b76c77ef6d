"""Credentials for the remote case API"""

from goldguard_core.auth.token_provider import (
    AdminTokenProvider,
    StaticTokenProvider,
    TokenProvider,
)
from goldguard_core.config import GoldGuardSettings


def token_provider_from_settings(settings: GoldGuardSettings) -> TokenProvider:
    """Static token if configured, else login credentials, else no credential."""
    if settings.admin_token:
        return StaticTokenProvider(settings.admin_token.get_secret_value())
    if settings.admin_email and settings.admin_password:
        return AdminTokenProvider(
            api_url=settings.api_url,
            email=settings.admin_email,
            password=settings.admin_password.get_secret_value(),
            timeout_seconds=settings.api_timeout,
        )
    return TokenProvider()


__all__ = [
    "AdminTokenProvider",
    "StaticTokenProvider",
    "TokenProvider",
    "token_provider_from_settings",
]
