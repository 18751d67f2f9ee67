"""
Registry of OAuth provider adapters.

The registry is built once from settings and held by the application context;
routes look adapters up by provider type and never branch on the provider.
"""

import logging

import httpx

from authcore.config import Settings
from authcore.models.enums import AuthProviderType
from authcore.oauth.base import OAuthProvider
from authcore.oauth.providers import PROVIDER_CLASSES
from authcore.services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class OAuthProviderRegistry:
    """Provider adapters keyed by provider type."""

    def __init__(self):
        self._providers: dict[AuthProviderType, OAuthProvider] = {}

    def register(self, provider: OAuthProvider) -> None:
        """
        Register an adapter, replacing any adapter for the same provider.

        Args:
            provider: Adapter instance
        """
        self._providers[provider.provider_type] = provider
        logger.debug(f"Registered OAuth provider: {provider.provider_type.value}")

    def get(self, provider_type: AuthProviderType) -> OAuthProvider:
        """
        Get the adapter for a provider.

        Args:
            provider_type: Provider to look up

        Returns:
            OAuthProvider instance

        Raises:
            NotFoundError: If no adapter is registered
        """
        provider = self._providers.get(AuthProviderType(provider_type))
        if provider is None:
            raise NotFoundError(f"OAuth provider {provider_type} is not configured")
        return provider

    def list_providers(self) -> list[AuthProviderType]:
        return list(self._providers.keys())


def build_provider_registry(settings: Settings, http_client: httpx.Client) -> OAuthProviderRegistry:
    """
    Create adapters for every supported provider from settings.

    Args:
        settings: Application settings with client credentials
        http_client: HTTP client shared by all adapters; the caller owns it

    Returns:
        Populated OAuthProviderRegistry
    """
    registry = OAuthProviderRegistry()
    for provider_type, provider_cls in PROVIDER_CLASSES.items():
        registry.register(
            provider_cls(settings.oauth_client(provider_type.value), http_client=http_client)
        )
    return registry
