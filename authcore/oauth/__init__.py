"""OAuth provider adapters."""

from authcore.oauth.base import OAuthProvider
from authcore.oauth.registry import OAuthProviderRegistry, build_provider_registry

__all__ = ["OAuthProvider", "OAuthProviderRegistry", "build_provider_registry"]
