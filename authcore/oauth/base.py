"""
Common behaviour of OAuth provider adapters.

Each adapter turns an authorization code into a ``ProviderUser``. Any failure
talking to the provider is reported as ``OAuthProviderError`` so callers see a
single unauthorized outcome regardless of the provider.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import quote, urlencode

import httpx
from jose import JWTError

from authcore.config import OAuthClientConfig
from authcore.models.enums import AuthProviderType
from authcore.schemas.oauth import ProviderUser
from authcore.services.exceptions import OAuthProviderError

logger = logging.getLogger(__name__)

DEFAULT_STATE = "pass-through value"


class OAuthProvider(ABC):
    """Abstract base class for a provider adapter."""

    provider_type: AuthProviderType

    def __init__(
        self,
        client: OAuthClientConfig,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 20.0,
    ):
        """
        Initialize the adapter.

        Args:
            client: Client credentials and redirect URL
            http_client: Shared HTTP client (a private one is created if omitted)
            timeout: Request timeout in seconds
        """
        self.client = client
        self.http = http_client or httpx.Client(timeout=timeout)

    @abstractmethod
    def redirect_url(self, state: Optional[str] = None) -> str:
        """
        Build the provider's authorization URL.

        Args:
            state: Opaque value echoed back by the provider

        Returns:
            Absolute URL to redirect the browser to
        """
        pass

    @abstractmethod
    def _fetch_profile(self, code: str) -> ProviderUser:
        pass

    def fetch_profile(self, code: str) -> ProviderUser:
        """
        Exchange an authorization code for the user's normalized profile.

        Args:
            code: Authorization code from the callback

        Returns:
            ProviderUser for this provider

        Raises:
            OAuthProviderError: If the provider rejects the code or returns an
                unusable profile
        """
        try:
            return self._fetch_profile(code)
        except (httpx.HTTPError, JWTError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"{self.provider_type.value} code exchange failed: {e}")
            raise OAuthProviderError(self.provider_type.value, str(e)) from e

    @staticmethod
    def _build_url(base: str, params: dict[str, Any]) -> str:
        return f"{base}?{urlencode(params, quote_via=quote)}"

    def _post_form(
        self,
        url: str,
        data: dict[str, Any],
        auth: Optional[tuple[str, str]] = None,
    ) -> dict[str, Any]:
        response = self.http.post(
            url, data=data, auth=auth, headers={"Accept": "application/json"}
        )
        response.raise_for_status()
        return response.json()

    def _get_json(
        self,
        url: str,
        access_token: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        response = self.http.get(url, headers=headers, params=params or {})
        response.raise_for_status()
        return response.json()

    def _profile(self, provider_user_id: Any, name: Optional[str], email: Optional[str]) -> ProviderUser:
        return ProviderUser(
            id=str(provider_user_id),
            provider_type=self.provider_type,
            name=name,
            email=email,
        )
