"""Provider adapter tests using a mocked HTTP transport."""

import httpx
import pytest
from jose import jwt

from authcore.config import OAuthClientConfig
from authcore.models.enums import AuthProviderType
from authcore.oauth.providers import (
    AppleProvider,
    DiscordProvider,
    FacebookProvider,
    GithubProvider,
    GoogleProvider,
    SpotifyProvider,
)
from authcore.oauth.registry import OAuthProviderRegistry, build_provider_registry
from authcore.services.exceptions import NotFoundError, OAuthProviderError

CLIENT = OAuthClientConfig(
    client_id="client-id",
    client_secret="client-secret",
    redirect_url="https://app.example.com/callback",
)


def mock_client(routes: dict) -> httpx.Client:
    """HTTP client answering ``(method, host + path)`` from a table."""

    def handler(request: httpx.Request) -> httpx.Response:
        key = (request.method, f"{request.url.host}{request.url.path}")
        if key not in routes:
            return httpx.Response(404, json={"error": "not found"})
        status_code, body = routes[key]
        return httpx.Response(status_code, json=body)

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestRedirectUrls:
    def test_google_redirect_url(self):
        provider = GoogleProvider(CLIENT, http_client=mock_client({}))
        assert provider.redirect_url() == (
            "https://accounts.google.com/o/oauth2/v2/auth"
            "?client_id=client-id"
            "&include_granted_scopes=true"
            "&redirect_uri=https%3A%2F%2Fapp.example.com%2Fcallback"
            "&response_type=code"
            "&scope=openid%20email%20profile"
            "&state=pass-through%20value"
        )

    def test_github_redirect_without_redirect_url(self):
        client = OAuthClientConfig(client_id="client-id", client_secret="secret")
        url = GithubProvider(client, http_client=mock_client({})).redirect_url("xyz")
        assert url.startswith("https://github.com/login/oauth/authorize?client_id=client-id")
        assert "redirect_uri" not in url
        assert url.endswith("state=xyz")


class TestFetchProfile:
    def test_google(self):
        http = mock_client(
            {
                ("POST", "oauth2.googleapis.com/token"): (200, {"access_token": "at"}),
                ("GET", "www.googleapis.com/oauth2/v2/userinfo"): (
                    200,
                    {"id": "123", "name": "Google User", "email": "G.User@Example.com"},
                ),
            }
        )
        profile = GoogleProvider(CLIENT, http_client=http).fetch_profile("code")
        assert profile.id == "123"
        assert profile.provider_type == AuthProviderType.GOOGLE
        assert profile.name == "Google User"
        assert profile.email == "g.user@example.com"

    def test_github_private_email(self):
        """Test that the primary verified address is used when the profile hides it."""
        http = mock_client(
            {
                ("POST", "github.com/login/oauth/access_token"): (200, {"access_token": "at"}),
                ("GET", "api.github.com/user"): (200, {"id": 99, "login": "octocat", "email": None}),
                ("GET", "api.github.com/user/emails"): (
                    200,
                    [
                        {"email": "old@example.com", "primary": False, "verified": True},
                        {"email": "octo@example.com", "primary": True, "verified": True},
                    ],
                ),
            }
        )
        profile = GithubProvider(CLIENT, http_client=http).fetch_profile("code")
        assert profile.id == "99"
        assert profile.name == "octocat"
        assert profile.email == "octo@example.com"

    def test_github_bad_code(self):
        http = mock_client(
            {("POST", "github.com/login/oauth/access_token"): (200, {"error": "bad_verification_code"})}
        )
        with pytest.raises(OAuthProviderError) as exc_info:
            GithubProvider(CLIENT, http_client=http).fetch_profile("code")
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Unauthorized"

    def test_discord(self):
        http = mock_client(
            {
                ("POST", "discord.com/api/oauth2/token"): (200, {"access_token": "at"}),
                ("GET", "discord.com/api/users/@me"): (
                    200,
                    {"id": "d-1", "username": "disc", "global_name": None, "email": "d@example.com"},
                ),
            }
        )
        profile = DiscordProvider(CLIENT, http_client=http).fetch_profile("code")
        assert (profile.id, profile.name, profile.email) == ("d-1", "disc", "d@example.com")

    def test_spotify(self):
        http = mock_client(
            {
                ("POST", "accounts.spotify.com/api/token"): (200, {"access_token": "at"}),
                ("GET", "api.spotify.com/v1/me"): (
                    200,
                    {"id": "s-1", "display_name": "Spot", "email": "s@example.com"},
                ),
            }
        )
        profile = SpotifyProvider(CLIENT, http_client=http).fetch_profile("code")
        assert (profile.id, profile.name, profile.email) == ("s-1", "Spot", "s@example.com")

    def test_facebook(self):
        http = mock_client(
            {
                ("GET", "graph.facebook.com/v18.0/oauth/access_token"): (200, {"access_token": "at"}),
                ("GET", "graph.facebook.com/me"): (
                    200,
                    {"id": "f-1", "name": "Face", "email": "f@example.com"},
                ),
            }
        )
        profile = FacebookProvider(CLIENT, http_client=http).fetch_profile("code")
        assert (profile.id, profile.name, profile.email) == ("f-1", "Face", "f@example.com")

    def test_apple_reads_id_token(self):
        id_token = jwt.encode({"sub": "apple-1", "email": "A@Example.com"}, "k", algorithm="HS256")
        http = mock_client(
            {("POST", "appleid.apple.com/auth/token"): (200, {"id_token": id_token})}
        )
        profile = AppleProvider(CLIENT, http_client=http).fetch_profile("code")
        assert profile.id == "apple-1"
        assert profile.name is None
        assert profile.email == "a@example.com"

    def test_apple_malformed_id_token(self):
        http = mock_client(
            {("POST", "appleid.apple.com/auth/token"): (200, {"id_token": "garbage"})}
        )
        with pytest.raises(OAuthProviderError):
            AppleProvider(CLIENT, http_client=http).fetch_profile("code")

    def test_provider_error_status(self):
        http = mock_client({("POST", "oauth2.googleapis.com/token"): (500, {"error": "boom"})})
        with pytest.raises(OAuthProviderError):
            GoogleProvider(CLIENT, http_client=http).fetch_profile("code")


class TestRegistry:
    def test_build_from_settings(self, settings):
        registry = build_provider_registry(settings, http_client=mock_client({}))
        assert set(registry.list_providers()) == set(AuthProviderType)
        google = registry.get("google")
        assert isinstance(google, GoogleProvider)
        assert google.client.client_id == "google-client-id"

    def test_unconfigured_provider(self):
        with pytest.raises(NotFoundError):
            OAuthProviderRegistry().get(AuthProviderType.GITHUB)
