"""Adapters for the six supported identity providers."""

from typing import Optional

from jose import jwt

from authcore.models.enums import AuthProviderType
from authcore.oauth.base import DEFAULT_STATE, OAuthProvider
from authcore.schemas.oauth import ProviderUser


class GithubProvider(OAuthProvider):
    provider_type = AuthProviderType.GITHUB

    AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    API_BASE = "https://api.github.com"

    def redirect_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.client.client_id,
            "scope": "read:user user:email",
            "allow_signup": "true",
            "state": state or DEFAULT_STATE,
        }
        if self.client.redirect_url:
            params["redirect_uri"] = self.client.redirect_url
        return self._build_url(self.AUTHORIZE_URL, params)

    def _fetch_profile(self, code: str) -> ProviderUser:
        data = {
            "client_id": self.client.client_id,
            "client_secret": self.client.client_secret,
            "code": code,
        }
        if self.client.redirect_url:
            data["redirect_uri"] = self.client.redirect_url
        # GitHub reports a bad code with a 200 and an "error" field
        access_token = self._post_form(self.TOKEN_URL, data)["access_token"]

        user = self._get_json(f"{self.API_BASE}/user", access_token)
        email = user.get("email")
        if not email:
            email = self._primary_email(access_token)
        return self._profile(user["id"], user.get("name") or user.get("login"), email)

    def _primary_email(self, access_token: str) -> Optional[str]:
        emails = self._get_json(f"{self.API_BASE}/user/emails", access_token)
        for entry in emails:
            if entry.get("primary") and entry.get("verified"):
                return entry["email"]
        return None


class GoogleProvider(OAuthProvider):
    provider_type = AuthProviderType.GOOGLE

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

    def redirect_url(self, state: Optional[str] = None) -> str:
        return self._build_url(
            self.AUTHORIZE_URL,
            {
                "client_id": self.client.client_id,
                "include_granted_scopes": "true",
                "redirect_uri": self.client.redirect_url,
                "response_type": "code",
                "scope": "openid email profile",
                "state": state or DEFAULT_STATE,
            },
        )

    def _fetch_profile(self, code: str) -> ProviderUser:
        tokens = self._post_form(
            self.TOKEN_URL,
            {
                "code": code,
                "client_id": self.client.client_id,
                "client_secret": self.client.client_secret,
                "redirect_uri": self.client.redirect_url,
                "grant_type": "authorization_code",
            },
        )
        user = self._get_json(self.USERINFO_URL, tokens["access_token"])
        return self._profile(user["id"], user.get("name"), user.get("email"))


class DiscordProvider(OAuthProvider):
    provider_type = AuthProviderType.DISCORD

    AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
    TOKEN_URL = "https://discord.com/api/oauth2/token"
    USER_URL = "https://discord.com/api/users/@me"

    def redirect_url(self, state: Optional[str] = None) -> str:
        return self._build_url(
            self.AUTHORIZE_URL,
            {
                "client_id": self.client.client_id,
                "redirect_uri": self.client.redirect_url,
                "response_type": "code",
                "scope": "identify email",
                "state": state or DEFAULT_STATE,
            },
        )

    def _fetch_profile(self, code: str) -> ProviderUser:
        tokens = self._post_form(
            self.TOKEN_URL,
            {
                "client_id": self.client.client_id,
                "client_secret": self.client.client_secret,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.client.redirect_url,
            },
        )
        user = self._get_json(self.USER_URL, tokens["access_token"])
        return self._profile(
            user["id"], user.get("global_name") or user.get("username"), user.get("email")
        )


class SpotifyProvider(OAuthProvider):
    provider_type = AuthProviderType.SPOTIFY

    AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"
    USER_URL = "https://api.spotify.com/v1/me"

    def redirect_url(self, state: Optional[str] = None) -> str:
        return self._build_url(
            self.AUTHORIZE_URL,
            {
                "client_id": self.client.client_id,
                "redirect_uri": self.client.redirect_url,
                "response_type": "code",
                "scope": "user-read-email",
                "state": state or DEFAULT_STATE,
            },
        )

    def _fetch_profile(self, code: str) -> ProviderUser:
        tokens = self._post_form(
            self.TOKEN_URL,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.client.redirect_url,
            },
            auth=(self.client.client_id, self.client.client_secret),
        )
        user = self._get_json(self.USER_URL, tokens["access_token"])
        return self._profile(user["id"], user.get("display_name"), user.get("email"))


class FacebookProvider(OAuthProvider):
    provider_type = AuthProviderType.FACEBOOK

    GRAPH_VERSION = "v18.0"
    AUTHORIZE_URL = f"https://www.facebook.com/{GRAPH_VERSION}/dialog/oauth"
    TOKEN_URL = f"https://graph.facebook.com/{GRAPH_VERSION}/oauth/access_token"
    USER_URL = "https://graph.facebook.com/me"

    def redirect_url(self, state: Optional[str] = None) -> str:
        return self._build_url(
            self.AUTHORIZE_URL,
            {
                "client_id": self.client.client_id,
                "redirect_uri": self.client.redirect_url,
                "response_type": "code",
                "scope": "email",
                "state": state or DEFAULT_STATE,
            },
        )

    def _fetch_profile(self, code: str) -> ProviderUser:
        tokens = self._get_json(
            self.TOKEN_URL,
            params={
                "client_id": self.client.client_id,
                "client_secret": self.client.client_secret,
                "redirect_uri": self.client.redirect_url,
                "code": code,
            },
        )
        user = self._get_json(
            self.USER_URL, tokens["access_token"], params={"fields": "id,name,email"}
        )
        return self._profile(user["id"], user.get("name"), user.get("email"))


class AppleProvider(OAuthProvider):
    provider_type = AuthProviderType.APPLE

    AUTHORIZE_URL = "https://appleid.apple.com/auth/authorize"
    TOKEN_URL = "https://appleid.apple.com/auth/token"

    def redirect_url(self, state: Optional[str] = None) -> str:
        return self._build_url(
            self.AUTHORIZE_URL,
            {
                "client_id": self.client.client_id,
                "redirect_uri": self.client.redirect_url,
                "response_type": "code",
                "scope": "name email",
                "response_mode": "form_post",
                "state": state or DEFAULT_STATE,
            },
        )

    def _fetch_profile(self, code: str) -> ProviderUser:
        tokens = self._post_form(
            self.TOKEN_URL,
            {
                "client_id": self.client.client_id,
                "client_secret": self.client.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.client.redirect_url,
            },
        )
        # The id_token comes straight from Apple's token endpoint over TLS
        claims = jwt.get_unverified_claims(tokens["id_token"])
        return self._profile(claims["sub"], None, claims.get("email"))


PROVIDER_CLASSES: dict[AuthProviderType, type[OAuthProvider]] = {
    cls.provider_type: cls
    for cls in (
        GithubProvider,
        GoogleProvider,
        DiscordProvider,
        SpotifyProvider,
        FacebookProvider,
        AppleProvider,
    )
}
