"""Enumerations shared by models, schemas and services."""

from enum import Enum as PyEnum


class Role(str, PyEnum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


class TokenType(str, PyEnum):
    """Purpose of a signed token."""

    ACCESS = "access"
    REFRESH = "refresh"
    RESET_PASSWORD = "resetPassword"
    VERIFY_EMAIL = "verifyEmail"


class AuthProviderType(str, PyEnum):
    """Supported OAuth identity providers."""

    GITHUB = "github"
    GOOGLE = "google"
    DISCORD = "discord"
    SPOTIFY = "spotify"
    FACEBOOK = "facebook"
    APPLE = "apple"


ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.USER: frozenset(),
    Role.ADMIN: frozenset({"getUsers", "manageUsers"}),
}
