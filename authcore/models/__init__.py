"""Database models."""

from authcore.models.enums import AuthProviderType, Role, TokenType
from authcore.models.user import User
from authcore.models.authorisation import Authorisation

__all__ = ["AuthProviderType", "Role", "TokenType", "User", "Authorisation"]
