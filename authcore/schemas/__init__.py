"""Pydantic schemas for request/response validation."""

from authcore.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
)
from authcore.schemas.token import (
    AuthToken,
    AuthTokens,
    TokenPayload,
)
from authcore.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokensRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from authcore.schemas.oauth import (
    AuthorisationResponse,
    OAuthCodeRequest,
    ProviderUser,
)

__all__ = [
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "AuthToken",
    "AuthTokens",
    "TokenPayload",
    "AuthResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "RefreshTokensRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "AuthorisationResponse",
    "OAuthCodeRequest",
    "ProviderUser",
]
