"""Pydantic schemas for authentication requests and responses."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from authcore.schemas.token import AuthTokens
from authcore.schemas.user import UserResponse
from authcore.schemas.validators import check_password_strength, normalize_email


class RegisterRequest(BaseModel):
    """Schema for self-registration."""

    name: Optional[str] = Field(default=None, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class RefreshTokensRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class AuthResponse(BaseModel):
    """Schema returned by register, login and OAuth callbacks."""

    user: UserResponse
    tokens: AuthTokens
