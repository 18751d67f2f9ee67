"""Pydantic schemas for users."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from authcore.models.enums import Role
from authcore.schemas.validators import check_password_strength, normalize_email


class UserCreate(BaseModel):
    """Schema for creating a user with a local password."""

    name: Optional[str] = Field(default=None, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    role: Role = Field(default=Role.USER, description="User role")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class UserUpdate(BaseModel):
    """Schema for a partial user update."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_password_strength(v)

    @model_validator(mode="after")
    def require_one_field(self) -> "UserUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one of name, email or password is required")
        return self


class UserResponse(BaseModel):
    """Schema for user response. Never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Unique user identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    email: str = Field(..., description="User email address")
    role: Role = Field(..., description="User role")
    is_email_verified: bool = Field(..., description="Whether the email has been verified")
