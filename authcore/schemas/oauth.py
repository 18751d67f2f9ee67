"""Pydantic schemas for OAuth flows."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from authcore.models.enums import AuthProviderType
from authcore.schemas.validators import normalize_email


class OAuthCodeRequest(BaseModel):
    """Authorization code returned to the frontend by the provider."""

    code: str = Field(..., min_length=1)


class ProviderUser(BaseModel):
    """Provider profile normalized to a common shape."""

    id: str = Field(..., min_length=1, description="User id at the provider")
    provider_type: AuthProviderType
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class AuthorisationResponse(BaseModel):
    """A provider link of the current user."""

    model_config = ConfigDict(from_attributes=True)

    provider_type: AuthProviderType
    provider_user_id: str
