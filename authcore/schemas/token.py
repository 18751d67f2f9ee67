"""Pydantic schemas for tokens."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from authcore.models.enums import Role, TokenType


class TokenPayload(BaseModel):
    """Schema for verified JWT claims."""

    sub: str = Field(..., pattern=r"^\d+$", description="Subject (user ID)")
    role: Role = Field(..., description="Role of the subject when issued")
    type: TokenType = Field(..., description="Token purpose")
    iat: Optional[int] = Field(default=None, description="Issued-at timestamp")
    exp: int = Field(..., description="Expiration timestamp")

    @property
    def user_id(self) -> int:
        return int(self.sub)


class AuthToken(BaseModel):
    """A signed token with its absolute expiry, serialized as ``expiresAt``."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., description="Signed JWT")
    expires_at: datetime = Field(..., alias="expiresAt", description="Expiry time (UTC)")


class AuthTokens(BaseModel):
    """Access and refresh token pair."""

    access: AuthToken
    refresh: AuthToken
