"""Signing and verification of bearer tokens."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from authcore.config import JwtConfig
from authcore.models.enums import Role, TokenType
from authcore.models.user import User
from authcore.schemas.token import AuthToken, AuthTokens, TokenPayload
from authcore.services.exceptions import (
    ExpiredTokenError,
    InvalidTokenError,
    WrongTokenTypeError,
)

logger = logging.getLogger(__name__)

# JWT settings
ALGORITHM = "HS256"


class TokenService:
    """
    Issues and verifies HS256 JWTs.

    Tokens are not stored server-side: validity is decided by the signature
    and the ``exp`` claim alone, so a token stays valid until it expires.
    """

    def issue(
        self,
        user_id: int,
        role: Role,
        token_type: TokenType,
        expires: datetime,
        secret: str,
        issued_at: Optional[datetime] = None,
    ) -> str:
        """
        Sign a token for a user.

        Args:
            user_id: Subject user ID
            role: Role of the subject
            token_type: Purpose of the token
            expires: Absolute expiry time
            secret: Signing secret
            issued_at: Issue time, defaults to now

        Returns:
            JWT token string
        """
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "type": TokenType(token_type).value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def verify(self, token: str, expected_type: TokenType, secret: str) -> TokenPayload:
        """
        Verify a JWT token and extract its claims.

        Args:
            token: JWT token string
            expected_type: Type the token must have been issued as
            secret: Signing secret

        Returns:
            TokenPayload with the verified claims

        Raises:
            ExpiredTokenError: If the token is past its expiry
            InvalidTokenError: If the signature or claims are invalid
            WrongTokenTypeError: If the token was issued for another purpose
        """
        try:
            claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}") from e

        try:
            payload = TokenPayload(**claims)
        except ValidationError as e:
            raise InvalidTokenError("Invalid token payload") from e

        if payload.type != expected_type:
            raise WrongTokenTypeError(TokenType(expected_type).value, payload.type.value)

        return payload

    def generate_auth_tokens(self, user: User, jwt_config: JwtConfig) -> AuthTokens:
        """
        Issue an access and refresh token pair for a user.

        Args:
            user: Authenticated user
            jwt_config: JWT secret and lifetimes

        Returns:
            AuthTokens with both tokens and their expiry times
        """
        now = datetime.now(timezone.utc)
        access_expires = now + timedelta(minutes=jwt_config.access_expiration_minutes)
        refresh_expires = now + timedelta(days=jwt_config.refresh_expiration_days)

        access_token = self.issue(
            user.id, user.role, TokenType.ACCESS, access_expires, jwt_config.secret, now
        )
        refresh_token = self.issue(
            user.id, user.role, TokenType.REFRESH, refresh_expires, jwt_config.secret, now
        )
        return AuthTokens(
            access=AuthToken(token=access_token, expires_at=access_expires),
            refresh=AuthToken(token=refresh_token, expires_at=refresh_expires),
        )

    def generate_reset_password_token(self, user: User, jwt_config: JwtConfig) -> str:
        """Issue a short-lived password reset token."""
        expires = datetime.now(timezone.utc) + timedelta(
            minutes=jwt_config.reset_password_expiration_minutes
        )
        return self.issue(user.id, user.role, TokenType.RESET_PASSWORD, expires, jwt_config.secret)

    def generate_verify_email_token(self, user: User, jwt_config: JwtConfig) -> str:
        """Issue a short-lived email verification token."""
        expires = datetime.now(timezone.utc) + timedelta(
            minutes=jwt_config.verify_email_expiration_minutes
        )
        return self.issue(user.id, user.role, TokenType.VERIFY_EMAIL, expires, jwt_config.secret)
