"""API dependencies for dependency injection."""

from typing import Callable, Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from authcore.config import JwtConfig
from authcore.context import AppContext
from authcore.models.enums import ROLE_PERMISSIONS, AuthProviderType, Role, TokenType
from authcore.models.user import User
from authcore.oauth.base import OAuthProvider
from authcore.schemas.token import TokenPayload
from authcore.services.auth_service import AuthService
from authcore.services.authorisation_service import AuthorisationService
from authcore.services.email_service import EmailSender
from authcore.services.exceptions import ForbiddenError, UnauthorizedError
from authcore.services.rate_limit import RateLimitPolicy
from authcore.services.token_service import TokenService
from authcore.services.user_service import UserService

# Security scheme for JWT; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def get_context(request: Request) -> AppContext:
    """
    Get the application context built at startup.

    Raises:
        InternalConfigError: If the configuration failed to load
    """
    config_error = getattr(request.app.state, "config_error", None)
    if config_error is not None:
        raise config_error
    return request.app.state.context


def get_db(context: AppContext = Depends(get_context)) -> Generator[Session, None, None]:
    """Yield a database session for the request."""
    db = context.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_jwt_config(context: AppContext = Depends(get_context)) -> JwtConfig:
    return context.settings.jwt


def get_email_sender(context: AppContext = Depends(get_context)) -> EmailSender:
    return context.email_sender


def get_rate_limit(context: AppContext = Depends(get_context)) -> RateLimitPolicy:
    return context.rate_limit


def get_token_service(context: AppContext = Depends(get_context)) -> TokenService:
    return context.token_service


def get_oauth_provider(
    provider: AuthProviderType,
    context: AppContext = Depends(get_context),
) -> OAuthProvider:
    """Get the adapter for the provider named in the path."""
    return context.oauth_providers.get(provider)


def get_user_service(
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> UserService:
    """Get user service instance."""
    return UserService(db, context.hasher)


def get_authorisation_service(db: Session = Depends(get_db)) -> AuthorisationService:
    """Get authorisation service instance."""
    return AuthorisationService(db)


def get_auth_service(
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
    authorisation_service: AuthorisationService = Depends(get_authorisation_service),
    context: AppContext = Depends(get_context),
) -> AuthService:
    """Get auth service instance."""
    return AuthService(db, user_service, authorisation_service, context.token_service)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    context: AppContext = Depends(get_context),
) -> TokenPayload:
    """
    Verify the bearer access token.

    Raises:
        UnauthorizedError: If the token is missing, invalid, expired or not
            an access token
    """
    if credentials is None:
        raise UnauthorizedError("Please authenticate")
    try:
        return context.token_service.verify(
            credentials.credentials, TokenType.ACCESS, context.settings.JWT_SECRET
        )
    except UnauthorizedError as e:
        raise UnauthorizedError("Please authenticate") from e


def get_current_user(
    payload: TokenPayload = Depends(get_token_payload),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """
    Get the current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If the token's user no longer exists
    """
    user = user_service.get_user_by_id(payload.user_id)
    if not user:
        raise UnauthorizedError("Please authenticate")
    return user


def get_verified_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Get the current user, requiring a verified email.

    Raises:
        ForbiddenError: If the email is not verified
    """
    if not current_user.is_email_verified:
        raise ForbiddenError("Please verify your email")
    return current_user


def has_permission(user: User, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(Role(user.role), frozenset())


def require_permission(permission: str) -> Callable[[User], User]:
    """Build a dependency that requires a verified user holding a permission."""

    def dependency(current_user: User = Depends(get_verified_user)) -> User:
        if not has_permission(current_user, permission):
            raise ForbiddenError()
        return current_user

    return dependency


def ensure_self_or_permission(current_user: User, user_id: int, permission: str) -> None:
    """
    Allow acting on one's own account, or on any account with a permission.

    Raises:
        ForbiddenError: Otherwise
    """
    if current_user.id != user_id and not has_permission(current_user, permission):
        raise ForbiddenError()
