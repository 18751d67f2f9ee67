"""Authentication endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status

from authcore.api.v1.dependencies import (
    get_auth_service,
    get_current_user,
    get_email_sender,
    get_jwt_config,
    get_rate_limit,
    get_token_service,
)
from authcore.config import JwtConfig
from authcore.models.user import User
from authcore.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokensRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from authcore.schemas.token import AuthTokens
from authcore.schemas.user import UserResponse
from authcore.services.auth_service import AuthService
from authcore.services.email_service import EmailSender
from authcore.services.exceptions import TooManyRequestsError
from authcore.services.rate_limit import RateLimitPolicy
from authcore.services.token_service import TokenService

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a new user account with email and password and return a token pair.",
)
def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
) -> AuthResponse:
    """Register a new user."""
    user = auth_service.register(data)
    tokens = token_service.generate_auth_tokens(user, jwt_config)
    return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and password",
)
def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
) -> AuthResponse:
    """Authenticate and get a token pair."""
    user = auth_service.login_user_with_email_and_password(data.email, data.password)
    tokens = token_service.generate_auth_tokens(user, jwt_config)
    return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)


@router.post(
    "/refresh-tokens",
    response_model=AuthTokens,
    summary="Exchange a refresh token for a new token pair",
)
def refresh_tokens(
    data: RefreshTokensRequest,
    auth_service: AuthService = Depends(get_auth_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
) -> AuthTokens:
    """Refresh the token pair."""
    return auth_service.refresh_auth(data.refresh_token, jwt_config)


@router.post(
    "/forgot-password",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Request a password reset email",
    description="Always succeeds so the response does not reveal whether the email is registered.",
)
def forgot_password(
    data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
    email_sender: EmailSender = Depends(get_email_sender),
) -> Response:
    auth_service.forgot_password(data.email, jwt_config, email_sender)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/reset-password",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Reset the password with a reset token",
)
def reset_password(
    data: ResetPasswordRequest,
    token: str = Query(..., min_length=1, description="Reset password token"),
    auth_service: AuthService = Depends(get_auth_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
) -> Response:
    auth_service.reset_password(token, data.password, jwt_config)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/send-verification-email",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Send an email verification link to the current user",
)
def send_verification_email(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
    email_sender: EmailSender = Depends(get_email_sender),
    rate_limit: RateLimitPolicy = Depends(get_rate_limit),
) -> Response:
    if not rate_limit.hit(f"send-verification-email:{current_user.id}"):
        raise TooManyRequestsError()
    auth_service.send_verification_email(current_user, jwt_config, email_sender)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/verify-email",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Verify an email with a verification token",
)
def verify_email(
    token: str = Query(..., min_length=1, description="Verify email token"),
    auth_service: AuthService = Depends(get_auth_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
) -> Response:
    auth_service.verify_email(token, jwt_config)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get the currently authenticated user's information.",
)
def get_me(
    current_user: User = Depends(get_current_user),
) -> User:
    """Get current user information."""
    return current_user
