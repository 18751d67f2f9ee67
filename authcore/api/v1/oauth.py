"""OAuth login, link and unlink endpoints, shared by every provider."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import RedirectResponse

from authcore.api.v1.dependencies import (
    get_auth_service,
    get_authorisation_service,
    get_current_user,
    get_jwt_config,
    get_oauth_provider,
    get_token_service,
    get_verified_user,
)
from authcore.config import JwtConfig
from authcore.models.enums import AuthProviderType
from authcore.models.user import User
from authcore.oauth.base import OAuthProvider
from authcore.schemas.auth import AuthResponse
from authcore.schemas.oauth import AuthorisationResponse, OAuthCodeRequest
from authcore.schemas.user import UserResponse
from authcore.services.auth_service import AuthService
from authcore.services.authorisation_service import AuthorisationService
from authcore.services.exceptions import ForbiddenError
from authcore.services.token_service import TokenService

router = APIRouter()


@router.get(
    "/authorisations",
    response_model=list[AuthorisationResponse],
    summary="List the current user's provider links",
)
def list_authorisations(
    current_user: User = Depends(get_current_user),
    authorisation_service: AuthorisationService = Depends(get_authorisation_service),
) -> list[AuthorisationResponse]:
    links = authorisation_service.list_user_authorisations(current_user.id)
    return [AuthorisationResponse.model_validate(link) for link in links]


@router.get(
    "/{provider}/redirect",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    summary="Redirect to the provider's consent screen",
)
def oauth_redirect(
    state: Optional[str] = Query(default=None, description="Opaque value echoed back by the provider"),
    oauth_provider: OAuthProvider = Depends(get_oauth_provider),
) -> RedirectResponse:
    return RedirectResponse(oauth_provider.redirect_url(state), status_code=status.HTTP_302_FOUND)


@router.post(
    "/{provider}/callback",
    response_model=AuthResponse,
    summary="Log in or sign up with a provider authorization code",
    description="""
    Exchange the authorization code for the provider profile. An existing link
    logs the user in; otherwise a new account is created with the provider's
    email, unless that email already belongs to another account.
    """,
)
def oauth_callback(
    data: OAuthCodeRequest,
    oauth_provider: OAuthProvider = Depends(get_oauth_provider),
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service),
    jwt_config: JwtConfig = Depends(get_jwt_config),
) -> AuthResponse:
    provider_user = oauth_provider.fetch_profile(data.code)
    user = auth_service.login_or_create_user_with_oauth(provider_user)
    tokens = token_service.generate_auth_tokens(user, jwt_config)
    return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)


@router.post(
    "/{provider}/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Link a provider account to the current user",
)
def link_oauth(
    user_id: int,
    data: OAuthCodeRequest,
    current_user: User = Depends(get_verified_user),
    oauth_provider: OAuthProvider = Depends(get_oauth_provider),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    if current_user.id != user_id:
        raise ForbiddenError()
    provider_user = oauth_provider.fetch_profile(data.code)
    auth_service.link_user_with_oauth(user_id, provider_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{provider}/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Unlink a provider account from the current user",
)
def unlink_oauth(
    provider: AuthProviderType,
    user_id: int,
    current_user: User = Depends(get_verified_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    if current_user.id != user_id:
        raise ForbiddenError()
    auth_service.delete_oauth_link(user_id, provider)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
