"""User management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from authcore.api.v1.dependencies import (
    ensure_self_or_permission,
    get_user_service,
    get_verified_user,
    require_permission,
)
from authcore.models.enums import Role
from authcore.models.user import User
from authcore.schemas.user import UserCreate, UserResponse, UserUpdate
from authcore.schemas.validators import normalize_email
from authcore.services.exceptions import UserNotFoundError
from authcore.services.user_service import UserFilter, UserQueryOptions, UserService

router = APIRouter()


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    description="Create a user with any role. Requires the manageUsers permission.",
)
def create_user(
    data: UserCreate,
    current_user: User = Depends(require_permission("manageUsers")),
    user_service: UserService = Depends(get_user_service),
) -> User:
    return user_service.create_user(data)


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List users",
    description="List users with optional filtering, sorting and pagination. Requires getUsers.",
)
def list_users(
    email: Optional[str] = Query(default=None, description="Filter by exact email"),
    role: Optional[Role] = Query(default=None, description="Filter by role"),
    sort_by: str = Query(default="id:asc", description="Sort as field:asc or field:desc"),
    limit: int = Query(default=10, ge=1, le=100, description="Maximum results"),
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    current_user: User = Depends(require_permission("getUsers")),
    user_service: UserService = Depends(get_user_service),
) -> list[User]:
    return user_service.query_users(
        UserFilter(email=normalize_email(email), role=role),
        UserQueryOptions(sort_by=sort_by, limit=limit, page=page),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user",
)
def get_user(
    user_id: int,
    current_user: User = Depends(get_verified_user),
    user_service: UserService = Depends(get_user_service),
) -> User:
    ensure_self_or_permission(current_user, user_id, "getUsers")
    user = user_service.get_user_by_id(user_id)
    if not user:
        raise UserNotFoundError(user_id)
    return user


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
)
def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(get_verified_user),
    user_service: UserService = Depends(get_user_service),
) -> User:
    ensure_self_or_permission(current_user, user_id, "manageUsers")
    return user_service.update_user_by_id(user_id, data)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a user",
)
def delete_user(
    user_id: int,
    current_user: User = Depends(get_verified_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    ensure_self_or_permission(current_user, user_id, "manageUsers")
    user_service.delete_user_by_id(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
