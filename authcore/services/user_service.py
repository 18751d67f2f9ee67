"""User service for user management."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import asc, delete, desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from authcore.db.session import transaction
from authcore.models.authorisation import Authorisation
from authcore.models.enums import Role
from authcore.models.user import User
from authcore.schemas.oauth import ProviderUser
from authcore.schemas.user import UserCreate, UserUpdate
from authcore.services.exceptions import (
    BadRequestError,
    EmailAlreadyExistsError,
    ForbiddenError,
    UserNotFoundError,
)
from authcore.services.password_hasher import PasswordHasher

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "id": User.id,
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "is_email_verified": User.is_email_verified,
}

# Fields an update may set to null
CLEARABLE_FIELDS = {"name"}


@dataclass
class UserFilter:
    email: Optional[str] = None
    role: Optional[Role] = None


@dataclass
class UserQueryOptions:
    sort_by: str = "id:asc"
    limit: int = 10
    page: int = 0


class UserService:
    """Service for user persistence."""

    def __init__(self, db: Session, hasher: PasswordHasher):
        """
        Initialize the user service.

        Args:
            db: SQLAlchemy database session
            hasher: Password hasher for local credentials
        """
        self.db = db
        self.hasher = hasher

    def create_user(
        self,
        data: UserCreate,
        is_email_verified: bool = False,
    ) -> User:
        """
        Create a new user with a local password.

        Uniqueness of the email is enforced by the unique index rather than a
        prior lookup, so concurrent registrations have exactly one winner.

        Args:
            data: User creation data (email already lower-cased)
            is_email_verified: Initial verification flag

        Returns:
            Created User instance

        Raises:
            EmailAlreadyExistsError: If the email is taken
        """
        user = User(
            name=data.name,
            email=data.email,
            password=self.hasher.hash(data.password),
            role=data.role,
            is_email_verified=is_email_verified,
        )

        try:
            with transaction(self.db):
                self.db.add(user)
        except IntegrityError as e:
            logger.warning("Rejected user creation, email already in use")
            raise EmailAlreadyExistsError() from e

        logger.info(f"Created user {user.id}")
        return user

    def create_oauth_user(self, provider_user: ProviderUser) -> User:
        """
        Create a user and its provider link in one transaction.

        Args:
            provider_user: Normalized provider profile

        Returns:
            Created User instance

        Raises:
            ForbiddenError: If either insert violates a unique constraint
        """
        provider = provider_user.provider_type.value
        user = User(
            name=provider_user.name,
            email=provider_user.email,
            password=None,
            is_email_verified=True,
            role=Role.USER,
        )

        try:
            with transaction(self.db):
                self.db.add(user)
                self.db.flush()
                self.db.add(
                    Authorisation(
                        provider_type=provider,
                        provider_user_id=provider_user.id,
                        user_id=user.id,
                    )
                )
        except IntegrityError as e:
            logger.warning(f"Rejected {provider} signup, email or identity already in use")
            raise ForbiddenError(
                f"Cannot signup with {provider}, user already exists with that email"
            ) from e

        logger.info(f"Created user {user.id} from {provider} account")
        return user

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User instance or None
        """
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email.

        Args:
            email: User email, already lower-cased by the caller

        Returns:
            User instance or None
        """
        return self.db.scalars(select(User).where(User.email == email)).first()

    def get_user_by_provider_id_type(
        self, provider_user_id: str, provider_type: str
    ) -> Optional[User]:
        """
        Get the user linked to a provider identity.

        Args:
            provider_user_id: User id at the provider
            provider_type: Provider type value

        Returns:
            User instance or None
        """
        query = (
            select(User)
            .join(Authorisation, Authorisation.user_id == User.id)
            .where(
                Authorisation.provider_user_id == provider_user_id,
                Authorisation.provider_type == provider_type,
            )
        )
        return self.db.scalars(query).first()

    def query_users(
        self,
        filters: Optional[UserFilter] = None,
        options: Optional[UserQueryOptions] = None,
    ) -> list[User]:
        """
        List users with filtering, sorting and pagination.

        Args:
            filters: Optional exact-match filters
            options: Sort ("field:asc|desc"), page size and zero-based page

        Returns:
            List of User instances

        Raises:
            BadRequestError: If the sort field or direction is not allowed
        """
        filters = filters or UserFilter()
        options = options or UserQueryOptions()

        field, _, direction = options.sort_by.partition(":")
        direction = direction or "asc"
        column = SORTABLE_FIELDS.get(field)
        if column is None or direction not in ("asc", "desc"):
            raise BadRequestError("Invalid sort field")

        query = select(User)

        if filters.email:
            query = query.where(User.email == filters.email)

        if filters.role:
            query = query.where(User.role == filters.role)

        order = desc(column) if direction == "desc" else asc(column)
        query = query.order_by(order).limit(options.limit).offset(options.limit * options.page)
        return list(self.db.scalars(query).all())

    def update_user_by_id(self, user_id: int, data: UserUpdate) -> User:
        """
        Update a user.

        Args:
            user_id: User ID
            data: Fields to update; a password is hashed before storage

        Returns:
            Updated User instance

        Raises:
            UserNotFoundError: If user doesn't exist
            EmailAlreadyExistsError: If the new email is taken
        """
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in CLEARABLE_FIELDS
        }
        if changes.get("password") is not None:
            changes["password"] = self.hasher.hash(changes["password"])
        return self._apply_update(user_id, changes)

    def set_password(self, user_id: int, password: str) -> User:
        """Replace the local password of a user."""
        return self._apply_update(user_id, {"password": self.hasher.hash(password)})

    def mark_email_verified(self, user_id: int) -> User:
        """Flag the user's email as verified."""
        return self._apply_update(user_id, {"is_email_verified": True})

    def delete_user_by_id(self, user_id: int) -> None:
        """
        Delete a user and its provider links.

        Args:
            user_id: User ID

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        with transaction(self.db):
            self.db.execute(delete(Authorisation).where(Authorisation.user_id == user_id))
            result = self.db.execute(delete(User).where(User.id == user_id))
            if result.rowcount < 1:
                raise UserNotFoundError(user_id)

        logger.info(f"Deleted user {user_id}")

    def _apply_update(self, user_id: int, changes: dict) -> User:
        try:
            with transaction(self.db):
                user = self.db.get(User, user_id)
                if not user:
                    raise UserNotFoundError(user_id)
                for key, value in changes.items():
                    setattr(user, key, value)
                self.db.flush()
        except IntegrityError as e:
            raise EmailAlreadyExistsError() from e

        logger.info(f"Updated user {user_id} ({', '.join(sorted(changes))})")
        return user
