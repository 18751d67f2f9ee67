"""
Authentication and account-linking service.

A user's authentication state is the pair (has local password, set of linked
providers). Every operation here either keeps at least one login method on
the account or fails; multi-row changes run inside a single transaction.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from authcore.config import JwtConfig
from authcore.db.session import transaction
from authcore.models.enums import AuthProviderType, Role, TokenType
from authcore.models.user import User
from authcore.schemas.auth import RegisterRequest
from authcore.schemas.oauth import ProviderUser
from authcore.schemas.token import AuthTokens
from authcore.schemas.user import UserCreate
from authcore.services.authorisation_service import AuthorisationService
from authcore.services.email_service import EmailSender
from authcore.services.exceptions import (
    BadRequestError,
    UnauthorizedError,
)
from authcore.services.token_service import TokenService
from authcore.services.user_service import UserService

logger = logging.getLogger(__name__)

MIN_LOGIN_METHODS = 1


def select_user_for_update(user_id: int):
    """Select a user row with a write lock, refreshing any cached instance."""
    return (
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


class AuthService:
    """Orchestrates users, provider links and tokens."""

    def __init__(
        self,
        db: Session,
        user_service: UserService,
        authorisation_service: AuthorisationService,
        token_service: TokenService,
    ):
        """
        Initialize the auth service.

        Args:
            db: SQLAlchemy database session shared by the stores
            user_service: User store
            authorisation_service: Provider link store
            token_service: Token codec
        """
        self.db = db
        self.user_service = user_service
        self.authorisation_service = authorisation_service
        self.token_service = token_service

    def register(self, body: RegisterRequest) -> User:
        """
        Register a user with a local password.

        Raises:
            EmailAlreadyExistsError: If the email is taken
        """
        data = UserCreate.model_construct(
            name=body.name,
            email=body.email,
            password=body.password,
            role=Role.USER,
        )
        return self.user_service.create_user(data, is_email_verified=False)

    def login_user_with_email_and_password(self, email: str, password: str) -> User:
        """
        Authenticate with email and password.

        Args:
            email: User email
            password: Plain-text password

        Returns:
            Authenticated User instance

        Raises:
            UnauthorizedError: If credentials are invalid or the account has
                no local password
        """
        user = self.user_service.get_user_by_email(email.lower())

        if user and not user.has_local_login:
            raise UnauthorizedError("Please login with your social account")

        if not user or not self.user_service.hasher.verify(password, user.password):
            raise UnauthorizedError("Incorrect email or password")

        return user

    def refresh_auth(self, refresh_token: str, jwt_config: JwtConfig) -> AuthTokens:
        """
        Issue a new token pair from a refresh token.

        The presented refresh token is not revoked.

        Raises:
            UnauthorizedError: If the token is invalid or its user is gone
        """
        try:
            user = self._user_from_token(refresh_token, TokenType.REFRESH, jwt_config)
        except UnauthorizedError as e:
            raise UnauthorizedError("Please authenticate") from e
        return self.token_service.generate_auth_tokens(user, jwt_config)

    def reset_password(self, reset_password_token: str, new_password: str, jwt_config: JwtConfig) -> None:
        """
        Set a new password using a reset token.

        Raises:
            UnauthorizedError: If the token is invalid or its user is gone
        """
        try:
            user = self._user_from_token(reset_password_token, TokenType.RESET_PASSWORD, jwt_config)
        except UnauthorizedError as e:
            raise UnauthorizedError("Password reset failed") from e
        self.user_service.set_password(user.id, new_password)
        logger.info(f"Password reset for user {user.id}")

    def verify_email(self, verify_email_token: str, jwt_config: JwtConfig) -> None:
        """
        Mark a user's email as verified.

        Raises:
            UnauthorizedError: If the token is invalid or its user is gone
        """
        try:
            user = self._user_from_token(verify_email_token, TokenType.VERIFY_EMAIL, jwt_config)
        except UnauthorizedError as e:
            raise UnauthorizedError("Email verification failed") from e
        self.user_service.mark_email_verified(user.id)
        logger.info(f"Verified email for user {user.id}")

    def forgot_password(self, email: str, jwt_config: JwtConfig, email_sender: EmailSender) -> None:
        """Send a reset link if the email belongs to a user; do nothing otherwise."""
        user = self.user_service.get_user_by_email(email.lower())
        if not user:
            logger.info("Password reset requested for unknown email")
            return
        token = self.token_service.generate_reset_password_token(user, jwt_config)
        email_sender.send_reset_password_email(user.email, token)

    def send_verification_email(self, user: User, jwt_config: JwtConfig, email_sender: EmailSender) -> None:
        """Send an email verification link to the user."""
        token = self.token_service.generate_verify_email_token(user, jwt_config)
        email_sender.send_verification_email(user.email, user.name, token)

    def login_or_create_user_with_oauth(self, provider_user: ProviderUser) -> User:
        """
        Log in through a provider identity, signing up on first use.

        Args:
            provider_user: Normalized provider profile

        Returns:
            The linked or newly created User

        Raises:
            BadRequestError: If a new account is needed but the provider gave
                no email
            ForbiddenError: If the email belongs to an existing account
        """
        user = self.user_service.get_user_by_provider_id_type(
            provider_user.id, provider_user.provider_type.value
        )
        if user:
            return user

        if not provider_user.email:
            raise BadRequestError("Provider account has no email address")

        return self.user_service.create_oauth_user(provider_user)

    def link_user_with_oauth(self, user_id: int, provider_user: ProviderUser) -> None:
        """
        Link a provider identity to an existing user.

        Raises:
            UnauthorizedError: If the user no longer exists
            BadRequestError: If the identity is already linked to any user
        """
        provider = provider_user.provider_type.value
        try:
            with transaction(self.db):
                user = self.db.scalars(select(User).where(User.id == user_id)).first()
                if not user:
                    raise UnauthorizedError("Please authenticate")
                self.authorisation_service.create_authorisation(
                    user_id=user_id,
                    provider_type=provider,
                    provider_user_id=provider_user.id,
                )
        except IntegrityError as e:
            logger.warning(f"Rejected {provider} link for user {user_id}, identity already linked")
            raise BadRequestError("Account already linked") from e

        logger.info(f"Linked {provider} account to user {user_id}")

    def delete_oauth_link(self, user_id: int, provider_type: AuthProviderType) -> None:
        """
        Remove a provider link, keeping at least one login method.

        The user row is locked before counting so concurrent unlinks cannot
        both pass the check.

        Raises:
            BadRequestError: If this is the last login method or the provider
                is not linked
        """
        provider = AuthProviderType(provider_type).value
        with transaction(self.db):
            user = self.db.scalars(select_user_for_update(user_id)).first()
            if not user:
                raise BadRequestError("Account not linked")

            link_count = self.authorisation_service.count_user_authorisations(user_id)
            logins_no = link_count + 1 if user.has_local_login else link_count

            if logins_no <= MIN_LOGIN_METHODS:
                if self.authorisation_service.get_authorisation(user_id, provider) is None:
                    raise BadRequestError("Account not linked")
                logger.warning(f"Refused to unlink last login method of user {user_id}")
                raise BadRequestError("Cannot unlink last login method")

            deleted = self.authorisation_service.delete_authorisation(user_id, provider)
            if deleted < 1:
                raise BadRequestError("Account not linked")

        logger.info(f"Unlinked {provider} account from user {user_id}")

    def _user_from_token(self, token: str, token_type: TokenType, jwt_config: JwtConfig) -> User:
        payload = self.token_service.verify(token, token_type, jwt_config.secret)
        user = self.user_service.get_user_by_id(payload.user_id)
        if not user:
            raise UnauthorizedError()
        return user
