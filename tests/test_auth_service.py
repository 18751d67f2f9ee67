"""AuthService tests against an in-memory database."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite

from authcore.models.authorisation import Authorisation
from authcore.models.enums import AuthProviderType, TokenType
from authcore.models.user import User
from authcore.schemas.auth import RegisterRequest
from authcore.schemas.oauth import ProviderUser
from authcore.services import auth_service as auth_service_module
from authcore.services.auth_service import select_user_for_update
from authcore.services.exceptions import (
    BadRequestError,
    EmailAlreadyExistsError,
    ForbiddenError,
    UnauthorizedError,
)


def provider_user(provider: str, provider_user_id: str, email="social@example.com") -> ProviderUser:
    return ProviderUser(
        id=provider_user_id,
        provider_type=AuthProviderType(provider),
        name="Social User",
        email=email,
    )


def register(auth_service, email="user@example.com", password="password1"):
    return auth_service.register(RegisterRequest(name="User", email=email, password=password))


class TestLocalAccounts:
    """Registration and email/password login."""

    def test_register_then_login(self, auth_service, context):
        """Test that a registered user can log in and gets a token pair."""
        user = register(auth_service)

        logged_in = auth_service.login_user_with_email_and_password("user@example.com", "password1")
        assert logged_in.id == user.id

        tokens = context.token_service.generate_auth_tokens(logged_in, context.settings.jwt)
        payload = context.token_service.verify(
            tokens.access.token, TokenType.ACCESS, context.settings.JWT_SECRET
        )
        assert payload.user_id == user.id
        assert tokens.refresh.expires_at > tokens.access.expires_at

    def test_register_duplicate_email(self, auth_service, db_session):
        register(auth_service)
        with pytest.raises(EmailAlreadyExistsError):
            register(auth_service, email="USER@example.com")
        assert db_session.scalar(select(func.count()).select_from(User)) == 1

    def test_password_is_hashed(self, auth_service):
        user = register(auth_service)
        assert user.password != "password1"
        assert user.password.startswith("$2")

    def test_login_wrong_password(self, auth_service):
        register(auth_service)
        with pytest.raises(UnauthorizedError, match="Incorrect email or password"):
            auth_service.login_user_with_email_and_password("user@example.com", "password2")


class TestTokenFlows:
    """Password reset, email verification and refresh."""

    def test_reset_password_with_expired_token(self, auth_service, context, db_session):
        """Test that an expired reset token changes nothing."""
        user = register(auth_service)
        old_hash = user.password
        token = context.token_service.issue(
            user.id,
            user.role,
            TokenType.RESET_PASSWORD,
            datetime.now(timezone.utc) - timedelta(seconds=5),
            context.settings.JWT_SECRET,
        )

        with pytest.raises(UnauthorizedError, match="Password reset failed"):
            auth_service.reset_password(token, "brandnew123", context.settings.jwt)

        db_session.expire_all()
        assert db_session.get(User, user.id).password == old_hash

    def test_reset_password(self, auth_service, context):
        user = register(auth_service)
        token = context.token_service.generate_reset_password_token(user, context.settings.jwt)

        auth_service.reset_password(token, "brandnew123", context.settings.jwt)

        assert auth_service.login_user_with_email_and_password("user@example.com", "brandnew123")

    def test_reset_password_rejects_verify_token(self, auth_service, context):
        user = register(auth_service)
        token = context.token_service.generate_verify_email_token(user, context.settings.jwt)
        with pytest.raises(UnauthorizedError, match="Password reset failed"):
            auth_service.reset_password(token, "brandnew123", context.settings.jwt)

    def test_verify_email(self, auth_service, context, db_session):
        user = register(auth_service)
        token = context.token_service.generate_verify_email_token(user, context.settings.jwt)

        auth_service.verify_email(token, context.settings.jwt)

        db_session.expire_all()
        assert db_session.get(User, user.id).is_email_verified is True

    def test_refresh_auth(self, auth_service, context):
        user = register(auth_service)
        tokens = context.token_service.generate_auth_tokens(user, context.settings.jwt)

        refreshed = auth_service.refresh_auth(tokens.refresh.token, context.settings.jwt)
        payload = context.token_service.verify(
            refreshed.access.token, TokenType.ACCESS, context.settings.JWT_SECRET
        )
        assert payload.user_id == user.id

    def test_forgot_password_unknown_email_is_silent(self, auth_service, context, email_sender):
        auth_service.forgot_password("nobody@example.com", context.settings.jwt, email_sender)
        assert email_sender.sent == []


class TestOAuthAccounts:
    """OAuth signup, link and unlink."""

    def test_oauth_signup_with_existing_email(self, auth_service, db_session):
        """Test that a provider email owned by a local user is rejected atomically."""
        register(auth_service, email="social@example.com")

        with pytest.raises(ForbiddenError, match="Cannot signup with github"):
            auth_service.login_or_create_user_with_oauth(provider_user("github", "gh-1"))

        assert db_session.scalar(select(func.count()).select_from(User)) == 1
        assert db_session.scalar(select(func.count()).select_from(Authorisation)) == 0

    def test_oauth_login_returns_linked_user(self, auth_service):
        created = auth_service.login_or_create_user_with_oauth(provider_user("github", "gh-1"))
        again = auth_service.login_or_create_user_with_oauth(provider_user("github", "gh-1"))
        assert again.id == created.id
        assert created.password is None
        assert created.is_email_verified is True

    def test_unlink_with_local_password(self, auth_service, authorisation_service):
        user = register(auth_service)
        auth_service.link_user_with_oauth(user.id, provider_user("github", "gh-1"))

        auth_service.delete_oauth_link(user.id, AuthProviderType.GITHUB)
        assert authorisation_service.list_user_authorisations(user.id) == []

        with pytest.raises(BadRequestError, match="Account not linked"):
            auth_service.delete_oauth_link(user.id, AuthProviderType.GITHUB)

    def test_unlink_last_provider(self, auth_service, authorisation_service):
        user = auth_service.login_or_create_user_with_oauth(provider_user("google", "g-1"))

        with pytest.raises(BadRequestError, match="Cannot unlink last login method"):
            auth_service.delete_oauth_link(user.id, AuthProviderType.GOOGLE)

        auth_service.link_user_with_oauth(user.id, provider_user("facebook", "f-1"))
        auth_service.delete_oauth_link(user.id, AuthProviderType.GOOGLE)

        links = authorisation_service.list_user_authorisations(user.id)
        assert [(a.provider_type, a.provider_user_id) for a in links] == [("facebook", "f-1")]

    def test_unlink_down_to_zero_is_refused(self, auth_service, authorisation_service):
        """Test that an OAuth-only account always keeps one login method."""
        user = auth_service.login_or_create_user_with_oauth(provider_user("google", "g-1"))
        for provider, provider_id in (("github", "gh-1"), ("discord", "d-1")):
            auth_service.link_user_with_oauth(user.id, provider_user(provider, provider_id))

        auth_service.delete_oauth_link(user.id, AuthProviderType.GOOGLE)
        auth_service.delete_oauth_link(user.id, AuthProviderType.GITHUB)
        with pytest.raises(BadRequestError, match="Cannot unlink last login method"):
            auth_service.delete_oauth_link(user.id, AuthProviderType.DISCORD)

        assert authorisation_service.count_user_authorisations(user.id) == 1

    def test_unlink_provider_never_linked(self, auth_service):
        user = register(auth_service)
        auth_service.link_user_with_oauth(user.id, provider_user("github", "gh-1"))
        with pytest.raises(BadRequestError, match="Account not linked"):
            auth_service.delete_oauth_link(user.id, AuthProviderType.SPOTIFY)

    def test_link_missing_user(self, auth_service):
        with pytest.raises(UnauthorizedError, match="Please authenticate"):
            auth_service.link_user_with_oauth(999, provider_user("github", "gh-1"))

    def test_link_same_provider_twice(self, auth_service, authorisation_service):
        user = register(auth_service)
        auth_service.link_user_with_oauth(user.id, provider_user("github", "gh-1"))
        with pytest.raises(BadRequestError, match="Account already linked"):
            auth_service.link_user_with_oauth(user.id, provider_user("github", "gh-1"))
        assert authorisation_service.count_user_authorisations(user.id) == 1


class TestUnlinkLocking:
    """Tests for the row lock taken before counting login methods."""

    def test_user_select_locks_row_on_postgres(self):
        sql = str(select_user_for_update(7).compile(dialect=postgresql.dialect()))
        assert sql.rstrip().endswith("FOR UPDATE")
        assert "WHERE" in sql and "user" in sql

    def test_lock_is_dropped_on_sqlite(self):
        """Test that SQLite, which has no row locks, still accepts the statement."""
        sql = str(select_user_for_update(7).compile(dialect=sqlite.dialect()))
        assert "FOR UPDATE" not in sql

    def test_select_refreshes_cached_user(self):
        statement = select_user_for_update(7)
        assert statement.get_execution_options()["populate_existing"] is True

    def test_unlink_uses_locking_select(self, auth_service, monkeypatch):
        user = register(auth_service)
        auth_service.link_user_with_oauth(user.id, provider_user("github", "gh-1"))
        requested = []

        def recording_select(user_id):
            requested.append(user_id)
            return select_user_for_update(user_id)

        monkeypatch.setattr(auth_service_module, "select_user_for_update", recording_select)
        auth_service.delete_oauth_link(user.id, AuthProviderType.GITHUB)

        assert requested == [user.id]
