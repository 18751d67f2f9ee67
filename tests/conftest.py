"""Pytest configuration and fixtures."""

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from authcore.config import Settings
from authcore.context import build_context
from authcore.db.base import Base
from authcore.db.session import enable_sqlite_foreign_keys
from authcore.main import create_application
from authcore.models.enums import AuthProviderType, Role
from authcore.models.user import User
from authcore.oauth.base import DEFAULT_STATE, OAuthProvider
from authcore.oauth.registry import OAuthProviderRegistry
from authcore.schemas.oauth import ProviderUser
from authcore.schemas.user import UserCreate
from authcore.services.auth_service import AuthService
from authcore.services.authorisation_service import AuthorisationService
from authcore.services.email_service import EmailSender
from authcore.services.rate_limit import AllowAllPolicy
from authcore.services.user_service import UserService

TEST_PASSWORD = "password1"


def build_test_settings(**overrides) -> Settings:
    """Settings that ignore the process environment's .env file."""
    values = {
        "ENV": "test",
        "LOG_LEVEL": "WARNING",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-secret",
        "BCRYPT_ROUNDS": 4,
        "FRONTEND_URL": "http://frontend.test",
    }
    for provider in AuthProviderType:
        prefix = f"OAUTH_{provider.value.upper()}_"
        values[f"{prefix}CLIENT_ID"] = f"{provider.value}-client-id"
        values[f"{prefix}CLIENT_SECRET"] = f"{provider.value}-client-secret"
        values[f"{prefix}REDIRECT_URL"] = f"http://frontend.test/auth/{provider.value}/callback"
    values.update(overrides)
    return Settings(_env_file=None, **values)


class MockEmailSender(EmailSender):
    """Mock email sender that records messages instead of sending them."""

    def __init__(self, frontend_url: str):
        super().__init__(frontend_url)
        self.sent = []

    def send_email(self, to: str, subject: str, body: str) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body})

    def last_token(self) -> str:
        link = re.search(r"https?://\S+", self.sent[-1]["body"]).group(0)
        return parse_qs(urlparse(link).query)["token"][0]


class FakeOAuthProvider(OAuthProvider):
    """Provider adapter that resolves codes from an in-memory table."""

    def __init__(self, provider_type: AuthProviderType):
        self.provider_type = provider_type
        self.profiles: dict[str, ProviderUser] = {}

    def add_profile(
        self, code: str, provider_user_id: str, email: Optional[str], name: Optional[str] = None
    ) -> None:
        self.profiles[code] = ProviderUser(
            id=provider_user_id,
            provider_type=self.provider_type,
            name=name,
            email=email,
        )

    def redirect_url(self, state: Optional[str] = None) -> str:
        return self._build_url(
            f"https://{self.provider_type.value}.test/authorize",
            {"client_id": "fake", "state": state or DEFAULT_STATE},
        )

    def _fetch_profile(self, code: str) -> ProviderUser:
        return self.profiles[code]


@pytest.fixture(scope="function")
def settings():
    return build_test_settings()


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def email_sender(settings):
    return MockEmailSender(settings.FRONTEND_URL)


@pytest.fixture(scope="function")
def oauth_providers():
    registry = OAuthProviderRegistry()
    for provider_type in AuthProviderType:
        registry.register(FakeOAuthProvider(provider_type))
    return registry


@pytest.fixture(scope="function")
def context(settings, engine, oauth_providers, email_sender):
    return build_context(
        settings,
        engine=engine,
        oauth_providers=oauth_providers,
        email_sender=email_sender,
        rate_limit=AllowAllPolicy(),
    )


@pytest.fixture(scope="function")
def client(context):
    """Create a test client bound to the per-test context."""
    app = create_application(context=context)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(context):
    """Database session for arranging and inspecting state directly."""
    session = context.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_service(db_session, context):
    return UserService(db_session, context.hasher)


@pytest.fixture
def authorisation_service(db_session):
    return AuthorisationService(db_session)


@pytest.fixture
def auth_service(db_session, user_service, authorisation_service, context):
    return AuthService(db_session, user_service, authorisation_service, context.token_service)


@pytest.fixture
def make_user(user_service):
    """Factory for local users with a known password."""

    def _make_user(
        email: str = "user@example.com",
        name: str = "Test User",
        role: Role = Role.USER,
        verified: bool = True,
    ) -> User:
        data = UserCreate(name=name, email=email, password=TEST_PASSWORD, role=role)
        return user_service.create_user(data, is_email_verified=verified)

    return _make_user


@pytest.fixture
def auth_headers(context):
    """Build bearer headers for a user."""

    def _auth_headers(user: User) -> dict:
        tokens = context.token_service.generate_auth_tokens(user, context.settings.jwt)
        return {"Authorization": f"Bearer {tokens.access.token}"}

    return _auth_headers


@pytest.fixture
def test_user(client):
    """Register a user through the API and return credentials and tokens."""
    user_data = {
        "name": "Test User",
        "email": "test@example.com",
        "password": "testpassword123",
    }
    response = client.post("/v1/auth/register", json=user_data)
    assert response.status_code == 201
    body = response.json()
    return {"user_data": user_data, "user": body["user"], "tokens": body["tokens"]}
