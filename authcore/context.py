"""Process-wide collaborators, built once at startup and injected everywhere."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from authcore.config import Settings
from authcore.db.session import build_engine, build_session_factory
from authcore.oauth.registry import OAuthProviderRegistry, build_provider_registry
from authcore.services.email_service import CeleryEmailSender, EmailSender
from authcore.services.password_hasher import PasswordHasher
from authcore.services.rate_limit import FixedWindowPolicy, RateLimitPolicy
from authcore.services.token_service import TokenService
from authcore.workers.celery_app import create_celery_app

logger = logging.getLogger(__name__)

# Provider calls time out after this many seconds
OAUTH_HTTP_TIMEOUT = 20.0


@dataclass
class AppContext:
    """Everything a request needs that outlives the request."""

    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    hasher: PasswordHasher
    token_service: TokenService
    oauth_providers: OAuthProviderRegistry
    email_sender: EmailSender
    rate_limit: RateLimitPolicy
    http_client: Optional[httpx.Client] = None

    def close(self) -> None:
        """Release the database pool and the provider HTTP client."""
        if self.http_client is not None:
            self.http_client.close()
        self.engine.dispose()
        logger.debug("Application context closed")


def build_context(
    settings: Settings,
    engine: Optional[Engine] = None,
    oauth_providers: Optional[OAuthProviderRegistry] = None,
    email_sender: Optional[EmailSender] = None,
    rate_limit: Optional[RateLimitPolicy] = None,
    http_client: Optional[httpx.Client] = None,
) -> AppContext:
    """
    Construct the application context.

    Any collaborator may be supplied explicitly, which is how tests swap in
    an in-memory database, fake providers or a recording email sender.

    Args:
        settings: Validated settings
        engine: Database engine (built from settings if omitted)
        oauth_providers: Provider registry (built from settings if omitted)
        email_sender: Email sender (Celery-backed if omitted)
        rate_limit: Rate limit policy (fixed window from settings if omitted)
        http_client: HTTP client for provider adapters (created and owned by
            the context if omitted and the registry is built here)

    Returns:
        AppContext instance
    """
    engine = engine or build_engine(settings)
    if oauth_providers is None:
        http_client = http_client or httpx.Client(timeout=OAUTH_HTTP_TIMEOUT)
        oauth_providers = build_provider_registry(settings, http_client)
    if email_sender is None:
        email_sender = CeleryEmailSender(settings.FRONTEND_URL, create_celery_app(settings))
    if rate_limit is None:
        rate_limit = FixedWindowPolicy(
            limit=settings.VERIFICATION_EMAIL_RATE_LIMIT,
            window_seconds=settings.VERIFICATION_EMAIL_RATE_WINDOW_SECONDS,
        )

    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        token_service=TokenService(),
        oauth_providers=oauth_providers,
        email_sender=email_sender,
        rate_limit=rate_limit,
        http_client=http_client,
    )
