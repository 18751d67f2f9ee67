"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authcore.api.v1.router import api_router
from authcore.config import Settings, load_settings
from authcore.context import AppContext, build_context
from authcore.db.base import Base
from authcore.logging_config import configure_logging
from authcore.services.exceptions import InternalConfigError, ServiceError

logger = logging.getLogger(__name__)


def error_body(status_code: int, message: str) -> dict:
    return {"code": status_code, "message": message}


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts) or "Invalid request"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    context: Optional[AppContext] = app.state.context
    if context is not None:
        # Startup: Create database tables
        Base.metadata.create_all(bind=context.engine)
        logger.info(f"{context.settings.APP_NAME} started in {context.settings.ENV} mode")
    yield
    if context is not None:
        context.close()


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"code": <status>, "message": <text>}``."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(status.HTTP_400_BAD_REQUEST, _validation_message(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"),
        )


def create_application(
    settings: Optional[Settings] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Outside production a configuration error does not stop the process; every
    request is answered with a 500 carrying the error message instead.

    Args:
        settings: Settings to use (loaded from the environment if omitted)
        context: Prebuilt application context (built from settings if omitted)

    Returns:
        Configured FastAPI app

    Raises:
        InternalConfigError: If configuration is invalid in production
    """
    config_error: Optional[InternalConfigError] = None
    if context is not None:
        settings = context.settings
    elif settings is None:
        try:
            settings = load_settings()
        except InternalConfigError as e:
            if e.fatal:
                raise
            config_error = e

    if settings is not None:
        configure_logging(settings)
        context = context or build_context(settings)
    else:
        logger.error(config_error.message)

    app_name = settings.APP_NAME if settings else "Auth Service"
    prefix = settings.API_V1_PREFIX if settings else "/v1"

    app = FastAPI(
        title=app_name,
        version=settings.APP_VERSION if settings else "1.0.0",
        description="Authentication and identity service with local and OAuth login.",
        openapi_url=f"{prefix}/openapi.json",
        docs_url=f"{prefix}/docs",
        redoc_url=f"{prefix}/redoc",
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.config_error = config_error

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router, prefix=prefix)

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint."""
        if config_error is not None:
            raise config_error
        return {"status": "healthy", "service": app_name}

    return app


app = create_application()
