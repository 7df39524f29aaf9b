"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from finsight import __version__
from finsight.api.middleware.auth import build_auth_provider
from finsight.api.ratelimit import limiter, rate_limit_exceeded_handler
from finsight.api.router import api_router
from finsight.config import get_settings
from finsight.infrastructure.database.connection import (
    create_tables,
    dispose_engine,
    get_session_factory,
)
from finsight.infrastructure.database.repositories import ChatRepository
from finsight.observability.metrics import setup_metrics
from finsight.shared.exceptions import (
    AuthenticationError,
    ConfigurationError,
    FinsightError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from finsight.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging()
    logger.info("finsight_starting", version=__version__)

    settings = get_settings()
    if getattr(app.state, "auth_provider", None) is None:
        app.state.auth_provider = build_auth_provider(settings)
    if getattr(app.state, "chat_repository", None) is None:
        app.state.chat_repository = ChatRepository(get_session_factory(settings))
    if settings.database_auto_create:
        await create_tables()
        logger.info("database_tables_created")

    yield

    # Shutdown
    logger.info("finsight_stopping")
    auth_provider = getattr(app.state, "auth_provider", None)
    if auth_provider is not None:
        await auth_provider.close()
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Finsight API",
        description="AI chat engine for personal-finance questions",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # CORS middleware
    if settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    # Observability
    setup_metrics(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=400,
            content={
                "error": "configuration_error",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Request validation failed",
                "details": {"errors": exc.errors()},
            },
        )

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=401,
            content={
                "error": "authentication_error",
                "message": exc.message,
            },
        )

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(FinsightError)
    async def finsight_error_handler(request: Request, exc: FinsightError) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An internal error occurred",
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
            },
        )


# Create app instance
app = create_app()
