"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from folio import __version__
from folio.api.deps import build_orchestrator
from folio.api.ratelimit import ChatRateLimiter, rate_limit_headers
from folio.api.router import api_router
from folio.api.routes.chat import GENERIC_ERROR
from folio.config import get_settings
from folio.content.store import ContentStore
from folio.observability.metrics import setup_metrics
from folio.shared.exceptions import ConfigurationError, FolioError, RateLimitExceededError
from folio.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging()
    settings = get_settings()
    logger.info(
        "folio_starting",
        version=__version__,
        provider=settings.resolve_llm_provider() or "unconfigured",
    )

    app.state.content_store = getattr(app.state, "content_store", None) or ContentStore(
        settings.content_dir, base_url=settings.site_base_url
    )
    app.state.rate_limiter = getattr(app.state, "rate_limiter", None) or ChatRateLimiter(
        settings.rate_limit_chat, settings.rate_limit_storage_uri
    )
    if getattr(app.state, "orchestrator", None) is None:
        try:
            app.state.orchestrator = build_orchestrator(settings, app.state.content_store)
        except ConfigurationError as e:
            # Chat requests answer 500; health and metrics keep working
            logger.warning("chat_unconfigured", error=e.message)

    yield

    # Shutdown
    logger.info("folio_stopping")
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is not None:
        await orchestrator.gateway.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Folio API",
        description="Portfolio site assistant backed by a tool-calling language model",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    # Exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix="/api")

    # Observability
    setup_metrics(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=429,
            content={"error": exc.message},
            headers=rate_limit_headers(exc.decision),
        )

    @app.exception_handler(FolioError)
    async def folio_error_handler(request: Request, exc: FolioError) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, error_type=type(exc).__name__)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


# Create app instance
app = create_app()
