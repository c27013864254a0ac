"""
FastAPI application entry point.
Assembles the app with routers, middleware, lifespan handlers, and exception handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from fxconverter.api.v1.router import api_router
from fxconverter.api.v1.endpoints.health import get_health
from fxconverter.core.config import settings
from fxconverter.core.exceptions import setup_exception_handlers
from fxconverter.core.logging import setup_logging, get_logger
from fxconverter.core.rate_limit import limiter
from fxconverter.deps.di_container import get_container

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Initializes logging and the DI container, closes the upstream HTTP session.
    """
    # Startup
    setup_logging()

    container = get_container()
    app.state.container = container
    logger.info(
        "Rate tiers ready",
        extra={
            "upstream": settings.UPSTREAM_BASE_URL,
            "cache_backend": settings.CACHE_BACKEND,
            "history_backend": settings.HISTORY_BACKEND,
        },
    )

    yield

    # Shutdown
    await container.http_client().close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Currency conversion API with cached live rates and a static fallback",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting middleware
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", response_model=None, include_in_schema=False)
    async def root_health(response: Response, diagnostics: bool = Query(True)):
        """Root-level health check endpoint."""
        return await get_health(response, diagnostics)

    # Global exception handler
    setup_exception_handlers(app)

    return app


app = create_app()
