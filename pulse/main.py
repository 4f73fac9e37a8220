"""FastAPI application entry point.

Pulse Aggregator API - sliding number windows and social analytics rankings.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator, Callable
import logging

from fastapi import FastAPI, Request
import httpx
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pulse.errors import PulseError
from pulse.routes import api_router
from pulse.schemas import ErrorDetail, ErrorResponse
from pulse.services.fetcher import Fetcher, HttpFetcher
from pulse.services.numbers import NumberAggregator
from pulse.services.ranking import RankEngine
from pulse.settings import Settings, get_settings
from pulse.stores import RankCache, WindowStore

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info(
        f"{settings.app_name} started: window_size={settings.window_size}, "
        f"cache_ttl={settings.cache_ttl_seconds}s"
    )

    yield

    # Shutdown: release the shared upstream HTTP client
    if app.state.http_client is not None:
        await app.state.http_client.aclose()


def _error_response(status_code: int, code: str, message: str, detail: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(
    settings: Settings | None = None,
    *,
    numbers_fetcher: Fetcher | None = None,
    social_fetcher: Fetcher | None = None,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Configuration (defaults to environment settings).
        numbers_fetcher: Upstream client for number categories.
        social_fetcher: Upstream client for users/posts/comments.
        clock: Time source for the ranking cache.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Sliding number windows and social analytics rankings",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Process-wide state, one instance each for the process lifetime
    http_client = None
    if numbers_fetcher is None or social_fetcher is None:
        http_client = httpx.AsyncClient()
    numbers_fetcher = numbers_fetcher or HttpFetcher(
        base_url=settings.numbers_api_base_url,
        auth_token=settings.auth_token,
        timeout=settings.numbers_fetch_timeout,
        client=http_client,
    )
    social_fetcher = social_fetcher or HttpFetcher(
        base_url=settings.social_api_base_url,
        auth_token=settings.auth_token,
        timeout=settings.social_fetch_timeout,
        client=http_client,
    )
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.number_aggregator = NumberAggregator(
        store=WindowStore(settings.window_size),
        fetcher=numbers_fetcher,
        timeout=settings.numbers_fetch_timeout,
    )
    app.state.rank_engine = RankEngine(
        fetcher=social_fetcher,
        cache=RankCache(ttl=settings.cache_ttl_seconds, clock=clock),
        max_concurrency=settings.fetch_max_concurrency,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PulseError)
    async def pulse_exception_handler(request: Request, exc: PulseError) -> JSONResponse:
        """Render domain errors with their own status and code."""
        if exc.status_code < 500:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
        return _error_response(exc.status_code, exc.code, exc.message, exc.detail)

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(
            500,
            "INTERNAL_ERROR",
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pulse.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
