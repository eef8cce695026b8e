"""FastAPI server for semsearch."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from semsearch import __version__
from semsearch.api.routes import health, indexing, search
from semsearch.client.service import SearchServiceClient
from semsearch.client.stack import StackConfigLoader
from semsearch.core.config import RankingConfig
from semsearch.core.errors import (
    ConfigurationError,
    InvalidResponseError,
    QueryValidationError,
    TransportError,
)
from semsearch.core.orchestrator import SearchOrchestrator, SessionRegistry
from semsearch.core.reindex import ReindexPoller
from semsearch.utils.config import Config, get_config
from semsearch.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _error_response(status_code: int, error: str, message: str, detail: str = None):
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "detail": detail},
    )


def create_app(
    config: Optional[Config] = None,
    client: Optional[SearchServiceClient] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Config instance (uses global config if None)
        client: Backend client to use instead of building one from config.
            A client passed in is not closed on shutdown.

    Returns:
        Configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the per-application session objects and release them on shutdown."""
        cfg = config or get_config()
        setup_logging(level=cfg.get("logging.level", "INFO"), log_file=cfg.get("logging.file"))
        logger.info("Starting semsearch API server")

        service = client or SearchServiceClient(config=cfg)
        orchestrator = SearchOrchestrator(service, RankingConfig.from_config(cfg))

        app.state.config = cfg
        app.state.client = service
        app.state.orchestrator = orchestrator
        app.state.sessions = SessionRegistry(
            orchestrator, max_sessions=cfg.get("api.max_sessions", 1000)
        )
        app.state.stack_loader = StackConfigLoader(service, cfg)
        app.state.poller = ReindexPoller(service, config=cfg)
        logger.info(f"Search backend: {service.base_url}")

        yield

        # Shutdown
        logger.info("Shutting down semsearch API server")
        await app.state.poller.stop()
        if client is None:
            await service.aclose()

    app = FastAPI(
        title="semsearch API",
        description="Consolidated semantic, image and hybrid content search",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(QueryValidationError)
    async def query_validation_handler(request: Request, exc: QueryValidationError):
        return _error_response(422, "invalid_query", exc.message)

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError):
        return _error_response(422, "invalid_configuration", exc.message)

    @app.exception_handler(TransportError)
    async def transport_handler(request: Request, exc: TransportError):
        logger.error(f"Backend request failed: {exc.message}")
        detail = f"HTTP {exc.status_code}" if exc.status_code else None
        return _error_response(502, "backend_unavailable", exc.message, detail)

    @app.exception_handler(InvalidResponseError)
    async def invalid_response_handler(request: Request, exc: InvalidResponseError):
        logger.error(f"Invalid backend response: {exc.message}")
        return _error_response(502, "invalid_backend_response", exc.message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error_response(
            500, "internal_server_error", "An unexpected error occurred", str(exc)
        )

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "semsearch API",
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "search": "/api/v1/search",
                "upload": "/api/v1/search/upload",
                "index": "/api/v1/index",
                "docs": "/docs",
            },
        }

    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(indexing.router)

    return app
