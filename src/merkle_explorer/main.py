"""
Merkle Explorer - Main Entry Point

Provides APIs for building hash trees and generating and verifying
membership proofs.
"""

import signal
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from starlette.responses import Response

from merkle_explorer.api.v1 import router as api_v1_router
from merkle_explorer.core.config import settings
from merkle_explorer.core.logging import setup_logging
from merkle_explorer.metrics import get_tree_metrics
from merkle_explorer.services.tree_service import TreeService

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting Merkle Explorer",
        version=settings.VERSION,
        environment=settings.ENV,
        max_items=settings.MAX_ITEMS,
        leaf_hash_workers=settings.LEAF_HASH_WORKERS,
    )

    tree_metrics = get_tree_metrics()
    tree_metrics.set_service_info(
        version=settings.VERSION,
        environment=settings.ENV,
    )

    # Store service in app state for access in routes
    app.state.tree_service = TreeService(metrics=tree_metrics)

    yield

    logger.info("Merkle Explorer shutdown complete")


def create_application() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="Merkle Explorer API",
        description="SHA-256 hash trees with membership proofs",
        version=settings.VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(api_v1_router, prefix="/api/v1")

    if settings.METRICS_ENABLED:
        app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health() -> dict:
        """Overall service health check."""
        return {
            "status": "healthy",
            "service": "merkle-explorer",
            "version": settings.VERSION,
            "max_items": settings.MAX_ITEMS,
        }

    @app.get("/live")
    async def live() -> Response:
        """Liveness probe."""
        return Response(status_code=200, content="alive")

    return app


app = create_application()


def handle_signal(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}, initiating shutdown")
    sys.exit(0)


def main() -> None:
    """Run the service."""
    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    logger.info(
        "Starting Merkle Explorer service",
        host=settings.HOST,
        port=settings.PORT,
    )

    uvicorn.run(
        "merkle_explorer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
