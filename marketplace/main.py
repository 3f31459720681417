"""
FastAPI application entry point.
Challenge: Mount routes, middleware (Prometheus), startup events (ES index), clean shutdown.
"""

import logging
from contextlib import asynccontextmanager

from elasticsearch import ApiError, TransportError as ESTransportError
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from marketplace.api.v1.endpoints import storage
from marketplace.api.v1.router import api_router
from marketplace.cache.redis_client import close_redis
from marketplace.config import get_settings
from marketplace.core.errors import MarketplaceError, marketplace_error_handler
from marketplace.core.logging import configure_logging
from marketplace.realtime.feed import get_change_feed
from marketplace.search.elasticsearch_client import close_elasticsearch, ensure_items_index
from marketplace.services.processing_jobs import get_background_runner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: ensure Elasticsearch index when indexing is on. Shutdown: stop jobs, close clients."""
    settings = get_settings()
    if settings.search_indexing_enabled:
        try:
            await ensure_items_index()
        except (ApiError, ESTransportError) as exc:
            # ES may be down; app still works (search returns empty)
            logger.warning("Elasticsearch unavailable at startup: %s", exc)
    yield
    await get_background_runner().shutdown()
    await get_change_feed().close()
    await close_redis()
    await close_elasticsearch()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        description="Local marketplace: listing wizard with AI-suggested content, items, owners, messages and requests.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS for frontend/API consumers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MarketplaceError, marketplace_error_handler)

    # Prometheus metrics at /metrics
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    app.include_router(api_router, prefix="/api")
    app.include_router(storage.router, prefix="/storage/v1", tags=["storage"])

    return app


app = create_app()
