"""
Celery tasks - search indexing and queued AI generation.
Challenge: Async services (SQLAlchemy, httpx) inside sync worker processes.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from marketplace.ai.generator import get_content_generator
from marketplace.config import get_settings
from marketplace.queue.celery_app import celery_app
from marketplace.realtime.feed import build_change_feed
from marketplace.services.processing_jobs import ProcessingJobTracker
from marketplace.search.elasticsearch_client import (
    ensure_items_index_sync,
    index_item_sync,
    remove_item_sync,
)
from marketplace.storage.object_storage import get_object_storage

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run async function from sync Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _process_job(job_id: str | None, item_id: str | None, language: str) -> str:
    # Engine per task: pooled connections cannot cross event loops
    engine = create_async_engine(get_settings().database_url, poolclass=NullPool)
    feed = build_change_feed()
    try:
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_factory() as session:
            tracker = ProcessingJobTracker(session, feed, get_object_storage(), get_content_generator())
            if job_id:
                job = await tracker.run(job_id, language)
            else:
                job = await tracker.retry(item_id, language)
            return job.status
    finally:
        await feed.close()
        await engine.dispose()


@celery_app.task(bind=True, max_retries=3)
def index_item_task(self, item_doc: dict):
    """
    Index a listing in Elasticsearch.
    Fired after publish/update (event-driven: API publishes, worker consumes).
    """
    ensure_items_index_sync()
    if not index_item_sync(item_doc):
        raise self.retry(exc=RuntimeError(f"Index failed for item {item_doc.get('id')}"), countdown=5)


@celery_app.task
def remove_item_task(item_id: str):
    return remove_item_sync(item_id)


@celery_app.task
def generate_item_content_task(job_id: str, language: str = "en") -> str:
    """Queued AI generation. No automatic retry: a failed job stays failed until retried."""
    status = _run_async(_process_job(job_id, None, language))
    logger.info("Queued processing job %s finished with status %s", job_id, status)
    return status


@celery_app.task
def retry_item_content_task(item_id: str, language: str = "en") -> str:
    status = _run_async(_process_job(None, item_id, language))
    logger.info("Queued retry for item %s finished with status %s", item_id, status)
    return status

