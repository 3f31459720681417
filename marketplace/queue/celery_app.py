"""
Celery application for the marketplace worker.

Two queues:
  search - index_item_task / remove_item_task keep the Elasticsearch items
           index in step with published listings.
  ai     - generate_item_content_task / retry_item_content_task run queued
           listing generation (AI_INVOCATION_MODE=queued) and report job
           status through the item_processing_jobs change feed.

Broker is RabbitMQ, results go to Redis. Start a worker for both queues with:
    celery -A marketplace.queue.celery_app worker -Q search,ai
"""

from celery import Celery

from marketplace.config import get_settings

settings = get_settings()

SEARCH_QUEUE = "search"
AI_QUEUE = "ai"

celery_app = Celery(
    "marketplace",
    broker=settings.celery_broker_url,
    backend=settings.redis_url,
    include=["marketplace.queue.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    task_default_queue=SEARCH_QUEUE,
    task_routes={
        "marketplace.queue.tasks.index_item_task": {"queue": SEARCH_QUEUE},
        "marketplace.queue.tasks.remove_item_task": {"queue": SEARCH_QUEUE},
        "marketplace.queue.tasks.generate_item_content_task": {"queue": AI_QUEUE},
        "marketplace.queue.tasks.retry_item_content_task": {"queue": AI_QUEUE},
    },
    # A model call on a large photo can take minutes; indexing never should
    task_time_limit=300,
    task_soft_time_limit=120,
    worker_prefetch_multiplier=1,
)
