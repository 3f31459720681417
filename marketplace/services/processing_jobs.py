"""
Processing job tracker - durable record of each AI generation attempt.
Challenge: The wizard may leave before generation ends; other views (and reloads)
still need the outcome.
Design: Every status change is committed, then published on the change feed with
the full row. Background runs own their session and are tracked for shutdown.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.ai.generator import ContentGenerator
from marketplace.ai.images import image_size, make_thumbnail
from marketplace.config import get_settings
from marketplace.core.errors import MarketplaceError, NotFoundError, ValidationError
from marketplace.db.base import utcnow
from marketplace.db.models.enums import JobStatus
from marketplace.db.models.processing_job import ProcessingJob
from marketplace.db.repositories.item_image_repository import ItemImageRepository
from marketplace.db.repositories.processing_job_repository import ProcessingJobRepository
from marketplace.db.session import async_session_maker
from marketplace.realtime.feed import Callback, ChangeEvent, ChangeFeed, Subscription
from marketplace.services.content_generation import ContentGenerationService, fetch_image
from marketplace.storage.object_storage import ObjectStorage

logger = logging.getLogger(__name__)

JOBS_TABLE = "item_processing_jobs"


class ProcessingJobTracker:
    def __init__(
        self,
        session: AsyncSession,
        feed: ChangeFeed,
        storage: ObjectStorage,
        generator: ContentGenerator,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.session = session
        self.feed = feed
        self.storage = storage
        self.http_client = http_client
        self.jobs = ProcessingJobRepository(session)
        self.images = ItemImageRepository(session)
        self.content = ContentGenerationService(session, storage, generator, http_client)

    async def _publish(self, job: ProcessingJob, event: str) -> None:
        await self.feed.publish(
            JOBS_TABLE, "item_id", job.item_id, ChangeEvent(JOBS_TABLE, event, job.to_row())
        )

    async def _save(self, job: ProcessingJob, event: str = "update", **values) -> ProcessingJob:
        await self.jobs.update(job, **values)
        await self.session.commit()
        await self._publish(job, event)
        return job

    async def create(self, item_id: str, images: list[str], language: str = "en") -> ProcessingJob:
        """New pending job; the first image is the one sent to the model."""
        job = await self.jobs.add(
            ProcessingJob(item_id=item_id, status=JobStatus.PENDING.value, original_images=list(images))
        )
        await self.session.commit()
        await self._publish(job, "insert")
        logger.info("Created processing job %s for item %s (%d images, lang=%s)", job.id, item_id, len(images), language)
        return job

    async def mark_failed(self, job: ProcessingJob, message: str) -> ProcessingJob:
        """Record a failure that happened outside run() (e.g. the queue refused the job)."""
        return await self._save(
            job, status=JobStatus.FAILED.value, error_message=message, processing_completed_at=utcnow()
        )

    async def latest(self, item_id: str) -> ProcessingJob | None:
        return await self.jobs.latest_for_item(item_id)

    async def subscribe(self, item_id: str, callback: Callback) -> Subscription:
        """Every status change of the item's jobs, delivered with the full row."""
        return await self.feed.subscribe(JOBS_TABLE, "item_id", item_id, callback)

    async def run(self, job_id: str, language: str = "en") -> ProcessingJob:
        job = await self.jobs.get_fresh(job_id)
        if job is None:
            raise NotFoundError("Processing job not found")
        return await self._process(job, language, thumbnails=True)

    async def retry(self, item_id: str, language: str = "en") -> ProcessingJob:
        """Reset the latest job and generate again from its primary image."""
        job = await self.jobs.latest_for_item(item_id)
        if job is None:
            raise NotFoundError("No processing job for this item")
        logger.info("Retrying processing job %s (was %s)", job.id, job.status)
        return await self._process(job, language, thumbnails=not job.thumbnail_images)

    async def _process(self, job: ProcessingJob, language: str, thumbnails: bool) -> ProcessingJob:
        job_id = job.id
        await self._save(
            job,
            status=JobStatus.PROCESSING.value,
            processing_started_at=utcnow(),
            processing_completed_at=None,
            error_message=None,
        )
        try:
            if not job.original_images:
                raise ValidationError("Job has no images")
            if thumbnails:
                urls = await self.generate_thumbnails(job.item_id)
                await self.jobs.update(job, thumbnail_images=urls)
                await self.session.commit()
            suggestion = await self.content.generate_for_item(
                job.item_id, job.original_images[0], language, drafts_only=True
            )
        except Exception as exc:
            if isinstance(exc, MarketplaceError):
                message = exc.message
                logger.error("Processing job %s failed: %s", job_id, message)
            else:
                message = str(exc) or exc.__class__.__name__
                logger.exception("Processing job %s failed unexpectedly", job_id)
            await self.session.rollback()
            job = await self.jobs.get_fresh(job_id)
            return await self._save(
                job,
                status=JobStatus.FAILED.value,
                error_message=message,
                processing_completed_at=utcnow(),
            )

        await self._save(
            job,
            status=JobStatus.COMPLETED.value,
            ai_generated_title=suggestion.title,
            ai_generated_description=suggestion.description,
            processing_completed_at=utcnow(),
        )
        logger.info("Processing job %s completed for item %s", job_id, job.item_id)
        return job

    async def generate_thumbnails(self, item_id: str) -> list[str]:
        """150/300/600 px copies of every image; the 300 px one becomes thumbnail_url."""
        settings = get_settings()
        bucket = settings.item_thumbnails_bucket
        urls = []
        for image in await self.images.list_for_item(item_id):
            try:
                original = await fetch_image(self.storage, image.image_url, self.http_client)
                width, height = image_size(original.data)
                thumbs = {}
                for size in settings.thumbnail_sizes:
                    data, _, _ = make_thumbnail(original.data, size)
                    path = f"{item_id}/{image.id}_{size}.jpg"
                    await self.storage.upload(bucket, path, data, "image/jpeg")
                    thumbs[str(size)] = self.storage.get_public_url(bucket, path)
            except MarketplaceError as exc:
                logger.warning("Thumbnails skipped for image %s: %s", image.id, exc.message)
                continue
            medium = thumbs.get("300") or next(iter(thumbs.values()), None)
            await self.images.update(
                image,
                thumbnail_url=medium,
                is_processed=True,
                processing_metadata={"width": width, "height": height, "thumbnails": thumbs},
            )
            if medium:
                urls.append(medium)
        return urls


class BackgroundJobRunner:
    """In-process runner for AI jobs. Tasks are tracked so shutdown can wait or cancel."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.session_factory = session_factory or async_session_maker
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def run_job(
        self, job_id: str, language: str, *, storage: ObjectStorage, generator: ContentGenerator, feed: ChangeFeed
    ) -> asyncio.Task:
        return self._spawn(
            f"processing-job-{job_id}",
            lambda tracker: tracker.run(job_id, language),
            storage=storage,
            generator=generator,
            feed=feed,
        )

    def retry_item(
        self, item_id: str, language: str, *, storage: ObjectStorage, generator: ContentGenerator, feed: ChangeFeed
    ) -> asyncio.Task:
        return self._spawn(
            f"processing-retry-{item_id}",
            lambda tracker: tracker.retry(item_id, language),
            storage=storage,
            generator=generator,
            feed=feed,
        )

    def _spawn(
        self,
        name: str,
        work: Callable[[ProcessingJobTracker], Awaitable[ProcessingJob]],
        *,
        storage: ObjectStorage,
        generator: ContentGenerator,
        feed: ChangeFeed,
    ) -> asyncio.Task:
        async def runner() -> ProcessingJob | None:
            async with self.session_factory() as session:
                tracker = ProcessingJobTracker(session, feed, storage, generator)
                try:
                    return await work(tracker)
                except MarketplaceError as exc:
                    logger.error("Background task %s failed: %s", name, exc.message)
                    return None

        task = asyncio.create_task(runner(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait(self) -> None:
        """Wait for every in-flight job (tests, graceful shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()


_runner: BackgroundJobRunner | None = None


def get_background_runner() -> BackgroundJobRunner:
    """Process-wide runner. FastAPI dependency; tests override it."""
    global _runner
    if _runner is None:
        _runner = BackgroundJobRunner()
    return _runner
