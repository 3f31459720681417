"""
Processing job tests - status lifecycle, change feed events, retry and thumbnails.
"""

import pytest
import pytest_asyncio

from marketplace.core.errors import NotFoundError
from marketplace.db.repositories.item_image_repository import ItemImageRepository
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.repositories.processing_job_repository import ProcessingJobRepository
from marketplace.services.processing_jobs import JOBS_TABLE, ProcessingJobTracker


@pytest.fixture
def tracker(session, feed, storage, generator) -> ProcessingJobTracker:
    return ProcessingJobTracker(session, feed, storage, generator)


@pytest_asyncio.fixture
async def image_urls(session, published_item) -> list[str]:
    return [img.image_url for img in await ItemImageRepository(session).list_for_item(published_item.id)]


@pytest_asyncio.fixture
async def events(tracker, published_item):
    received = []
    subscription = await tracker.subscribe(published_item.id, received.append)
    yield received
    await subscription.unsubscribe()


@pytest.mark.asyncio
async def test_run_completes_job(tracker, published_item, image_urls, events, generator, session):
    generator.content.title = "Cordless Drill"
    job = await tracker.create(published_item.id, image_urls)
    job = await tracker.run(job.id)

    assert job.status == "completed"
    assert job.ai_generated_title == "Cordless Drill"
    assert job.processing_started_at is not None
    assert job.processing_completed_at is not None
    assert len(job.thumbnail_images) == 3
    assert [(e.event, e.new["status"]) for e in events] == [
        ("insert", "pending"),
        ("update", "processing"),
        ("update", "completed"),
    ]
    # A published listing keeps the details its owner submitted
    item = await ItemRepository(session).get_fresh(published_item.id)
    assert item.title == "Drill Set"


@pytest.mark.asyncio
async def test_run_writes_suggestion_onto_draft(tracker, published_item, image_urls, generator, session):
    items = ItemRepository(session)
    await items.update(await items.get_by_id(published_item.id), status="draft")
    await session.commit()

    generator.content.title = "Cordless Drill"
    job = await tracker.create(published_item.id, image_urls)
    job = await tracker.run(job.id)

    assert job.status == "completed"
    item = await items.get_fresh(published_item.id)
    assert item.title == "Cordless Drill"
    assert item.status == "draft"


@pytest.mark.asyncio
async def test_run_failure_is_recorded(tracker, published_item, image_urls, events, generator):
    generator.fail("Gemini API error: 429 Too Many Requests")
    job = await tracker.create(published_item.id, image_urls)
    job = await tracker.run(job.id)

    assert job.status == "failed"
    assert job.error_message == "Gemini API error: 429 Too Many Requests"
    assert events[-1].new["status"] == "failed"
    assert events[-1].new["error_message"] == job.error_message


@pytest.mark.asyncio
async def test_retry_resets_latest_job(tracker, published_item, image_urls, generator):
    generator.fail()
    failed = await tracker.create(published_item.id, image_urls)
    await tracker.run(failed.id)

    generator.error = None
    job = await tracker.retry(published_item.id)
    assert job.id == failed.id
    assert job.status == "completed"
    assert job.error_message is None
    assert len(generator.calls) == 2


@pytest.mark.asyncio
async def test_job_without_images_fails(tracker, published_item):
    job = await tracker.create(published_item.id, [])
    job = await tracker.run(job.id)
    assert job.status == "failed"
    assert job.error_message == "Job has no images"


@pytest.mark.asyncio
async def test_unknown_job_and_item(tracker):
    with pytest.raises(NotFoundError):
        await tracker.run("missing")
    with pytest.raises(NotFoundError):
        await tracker.retry("missing")


@pytest.mark.asyncio
async def test_latest_is_most_recent(tracker, published_item, image_urls):
    await tracker.create(published_item.id, image_urls)
    second = await tracker.create(published_item.id, image_urls[:1])
    latest = await tracker.latest(published_item.id)
    assert latest.id == second.id


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent(tracker, feed, published_item):
    first = await tracker.subscribe(published_item.id, lambda event: None)
    second = await tracker.subscribe(published_item.id, lambda event: None)
    assert feed.listener_count(JOBS_TABLE, "item_id", published_item.id) == 2

    await first.unsubscribe()
    await first.unsubscribe()
    assert feed.listener_count(JOBS_TABLE, "item_id", published_item.id) == 1
    await second.unsubscribe()
    assert feed.listener_count(JOBS_TABLE, "item_id", published_item.id) == 0


@pytest.mark.asyncio
async def test_generate_thumbnails(tracker, published_item, session, storage):
    urls = await tracker.generate_thumbnails(published_item.id)
    await session.commit()
    assert len(urls) == 3
    images = await ItemImageRepository(session).list_for_item(published_item.id)
    for image, url in zip(images, urls):
        assert image.is_processed
        assert image.thumbnail_url == url
        assert url.endswith(f"{image.id}_300.jpg")
        assert set(image.processing_metadata["thumbnails"]) == {"150", "300", "600"}
        assert image.processing_metadata["width"] == 800


@pytest.mark.asyncio
async def test_background_runner(runner, session, feed, storage, generator, published_item, image_urls, tracker):
    job = await tracker.create(published_item.id, image_urls)
    runner.run_job(job.id, "en", storage=storage, generator=generator, feed=feed)
    assert runner.pending == 1
    await runner.wait()

    fresh = await ProcessingJobRepository(session).get_fresh(job.id)
    assert fresh.status == "completed"
    assert runner.pending == 0
