"""
Content generation service - image in, listing suggestion out, persisted on the item.
Challenge: Foreign and own image URLs, large photos, unreliable model output.
Design: Fetch -> downscale -> generate -> resolve against live categories -> save.
"""

import logging
import time

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.ai.content import ListingSuggestion, resolve_suggestion
from marketplace.ai.generator import ContentGenerator
from marketplace.ai.images import add_transform_params, resize_to_width
from marketplace.config import get_settings
from marketplace.core.errors import MarketplaceError, NotFoundError, TransportError, ValidationError
from marketplace.core.metrics import AI_GENERATION_SECONDS, AI_GENERATIONS
from marketplace.db.models.enums import ItemStatus
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.storage.object_storage import ObjectStorage, StoredObject

logger = logging.getLogger(__name__)


async def fetch_image(
    storage: ObjectStorage,
    url: str,
    http_client: httpx.AsyncClient | None = None,
    width: int | None = None,
) -> StoredObject:
    """Download from our own storage directly, anything else over HTTP (resized server-side if supported)."""
    settings = get_settings()
    location = storage.owns(url)
    if location is not None:
        try:
            return await storage.download(location.bucket, location.path)
        except NotFoundError as exc:
            raise ValidationError("Primary image not found") from exc

    fetch_url = add_transform_params(url, width or settings.ai_image_max_width, settings.ai_image_quality)
    client = http_client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)
    try:
        response = await client.get(fetch_url)
    except httpx.HTTPError as exc:
        logger.error("Image fetch failed url=%s: %s", url, exc)
        raise TransportError("Failed to fetch image") from exc
    finally:
        if http_client is None:
            await client.aclose()
    if response.status_code != 200:
        logger.error("Image fetch returned %s for %s", response.status_code, url)
        raise TransportError(f"Failed to fetch image: {response.status_code}")
    content_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
    return StoredObject(data=response.content, content_type=content_type)


class ContentGenerationService:
    """Runs one generation for an item and writes the suggestion onto its row."""

    def __init__(
        self,
        session: AsyncSession,
        storage: ObjectStorage,
        generator: ContentGenerator,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.session = session
        self.storage = storage
        self.generator = generator
        self.http_client = http_client
        self.item_repo = ItemRepository(session)

    async def generate(self, primary_image_url: str, language: str = "en") -> ListingSuggestion:
        """Suggestion only, nothing persisted."""
        if not primary_image_url:
            raise ValidationError("Missing primary image URL")
        settings = get_settings()
        started = time.perf_counter()
        try:
            image = await fetch_image(self.storage, primary_image_url, self.http_client)
            data, mime_type = resize_to_width(image.data, settings.ai_image_max_width, settings.ai_image_quality)
            categories = await self.item_repo.get_category_values()
            content = await self.generator.generate(data, mime_type, language, categories)
            suggestion = resolve_suggestion(content, categories)
        except MarketplaceError:
            AI_GENERATIONS.labels(outcome="failure").inc()
            raise
        except Exception as exc:
            AI_GENERATIONS.labels(outcome="failure").inc()
            logger.exception("Content generation failed for %s", primary_image_url)
            raise TransportError(f"AI generation failed: {exc}") from exc
        AI_GENERATIONS.labels(outcome="success").inc()
        AI_GENERATION_SECONDS.observe(time.perf_counter() - started)
        logger.info(
            "Generated listing content title=%r category=%s in %.2fs",
            suggestion.title,
            suggestion.category,
            time.perf_counter() - started,
        )
        return suggestion

    async def item_suggestion(self, item_id: str) -> ListingSuggestion:
        """The suggestion a finished job left on the item row, read fresh from the database."""
        item = await self.item_repo.get_fresh(item_id)
        if item is None:
            raise NotFoundError("Item not found")
        return ListingSuggestion(
            title=item.title,
            description=item.description or "",
            category=item.category,
            condition=item.condition,
            listing_type=item.listing_type,
            sale_price=item.sale_price,
        )

    async def generate_for_item(
        self, item_id: str, primary_image_url: str, language: str = "en", drafts_only: bool = False
    ) -> ListingSuggestion:
        """Generate and write the suggestion onto the item.

        With drafts_only the row is re-read after generation and left untouched
        if it was published in the meantime; the suggestion is still returned.
        """
        item = await self.item_repo.get_by_id(item_id)
        if item is None:
            raise NotFoundError("Item not found")
        suggestion = await self.generate(primary_image_url, language)
        if drafts_only:
            item = await self.item_repo.get_fresh(item_id)
            if item is None:
                raise NotFoundError("Item not found")
            if item.status != ItemStatus.DRAFT.value:
                logger.info("Item %s is no longer a draft; keeping its published details", item_id)
                return suggestion
        await self.item_repo.update(
            item,
            title=suggestion.title,
            description=suggestion.description,
            category=suggestion.category,
            condition=suggestion.condition,
            listing_type=suggestion.listing_type,
            sale_price=suggestion.sale_price,
        )
        return suggestion
