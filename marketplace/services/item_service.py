"""
Item service - business logic for published listings (SOLID: Single Responsibility).
Challenge: Orchestrate repositories, storage, cache, search, queue; keep controllers thin.
Design: Only owners change an item; cache and search index follow every change.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.cache.redis_client import cache_item, get_cached_item, invalidate_item
from marketplace.config import get_settings
from marketplace.core.errors import AuthorizationError, NotFoundError, ValidationError
from marketplace.db.models.enums import ROOMS_CATEGORY, ItemStatus, ListingType
from marketplace.db.models.item import Item
from marketplace.db.models.item_image import ItemImage
from marketplace.db.repositories.item_image_repository import ItemImageRepository
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.queue.tasks import index_item_task, remove_item_task
from marketplace.schemas.item import ItemResponse, ItemUpdate
from marketplace.services.image_manager import ImageSet, ImageUploader, NewImage
from marketplace.storage.object_storage import ObjectStorage

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"description", "sale_price", "rental_price", "rental_period"}


def item_to_doc(item: Item) -> dict:
    """Search document for a listing."""
    primary = next((img for img in item.images if img.is_primary), None)
    return {
        "id": item.id,
        "user_id": item.user_id,
        "title": item.title,
        "description": item.description or "",
        "category": item.category,
        "condition": item.condition,
        "listing_type": item.listing_type,
        "status": item.status,
        "sale_price": item.sale_price,
        "rental_price": item.rental_price,
        "rental_period": item.rental_period,
        "primary_image_url": primary.image_url if primary else None,
        "created_at": item.created_at.isoformat() if item.created_at else None,
    }


def enqueue_index(item: Item) -> None:
    """Event-driven: send to queue instead of blocking on Elasticsearch."""
    if not get_settings().search_indexing_enabled:
        return
    try:
        if item.status == ItemStatus.AVAILABLE.value:
            index_item_task.delay(item_to_doc(item))
        else:
            remove_item_task.delay(item.id)
    except Exception as exc:
        # Broker down: the listing is saved, only search lags behind
        logger.warning("Could not enqueue search update for item %s: %s", item.id, exc)


def enqueue_removal(item_id: str) -> None:
    if not get_settings().search_indexing_enabled:
        return
    try:
        remove_item_task.delay(item_id)
    except Exception as exc:
        logger.warning("Could not enqueue search removal for item %s: %s", item_id, exc)


class ItemService:
    """Browse, detail, owner edits, deletion and image management of items."""

    def __init__(self, session: AsyncSession, storage: ObjectStorage):
        self.session = session
        self.storage = storage
        self.item_repo = ItemRepository(session)
        self.image_repo = ItemImageRepository(session)
        self.owner_repo = ItemOwnerRepository(session)

    async def browse(self, category: str | None = None, skip: int = 0, limit: int = 20) -> list[Item]:
        return await self.item_repo.list_available(category=category, skip=skip, limit=limit)

    async def my_items(self, user_id: str) -> list[Item]:
        return await self.item_repo.list_for_owner(user_id)

    async def categories(self) -> list[str]:
        return await self.item_repo.get_category_values()

    async def get(self, item_id: str) -> Item:
        """Item with images ordered by display_order (primary first)."""
        item = await self.item_repo.get_with_images(item_id)
        if item is None:
            raise NotFoundError("Item not found")
        return item

    async def get_response(self, item_id: str, use_cache: bool = True) -> ItemResponse:
        """Detail view. Uses Redis cache to reduce DB load."""
        if use_cache:
            cached = await get_cached_item(item_id)
            if cached:
                return ItemResponse(**cached)
        resp = ItemResponse.model_validate(await self.get(item_id))
        # Drafts change under the wizard; only published items are cached
        if use_cache and resp.status != ItemStatus.DRAFT.value:
            await cache_item(item_id, resp.model_dump(mode="json"))
        return resp

    async def require_owner(self, item_id: str, user_id: str) -> Item:
        item = await self.get(item_id)
        if not await self.owner_repo.is_owner(item_id, user_id):
            raise AuthorizationError("Only owners can change this item")
        return item

    async def update(self, item_id: str, user_id: str, data: ItemUpdate) -> Item:
        """Owner edit. Invalidates cache and re-indexes in queue."""
        item = await self.require_owner(item_id, user_id)
        values = {
            k: v
            for k, v in data.model_dump(exclude_unset=True, mode="json").items()
            if v is not None or k in NULLABLE_FIELDS
        }
        category = values.get("category", item.category)
        listing_type = values.get("listing_type", item.listing_type)
        if "category" in values and category not in await self.item_repo.get_category_values():
            raise ValidationError(f"Invalid category: {category}")
        if category == ROOMS_CATEGORY and listing_type == ListingType.SELL.value:
            raise ValidationError("Rooms can only be rented, not sold.")
        await self.item_repo.update(item, **values)
        await invalidate_item(item_id)
        logger.info("Item %s updated by %s: %s", item_id, user_id, sorted(values))
        item = await self.get(item_id)
        enqueue_index(item)
        return item

    async def delete(self, item_id: str, user_id: str) -> None:
        """Owner-only delete; images, owners and jobs cascade. Stored files are removed best-effort."""
        item = await self.require_owner(item_id, user_id)
        locations = [self.storage.owns(img.image_url) for img in item.images]
        await self.item_repo.delete(item)
        await invalidate_item(item_id)
        enqueue_removal(item_id)
        for location in locations:
            if location is None:
                continue
            try:
                await self.storage.delete(location.bucket, location.path)
            except Exception as exc:
                logger.warning("Orphaned object %s/%s after deleting item %s: %s", location.bucket, location.path, item_id, exc)
        logger.info("Item %s deleted by %s", item_id, user_id)

    async def add_images(self, item_id: str, user_id: str, files: list[NewImage]) -> tuple[list[ItemImage], list[str]]:
        """Append images after the existing ones. Returns (all images, rejection messages)."""
        item = await self.require_owner(item_id, user_id)
        image_set = ImageSet(item.images)
        rejected = image_set.add(files)
        uploader = ImageUploader(self.storage, self.image_repo)
        await uploader.upload(item_id, image_set.new, start_order=len(image_set.existing))
        await invalidate_item(item_id)
        return await self.image_repo.list_for_item(item_id), rejected

    async def reorder_images(self, item_id: str, user_id: str, from_index: int, to_index: int) -> list[ItemImage]:
        item = await self.require_owner(item_id, user_id)
        images = await ImageSet(item.images).reorder(self.image_repo, from_index, to_index)
        await invalidate_item(item_id)
        return images

    async def remove_image(self, item_id: str, user_id: str, image_id: str) -> list[ItemImage]:
        item = await self.require_owner(item_id, user_id)
        image = next((img for img in item.images if img.id == image_id), None)
        location = self.storage.owns(image.image_url) if image else None
        images = await ImageSet(item.images).remove_existing(self.image_repo, image_id)
        await invalidate_item(item_id)
        if location is not None:
            try:
                await self.storage.delete(location.bucket, location.path)
            except Exception as exc:
                logger.warning("Could not delete stored image %s: %s", image_id, exc)
        return images

    async def signed_image_url(
        self, item_id: str, image_id: str, width: int | None = None, quality: int | None = None
    ) -> tuple[str, int]:
        """Short-lived URL for one image, optionally resized on the fly."""
        item = await self.get(item_id)
        image = next((img for img in item.images if img.id == image_id), None)
        if image is None:
            raise NotFoundError("Image not found")
        location = self.storage.owns(image.image_url)
        if location is None:
            raise ValidationError("Image is not stored by this service")
        ttl = get_settings().signed_url_ttl_seconds
        url = await self.storage.create_signed_url(
            location.bucket, location.path, ttl, {"width": width, "quality": quality}
        )
        return url, ttl
