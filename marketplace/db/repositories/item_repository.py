"""
Item repository - item and category data access.
Challenge: Database query performance; avoid N+1, keep image order stable.
"""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from marketplace.db.models.enums import FALLBACK_CATEGORY, ItemStatus
from marketplace.db.models.item import Item, ItemCategory
from marketplace.db.repositories.base_repository import BaseRepository


class ItemRepository(BaseRepository[Item]):
    """Item-specific queries. Images and owners are eager-loaded (selectin)."""

    def __init__(self, session):
        super().__init__(session, Item)

    async def get_fresh(self, id: str) -> Item | None:
        """Re-read the row so a commit from another session is visible."""
        result = await self.session.execute(
            select(Item).where(Item.id == id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_with_images(self, id: str) -> Item | None:
        """Fetch item with fresh images; populate_existing drops stale collections."""
        result = await self.session.execute(
            select(Item)
            .where(Item.id == id)
            .options(
                selectinload(Item.images),
                selectinload(Item.owners),
                selectinload(Item.processing_jobs),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_available(
        self, *, category: str | None = None, skip: int = 0, limit: int = 20
    ) -> list[Item]:
        """Browse view: available items, newest first, optional category filter."""
        query = select(Item).where(Item.status == ItemStatus.AVAILABLE.value)
        if category and category != "all":
            query = query.where(Item.category == category)
        result = await self.session.execute(
            query.order_by(Item.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_owner(self, user_id: str) -> list[Item]:
        """Items the user owns or co-owns, drafts included."""
        from marketplace.db.models.item_owner import ItemOwner

        result = await self.session.execute(
            select(Item)
            .join(ItemOwner, ItemOwner.item_id == Item.id)
            .where(ItemOwner.user_id == user_id)
            .order_by(Item.created_at.desc())
        )
        return list(result.scalars().unique().all())

    async def get_category_values(self) -> list[str]:
        """Allowed categories from the lookup table; ['other'] if it is empty."""
        result = await self.session.execute(
            select(ItemCategory.value).order_by(ItemCategory.sort_order, ItemCategory.value)
        )
        values = [v.lower() for v in result.scalars().all()]
        return values or [FALLBACK_CATEGORY]
