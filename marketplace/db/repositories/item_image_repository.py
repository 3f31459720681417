"""
Item image repository - ordered image rows of an item.
"""

from sqlalchemy import func, select, update

from marketplace.db.models.item_image import ItemImage
from marketplace.db.repositories.base_repository import BaseRepository


class ItemImageRepository(BaseRepository[ItemImage]):
    def __init__(self, session):
        super().__init__(session, ItemImage)

    async def list_for_item(self, item_id: str) -> list[ItemImage]:
        """Images ordered by display_order ascending (primary first)."""
        result = await self.session.execute(
            select(ItemImage)
            .where(ItemImage.item_id == item_id)
            .order_by(ItemImage.display_order, ItemImage.created_at)
        )
        return list(result.scalars().all())

    async def count_for_item(self, item_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ItemImage).where(ItemImage.item_id == item_id)
        )
        return int(result.scalar_one())

    async def set_positions(self, positions: list[tuple[str, int]]) -> None:
        """Write display_order/is_primary for every (image_id, order) pair."""
        for image_id, order in positions:
            await self.session.execute(
                update(ItemImage)
                .where(ItemImage.id == image_id)
                .values(display_order=order, is_primary=order == 0)
            )
        await self.session.flush()

    async def reassign_item(self, from_item_id: str, to_item_id: str, order_offset: int = 0) -> int:
        """Re-point images of one item to another, shifting their order. Returns rows moved."""
        images = await self.list_for_item(from_item_id)
        for image in images:
            image.item_id = to_item_id
            image.display_order = image.display_order + order_offset
            image.is_primary = image.display_order == 0
        await self.session.flush()
        return len(images)
