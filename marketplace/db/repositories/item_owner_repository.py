"""
Item owner repository - ownership rows used for every authorization check.
"""

from sqlalchemy import func, select

from marketplace.db.models.item_owner import ItemOwner
from marketplace.db.repositories.base_repository import BaseRepository


class ItemOwnerRepository(BaseRepository[ItemOwner]):
    def __init__(self, session):
        super().__init__(session, ItemOwner)

    async def list_for_item(self, item_id: str) -> list[ItemOwner]:
        result = await self.session.execute(
            select(ItemOwner)
            .where(ItemOwner.item_id == item_id)
            .order_by(ItemOwner.created_at)
        )
        return list(result.scalars().all())

    async def get(self, item_id: str, user_id: str) -> ItemOwner | None:
        result = await self.session.execute(
            select(ItemOwner).where(ItemOwner.item_id == item_id, ItemOwner.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def is_owner(self, item_id: str, user_id: str) -> bool:
        return await self.get(item_id, user_id) is not None

    async def count_for_item(self, item_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ItemOwner).where(ItemOwner.item_id == item_id)
        )
        return int(result.scalar_one())
