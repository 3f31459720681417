"""
Item request repository - buy/rent requests per item and per user.
"""

from sqlalchemy import select

from marketplace.db.models.item_request import ItemRequest
from marketplace.db.repositories.base_repository import BaseRepository


class ItemRequestRepository(BaseRepository[ItemRequest]):
    def __init__(self, session):
        super().__init__(session, ItemRequest)

    async def list_for_item(self, item_id: str) -> list[ItemRequest]:
        result = await self.session.execute(
            select(ItemRequest)
            .where(ItemRequest.item_id == item_id)
            .order_by(ItemRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_sent(self, user_id: str) -> list[ItemRequest]:
        result = await self.session.execute(
            select(ItemRequest)
            .where(ItemRequest.requester_id == user_id)
            .order_by(ItemRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_received(self, user_id: str) -> list[ItemRequest]:
        result = await self.session.execute(
            select(ItemRequest)
            .where(ItemRequest.owner_id == user_id)
            .order_by(ItemRequest.created_at.desc())
        )
        return list(result.scalars().all())
