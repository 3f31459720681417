"""
Message repository - direct messages and unread counts.
"""

from sqlalchemy import and_, func, or_, select

from marketplace.db.models.message import Message
from marketplace.db.repositories.base_repository import BaseRepository


class MessageRepository(BaseRepository[Message]):
    def __init__(self, session):
        super().__init__(session, Message)

    async def list_for_user(self, user_id: str) -> list[Message]:
        """Every message the user sent or received, newest first."""
        result = await self.session.execute(
            select(Message)
            .where(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
            .order_by(Message.created_at.desc())
        )
        return list(result.scalars().all())

    async def thread(self, user_id: str, other_id: str, item_id: str | None = None) -> list[Message]:
        """Messages between two users, oldest first."""
        query = select(Message).where(
            or_(
                and_(Message.sender_id == user_id, Message.recipient_id == other_id),
                and_(Message.sender_id == other_id, Message.recipient_id == user_id),
            )
        )
        if item_id:
            query = query.where(Message.item_id == item_id)
        result = await self.session.execute(query.order_by(Message.created_at))
        return list(result.scalars().all())

    async def unread_count(self, recipient_id: str, sender_id: str | None = None) -> int:
        query = (
            select(func.count())
            .select_from(Message)
            .where(Message.recipient_id == recipient_id, Message.is_read.is_(False))
        )
        if sender_id:
            query = query.where(Message.sender_id == sender_id)
        result = await self.session.execute(query)
        return int(result.scalar_one())
