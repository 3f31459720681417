"""
Messaging service - direct messages between users about items.
Conversations are derived: messages grouped by counterpart and item.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AuthorizationError, NotFoundError, ValidationError
from marketplace.db.models.message import Message
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.repositories.message_repository import MessageRepository
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.realtime.feed import ChangeEvent, ChangeFeed
from marketplace.schemas.message import ConversationResponse, MessageCreate

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "messages"


def message_row(message: Message) -> dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "recipient_id": message.recipient_id,
        "item_id": message.item_id,
        "request_id": message.request_id,
        "content": message.content,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }


class MessagingService:
    def __init__(self, session: AsyncSession, feed: ChangeFeed):
        self.session = session
        self.feed = feed
        self.message_repo = MessageRepository(session)
        self.user_repo = UserRepository(session)
        self.item_repo = ItemRepository(session)

    async def send(self, sender_id: str, data: MessageCreate) -> Message:
        if data.recipient_id == sender_id:
            raise ValidationError("You cannot message yourself")
        if await self.user_repo.get_by_id(data.recipient_id) is None:
            raise NotFoundError("Recipient not found")
        if data.item_id and await self.item_repo.get_by_id(data.item_id) is None:
            raise NotFoundError("Item not found")
        message = await self.message_repo.add(
            Message(
                sender_id=sender_id,
                recipient_id=data.recipient_id,
                item_id=data.item_id,
                request_id=data.request_id,
                content=data.content,
            )
        )
        await self.session.commit()
        await self.feed.publish(
            MESSAGES_TABLE,
            "recipient_id",
            message.recipient_id,
            ChangeEvent(MESSAGES_TABLE, "insert", message_row(message)),
        )
        return message

    async def thread(self, user_id: str, other_user_id: str, item_id: str | None = None) -> list[Message]:
        """Both directions, oldest first."""
        return await self.message_repo.thread(user_id, other_user_id, item_id)

    async def mark_read(self, message_id: str, user_id: str) -> Message:
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message.recipient_id != user_id:
            raise AuthorizationError("Only the recipient can mark a message as read")
        return await self.message_repo.update(message, is_read=True)

    async def mark_thread_read(self, user_id: str, other_user_id: str) -> int:
        """Mark everything the counterpart sent to the user as read. Returns the count."""
        changed = 0
        for message in await self.message_repo.thread(user_id, other_user_id):
            if message.recipient_id == user_id and not message.is_read:
                message.is_read = True
                changed += 1
        await self.session.flush()
        return changed

    async def conversations(self, user_id: str) -> list[ConversationResponse]:
        """One entry per (counterpart, item), most recent first."""
        messages = await self.message_repo.list_for_user(user_id)
        other_ids = {m.recipient_id if m.sender_id == user_id else m.sender_id for m in messages}
        users = await self.user_repo.get_many_by_ids(list(other_ids))
        titles = {}
        for item_id in {m.item_id for m in messages if m.item_id}:
            item = await self.item_repo.get_by_id(item_id)
            if item is not None:
                titles[item_id] = item.title

        conversations: dict[tuple[str, str | None], ConversationResponse] = {}
        for m in messages:  # newest first, so the first hit is the last message
            other_id = m.recipient_id if m.sender_id == user_id else m.sender_id
            key = (other_id, m.item_id)
            conv = conversations.get(key)
            if conv is None:
                other = users.get(other_id)
                conv = ConversationResponse(
                    other_user_id=other_id,
                    other_user_name=other.display_name if other else "Unknown User",
                    other_user_avatar=other.avatar_url if other else None,
                    last_message=m.content,
                    last_message_time=m.created_at,
                    unread_count=0,
                    item_id=m.item_id,
                    item_title=titles.get(m.item_id) if m.item_id else None,
                )
                conversations[key] = conv
            if m.recipient_id == user_id and not m.is_read:
                conv.unread_count += 1
        return list(conversations.values())

    async def unread_count(self, user_id: str) -> int:
        return await self.message_repo.unread_count(user_id)
