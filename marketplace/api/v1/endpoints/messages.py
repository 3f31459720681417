"""
Message endpoints - direct messages between users, optionally about an item.
"""

from fastapi import APIRouter, Query, status

from marketplace.core.dependencies import CurrentUserId, Feed
from marketplace.db.session import DbSession
from marketplace.schemas.message import (
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    UnreadCountResponse,
)
from marketplace.services.messaging import MessagingService

router = APIRouter()


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(session: DbSession, feed: Feed, data: MessageCreate, user_id: CurrentUserId):
    return await MessagingService(session, feed).send(user_id, data)


@router.get("/conversations", response_model=list[ConversationResponse])
async def conversations(session: DbSession, feed: Feed, user_id: CurrentUserId):
    """One entry per (other user, item), most recent first."""
    return await MessagingService(session, feed).conversations(user_id)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(session: DbSession, feed: Feed, user_id: CurrentUserId):
    return UnreadCountResponse(count=await MessagingService(session, feed).unread_count(user_id))


@router.get("/thread/{other_user_id}", response_model=list[MessageResponse])
async def thread(
    session: DbSession,
    feed: Feed,
    other_user_id: str,
    user_id: CurrentUserId,
    item_id: str | None = Query(None),
):
    return await MessagingService(session, feed).thread(user_id, other_user_id, item_id)


@router.post("/thread/{other_user_id}/read", response_model=UnreadCountResponse)
async def mark_thread_read(session: DbSession, feed: Feed, other_user_id: str, user_id: CurrentUserId):
    """Marks everything the other user sent as read; returns how many changed."""
    return UnreadCountResponse(count=await MessagingService(session, feed).mark_thread_read(user_id, other_user_id))


@router.post("/{message_id}/read", response_model=MessageResponse)
async def mark_read(session: DbSession, feed: Feed, message_id: str, user_id: CurrentUserId):
    return await MessagingService(session, feed).mark_read(message_id, user_id)
