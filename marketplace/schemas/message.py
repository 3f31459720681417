"""Messaging schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    recipient_id: str
    content: str = Field(..., min_length=1, max_length=5000)
    item_id: str | None = None
    request_id: str | None = None


class MessageResponse(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    item_id: str | None = None
    request_id: str | None = None
    content: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    other_user_id: str
    other_user_name: str
    other_user_avatar: str | None = None
    last_message: str
    last_message_time: datetime
    unread_count: int
    item_id: str | None = None
    item_title: str | None = None


class UnreadCountResponse(BaseModel):
    count: int
