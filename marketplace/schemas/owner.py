"""Item owner schemas."""

from datetime import datetime

from pydantic import BaseModel

from marketplace.db.models.enums import OwnerRole


class OwnerAdd(BaseModel):
    display_name: str
    role: OwnerRole = OwnerRole.CO_OWNER


class OwnerResponse(BaseModel):
    id: str
    item_id: str
    user_id: str
    role: str
    added_by: str | None = None
    created_at: datetime
    display_name: str | None = None
    avatar_url: str | None = None
