"""Item request schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class ItemRequestCreate(BaseModel):
    item_id: str
    request_type: str = Field(..., pattern="^(sell|rent)$")
    offered_price: float | None = Field(default=None, ge=0)
    rental_start_date: date | None = None
    rental_end_date: date | None = None
    message: str | None = None


class ItemRequestUpdate(BaseModel):
    status: str | None = Field(default=None, pattern="^(accepted|declined|cancelled|completed)$")
    counter_offer_price: float | None = Field(default=None, ge=0)
    counter_start_date: date | None = None
    counter_end_date: date | None = None
    counter_message: str | None = None


class ItemRequestResponse(BaseModel):
    id: str
    item_id: str
    requester_id: str
    owner_id: str
    request_type: str
    offered_price: float | None = None
    rental_start_date: date | None = None
    rental_end_date: date | None = None
    message: str | None = None
    counter_offer_price: float | None = None
    counter_start_date: date | None = None
    counter_end_date: date | None = None
    counter_message: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserRequestsResponse(BaseModel):
    sent: list[ItemRequestResponse]
    received: list[ItemRequestResponse]
