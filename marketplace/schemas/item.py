"""Item request/response schemas - REST API contract."""

from datetime import datetime

from pydantic import BaseModel, Field

from marketplace.db.models.enums import ItemCondition, ItemStatus, ListingType, RentalPeriod


class ItemImageResponse(BaseModel):
    id: str
    image_url: str
    display_order: int
    is_primary: bool
    thumbnail_url: str | None = None

    model_config = {"from_attributes": True}


class ItemUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    condition: ItemCondition | None = None
    listing_type: ListingType | None = None
    sale_price: float | None = Field(default=None, ge=0)
    rental_price: float | None = Field(default=None, ge=0)
    rental_period: RentalPeriod | None = None
    status: ItemStatus | None = None


class ItemResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None = None
    category: str
    condition: str
    listing_type: str
    sale_price: float | None = None
    rental_price: float | None = None
    rental_period: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime
    images: list[ItemImageResponse] = []

    model_config = {"from_attributes": True}


class ImageReorder(BaseModel):
    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int


class ImageUploadResponse(BaseModel):
    images: list[ItemImageResponse]
    rejected: list[str] = []
