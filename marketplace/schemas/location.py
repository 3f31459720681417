"""User location schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class LocationCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_default: bool = False


class LocationUpdate(BaseModel):
    """Partial update; omitted fields are left alone."""

    model_config = {"str_strip_whitespace": True}

    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_default: bool | None = None


class LocationResponse(BaseModel):
    id: str
    user_id: str
    name: str
    address: str
    latitude: float | None = None
    longitude: float | None = None
    is_default: bool
    created_at: datetime

    model_config = {"from_attributes": True}
