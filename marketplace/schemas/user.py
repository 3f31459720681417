"""User request/response schemas - API contract and validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    email: EmailStr
    display_name: str = Field(..., min_length=1, max_length=255)


class UserCreate(UserBase):
    # bcrypt accepts max 72 bytes; longer passwords cause 500. Validate here for clear 422.
    password: str = Field(..., min_length=1, max_length=72)
    preferred_language: str = Field(default="en", max_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar_url: str | None = None
    preferred_language: str | None = Field(default=None, max_length=8)


class UserResponse(UserBase):
    id: str
    avatar_url: str | None = None
    preferred_language: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
