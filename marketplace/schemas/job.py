"""Processing job and AI function schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProcessingJobResponse(BaseModel):
    id: str
    item_id: str
    status: str
    original_images: list[str] = []
    thumbnail_images: list[str] | None = None
    ai_generated_title: str | None = None
    ai_generated_description: str | None = None
    error_message: str | None = None
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class GenerateContentRequest(BaseModel):
    """Body of POST /functions/generate-item-content (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    item_id: str | None = Field(default=None, alias="itemId")
    job_id: str | None = Field(default=None, alias="jobId")
    primary_image_url: str | None = Field(default=None, alias="primaryImageUrl")
    user_language: str = Field(default="en", alias="userLanguage")


class GenerateContentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    item_id: str | None = Field(default=None, alias="itemId")
    ai_generated_title: str = Field(alias="aiGeneratedTitle")
    ai_generated_description: str = Field(alias="aiGeneratedDescription")
    ai_generated_category: str | None = Field(default=None, alias="aiGeneratedCategory")
    ai_generated_condition: str | None = Field(default=None, alias="aiGeneratedCondition")
    ai_generated_listing_type: str | None = Field(default=None, alias="aiGeneratedListingType")
    ai_generated_sale_price: float | None = Field(default=None, alias="aiGeneratedSalePrice")
