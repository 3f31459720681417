"""Listing wizard schemas: form data, suggestions and step results."""

from pydantic import BaseModel

from marketplace.schemas.job import ProcessingJobResponse


class ItemFormData(BaseModel):
    """Details form as the user edits it: every field is a string, '' means unset."""

    title: str = ""
    description: str = ""
    category: str = ""
    condition: str = ""
    listing_type: str = ""
    sale_price: str = ""
    rental_price: str = ""
    rental_period: str = ""


class SuggestionResponse(BaseModel):
    title: str
    description: str
    category: str
    condition: str
    listing_type: str
    sale_price: float | None = None


class NoticeResponse(BaseModel):
    level: str
    title: str
    description: str


class WizardStateResponse(BaseModel):
    item_id: str | None = None
    step: str
    processing_state: str
    progress: int
    ai_mode: str
    form: ItemFormData
    listing_type_options: list[str]
    suggestion: SuggestionResponse | None = None
    job: ProcessingJobResponse | None = None
    notices: list[NoticeResponse] = []
