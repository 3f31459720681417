"""
Function endpoints - AI content generation callable on its own.
Contract: camelCase JSON; failures answer 500 with {"error", "details"}.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from marketplace.core.dependencies import CurrentUserId, Feed, Generator, Storage
from marketplace.core.errors import MarketplaceError
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.processing_job_repository import ProcessingJobRepository
from marketplace.db.session import DbSession
from marketplace.schemas.job import GenerateContentRequest, GenerateContentResponse
from marketplace.services.content_generation import ContentGenerationService
from marketplace.services.processing_jobs import ProcessingJobTracker

logger = logging.getLogger(__name__)
router = APIRouter()


def _failure(details: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "AI content generation failed", "details": details},
    )


@router.post("/generate-item-content", response_model=GenerateContentResponse, response_model_by_alias=True)
async def generate_item_content(
    session: DbSession,
    storage: Storage,
    generator: Generator,
    feed: Feed,
    data: GenerateContentRequest,
    user_id: CurrentUserId,
):
    """
    Generate a listing suggestion from one image. With itemId the suggestion is
    written onto the item; with jobId the job is run and its status tracked.
    """
    target_item_id = data.item_id
    if data.job_id:
        job = await ProcessingJobRepository(session).get_by_id(data.job_id)
        if job is None:
            return _failure("Processing job not found")
        target_item_id = job.item_id
    if target_item_id and not await ItemOwnerRepository(session).is_owner(target_item_id, user_id):
        return _failure("Only owners can generate content for this item")

    service = ContentGenerationService(session, storage, generator)
    try:
        if data.job_id:
            tracker = ProcessingJobTracker(session, feed, storage, generator)
            job = await tracker.run(data.job_id, data.user_language)
            if job.error_message:
                return _failure(job.error_message)
            item_id = job.item_id
            suggestion = await service.item_suggestion(item_id)
        elif data.item_id:
            item_id = data.item_id
            suggestion = await service.generate_for_item(item_id, data.primary_image_url, data.user_language)
        else:
            item_id = None
            suggestion = await service.generate(data.primary_image_url, data.user_language)
    except MarketplaceError as exc:
        logger.error("generate-item-content failed: %s", exc.message)
        return _failure(exc.message)

    return GenerateContentResponse(
        item_id=item_id,
        ai_generated_title=suggestion.title,
        ai_generated_description=suggestion.description,
        ai_generated_category=suggestion.category,
        ai_generated_condition=suggestion.condition,
        ai_generated_listing_type=suggestion.listing_type,
        ai_generated_sale_price=suggestion.sale_price,
    )
