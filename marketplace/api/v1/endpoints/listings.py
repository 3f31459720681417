"""
Listing wizard endpoints - images step (draft + uploads + AI), details step (publish).
Challenge: One wizard session spans several requests.
Design: The draft item id is the session; each request resumes the wizard from it.
"""

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from marketplace.core.dependencies import CurrentUserContext, Feed, Generator, Runner, Storage
from marketplace.db.session import DbSession
from marketplace.schemas.item import ItemResponse
from marketplace.schemas.wizard import ItemFormData, WizardStateResponse
from marketplace.services.image_manager import read_uploads
from marketplace.services.listing_wizard import ListingWizard, SubmitMode

router = APIRouter()


def _collaborators(storage, generator, feed, runner) -> dict:
    return {"storage": storage, "generator": generator, "feed": feed, "runner": runner}


@router.post("/drafts", response_model=WizardStateResponse, status_code=status.HTTP_201_CREATED)
async def submit_images(
    session: DbSession,
    user: CurrentUserContext,
    storage: Storage,
    generator: Generator,
    feed: Feed,
    runner: Runner,
    files: list[UploadFile] = File(default=[]),
    mode: SubmitMode = Form(SubmitMode.WITH_AI),
):
    """
    Images step. Creates the draft, uploads images in order and (with_ai)
    generates a suggestion. AI failure still returns the details step.
    """
    wizard = ListingWizard(session, user, **_collaborators(storage, generator, feed, runner))
    try:
        await wizard.submit_images(await read_uploads(files), mode)
        return wizard.to_state()
    finally:
        await wizard.close()


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def publish_without_draft(
    session: DbSession,
    user: CurrentUserContext,
    storage: Storage,
    generator: Generator,
    feed: Feed,
    runner: Runner,
    data: ItemFormData,
):
    """Details step when the images step was skipped: no draft exists yet."""
    wizard = ListingWizard(session, user, **_collaborators(storage, generator, feed, runner))
    await wizard.submit_images(mode=SubmitMode.SKIP_IMAGES)
    return await wizard.submit_details(data)


@router.get("/{item_id}", response_model=WizardStateResponse)
async def wizard_state(
    session: DbSession,
    user: CurrentUserContext,
    storage: Storage,
    generator: Generator,
    feed: Feed,
    runner: Runner,
    item_id: str,
):
    """Details step state for a draft: prefilled form, latest job, options."""
    wizard = await ListingWizard.resume(session, user, item_id, **_collaborators(storage, generator, feed, runner))
    return wizard.to_state()


@router.post("/{item_id}/publish", response_model=ItemResponse)
async def publish(
    session: DbSession,
    user: CurrentUserContext,
    storage: Storage,
    generator: Generator,
    feed: Feed,
    runner: Runner,
    item_id: str,
    data: ItemFormData,
    promote_draft: bool = Query(True, description="False publishes a new item and removes the draft"),
):
    """Validate the details form and publish the draft as an available item."""
    wizard = await ListingWizard.resume(
        session,
        user,
        item_id,
        promote_draft=promote_draft,
        **_collaborators(storage, generator, feed, runner),
    )
    return await wizard.submit_details(data)


@router.post("/{item_id}/retry", response_model=WizardStateResponse)
async def retry_ai(
    session: DbSession,
    user: CurrentUserContext,
    storage: Storage,
    generator: Generator,
    feed: Feed,
    runner: Runner,
    item_id: str,
):
    """Re-run AI generation for the draft's primary image."""
    wizard = await ListingWizard.resume(session, user, item_id, **_collaborators(storage, generator, feed, runner))
    try:
        await wizard.retry_ai()
        return wizard.to_state()
    finally:
        await wizard.close()
