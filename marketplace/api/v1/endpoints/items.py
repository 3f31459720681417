"""
Item endpoints - browse, detail, owner edits, images and owners (RESTful resource).
Challenge: Pagination, auth, validation, 404 handling.
Design: Thin controller; service layer holds business logic.
"""

from fastapi import APIRouter, File, Query, UploadFile, status

from marketplace.config import get_settings
from marketplace.core.dependencies import CurrentUserId, OptionalUserId, Storage
from marketplace.core.errors import NotFoundError
from marketplace.db.models.enums import ItemStatus
from marketplace.db.session import DbSession
from marketplace.schemas.item import (
    ImageReorder,
    ImageUploadResponse,
    ItemImageResponse,
    ItemResponse,
    ItemUpdate,
    SignedUrlResponse,
)
from marketplace.schemas.item_request import ItemRequestResponse
from marketplace.schemas.owner import OwnerAdd, OwnerResponse
from marketplace.services.image_manager import read_uploads
from marketplace.services.item_requests import ItemRequestService
from marketplace.services.item_service import ItemService
from marketplace.services.owner_service import OwnerService, owner_to_response

router = APIRouter()
settings = get_settings()


@router.get("", response_model=list[ItemResponse])
async def browse_items(
    session: DbSession,
    storage: Storage,
    category: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """Available items, newest first. REST: GET /items?category=tools&skip=0&limit=20."""
    return await ItemService(session, storage).browse(category=category, skip=skip, limit=limit)


@router.get("/categories", response_model=list[str])
async def list_categories(session: DbSession, storage: Storage):
    return await ItemService(session, storage).categories()


@router.get("/mine", response_model=list[ItemResponse])
async def my_items(session: DbSession, storage: Storage, user_id: CurrentUserId):
    """Items the user owns or co-owns, drafts included."""
    return await ItemService(session, storage).my_items(user_id)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(session: DbSession, storage: Storage, item_id: str, user_id: OptionalUserId):
    """Single item with images ordered by display_order. Drafts are visible to owners only."""
    svc = ItemService(session, storage)
    item = await svc.get_response(item_id)
    if item.status == ItemStatus.DRAFT.value:
        if user_id is None or not await svc.owner_repo.is_owner(item_id, user_id):
            raise NotFoundError("Item not found")
    return item


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(session: DbSession, storage: Storage, item_id: str, data: ItemUpdate, user_id: CurrentUserId):
    """Owner edit of fields or status. Invalidates cache and re-indexes in queue."""
    return await ItemService(session, storage).update(item_id, user_id, data)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(session: DbSession, storage: Storage, item_id: str, user_id: CurrentUserId):
    """Owner-only delete. Removes from DB, cache, and search index."""
    await ItemService(session, storage).delete(item_id, user_id)


# --- Images ---

@router.post("/{item_id}/images", response_model=ImageUploadResponse, status_code=status.HTTP_201_CREATED)
async def add_images(
    session: DbSession,
    storage: Storage,
    item_id: str,
    user_id: CurrentUserId,
    files: list[UploadFile] = File(...),
):
    images, rejected = await ItemService(session, storage).add_images(item_id, user_id, await read_uploads(files))
    return ImageUploadResponse(images=images, rejected=rejected)


@router.put("/{item_id}/images/order", response_model=list[ItemImageResponse])
async def reorder_images(session: DbSession, storage: Storage, item_id: str, data: ImageReorder, user_id: CurrentUserId):
    """Move one image; the image at position 0 is the primary."""
    return await ItemService(session, storage).reorder_images(item_id, user_id, data.from_index, data.to_index)


@router.delete("/{item_id}/images/{image_id}", response_model=list[ItemImageResponse])
async def remove_image(session: DbSession, storage: Storage, item_id: str, image_id: str, user_id: CurrentUserId):
    return await ItemService(session, storage).remove_image(item_id, user_id, image_id)


@router.get("/{item_id}/images/{image_id}/signed-url", response_model=SignedUrlResponse)
async def signed_image_url(
    session: DbSession,
    storage: Storage,
    item_id: str,
    image_id: str,
    width: int | None = Query(None, ge=1, le=4000),
    quality: int | None = Query(None, ge=1, le=100),
):
    url, ttl = await ItemService(session, storage).signed_image_url(item_id, image_id, width, quality)
    return SignedUrlResponse(url=url, expires_in=ttl)


# --- Owners ---

@router.get("/{item_id}/owners", response_model=list[OwnerResponse])
async def list_owners(session: DbSession, item_id: str):
    return [owner_to_response(o) for o in await OwnerService(session).list_owners(item_id)]


@router.post("/{item_id}/owners", response_model=OwnerResponse, status_code=status.HTTP_201_CREATED)
async def add_owner(session: DbSession, item_id: str, data: OwnerAdd, user_id: CurrentUserId):
    """Add a co-owner by display name."""
    return owner_to_response(await OwnerService(session).add(item_id, user_id, data.display_name, data.role))


@router.delete("/{item_id}/owners/{owner_user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_owner(session: DbSession, item_id: str, owner_user_id: str, user_id: CurrentUserId):
    """Remove an owner. Removing the last owner returns 403."""
    await OwnerService(session).remove(item_id, user_id, owner_user_id)


# --- Requests ---

@router.get("/{item_id}/requests", response_model=list[ItemRequestResponse])
async def item_requests(session: DbSession, item_id: str, user_id: CurrentUserId):
    return await ItemRequestService(session).for_item(item_id, user_id)
