"""
Item request endpoints - buy/rent offers, counters and their lifecycle.
"""

from fastapi import APIRouter, status

from marketplace.core.dependencies import CurrentUserId
from marketplace.db.session import DbSession
from marketplace.schemas.item_request import (
    ItemRequestCreate,
    ItemRequestResponse,
    ItemRequestUpdate,
    UserRequestsResponse,
)
from marketplace.services.item_requests import ItemRequestService

router = APIRouter()


@router.post("", response_model=ItemRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(session: DbSession, data: ItemRequestCreate, user_id: CurrentUserId):
    return await ItemRequestService(session).create(user_id, data)


@router.get("/mine", response_model=UserRequestsResponse)
async def my_requests(session: DbSession, user_id: CurrentUserId):
    """Requests the user sent and requests received on items they own."""
    sent, received = await ItemRequestService(session).for_user(user_id)
    return UserRequestsResponse(
        sent=[ItemRequestResponse.model_validate(r) for r in sent],
        received=[ItemRequestResponse.model_validate(r) for r in received],
    )


@router.patch("/{request_id}", response_model=ItemRequestResponse)
async def update_request(session: DbSession, request_id: str, data: ItemRequestUpdate, user_id: CurrentUserId):
    """Owners accept, decline, complete or counter; requesters cancel."""
    return await ItemRequestService(session).update(request_id, user_id, data)
