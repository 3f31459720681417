"""
User location endpoints - the current user's saved places.
"""

from fastapi import APIRouter, status

from marketplace.core.dependencies import CurrentUserId
from marketplace.db.session import DbSession
from marketplace.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from marketplace.services.locations import LocationService

router = APIRouter()


@router.get("", response_model=list[LocationResponse])
async def list_locations(session: DbSession, user_id: CurrentUserId):
    return await LocationService(session).list_for_user(user_id)


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(session: DbSession, data: LocationCreate, user_id: CurrentUserId):
    """Saving with is_default unsets the user's previous default."""
    return await LocationService(session).create(user_id, data)


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(session: DbSession, location_id: str, data: LocationUpdate, user_id: CurrentUserId):
    return await LocationService(session).update(location_id, user_id, data)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(session: DbSession, location_id: str, user_id: CurrentUserId):
    await LocationService(session).delete(location_id, user_id)
