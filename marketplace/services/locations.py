"""
Location service - a user's saved places; setting a default unsets the previous one.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.db.models.user_location import UserLocation
from marketplace.db.repositories.user_location_repository import UserLocationRepository
from marketplace.schemas.location import LocationCreate, LocationUpdate

logger = logging.getLogger(__name__)


class LocationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = UserLocationRepository(session)

    async def list_for_user(self, user_id: str) -> list[UserLocation]:
        return await self.repo.list_for_user(user_id)

    async def create(self, user_id: str, data: LocationCreate) -> UserLocation:
        if data.is_default:
            await self.repo.clear_default(user_id)
        location = await self.repo.add(UserLocation(user_id=user_id, **data.model_dump()))
        logger.info("Location %s saved for user %s (default=%s)", location.id, user_id, location.is_default)
        return location

    async def update(self, location_id: str, user_id: str, data: LocationUpdate) -> UserLocation:
        location = await self._get(location_id, user_id)
        values = data.model_dump(exclude_unset=True)
        for field in ("name", "address", "is_default"):
            if field in values and values[field] is None:
                raise ValidationError(f"{field} cannot be empty")
        if values.get("is_default"):
            await self.repo.clear_default(user_id, keep_id=location.id)
        return await self.repo.update(location, **values)

    async def delete(self, location_id: str, user_id: str) -> None:
        location = await self._get(location_id, user_id)
        await self.repo.delete(location)
        logger.info("Location %s removed by user %s", location_id, user_id)

    async def _get(self, location_id: str, user_id: str) -> UserLocation:
        # Other users' locations are indistinguishable from missing ones
        location = await self.repo.get_for_user(location_id, user_id)
        if location is None:
            raise NotFoundError("Location not found")
        return location
