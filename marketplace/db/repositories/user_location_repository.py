"""
User location repository - a user's saved places, always scoped by owner.
"""

from sqlalchemy import select, update

from marketplace.db.models.user_location import UserLocation
from marketplace.db.repositories.base_repository import BaseRepository


class UserLocationRepository(BaseRepository[UserLocation]):
    def __init__(self, session):
        super().__init__(session, UserLocation)

    async def list_for_user(self, user_id: str) -> list[UserLocation]:
        """Newest first."""
        result = await self.session.execute(
            select(UserLocation)
            .where(UserLocation.user_id == user_id)
            .order_by(UserLocation.created_at.desc(), UserLocation.id)
        )
        return list(result.scalars().all())

    async def get_for_user(self, location_id: str, user_id: str) -> UserLocation | None:
        result = await self.session.execute(
            select(UserLocation).where(UserLocation.id == location_id, UserLocation.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def clear_default(self, user_id: str, keep_id: str | None = None) -> None:
        """Unset is_default on the user's other locations."""
        query = (
            update(UserLocation)
            .where(UserLocation.user_id == user_id, UserLocation.is_default.is_(True))
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        if keep_id is not None:
            query = query.where(UserLocation.id != keep_id)
        await self.session.execute(query)
