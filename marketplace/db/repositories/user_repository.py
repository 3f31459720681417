"""
User repository - encapsulates all user data access (SOLID: Single Responsibility).
Challenge: Keep queries in one place for optimization and reuse.
"""

from sqlalchemy import select

from marketplace.db.models.user import User
from marketplace.db.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """User-specific queries. Extends base CRUD with domain logic."""

    def __init__(self, session):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        """Find user by email - used for authentication."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_display_name(self, display_name: str) -> User | None:
        """Co-owners are invited by their public display name."""
        result = await self.session.execute(
            select(User).where(User.display_name == display_name).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_many_by_ids(self, ids: list[str]) -> dict[str, User]:
        if not ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(ids)))
        return {u.id: u for u in result.scalars().all()}
