"""
Owner service - co-ownership of items.
Challenge: Every item must keep at least one owner at all times.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AuthorizationError, NotFoundError, ValidationError
from marketplace.db.models.enums import OwnerRole
from marketplace.db.models.item_owner import ItemOwner
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.schemas.owner import OwnerResponse

logger = logging.getLogger(__name__)


def owner_to_response(owner: ItemOwner) -> OwnerResponse:
    return OwnerResponse(
        id=owner.id,
        item_id=owner.item_id,
        user_id=owner.user_id,
        role=owner.role,
        added_by=owner.added_by,
        created_at=owner.created_at,
        display_name=owner.user.display_name if owner.user else None,
        avatar_url=owner.user.avatar_url if owner.user else None,
    )


class OwnerService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.owner_repo = ItemOwnerRepository(session)
        self.item_repo = ItemRepository(session)
        self.user_repo = UserRepository(session)

    async def list_owners(self, item_id: str) -> list[ItemOwner]:
        """Owners of an item, oldest first."""
        if await self.item_repo.get_by_id(item_id) is None:
            raise NotFoundError("Item not found")
        return await self.owner_repo.list_for_item(item_id)

    async def _require_owner(self, item_id: str, user_id: str) -> None:
        if await self.item_repo.get_by_id(item_id) is None:
            raise NotFoundError("Item not found")
        if not await self.owner_repo.is_owner(item_id, user_id):
            raise AuthorizationError("Only owners can manage owners of this item")

    async def add(
        self, item_id: str, acting_user_id: str, display_name: str, role: OwnerRole | str = OwnerRole.CO_OWNER
    ) -> ItemOwner:
        """Invite a user by display name."""
        await self._require_owner(item_id, acting_user_id)
        user = await self.user_repo.get_by_display_name(display_name)
        if user is None:
            raise NotFoundError(f"User not found: {display_name}")
        if await self.owner_repo.is_owner(item_id, user.id):
            raise ValidationError("User is already an owner of this item")
        owner = await self.owner_repo.add(
            ItemOwner(item_id=item_id, user_id=user.id, role=OwnerRole(role).value, added_by=acting_user_id)
        )
        logger.info("User %s added %s as %s of item %s", acting_user_id, user.id, owner.role, item_id)
        return owner

    async def remove(self, item_id: str, acting_user_id: str, user_id: str) -> None:
        """Remove an owner; the last remaining owner can never be removed."""
        await self._require_owner(item_id, acting_user_id)
        owner = await self.owner_repo.get(item_id, user_id)
        if owner is None:
            raise NotFoundError("Owner not found")
        if await self.owner_repo.count_for_item(item_id) <= 1:
            raise AuthorizationError("Cannot remove the last owner of an item")
        await self.owner_repo.delete(owner)
        logger.info("User %s removed owner %s from item %s", acting_user_id, user_id, item_id)
