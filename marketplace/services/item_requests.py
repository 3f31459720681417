"""
Item request service - buy/rent requests, counter offers and their lifecycle.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AuthorizationError, NotFoundError, ValidationError
from marketplace.db.models.enums import ItemStatus, ListingType, RequestStatus
from marketplace.db.models.item_request import ItemRequest
from marketplace.db.models.message import Message
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.repositories.item_request_repository import ItemRequestRepository
from marketplace.db.repositories.message_repository import MessageRepository
from marketplace.schemas.item_request import ItemRequestCreate, ItemRequestUpdate

logger = logging.getLogger(__name__)

# Which listing types accept which request type
COMPATIBLE_LISTINGS = {
    "sell": {ListingType.SELL.value, ListingType.BOTH.value},
    "rent": {ListingType.RENT.value, ListingType.BOTH.value},
}
CLOSED_STATUSES = {RequestStatus.DECLINED.value, RequestStatus.CANCELLED.value, RequestStatus.COMPLETED.value}


class ItemRequestService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.request_repo = ItemRequestRepository(session)
        self.item_repo = ItemRepository(session)
        self.owner_repo = ItemOwnerRepository(session)
        self.message_repo = MessageRepository(session)

    async def create(self, requester_id: str, data: ItemRequestCreate) -> ItemRequest:
        item = await self.item_repo.get_by_id(data.item_id)
        if item is None:
            raise NotFoundError("Item not found")
        if item.status != ItemStatus.AVAILABLE.value:
            raise ValidationError("Item is not available")
        if await self.owner_repo.is_owner(item.id, requester_id):
            raise ValidationError("You cannot request your own item")
        if item.listing_type not in COMPATIBLE_LISTINGS[data.request_type]:
            raise ValidationError(f"This item is not offered for {data.request_type}")
        if data.rental_start_date and data.rental_end_date and data.rental_end_date < data.rental_start_date:
            raise ValidationError("Rental end date must not be before the start date")

        request = await self.request_repo.add(
            ItemRequest(
                item_id=item.id,
                requester_id=requester_id,
                owner_id=item.user_id,
                request_type=data.request_type,
                offered_price=data.offered_price,
                rental_start_date=data.rental_start_date,
                rental_end_date=data.rental_end_date,
                message=data.message,
            )
        )
        if data.message:
            # The note opens a conversation with the owner about this request
            await self.message_repo.add(
                Message(
                    sender_id=requester_id,
                    recipient_id=item.user_id,
                    item_id=item.id,
                    request_id=request.id,
                    content=data.message,
                )
            )
        logger.info("Request %s (%s) on item %s by %s", request.id, data.request_type, item.id, requester_id)
        return request

    async def for_item(self, item_id: str, user_id: str) -> list[ItemRequest]:
        """Owners see every request on the item, anyone else only their own."""
        requests = await self.request_repo.list_for_item(item_id)
        if await self.owner_repo.is_owner(item_id, user_id):
            return requests
        return [r for r in requests if r.requester_id == user_id]

    async def for_user(self, user_id: str) -> tuple[list[ItemRequest], list[ItemRequest]]:
        """(sent, received), newest first."""
        return await self.request_repo.list_sent(user_id), await self.request_repo.list_received(user_id)

    async def update(self, request_id: str, user_id: str, data: ItemRequestUpdate) -> ItemRequest:
        """Owners accept, decline, complete or counter; requesters may only cancel."""
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("Request not found")
        if request.status in CLOSED_STATUSES:
            raise ValidationError(f"Request is already {request.status}")

        is_owner = request.owner_id == user_id or await self.owner_repo.is_owner(request.item_id, user_id)
        values = data.model_dump(exclude_unset=True)
        status = values.pop("status", None)
        counter = {k: v for k, v in values.items() if v is not None}

        if is_owner:
            if status == RequestStatus.CANCELLED.value:
                raise AuthorizationError("Only the requester can cancel a request")
            if counter:
                values["status"] = RequestStatus.COUNTER_OFFER.value
            if status:
                values["status"] = status
        elif request.requester_id == user_id:
            if counter or status not in (None, RequestStatus.CANCELLED.value):
                raise AuthorizationError("Requesters can only cancel their request")
            values["status"] = RequestStatus.CANCELLED.value
        else:
            raise AuthorizationError("Not a party to this request")

        if not values:
            raise ValidationError("Nothing to update")
        request = await self.request_repo.update(request, **values)
        logger.info("Request %s updated by %s to %s", request_id, user_id, request.status)
        return request
