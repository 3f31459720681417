# Import every model so Base.metadata is complete for Alembic and create_all

from marketplace.db.models.user import User
from marketplace.db.models.item import Item, ItemCategory
from marketplace.db.models.item_image import ItemImage
from marketplace.db.models.item_owner import ItemOwner
from marketplace.db.models.processing_job import ProcessingJob
from marketplace.db.models.item_request import ItemRequest
from marketplace.db.models.message import Message
from marketplace.db.models.user_location import UserLocation

__all__ = [
    "User",
    "Item",
    "ItemCategory",
    "ItemImage",
    "ItemOwner",
    "ProcessingJob",
    "ItemRequest",
    "Message",
    "UserLocation",
]
