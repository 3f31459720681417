# Repository pattern: abstract data access (SOLID - Dependency Inversion)

from marketplace.db.repositories.item_repository import ItemRepository
from marketplace.db.repositories.item_image_repository import ItemImageRepository
from marketplace.db.repositories.item_owner_repository import ItemOwnerRepository
from marketplace.db.repositories.item_request_repository import ItemRequestRepository
from marketplace.db.repositories.message_repository import MessageRepository
from marketplace.db.repositories.processing_job_repository import ProcessingJobRepository
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.db.repositories.user_location_repository import UserLocationRepository

__all__ = [
    "UserRepository",
    "ItemRepository",
    "ItemImageRepository",
    "ItemOwnerRepository",
    "ItemRequestRepository",
    "MessageRepository",
    "ProcessingJobRepository",
    "UserLocationRepository",
]
