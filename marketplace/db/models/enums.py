"""Enumerated column values shared by models, schemas and services."""

import enum


class ItemCondition(str, enum.Enum):
    NEW = "new"
    USED = "used"
    BROKEN = "broken"


class ListingType(str, enum.Enum):
    SELL = "sell"
    RENT = "rent"
    BOTH = "both"


class ItemStatus(str, enum.Enum):
    DRAFT = "draft"
    AVAILABLE = "available"
    RESERVED = "reserved"
    RENTED = "rented"
    SOLD = "sold"


class RentalPeriod(str, enum.Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class OwnerRole(str, enum.Enum):
    OWNER = "owner"
    CO_OWNER = "co-owner"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COUNTER_OFFER = "counter_offer"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Seed values for the item_categories table. Validation reads the table, not this list.
DEFAULT_CATEGORIES = [
    "electronics",
    "tools",
    "furniture",
    "books",
    "sports",
    "clothing",
    "kitchen",
    "garden",
    "toys",
    "vehicles",
    "other",
    "rooms",
]

ROOMS_CATEGORY = "rooms"
FALLBACK_CATEGORY = "other"
