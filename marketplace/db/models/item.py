"""
Item model - a listing, its category lookup table and the rooms/sell rule.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, DateTime, ForeignKey, Integer, Numeric, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base, new_id, utcnow
from marketplace.db.models.enums import ItemStatus

if TYPE_CHECKING:
    from marketplace.db.models.user import User
    from marketplace.db.models.item_image import ItemImage
    from marketplace.db.models.item_owner import ItemOwner
    from marketplace.db.models.processing_job import ProcessingJob


class ItemCategory(Base):
    """Allowed category values. Read at runtime so new categories need no deploy."""

    __tablename__ = "item_categories"

    value: Mapped[str] = mapped_column(String(32), primary_key=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Item(Base):
    """Item entity. Drafts anchor wizard uploads; published items are `available`."""

    __tablename__ = "items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    condition: Mapped[str] = mapped_column(String(16), nullable=False)
    listing_type: Mapped[str] = mapped_column(String(16), nullable=False)
    sale_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    rental_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    rental_period: Mapped[str | None] = mapped_column(String(16), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ItemStatus.DRAFT.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="items")
    images: Mapped[list["ItemImage"]] = relationship(
        "ItemImage",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemImage.display_order",
        lazy="selectin",
    )
    owners: Mapped[list["ItemOwner"]] = relationship(
        "ItemOwner", back_populates="item", cascade="all, delete-orphan", lazy="selectin"
    )
    processing_jobs: Mapped[list["ProcessingJob"]] = relationship(
        "ProcessingJob", back_populates="item", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, title={self.title}, status={self.status})>"
