"""
ItemImage model - ordered images of an item; display_order 0 is the primary.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, String, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base, new_id, utcnow

if TYPE_CHECKING:
    from marketplace.db.models.item import Item


class ItemImage(Base):
    __tablename__ = "item_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    item_id: Mapped[str] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_primary: Mapped[bool] = mapped_column(default=False, nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_processed: Mapped[bool] = mapped_column(default=False, nullable=False)
    processing_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    item: Mapped["Item"] = relationship("Item", back_populates="images")

    def __repr__(self) -> str:
        return f"<ItemImage(id={self.id}, order={self.display_order}, primary={self.is_primary})>"
