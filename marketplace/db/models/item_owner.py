"""
ItemOwner model - who may change an item. Every item keeps at least one row.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base, new_id, utcnow
from marketplace.db.models.enums import OwnerRole

if TYPE_CHECKING:
    from marketplace.db.models.item import Item
    from marketplace.db.models.user import User


class ItemOwner(Base):
    __tablename__ = "item_owners"
    __table_args__ = (UniqueConstraint("item_id", "user_id", name="uq_item_owners_item_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    item_id: Mapped[str] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=OwnerRole.OWNER.value)
    added_by: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    item: Mapped["Item"] = relationship("Item", back_populates="owners")
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="selectin")

    def __repr__(self) -> str:
        return f"<ItemOwner(item_id={self.item_id}, user_id={self.user_id}, role={self.role})>"
