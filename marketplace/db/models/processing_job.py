"""
ProcessingJob model - one AI generation attempt for an item.
The most recently created job of an item is the authoritative one.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base, new_id, utcnow
from marketplace.db.models.enums import JobStatus

if TYPE_CHECKING:
    from marketplace.db.models.item import Item


class ProcessingJob(Base):
    __tablename__ = "item_processing_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    item_id: Mapped[str] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=JobStatus.PENDING.value)
    original_images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    thumbnail_images: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    ai_generated_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ai_generated_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    processing_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processing_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    item: Mapped["Item"] = relationship("Item", back_populates="processing_jobs")

    def to_row(self) -> dict[str, Any]:
        """Full row as delivered to change-feed subscribers."""
        return {
            "id": self.id,
            "item_id": self.item_id,
            "status": self.status,
            "original_images": list(self.original_images or []),
            "thumbnail_images": list(self.thumbnail_images or []),
            "ai_generated_title": self.ai_generated_title,
            "ai_generated_description": self.ai_generated_description,
            "error_message": self.error_message,
            "processing_started_at": _iso(self.processing_started_at),
            "processing_completed_at": _iso(self.processing_completed_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<ProcessingJob(id={self.id}, item_id={self.item_id}, status={self.status})>"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
