"""
UserLocation model - saved pickup/meeting places of a user; at most one is the default.
"""

from datetime import datetime

from sqlalchemy import Float, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.db.base import Base, new_id, utcnow


class UserLocation(Base):
    __tablename__ = "user_locations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_default: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserLocation(id={self.id}, user_id={self.user_id}, default={self.is_default})>"
