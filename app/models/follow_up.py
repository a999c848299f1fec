# File: app/models/follow_up.py
from __future__ import annotations
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Enum, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base
from app.db.types import UTCDateTime
from app.models.issue import new_id

class FollowUpStatus(str, PyEnum):
    normal = "normal"
    rejected = "rejected"
    resolved = "resolved"

class FollowUp(Base):
    __tablename__ = "follow_ups"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    issue_id: Mapped[str] = mapped_column(ForeignKey("issues.id", ondelete="CASCADE"), index=True, nullable=False)

    handler_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    handler_name: Mapped[str] = mapped_column(String(120), nullable=False)
    handle_description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    handle_images: Mapped[list[str]] = mapped_column(JSON, default=list)
    handle_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    status: Mapped[FollowUpStatus] = mapped_column(Enum(FollowUpStatus), default=FollowUpStatus.normal, nullable=False)
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    issue: Mapped["Issue"] = relationship(back_populates="follow_ups")

    @property
    def handler(self) -> dict | None:
        if not self.handler_id:
            return None
        return {"id": self.handler_id, "name": self.handler_name}
