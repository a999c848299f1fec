# File: app/models/issue.py
from __future__ import annotations
import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Enum, Integer, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base
from app.db.types import UTCDateTime

AREAS = (
    "上合管委",
    "临空管委",
    "大沽河管委",
    "阜安街道",
    "中云街道",
    "胶北街道",
    "三里河街道",
    "胶东街道",
    "九龙街道",
    "胶莱街道",
    "胶西街道",
    "李哥庄镇",
)

MAX_IMAGES = 9

class IssueStatus(str, PyEnum):
    pending = "pending"
    resolved = "resolved"
    rejected = "rejected"

def new_id() -> str:
    return uuid.uuid4().hex

class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    issue_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    area: Mapped[str] = mapped_column(String(40), index=True)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    creator: Mapped[str | None] = mapped_column(String(120), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)
    deadline: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    status: Mapped[IssueStatus] = mapped_column(Enum(IssueStatus), default=IssueStatus.pending, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime)

    # bumped on every flush; a stale writer gets StaleDataError
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    follow_ups: Mapped[list["FollowUp"]] = relationship(
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="FollowUp.handle_time",
    )

    __mapper_args__ = {"version_id_col": version}

Index("ix_issues_created_at_id", Issue.created_at, Issue.id)
