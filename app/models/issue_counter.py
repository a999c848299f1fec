# File: app/models/issue_counter.py
from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class IssueCounter(Base):
    __tablename__ = "issue_counters"

    # single-row table pattern; row id 1 holds the last issued sequence value
    id: Mapped[int] = mapped_column(primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
