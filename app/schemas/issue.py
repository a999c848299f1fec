# File: app/schemas/issue.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Literal, List
from datetime import datetime

from app.models.issue import IssueStatus
from app.models.follow_up import FollowUpStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class IssueCreate(CamelModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=4000)
    area: str
    location: Optional[str] = Field(default=None, max_length=300)
    creator: Optional[str] = Field(default=None, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=30)
    images: List[str] = []


class DeadlinePatch(CamelModel):
    deadline: Optional[datetime] = None


class RejectIn(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class IssueStatusPatch(CamelModel):
    status: Literal["resolved", "rejected"]
    reason: Optional[str] = Field(default=None, max_length=1000)


class FollowUpCreate(CamelModel):
    handler_name: Optional[str] = Field(default=None, max_length=120)
    handle_description: Optional[str] = Field(default=None, max_length=4000)
    handle_images: List[str] = []


class FollowUpUpdate(CamelModel):
    """Partial edit; fields left out keep their current value."""
    handle_description: Optional[str] = Field(default=None, max_length=4000)
    handle_images: Optional[List[str]] = None


class HandlerLite(CamelModel):
    id: str
    name: str


class FollowUpOut(CamelModel):
    id: str
    issue_id: str
    handler_id: Optional[str] = None
    handler_name: str
    handle_description: Optional[str] = None
    handle_images: List[str] = []
    handle_time: datetime
    status: FollowUpStatus
    rejection_reason: Optional[str] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    handler: Optional[HandlerLite] = None


class IssueOut(CamelModel):
    id: str
    issue_number: str
    title: Optional[str] = None
    description: Optional[str] = None
    status: IssueStatus
    creator: Optional[str] = None
    phone: Optional[str] = None
    area: str
    location: Optional[str] = None
    images: List[str] = []
    deadline: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class IssueDetailOut(IssueOut):
    follow_ups: List[FollowUpOut] = []


class StatusCounts(CamelModel):
    all: int = 0
    pending: int = 0
    resolved: int = 0
    rejected: int = 0


class PaginatedIssuesOut(CamelModel):
    data: list[IssueOut]
    total: int
    page: int
    page_size: int
    status_counts: StatusCounts


class UploadOut(CamelModel):
    urls: List[str]
