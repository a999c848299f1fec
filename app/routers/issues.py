# File: app/routers/issues.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from app.core.config import settings
from app.core.errors import ValidationError
from app.core.ratelimit import limiter
from app.core.security import get_current_actor, get_optional_actor
from app.schemas.auth import Actor
from app.schemas.issue import (
    IssueCreate,
    IssueOut,
    IssueDetailOut,
    PaginatedIssuesOut,
    StatusCounts,
    DeadlinePatch,
    RejectIn,
    IssueStatusPatch,
)
from app.services.lifecycle import IssueLifecycle, get_lifecycle
from app.services.query import IssueFilters

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("", response_model=PaginatedIssuesOut)
@limiter.limit("60/minute")
def list_issues(
    request: Request,
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1),
    status: Optional[str] = Query(default=None),
    area: Optional[str] = Query(default=None),
    issue_number: Optional[str] = Query(default=None, alias="issueNumber"),
    title: Optional[str] = Query(default=None),
    phone: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_optional_actor),
):
    filters = IssueFilters(
        area=area,
        issue_number=issue_number,
        title=title,
        phone=phone,
        status=status,
        start_date=start_date,
        end_date=end_date,
    )
    result = lifecycle.query_issues(filters, page, page_size or settings.default_page_size, actor)
    return PaginatedIssuesOut(
        data=[IssueOut.model_validate(i) for i in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        status_counts=StatusCounts(**result.status_counts),
    )


@router.post("", response_model=IssueOut, status_code=201)
@limiter.limit("10/minute")
def create_issue(
    request: Request,
    body: IssueCreate,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_optional_actor),
):
    return lifecycle.create_issue(body, actor)


@router.get("/{issue_id}", response_model=IssueDetailOut)
def get_issue(
    issue_id: str,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_optional_actor),
):
    return lifecycle.get_issue(issue_id, actor)


@router.patch("/{issue_id}", response_model=IssueOut)
def set_deadline(
    issue_id: str,
    body: DeadlinePatch,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    if "deadline" not in body.model_fields_set:
        raise ValidationError("Only the deadline can be changed")
    return lifecycle.set_deadline(issue_id, body.deadline, actor)


@router.delete("/{issue_id}")
def delete_issue(
    issue_id: str,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    lifecycle.delete_issue(issue_id, actor)
    return {"ok": True}


@router.post("/{issue_id}/resolve", response_model=IssueDetailOut)
def resolve_issue(
    issue_id: str,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    return lifecycle.resolve_issue(issue_id, actor)


@router.post("/{issue_id}/reject", response_model=IssueDetailOut)
def reject_issue(
    issue_id: str,
    body: Optional[RejectIn] = None,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    return lifecycle.reject_issue(issue_id, actor, body.reason if body else None)


@router.patch("/{issue_id}/status", response_model=IssueDetailOut)
def update_status(
    issue_id: str,
    body: IssueStatusPatch,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    if body.status == "resolved":
        return lifecycle.resolve_issue(issue_id, actor)
    return lifecycle.reject_issue(issue_id, actor, body.reason)
