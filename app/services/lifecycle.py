# File: app/services/lifecycle.py
"""
Entry points for every issue mutation and the list query.

Each method checks the role policy first, then loads the aggregate, applies
the workflow transition and persists it through the store in one commit.
Errors are the typed ones from ``app.core.errors``; nothing is retried here,
a ``Conflict`` goes back to the caller to re-read and re-apply.
"""
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ValidationError
from app.db.session import get_db
from app.db.types import as_utc, utcnow
from app.models.issue import Issue, IssueStatus, AREAS
from app.models.follow_up import FollowUp
from app.schemas.auth import Actor
from app.services import workflow
from app.services.policy import Action, ensure_allowed
from app.services.query import IssueFilters, IssuePage
from app.services.store import IssueStore


def _text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class IssueLifecycle:
    def __init__(self, store: IssueStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def create_issue(self, data, actor: Actor) -> Issue:
        ensure_allowed(actor, Action.create_issue)
        if data.area not in AREAS:
            raise ValidationError(f"Unknown area '{data.area}'")
        images = workflow.validate_images(data.images)

        now = self.clock()
        issue = Issue(
            issue_number=self.store.next_issue_number(now),
            title=_text(data.title),
            description=_text(data.description),
            area=data.area,
            location=_text(data.location),
            creator=_text(data.creator) or actor.name,
            phone=_text(data.phone),
            images=images,
            status=IssueStatus.pending,
            created_at=now,
            updated_at=now,
        )
        return self.store.put_issue_aggregate(issue)

    def get_issue(self, issue_id: str, actor: Actor) -> Issue:
        ensure_allowed(actor, Action.view_issue)
        return self.store.get_issue_aggregate(issue_id)

    def delete_issue(self, issue_id: str, actor: Actor) -> None:
        ensure_allowed(actor, Action.delete_issue)
        issue = self.store.get_issue_aggregate(issue_id)
        self.store.delete_issue_aggregate(issue)

    def resolve_issue(self, issue_id: str, actor: Actor) -> Issue:
        ensure_allowed(actor, Action.resolve_issue)
        issue = self.store.get_issue_aggregate(issue_id)
        workflow.resolve_issue(issue, actor, self.clock())
        return self.store.put_issue_aggregate(issue)

    def reject_issue(self, issue_id: str, actor: Actor, reason: Optional[str] = None) -> Issue:
        ensure_allowed(actor, Action.reject_issue)
        issue = self.store.get_issue_aggregate(issue_id)
        workflow.reject_issue(issue, actor, reason, self.clock())
        return self.store.put_issue_aggregate(issue)

    def set_deadline(self, issue_id: str, deadline: Optional[datetime], actor: Actor) -> Issue:
        ensure_allowed(actor, Action.set_deadline)
        if deadline is not None and not isinstance(deadline, datetime):
            raise ValidationError("deadline must be a timestamp")
        issue = self.store.get_issue_aggregate(issue_id)
        issue.deadline = as_utc(deadline)
        workflow.bump_updated_at(issue, self.clock())
        return self.store.put_issue_aggregate(issue)

    def create_follow_up(self, issue_id: str, data, actor: Actor) -> FollowUp:
        ensure_allowed(actor, Action.create_follow_up)
        issue = self.store.get_issue_aggregate(issue_id)
        follow_up = workflow.add_follow_up(
            issue,
            actor,
            self.clock(),
            handle_images=data.handle_images,
            handler_name=data.handler_name,
            handle_description=data.handle_description,
        )
        self.store.put_issue_aggregate(issue)
        return follow_up

    def update_follow_up(self, follow_up_id: str, changes: dict, actor: Actor) -> FollowUp:
        ensure_allowed(actor, Action.edit_follow_up)
        issue, _ = self.store.get_follow_up_aggregate(follow_up_id)
        follow_up = workflow.edit_follow_up(issue, follow_up_id, actor, self.clock(), changes)
        self.store.put_issue_aggregate(issue)
        return follow_up

    def delete_follow_up(self, follow_up_id: str, actor: Actor) -> Issue:
        ensure_allowed(actor, Action.delete_follow_up)
        issue, _ = self.store.get_follow_up_aggregate(follow_up_id)
        workflow.remove_follow_up(issue, follow_up_id, self.clock())
        return self.store.put_issue_aggregate(issue)

    def query_issues(self, filters: IssueFilters, page: int, page_size: int, actor: Actor) -> IssuePage:
        ensure_allowed(actor, Action.view_issue)
        return self.store.query_issues(filters, page, page_size)


def get_lifecycle(db: Session = Depends(get_db)) -> IssueLifecycle:
    store = IssueStore(db, max_page_size=settings.max_page_size, tz=ZoneInfo(settings.timezone))
    return IssueLifecycle(store)
