# File: app/services/workflow.py
"""
Follow-up workflow: the state machine behind ``Issue.status``.

An issue's status is a projection of its follow-ups. Every function here
mutates an already-loaded aggregate (an ``Issue`` with its ``follow_ups``)
in memory and leaves persisting it to the caller, so a transition is either
committed whole by the store or discarded with the session.

Derivation rule, applied after any change to the follow-up set:

* resolved, if any follow-up is resolved
* rejected, if any follow-up is rejected
* pending otherwise

The one status write not backed by a follow-up is an admin resolving an
issue that has no follow-ups at all.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm.attributes import flag_modified

from app.core.errors import ValidationError, InvalidTransition, NotFound, Forbidden
from app.db.types import as_utc
from app.models.issue import Issue, IssueStatus, MAX_IMAGES
from app.models.follow_up import FollowUp, FollowUpStatus
from app.schemas.auth import Actor
from app.services.policy import Role

logger = logging.getLogger(__name__)


def _latest(follow_ups: list[FollowUp], status: FollowUpStatus) -> Optional[FollowUp]:
    # list order is creation order; handle_time breaks ties for freshly loaded rows
    matches = [(i, f) for i, f in enumerate(follow_ups) if f.status == status]
    if not matches:
        return None
    return max(matches, key=lambda pair: (as_utc(pair[1].handle_time), pair[0]))[1]


def derive_status(follow_ups: Iterable[FollowUp], issue_id: str | None = None) -> IssueStatus:
    follow_ups = list(follow_ups)
    latest_resolved = _latest(follow_ups, FollowUpStatus.resolved)
    latest_rejected = _latest(follow_ups, FollowUpStatus.rejected)
    if latest_resolved is not None:
        if latest_rejected is not None and as_utc(latest_rejected.handle_time) > as_utc(latest_resolved.handle_time):
            logger.warning(
                "issue %s: follow-up %s rejected after %s resolved, keeping resolved",
                issue_id, latest_rejected.id, latest_resolved.id,
            )
        return IssueStatus.resolved
    if latest_rejected is not None:
        return IssueStatus.rejected
    return IssueStatus.pending


def bump_updated_at(issue: Issue, now: datetime) -> None:
    current = as_utc(issue.updated_at)
    issue.updated_at = now if current is None or now > current else current
    # always write the issue row so its version check covers follow-up-only changes
    flag_modified(issue, "updated_at")


def validate_images(images: list[str] | None, field: str = "images") -> list[str]:
    images = [url.strip() for url in (images or []) if url and url.strip()]
    if not images:
        raise ValidationError(f"At least one image is required ({field})")
    if len(images) > MAX_IMAGES:
        raise ValidationError(f"At most {MAX_IMAGES} images are allowed ({field})")
    return images


def _require_pending(issue: Issue, target: IssueStatus) -> None:
    if issue.status != IssueStatus.pending:
        raise InvalidTransition(
            f"Issue {issue.issue_number} is {issue.status.value}, only pending issues can be {target.value}"
        )


def resolve_issue(issue: Issue, actor: Actor, now: datetime) -> Issue:
    _require_pending(issue, IssueStatus.resolved)
    latest = _latest(issue.follow_ups, FollowUpStatus.normal)
    if latest is None:
        issue.status = IssueStatus.resolved
    else:
        latest.status = FollowUpStatus.resolved
        issue.status = derive_status(issue.follow_ups, issue.id)
    bump_updated_at(issue, now)
    return issue


def reject_issue(issue: Issue, actor: Actor, reason: str | None, now: datetime) -> Issue:
    _require_pending(issue, IssueStatus.rejected)
    reason = (reason or "").strip() or None
    target = _latest(issue.follow_ups, FollowUpStatus.normal)
    if target is None:
        target = FollowUp(
            handler_id=actor.id,
            handler_name=actor.display_name,
            handle_images=[],
            handle_time=now,
        )
        issue.follow_ups.append(target)
    target.status = FollowUpStatus.rejected
    target.rejection_reason = reason
    target.rejected_by = actor.display_name
    target.rejected_at = now
    issue.status = derive_status(issue.follow_ups, issue.id)
    bump_updated_at(issue, now)
    return issue


def add_follow_up(
    issue: Issue,
    actor: Actor,
    now: datetime,
    handle_images: list[str] | None,
    handler_name: str | None = None,
    handle_description: str | None = None,
) -> FollowUp:
    images = validate_images(handle_images, "handleImages")
    follow_up = FollowUp(
        handler_id=actor.id,
        handler_name=(handler_name or "").strip() or actor.display_name,
        handle_description=(handle_description or "").strip() or None,
        handle_images=images,
        handle_time=now,
        status=FollowUpStatus.normal,
    )
    issue.follow_ups.append(follow_up)
    bump_updated_at(issue, now)
    return follow_up


def find_follow_up(issue: Issue, follow_up_id: str) -> FollowUp:
    for follow_up in issue.follow_ups:
        if follow_up.id == follow_up_id:
            return follow_up
    raise NotFound(f"Follow-up {follow_up_id} not found")


def edit_follow_up(
    issue: Issue,
    follow_up_id: str,
    actor: Actor,
    now: datetime,
    changes: dict,
) -> FollowUp:
    """Replace description and/or images; ``changes`` holds only the fields the caller sent."""
    follow_up = find_follow_up(issue, follow_up_id)
    if actor.role != Role.admin and follow_up.handler_id != actor.id:
        raise Forbidden("Resolvers can only edit their own follow-ups")
    if "handle_images" in changes:
        follow_up.handle_images = validate_images(changes["handle_images"], "handleImages")
    if "handle_description" in changes:
        follow_up.handle_description = (changes["handle_description"] or "").strip() or None
    bump_updated_at(issue, now)
    return follow_up


def remove_follow_up(issue: Issue, follow_up_id: str, now: datetime) -> Issue:
    follow_up = find_follow_up(issue, follow_up_id)
    issue.follow_ups.remove(follow_up)
    issue.status = derive_status(issue.follow_ups, issue.id)
    bump_updated_at(issue, now)
    return issue
