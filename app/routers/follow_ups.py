# File: app/routers/follow_ups.py
from fastapi import APIRouter, Depends
from app.core.security import get_current_actor
from app.schemas.auth import Actor
from app.schemas.issue import FollowUpCreate, FollowUpUpdate, FollowUpOut, IssueDetailOut
from app.services.lifecycle import IssueLifecycle, get_lifecycle

router = APIRouter(tags=["follow-ups"])


@router.post("/issues/{issue_id}/follow-ups", response_model=FollowUpOut, status_code=201)
def create_follow_up(
    issue_id: str,
    body: FollowUpCreate,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    return lifecycle.create_follow_up(issue_id, body, actor)


@router.patch("/follow-ups/{follow_up_id}", response_model=FollowUpOut)
def update_follow_up(
    follow_up_id: str,
    body: FollowUpUpdate,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    changes = body.model_dump(include=body.model_fields_set)
    return lifecycle.update_follow_up(follow_up_id, changes, actor)


@router.delete("/follow-ups/{follow_up_id}", response_model=IssueDetailOut)
def delete_follow_up(
    follow_up_id: str,
    lifecycle: IssueLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    return lifecycle.delete_follow_up(follow_up_id, actor)
