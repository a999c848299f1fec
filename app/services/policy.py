# File: app/services/policy.py
from enum import Enum as PyEnum
from app.core.errors import Forbidden


class Role(str, PyEnum):
    user = "user"
    resolver = "resolver"
    admin = "admin"


class Action(str, PyEnum):
    create_issue = "createIssue"
    view_issue = "viewIssue"
    resolve_issue = "resolveIssue"
    reject_issue = "rejectIssue"
    create_follow_up = "createFollowUp"
    edit_follow_up = "editFollowUp"
    delete_follow_up = "deleteFollowUp"
    delete_issue = "deleteIssue"
    set_deadline = "setDeadline"


_PUBLIC = {Action.create_issue, Action.view_issue}

PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.user: frozenset(_PUBLIC),
    # resolvers may only edit follow-ups they handled; checked once the record is loaded
    Role.resolver: frozenset(_PUBLIC | {Action.create_follow_up, Action.edit_follow_up}),
    Role.admin: frozenset(Action),
}


def can_perform(role: Role | str, action: Action | str) -> bool:
    try:
        role = Role(role)
        action = Action(action)
    except ValueError:
        return False
    return action in PERMISSIONS[role]


def ensure_allowed(actor, action: Action) -> None:
    if not can_perform(actor.role, action):
        role = actor.role.value if isinstance(actor.role, Role) else actor.role
        raise Forbidden(f"Role '{role}' may not {action.value}")
