from __future__ import annotations

import pytest

from app.core.errors import Forbidden
from app.schemas.auth import Actor
from app.services.policy import Action, Role, can_perform, ensure_allowed
from conftest import ADMIN, REPORTER, RESOLVER

ADMIN_ONLY = [
    Action.resolve_issue,
    Action.reject_issue,
    Action.delete_follow_up,
    Action.delete_issue,
    Action.set_deadline,
]


@pytest.mark.parametrize("action", list(Action))
def test_admin_may_do_everything(action: Action) -> None:
    assert can_perform(Role.admin, action)


@pytest.mark.parametrize("action", ADMIN_ONLY)
def test_admin_only_actions_denied_to_others(action: Action) -> None:
    assert not can_perform(Role.user, action)
    assert not can_perform(Role.resolver, action)


def test_reporter_can_only_create_and_view() -> None:
    allowed = {a for a in Action if can_perform(Role.user, a)}
    assert allowed == {Action.create_issue, Action.view_issue}


def test_resolver_works_follow_ups() -> None:
    assert can_perform(Role.resolver, Action.create_follow_up)
    assert can_perform(Role.resolver, Action.edit_follow_up)
    assert can_perform(Role.resolver, Action.view_issue)


def test_accepts_wire_strings() -> None:
    assert can_perform("admin", "deleteIssue")
    assert not can_perform("user", "createFollowUp")


def test_unknown_role_or_action_is_denied() -> None:
    assert not can_perform("superuser", Action.view_issue)
    assert not can_perform(Role.admin, "launchRocket")


def test_ensure_allowed_raises_forbidden() -> None:
    ensure_allowed(ADMIN, Action.delete_issue)
    ensure_allowed(RESOLVER, Action.create_follow_up)
    with pytest.raises(Forbidden, match="createFollowUp"):
        ensure_allowed(REPORTER, Action.create_follow_up)


def test_unknown_actor_role_is_forbidden_not_a_crash() -> None:
    stranger = Actor.model_construct(id="x-1", name="访客", role="superuser")
    with pytest.raises(Forbidden, match="Role 'superuser' may not viewIssue"):
        ensure_allowed(stranger, Action.view_issue)
    with pytest.raises(Forbidden, match="Role 'user' may not deleteIssue"):
        ensure_allowed(REPORTER, Action.delete_issue)
