from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import StoreUnavailable
from app.models.issue import IssueStatus
from app.services.lifecycle import IssueLifecycle
from app.services.store import IssueStore
from conftest import ADMIN, REPORTER, RESOLVER, follow_up_data, issue_data

DRIVER_TEXT = "could not connect to server at 10.0.0.5"


def driver_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception(DRIVER_TEXT))


class Flaky:
    """Wraps a session method; the first ``failures`` calls raise a driver error."""

    def __init__(self, real, failures: int):
        self.real = real
        self.failures = failures
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise driver_error()
        return self.real(*args, **kwargs)


def test_read_is_retried_once(lifecycle: IssueLifecycle, db, monkeypatch) -> None:
    issue = lifecycle.create_issue(issue_data(), REPORTER)
    flaky = Flaky(db.query, failures=1)
    monkeypatch.setattr(db, "query", flaky)

    loaded = lifecycle.store.get_issue_aggregate(issue.id)

    assert loaded.id == issue.id
    assert flaky.calls == 2


def test_read_gives_up_after_the_retry(lifecycle: IssueLifecycle, db, monkeypatch) -> None:
    issue = lifecycle.create_issue(issue_data(), REPORTER)
    flaky = Flaky(db.query, failures=5)
    monkeypatch.setattr(db, "query", flaky)

    with pytest.raises(StoreUnavailable) as exc_info:
        lifecycle.get_issue(issue.id, REPORTER)

    assert flaky.calls == 2
    assert DRIVER_TEXT not in exc_info.value.message


def test_write_is_not_retried(lifecycle: IssueLifecycle, db, session_factory, monkeypatch) -> None:
    issue = lifecycle.create_issue(issue_data(), REPORTER)
    flaky = Flaky(db.commit, failures=5)
    monkeypatch.setattr(db, "commit", flaky)

    with pytest.raises(StoreUnavailable) as exc_info:
        lifecycle.resolve_issue(issue.id, ADMIN)

    assert flaky.calls == 1
    assert DRIVER_TEXT not in exc_info.value.message

    other = session_factory()
    try:
        assert IssueStore(other).get_issue_aggregate(issue.id).status == IssueStatus.pending
    finally:
        other.close()


def test_failed_refresh_after_commit_returns_written_state(
    lifecycle: IssueLifecycle, db, session_factory, monkeypatch
) -> None:
    issue = lifecycle.create_issue(issue_data(), REPORTER)
    monkeypatch.setattr(db, "refresh", Flaky(db.refresh, failures=5))

    follow_up = lifecycle.create_follow_up(issue.id, follow_up_data(handle_description="已处理"), RESOLVER)

    assert follow_up.handle_description == "已处理"
    assert follow_up.issue_id == issue.id

    other = session_factory()
    try:
        stored = IssueStore(other).get_issue_aggregate(issue.id)
        assert [f.id for f in stored.follow_ups] == [follow_up.id]
    finally:
        other.close()
