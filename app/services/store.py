# File: app/services/store.py
"""SQLAlchemy-backed storage for issue aggregates (an issue plus its follow-ups)."""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone, tzinfo

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import Conflict, NotFound, StoreUnavailable
from app.models.issue import Issue
from app.models.follow_up import FollowUp
from app.models.issue_counter import IssueCounter
from app.services.query import IssueFilters, IssuePage, query_issues

logger = logging.getLogger(__name__)

COUNTER_ROW_ID = 1


class IssueStore:
    def __init__(self, db: Session, max_page_size: int = 200, tz: tzinfo = timezone.utc):
        self.db = db
        self.max_page_size = max_page_size
        # calendar days for issue numbers and date filters
        self.tz = tz

    def _read(self, fn):
        """Reads are idempotent, so a failed one is retried exactly once."""
        try:
            return fn()
        except (OperationalError, DBAPIError) as first:
            logger.warning("store read failed, retrying once: %s", first.__class__.__name__)
            self.db.rollback()
            try:
                return fn()
            except (OperationalError, DBAPIError) as e:
                self.db.rollback()
                logger.error("store read failed after retry", exc_info=True)
                raise StoreUnavailable() from e

    @contextmanager
    def _write(self):
        try:
            yield
        except StaleDataError as e:
            self.db.rollback()
            raise Conflict() from e
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("integrity error on write: %s", e.orig.__class__.__name__)
            raise Conflict() from e
        except (OperationalError, DBAPIError) as e:
            self.db.rollback()
            logger.error("store write failed", exc_info=True)
            raise StoreUnavailable() from e
        except Exception:
            self.db.rollback()
            raise

    def get_issue_aggregate(self, issue_id: str) -> Issue:
        issue = self._read(
            lambda: self.db.query(Issue)
            .options(selectinload(Issue.follow_ups))
            .filter(Issue.id == issue_id)
            .first()
        )
        if issue is None:
            raise NotFound(f"Issue {issue_id} not found")
        return issue

    def get_follow_up_aggregate(self, follow_up_id: str) -> tuple[Issue, FollowUp]:
        issue_id = self._read(
            lambda: self.db.query(FollowUp.issue_id).filter(FollowUp.id == follow_up_id).scalar()
        )
        if issue_id is None:
            raise NotFound(f"Follow-up {follow_up_id} not found")
        issue = self.get_issue_aggregate(issue_id)
        for follow_up in issue.follow_ups:
            if follow_up.id == follow_up_id:
                return issue, follow_up
        # removed between the two reads
        raise NotFound(f"Follow-up {follow_up_id} not found")

    def next_issue_number(self, now: datetime) -> str:
        """Must run inside the transaction that inserts the issue; the row lock serializes callers."""
        with self._write():
            counter = (
                self.db.query(IssueCounter)
                .filter(IssueCounter.id == COUNTER_ROW_ID)
                .with_for_update()
                .first()
            )
            if counter is None:
                counter = IssueCounter(id=COUNTER_ROW_ID, value=0)
                self.db.add(counter)
            counter.value += 1
            self.db.flush()
            return f"{now.astimezone(self.tz):%Y%m%d}{counter.value:06d}"

    def put_issue_aggregate(self, issue: Issue) -> Issue:
        """Commit the aggregate and return it as stored."""
        with self._write():
            self.db.add(issue)
            self.db.commit()
        try:
            self.db.refresh(issue)
        except (OperationalError, DBAPIError):
            # already committed; the in-memory aggregate is what was written
            logger.warning("refresh after commit failed for issue %s", issue.id, exc_info=True)
        return issue

    def delete_issue_aggregate(self, issue: Issue) -> None:
        with self._write():
            self.db.delete(issue)
            self.db.commit()

    def query_issues(self, filters: IssueFilters, page: int, page_size: int) -> IssuePage:
        return self._read(lambda: query_issues(self.db, filters, page, page_size, self.max_page_size, self.tz))
