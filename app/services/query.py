# File: app/services/query.py
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.models.issue import Issue, IssueStatus, AREAS

STATUS_ALL = "all"


@dataclass
class IssueFilters:
    area: Optional[str] = None
    issue_number: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class IssuePage:
    items: list[Issue]
    total: int
    page: int
    page_size: int
    status_counts: dict[str, int] = field(default_factory=dict)


def empty_counts() -> dict[str, int]:
    return {STATUS_ALL: 0, **{s.value: 0 for s in IssueStatus}}


def _day_start(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, time.min, tzinfo=tz)


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def status_filter(filters: IssueFilters) -> Optional[IssueStatus]:
    raw = _clean(filters.status)
    if raw is None or raw == STATUS_ALL:
        return None
    try:
        return IssueStatus(raw)
    except ValueError:
        raise ValidationError(f"Unknown status '{raw}'")


def base_conditions(filters: IssueFilters, tz: tzinfo = timezone.utc) -> list:
    """Every filter except status; the status tabs are counted over this set."""
    conds = []
    area = _clean(filters.area)
    if area:
        if area not in AREAS:
            raise ValidationError(f"Unknown area '{area}'")
        conds.append(Issue.area == area)

    issue_number = _clean(filters.issue_number)
    if issue_number:
        conds.append(Issue.issue_number.icontains(issue_number, autoescape=True))
    title = _clean(filters.title)
    if title:
        conds.append(Issue.title.icontains(title, autoescape=True))
    phone = _clean(filters.phone)
    if phone:
        conds.append(Issue.phone.contains(phone, autoescape=True))

    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ValidationError("startDate must not be after endDate")
    if filters.start_date:
        conds.append(Issue.created_at >= _day_start(filters.start_date, tz))
    if filters.end_date:
        # inclusive of the whole end day
        conds.append(Issue.created_at < _day_start(filters.end_date + timedelta(days=1), tz))
    return conds


def clamp_page(page: int, page_size: int, max_page_size: int) -> tuple[int, int]:
    return max(page, 1), min(max(page_size, 1), max_page_size)


def count_by_status(db: Session, conds: list) -> dict[str, int]:
    counts = empty_counts()
    rows = (
        db.query(Issue.status, func.count(Issue.id))
        .filter(*conds)
        .group_by(Issue.status)
        .all()
    )
    for status_obj, n in rows:
        counts[status_obj.value] = n
    counts[STATUS_ALL] = sum(n for k, n in counts.items() if k != STATUS_ALL)
    return counts


def query_issues(
    db: Session,
    filters: IssueFilters,
    page: int,
    page_size: int,
    max_page_size: int,
    tz: tzinfo = timezone.utc,
) -> IssuePage:
    page, page_size = clamp_page(page, page_size, max_page_size)
    conds = base_conditions(filters, tz)
    status = status_filter(filters)

    counts = count_by_status(db, conds)
    if status is not None:
        conds = conds + [Issue.status == status]
        total = counts[status.value]
    else:
        total = counts[STATUS_ALL]

    items: list[Issue] = []
    offset = (page - 1) * page_size
    if offset < total:
        items = (
            db.query(Issue)
            .filter(*conds)
            .order_by(Issue.created_at.desc(), Issue.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )
    return IssuePage(items=items, total=total, page=page, page_size=page_size, status_counts=counts)
