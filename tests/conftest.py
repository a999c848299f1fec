from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["RATELIMIT_ENABLED"] = "false"

import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import issue, follow_up, issue_counter  # noqa: F401
from app.schemas.auth import Actor
from app.schemas.issue import FollowUpCreate, IssueCreate
from app.services.lifecycle import IssueLifecycle
from app.services.policy import Role
from app.services.store import IssueStore

ADMIN = Actor(id="admin-1", name="王管理", role=Role.admin)
RESOLVER = Actor(id="resolver-1", name="李处理", role=Role.resolver)
OTHER_RESOLVER = Actor(id="resolver-2", name="赵处理", role=Role.resolver)
REPORTER = Actor(id="user-1", name="张三", role=Role.user)

IMAGE = "https://img.example.com/issues/a.jpg"


class StepClock:
    """Deterministic clock: every call advances by ``step``."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(minutes=1)):
        self.current = start or datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now


def issue_data(**overrides) -> IssueCreate:
    data = {
        "title": "路灯损坏",
        "description": "路口路灯不亮",
        "area": "阜安街道",
        "location": "人民路与北京路交叉口",
        "creator": "张三",
        "phone": "13800000000",
        "images": [IMAGE, "https://img.example.com/issues/b.jpg"],
    }
    data.update(overrides)
    return IssueCreate(**data)


def follow_up_data(**overrides) -> FollowUpCreate:
    data = {"handler_name": "李处理", "handle_description": "已更换灯泡", "handle_images": [IMAGE]}
    data.update(overrides)
    return FollowUpCreate(**data)


def make_token(actor: Actor, ttl: int = 900) -> str:
    now = int(time.time())
    payload = {"sub": actor.id, "role": actor.role.value, "name": actor.name, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, os.environ["JWT_SECRET"], algorithm="HS256")


def auth_headers(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(actor)}"}


@pytest.fixture
def engine(tmp_path: Path):
    eng = create_engine(f"sqlite:///{tmp_path / 'issues.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def lifecycle(db, clock) -> IssueLifecycle:
    return IssueLifecycle(IssueStore(db, max_page_size=200), clock=clock)


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
