"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ilab.database import close_db, create_tables, get_session, init_db
from ilab.db.models import (
    Hackathon,
    Judge,
    JudgingCriterion,
    Submission,
    Team,
    TeamMember,
    User,
)
from ilab.events import EventPublisher
from ilab.stores import Stores

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a fresh in-memory database built from the ORM metadata."""
    await init_db(TEST_DATABASE_URL)
    await create_tables()
    async for session in get_session():
        yield session
        break
    await close_db()


@pytest_asyncio.fixture
async def stores(db_session: AsyncSession) -> Stores:
    return Stores(db_session)


@pytest.fixture
def redis_mock() -> AsyncMock:
    """Stand-in Redis client; inspect ``publish.await_args_list``."""
    mock = AsyncMock()
    mock.publish = AsyncMock(return_value=1)
    return mock


@pytest.fixture
def events(redis_mock: AsyncMock) -> EventPublisher:
    return EventPublisher(redis_mock)


def published(redis_mock: AsyncMock, event_type: str) -> list[dict]:
    """Decoded payloads published on ``pubsub:<event_type>``."""
    return [
        json.loads(call.args[1])
        for call in redis_mock.publish.await_args_list
        if call.args[0] == f"pubsub:{event_type}"
    ]


@pytest.fixture
def published_events(redis_mock: AsyncMock):
    return lambda event_type: published(redis_mock, event_type)


@pytest_asyncio.fixture
async def users(db_session: AsyncSession) -> dict[str, User]:
    """A handful of users keyed by handle."""
    rows = {
        handle: User(id=f"user-{handle}", email=f"{handle}@example.com", name=handle.title(), handle=handle)
        for handle in ("alice", "bob", "carol", "judge1", "judge2", "judge3", "admin")
    }
    db_session.add_all(rows.values())
    await db_session.commit()
    return rows


@pytest_asyncio.fixture
async def hackathon(db_session: AsyncSession, users: dict[str, User]) -> SimpleNamespace:
    """Hackathon with two criteria, a two-person team, three judges and submissions.

    - ``innovation``: max 100, weight 1.0
    - ``design``: max 10, weight 2.0
    - team ``team-a`` (alice, bob; max 3 members)
    - judges judge1..judge3 assigned; carol is not a judge
    - ``final`` submission in FINAL status, ``draft`` in DRAFT
    """
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    h = Hackathon(id="hack-1", title="Spring Hack", status="JUDGING", created_at=now)
    innovation = JudgingCriterion(
        id="crit-innovation", hackathon_id=h.id, name="Innovation", max_score=100, weight=1.0, order=1,
    )
    design = JudgingCriterion(id="crit-design", hackathon_id=h.id, name="Design", max_score=10, weight=2.0, order=2)
    team = Team(id="team-a", hackathon_id=h.id, name="Team A", max_members=3, created_at=now)
    members = [
        TeamMember(team_id=team.id, user_id=users["alice"].id, role="LEAD", joined_at=now),
        TeamMember(team_id=team.id, user_id=users["bob"].id, role="MEMBER", joined_at=now + timedelta(minutes=1)),
    ]
    judges = [
        Judge(id=f"judge-row-{i}", hackathon_id=h.id, user_id=users[f"judge{i}"].id, created_at=now)
        for i in (1, 2, 3)
    ]
    final = Submission(
        id="sub-final", hackathon_id=h.id, team_id=team.id, title="Final project",
        status="FINAL", submitted_at=now,
    )
    draft = Submission(id="sub-draft", hackathon_id=h.id, team_id=team.id, title="Draft project", status="DRAFT")

    db_session.add(h)
    await db_session.flush()
    db_session.add_all([innovation, design, team])
    await db_session.flush()
    db_session.add_all([*members, *judges, final, draft])
    await db_session.commit()

    return SimpleNamespace(
        id=h.id,
        innovation=innovation.id,
        design=design.id,
        team_id=team.id,
        final=final.id,
        draft=draft.id,
        judges=[j.user_id for j in judges],
        members=[m.user_id for m in members],
        users=users,
    )


@pytest.fixture
def app(events: EventPublisher):
    """Application with the mocked publisher; tests may add dependency overrides."""
    from ilab.dependencies import get_events
    from ilab.main import create_app

    application = create_app()
    application.dependency_overrides[get_events] = lambda: events
    return application


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client on the app, sharing the test database and a mocked publisher."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _user_headers(user_id: str, *roles: str) -> dict[str, str]:
    headers = {"X-User-Id": user_id}
    if roles:
        headers["X-User-Roles"] = ",".join(roles)
    return headers


@pytest.fixture
def as_user():
    """Build gateway identity headers: ``as_user("user-alice", "admin")``."""
    return _user_headers
