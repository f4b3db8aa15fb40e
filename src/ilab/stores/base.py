"""Persistence ports consumed by the engine.

The engine talks to storage only through these protocols. ``ilab.stores.sql``
provides the SQLAlchemy implementation used in production and tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from ilab.db.models import (
    Badge,
    GamificationProfile,
    Hackathon,
    Judge,
    JudgingCriterion,
    Score,
    Submission,
    Team,
    User,
    XpEvent,
)


@dataclass(frozen=True)
class XpIncrement:
    """Result of an atomic XP increment."""

    old_level: int
    xp: int


@dataclass(frozen=True)
class XpTotal:
    """Points earned by one user inside a leaderboard window."""

    user_id: str
    points: int


class ProfileStore(Protocol):
    async def get(self, user_id: str) -> GamificationProfile | None: ...

    async def create(self, user_id: str) -> GamificationProfile: ...

    async def increment_xp(self, user_id: str, points: int, now: datetime) -> XpIncrement: ...

    async def sync_level(self, user_id: str, xp: int, level: int) -> bool: ...

    async def update_streak(
        self,
        user_id: str,
        streak_days: int,
        last_activity_at: datetime,
        expected_last_activity_at: datetime | None,
    ) -> bool: ...

    async def add_badge(self, user_id: str, slug: str) -> bool: ...

    async def top_by_xp(self, limit: int) -> Sequence[tuple[GamificationProfile, User | None]]: ...

    async def get_many(self, user_ids: Sequence[str]) -> dict[str, tuple[GamificationProfile | None, User | None]]: ...

    async def reset(self) -> None: ...


class XpEventStore(Protocol):
    async def append(
        self,
        user_id: str,
        event_type: str,
        points: int,
        ref_type: str | None,
        ref_id: str | None,
        metadata: dict[str, Any] | None,
        idempotency_key: str | None,
        now: datetime,
        hackathon_id: str | None = None,
    ) -> XpEvent | None: ...

    async def recent(self, user_id: str, limit: int) -> Sequence[XpEvent]: ...

    async def exists(self, user_id: str, event_type: str, ref_id: str | None) -> bool: ...

    async def sum_points(self, user_id: str) -> int: ...

    async def totals_since(
        self,
        since: datetime | None,
        ref_type: str | None,
        ref_id: str | None,
        limit: int,
        hackathon_id: str | None = None,
    ) -> Sequence[XpTotal]: ...

    async def reset(self) -> None: ...


class BadgeStore(Protocol):
    async def get(self, slug: str) -> Badge | None: ...

    async def list_all(self) -> Sequence[Badge]: ...

    async def list_by_slugs(self, slugs: Sequence[str]) -> Sequence[Badge]: ...

    async def create(
        self,
        slug: str,
        name: str,
        description: str,
        icon: str,
        xp_required: int,
        rarity: str,
    ) -> Badge: ...

    async def upsert(
        self,
        slug: str,
        name: str,
        description: str,
        icon: str,
        xp_required: int,
        rarity: str,
    ) -> None: ...

    async def delete(self, badge: Badge) -> None: ...

    async def reset(self) -> None: ...


class ScoreStore(Protocol):
    async def get(self, score_id: str) -> Score | None: ...

    async def find(self, submission_id: str, judge_id: str, criterion_id: str) -> Score | None: ...

    async def add(
        self,
        submission_id: str,
        judge_id: str,
        criterion_id: str,
        value: float,
        feedback: str | None,
    ) -> Score: ...

    async def update(self, score: Score, value: float | None, feedback: str | None) -> Score: ...

    async def delete(self, score: Score) -> None: ...

    async def list_for_submission(self, submission_id: str) -> Sequence[Score]: ...

    async def count_for_judge(self, judge_id: str) -> int: ...

    async def reset(self) -> None: ...


class SubmissionStore(Protocol):
    async def get(self, submission_id: str) -> Submission | None: ...

    async def set_aggregate(self, submission_id: str, value: float | None) -> None: ...

    async def list_scored(self, hackathon_id: str) -> Sequence[Submission]: ...

    async def clear_ranks(self, hackathon_id: str) -> None: ...

    async def set_rank(self, submission_id: str, rank: int) -> None: ...

    async def list_ranked(self, hackathon_id: str, max_rank: int) -> Sequence[Submission]: ...

    async def reset(self) -> None: ...


class HackathonStore(Protocol):
    async def get(self, hackathon_id: str) -> Hackathon | None: ...

    async def get_criterion(self, hackathon_id: str, criterion_id: str) -> JudgingCriterion | None: ...

    async def get_criteria(self, criterion_ids: Sequence[str]) -> dict[str, JudgingCriterion]: ...

    async def get_user(self, user_id: str) -> User | None: ...

    async def get_judge(self, hackathon_id: str, user_id: str) -> Judge | None: ...

    async def get_judge_by_id(self, judge_id: str) -> Judge | None: ...

    async def list_judges(self, hackathon_id: str) -> Sequence[tuple[Judge, User | None]]: ...

    async def add_judge(self, hackathon_id: str, user_id: str) -> Judge: ...

    async def delete_judge(self, judge: Judge) -> None: ...

    async def reset(self) -> None: ...


class TeamStore(Protocol):
    async def get(self, team_id: str) -> Team | None: ...

    async def member_ids(self, team_id: str) -> list[str]: ...

    async def is_member(self, team_id: str, user_id: str) -> bool: ...

    async def add_member_if_capacity(self, team: Team, user_id: str, role: str) -> bool: ...

    async def reset(self) -> None: ...
