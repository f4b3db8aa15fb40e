"""SQLAlchemy implementations of the persistence ports.

All stores share the caller's ``AsyncSession`` and only flush; committing
is the unit of work's job (``Stores.commit``). Reads that may follow a
Core UPDATE use ``populate_existing`` so identity-mapped rows are refreshed.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String, delete, func, literal, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ilab.db.models import (
    Badge,
    GamificationProfile,
    Hackathon,
    Judge,
    JudgingCriterion,
    Score,
    Submission,
    Team,
    TeamMember,
    User,
    XpEvent,
)
from ilab.stores.base import XpIncrement, XpTotal

_profiles = GamificationProfile.__table__
_submissions = Submission.__table__


def _insert(db: AsyncSession):  # noqa: ANN202
    """Dialect-specific INSERT supporting ON CONFLICT."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


class SqlProfileStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, user_id: str) -> GamificationProfile | None:
        result = await self.db.execute(
            select(GamificationProfile)
            .where(GamificationProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, user_id: str) -> GamificationProfile:
        """Insert a fresh profile; a concurrent creator winning the race is fine."""
        now = datetime.now(timezone.utc)
        stmt = _insert(self.db)(_profiles).values(
            user_id=user_id,
            xp=0,
            level=1,
            streak_days=0,
            vault_keys=0,
            badges=[],
            created_at=now,
            updated_at=now,
        )
        await self.db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))
        profile = await self.get(user_id)
        if profile is None:
            msg = f"Profile for user {user_id} vanished after insert"
            raise RuntimeError(msg)
        return profile

    async def increment_xp(self, user_id: str, points: int, now: datetime) -> XpIncrement:
        result = await self.db.execute(
            update(_profiles)
            .where(_profiles.c.user_id == user_id)
            .values(
                xp=_profiles.c.xp + points,
                last_activity_at=now,
                updated_at=now,
            )
            .returning(_profiles.c.xp, _profiles.c.level)
        )
        row = result.one()
        return XpIncrement(old_level=row.level, xp=row.xp)

    async def sync_level(self, user_id: str, xp: int, level: int) -> bool:
        """Store ``level`` only if ``xp`` is still the value it was derived from."""
        result = await self.db.execute(
            update(_profiles)
            .where(_profiles.c.user_id == user_id, _profiles.c.xp == xp)
            .values(level=level)
            .returning(_profiles.c.user_id)
        )
        return result.first() is not None

    async def update_streak(
        self,
        user_id: str,
        streak_days: int,
        last_activity_at: datetime,
        expected_last_activity_at: datetime | None,
    ) -> bool:
        """Compare-and-set on ``last_activity_at``; False if another request moved it first."""
        if expected_last_activity_at is None:
            guard = _profiles.c.last_activity_at.is_(None)
        else:
            guard = _profiles.c.last_activity_at == expected_last_activity_at
        result = await self.db.execute(
            update(_profiles)
            .where(_profiles.c.user_id == user_id, guard)
            .values(
                streak_days=streak_days,
                last_activity_at=last_activity_at,
                updated_at=last_activity_at,
            )
            .returning(_profiles.c.user_id)
        )
        return result.first() is not None

    async def add_badge(self, user_id: str, slug: str) -> bool:
        """Append ``slug`` under a row lock; False if the profile already holds it."""
        result = await self.db.execute(
            select(GamificationProfile)
            .where(GamificationProfile.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            msg = f"Profile for user {user_id} not found"
            raise LookupError(msg)
        if slug in (profile.badges or []):
            return False
        # JSON columns are not mutation-tracked; assign a new list
        profile.badges = [*(profile.badges or []), slug]
        profile.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return True

    async def top_by_xp(self, limit: int) -> Sequence[tuple[GamificationProfile, User | None]]:
        result = await self.db.execute(
            select(GamificationProfile, User)
            .outerjoin(User, User.id == GamificationProfile.user_id)
            .order_by(GamificationProfile.xp.desc(), GamificationProfile.user_id.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_many(
        self, user_ids: Sequence[str]
    ) -> dict[str, tuple[GamificationProfile | None, User | None]]:
        if not user_ids:
            return {}
        profiles_result = await self.db.execute(
            select(GamificationProfile)
            .where(GamificationProfile.user_id.in_(user_ids))
            .execution_options(populate_existing=True)
        )
        profiles = {p.user_id: p for p in profiles_result.scalars()}
        users_result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        users = {u.id: u for u in users_result.scalars()}
        return {uid: (profiles.get(uid), users.get(uid)) for uid in user_ids}

    async def reset(self) -> None:
        await self.db.execute(delete(GamificationProfile))


class SqlXpEventStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

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
    ) -> XpEvent | None:
        """Append a ledger row. Returns None when ``idempotency_key`` was already used."""
        if idempotency_key is None:
            event = XpEvent(
                user_id=user_id,
                event_type=event_type,
                points=points,
                ref_type=ref_type,
                ref_id=ref_id,
                hackathon_id=hackathon_id,
                event_metadata=metadata,
                created_at=now,
            )
            self.db.add(event)
            await self.db.flush()
            return event

        # Mapper columns are keyed by attribute name ("metadata" is the DB column)
        columns = XpEvent.__mapper__.columns
        stmt = (
            _insert(self.db)(XpEvent.__table__)
            .values({
                columns["user_id"]: user_id,
                columns["event_type"]: event_type,
                columns["points"]: points,
                columns["ref_type"]: ref_type,
                columns["ref_id"]: ref_id,
                columns["hackathon_id"]: hackathon_id,
                columns["event_metadata"]: metadata,
                columns["idempotency_key"]: idempotency_key,
                columns["created_at"]: now,
            })
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
            .returning(XpEvent.__table__.c.id)
        )
        result = await self.db.execute(stmt)
        event_id = result.scalar_one_or_none()
        if event_id is None:
            return None
        return await self.db.get(XpEvent, event_id)

    async def recent(self, user_id: str, limit: int) -> Sequence[XpEvent]:
        result = await self.db.execute(
            select(XpEvent)
            .where(XpEvent.user_id == user_id)
            .order_by(XpEvent.created_at.desc(), XpEvent.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def exists(self, user_id: str, event_type: str, ref_id: str | None) -> bool:
        ref_clause = XpEvent.ref_id.is_(None) if ref_id is None else XpEvent.ref_id == ref_id
        result = await self.db.execute(
            select(XpEvent.id)
            .where(XpEvent.user_id == user_id, XpEvent.event_type == event_type, ref_clause)
            .limit(1)
        )
        return result.first() is not None

    async def sum_points(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(XpEvent.points), 0)).where(XpEvent.user_id == user_id)
        )
        return int(result.scalar_one())

    async def totals_since(
        self,
        since: datetime | None,
        ref_type: str | None,
        ref_id: str | None,
        limit: int,
        hackathon_id: str | None = None,
    ) -> Sequence[XpTotal]:
        total = func.sum(XpEvent.points).label("points")
        stmt = select(XpEvent.user_id, total).group_by(XpEvent.user_id)
        if since is not None:
            stmt = stmt.where(XpEvent.created_at >= since)
        if ref_type is not None:
            stmt = stmt.where(XpEvent.ref_type == ref_type)
        if ref_id is not None:
            stmt = stmt.where(XpEvent.ref_id == ref_id)
        if hackathon_id is not None:
            stmt = stmt.where(XpEvent.hackathon_id == hackathon_id)
        stmt = stmt.order_by(total.desc(), XpEvent.user_id.asc()).limit(limit)
        result = await self.db.execute(stmt)
        return [XpTotal(user_id=row.user_id, points=int(row.points)) for row in result]

    async def reset(self) -> None:
        await self.db.execute(delete(XpEvent))


class SqlBadgeStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, slug: str) -> Badge | None:
        result = await self.db.execute(select(Badge).where(Badge.slug == slug))
        return result.scalar_one_or_none()

    async def list_all(self) -> Sequence[Badge]:
        result = await self.db.execute(select(Badge).order_by(Badge.xp_required.asc(), Badge.name.asc()))
        return result.scalars().all()

    async def list_by_slugs(self, slugs: Sequence[str]) -> Sequence[Badge]:
        if not slugs:
            return []
        result = await self.db.execute(select(Badge).where(Badge.slug.in_(slugs)))
        return result.scalars().all()

    async def create(
        self,
        slug: str,
        name: str,
        description: str,
        icon: str,
        xp_required: int,
        rarity: str,
    ) -> Badge:
        badge = Badge(
            slug=slug,
            name=name,
            description=description,
            icon=icon,
            xp_required=xp_required,
            rarity=rarity,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(badge)
        await self.db.flush()
        return badge

    async def upsert(
        self,
        slug: str,
        name: str,
        description: str,
        icon: str,
        xp_required: int,
        rarity: str,
    ) -> None:
        stmt = _insert(self.db)(Badge.__table__).values(
            id=str(uuid.uuid4()),
            slug=slug,
            name=name,
            description=description,
            icon=icon,
            xp_required=xp_required,
            rarity=rarity,
            created_at=datetime.now(timezone.utc),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["slug"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "icon": stmt.excluded.icon,
                "xp_required": stmt.excluded.xp_required,
                "rarity": stmt.excluded.rarity,
            },
        )
        await self.db.execute(stmt)

    async def delete(self, badge: Badge) -> None:
        await self.db.delete(badge)
        await self.db.flush()

    async def reset(self) -> None:
        await self.db.execute(delete(Badge))


# ---------------------------------------------------------------------------
# Judging
# ---------------------------------------------------------------------------


class SqlScoreStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, score_id: str) -> Score | None:
        return await self.db.get(Score, score_id)

    async def find(self, submission_id: str, judge_id: str, criterion_id: str) -> Score | None:
        result = await self.db.execute(
            select(Score).where(
                Score.submission_id == submission_id,
                Score.judge_id == judge_id,
                Score.criterion_id == criterion_id,
            )
        )
        return result.scalar_one_or_none()

    async def add(
        self,
        submission_id: str,
        judge_id: str,
        criterion_id: str,
        value: float,
        feedback: str | None,
    ) -> Score:
        now = datetime.now(timezone.utc)
        score = Score(
            submission_id=submission_id,
            judge_id=judge_id,
            criterion_id=criterion_id,
            value=value,
            feedback=feedback,
            created_at=now,
            updated_at=now,
        )
        self.db.add(score)
        await self.db.flush()
        return score

    async def update(self, score: Score, value: float | None, feedback: str | None) -> Score:
        if value is not None:
            score.value = value
        if feedback is not None:
            score.feedback = feedback
        score.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return score

    async def delete(self, score: Score) -> None:
        await self.db.delete(score)
        await self.db.flush()

    async def list_for_submission(self, submission_id: str) -> Sequence[Score]:
        result = await self.db.execute(
            select(Score)
            .where(Score.submission_id == submission_id)
            .order_by(Score.created_at.asc(), Score.id.asc())
        )
        return result.scalars().all()

    async def count_for_judge(self, judge_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Score).where(Score.judge_id == judge_id)
        )
        return int(result.scalar_one())

    async def reset(self) -> None:
        await self.db.execute(delete(Score))


class SqlSubmissionStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, submission_id: str) -> Submission | None:
        result = await self.db.execute(
            select(Submission)
            .where(Submission.id == submission_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def set_aggregate(self, submission_id: str, value: float | None) -> None:
        await self.db.execute(
            update(_submissions)
            .where(_submissions.c.id == submission_id)
            .values(score_aggregate=value)
        )

    async def list_scored(self, hackathon_id: str) -> Sequence[Submission]:
        result = await self.db.execute(
            select(Submission)
            .where(
                Submission.hackathon_id == hackathon_id,
                Submission.score_aggregate.is_not(None),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def clear_ranks(self, hackathon_id: str) -> None:
        await self.db.execute(
            update(_submissions)
            .where(_submissions.c.hackathon_id == hackathon_id)
            .values(rank=None)
        )

    async def set_rank(self, submission_id: str, rank: int) -> None:
        await self.db.execute(
            update(_submissions)
            .where(_submissions.c.id == submission_id)
            .values(rank=rank)
        )

    async def list_ranked(self, hackathon_id: str, max_rank: int) -> Sequence[Submission]:
        result = await self.db.execute(
            select(Submission)
            .where(
                Submission.hackathon_id == hackathon_id,
                Submission.rank.is_not(None),
                Submission.rank <= max_rank,
            )
            .order_by(Submission.rank.asc(), Submission.id.asc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def reset(self) -> None:
        await self.db.execute(delete(Submission))


class SqlHackathonStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, hackathon_id: str) -> Hackathon | None:
        return await self.db.get(Hackathon, hackathon_id)

    async def get_criterion(self, hackathon_id: str, criterion_id: str) -> JudgingCriterion | None:
        result = await self.db.execute(
            select(JudgingCriterion).where(
                JudgingCriterion.id == criterion_id,
                JudgingCriterion.hackathon_id == hackathon_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_criteria(self, criterion_ids: Sequence[str]) -> dict[str, JudgingCriterion]:
        if not criterion_ids:
            return {}
        result = await self.db.execute(
            select(JudgingCriterion).where(JudgingCriterion.id.in_(criterion_ids))
        )
        return {c.id: c for c in result.scalars()}

    async def get_user(self, user_id: str) -> User | None:
        return await self.db.get(User, user_id)

    async def get_judge(self, hackathon_id: str, user_id: str) -> Judge | None:
        result = await self.db.execute(
            select(Judge).where(Judge.hackathon_id == hackathon_id, Judge.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_judge_by_id(self, judge_id: str) -> Judge | None:
        return await self.db.get(Judge, judge_id)

    async def list_judges(self, hackathon_id: str) -> Sequence[tuple[Judge, User | None]]:
        result = await self.db.execute(
            select(Judge, User)
            .outerjoin(User, User.id == Judge.user_id)
            .where(Judge.hackathon_id == hackathon_id)
            .order_by(Judge.created_at.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def add_judge(self, hackathon_id: str, user_id: str) -> Judge:
        judge = Judge(hackathon_id=hackathon_id, user_id=user_id, created_at=datetime.now(timezone.utc))
        self.db.add(judge)
        await self.db.flush()
        return judge

    async def delete_judge(self, judge: Judge) -> None:
        await self.db.delete(judge)
        await self.db.flush()

    async def reset(self) -> None:
        await self.db.execute(delete(Judge))
        await self.db.execute(delete(JudgingCriterion))
        await self.db.execute(delete(Hackathon))


class SqlTeamStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, team_id: str) -> Team | None:
        return await self.db.get(Team, team_id)

    async def member_ids(self, team_id: str) -> list[str]:
        result = await self.db.execute(
            select(TeamMember.user_id)
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.joined_at.asc())
        )
        return list(result.scalars())

    async def is_member(self, team_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(TeamMember.id).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        )
        return result.first() is not None

    async def add_member_if_capacity(self, team: Team, user_id: str, role: str) -> bool:
        """Count, compare and insert in one statement under a lock on the team row."""
        await self.db.execute(select(Team.id).where(Team.id == team.id).with_for_update())

        member_count = (
            select(func.count())
            .select_from(TeamMember)
            .where(TeamMember.team_id == team.id)
            .scalar_subquery()
        )
        candidate = select(
            literal(str(uuid.uuid4()), String),
            literal(team.id, String),
            literal(user_id, String),
            literal(role, String),
            literal(datetime.now(timezone.utc), DateTime(timezone=True)),
        ).where(member_count < team.max_members)
        await self.db.execute(
            TeamMember.__table__.insert().from_select(
                ["id", "team_id", "user_id", "role", "joined_at"],
                candidate,
            )
        )
        return await self.is_member(team.id, user_id)

    async def reset(self) -> None:
        await self.db.execute(delete(TeamMember))
        await self.db.execute(delete(Team))
