"""Store bundle handed to the engine for one unit of work."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ilab.stores.base import (
    BadgeStore,
    HackathonStore,
    ProfileStore,
    ScoreStore,
    SubmissionStore,
    TeamStore,
    XpEventStore,
)
from ilab.stores.sql import (
    SqlBadgeStore,
    SqlHackathonStore,
    SqlProfileStore,
    SqlScoreStore,
    SqlSubmissionStore,
    SqlTeamStore,
    SqlXpEventStore,
)


class Stores:
    """All persistence ports sharing a single session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.profiles: ProfileStore = SqlProfileStore(db)
        self.xp_events: XpEventStore = SqlXpEventStore(db)
        self.badges: BadgeStore = SqlBadgeStore(db)
        self.scores: ScoreStore = SqlScoreStore(db)
        self.submissions: SubmissionStore = SqlSubmissionStore(db)
        self.hackathons: HackathonStore = SqlHackathonStore(db)
        self.teams: TeamStore = SqlTeamStore(db)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    async def reset_all(self) -> None:
        """Empty every engine-owned store, children before parents."""
        await self.scores.reset()
        await self.submissions.reset()
        await self.teams.reset()
        await self.hackathons.reset()
        await self.xp_events.reset()
        await self.profiles.reset()
        await self.badges.reset()
        await self.db.commit()
