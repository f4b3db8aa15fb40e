"""Leaderboard tests: windows, scopes, ties, display fallbacks."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ilab.exceptions import ValidationError
from ilab.gamification.badge_service import award_badge
from ilab.gamification.leaderboard_service import (
    LeaderboardPeriod,
    LeaderboardScope,
    clamp_limit,
    get_leaderboard,
    period_start,
)
from ilab.gamification.seed import seed_badges
from ilab.gamification.xp_service import award_xp
from ilab.judging.scoring_service import record_score
from ilab.teams.service import join_team

NOW = datetime(2026, 5, 14, 15, 0, tzinfo=timezone.utc)  # a Thursday


class TestPeriodStart:
    def test_alltime_has_no_start(self):
        assert period_start(LeaderboardPeriod.ALLTIME, NOW) is None

    def test_week_starts_monday(self):
        assert period_start(LeaderboardPeriod.WEEK, NOW) == datetime(2026, 5, 11, tzinfo=timezone.utc)

    def test_month_starts_on_first(self):
        assert period_start(LeaderboardPeriod.MONTH, NOW) == datetime(2026, 5, 1, tzinfo=timezone.utc)

    def test_season_starts_on_quarter(self):
        assert period_start(LeaderboardPeriod.SEASON, NOW) == datetime(2026, 4, 1, tzinfo=timezone.utc)
        assert period_start(LeaderboardPeriod.SEASON, datetime(2026, 12, 31, tzinfo=timezone.utc)) == datetime(
            2026, 10, 1, tzinfo=timezone.utc,
        )


class TestClampLimit:
    def test_default(self):
        assert clamp_limit(None, 100, 500) == 100

    def test_clamped(self):
        assert clamp_limit(0, 100, 500) == 1
        assert clamp_limit(10_000, 100, 500) == 500


class TestGlobalAllTime:
    @pytest.mark.asyncio
    async def test_sorted_by_xp_with_rank(self, stores, users, events):
        await award_xp(stores, events, "user-alice", "X", 300)
        await award_xp(stores, events, "user-bob", "X", 900)
        await award_xp(stores, events, "user-carol", "X", 50)

        entries = await get_leaderboard(stores)
        assert [e["user"]["id"] for e in entries] == ["user-bob", "user-alice", "user-carol"]
        assert [e["rank"] for e in entries] == [1, 2, 3]
        assert entries[0]["xp"] == 900
        assert entries[0]["level"] == 4
        assert entries[0]["user"]["name"] == "Bob"

    @pytest.mark.asyncio
    async def test_ties_broken_by_user_id(self, stores, users, events):
        await award_xp(stores, events, "user-carol", "X", 100)
        await award_xp(stores, events, "user-alice", "X", 100)
        entries = await get_leaderboard(stores)
        assert [e["user"]["id"] for e in entries] == ["user-alice", "user-carol"]

    @pytest.mark.asyncio
    async def test_rank_is_page_position(self, stores, users, events):
        for uid, xp in (("user-alice", 30), ("user-bob", 20), ("user-carol", 10)):
            await award_xp(stores, events, uid, "X", xp)
        entries = await get_leaderboard(stores, limit=2)
        assert len(entries) == 2
        assert [e["rank"] for e in entries] == [1, 2]

    @pytest.mark.asyncio
    async def test_user_without_row_is_anonymous(self, stores, events):
        await award_xp(stores, events, "ghost", "X", 10)
        [entry] = await get_leaderboard(stores)
        assert entry["user"] == {"id": "ghost", "name": "Anonymous", "handle": "unknown", "avatar_url": None}

    @pytest.mark.asyncio
    async def test_badges_ordered_by_rarity(self, stores, users, events):
        await seed_badges(stores)
        await award_xp(stores, events, "user-alice", "X", 10)
        for slug in ("first-team", "hackathon-legend", "dangling", "streak-30"):
            await award_badge(stores, events, "user-alice", slug)
        [entry] = await get_leaderboard(stores)
        assert entry["badges"] == ["hackathon-legend", "streak-30", "first-team", "dangling"]


class TestWindowsAndScopes:
    @pytest.mark.asyncio
    async def test_week_window_sums_recent_events(self, stores, users, events):
        await award_xp(stores, events, "user-alice", "X", 500, now=datetime(2026, 5, 4, tzinfo=timezone.utc))
        await award_xp(stores, events, "user-alice", "X", 20, now=datetime(2026, 5, 12, tzinfo=timezone.utc))
        await award_xp(stores, events, "user-bob", "X", 40, now=datetime(2026, 5, 13, tzinfo=timezone.utc))

        entries = await get_leaderboard(stores, period=LeaderboardPeriod.WEEK, now=NOW)
        assert [(e["user"]["id"], e["points"]) for e in entries] == [("user-bob", 40), ("user-alice", 20)]
        # Lifetime xp still reported alongside the window points
        assert entries[1]["xp"] == 520

    @pytest.mark.asyncio
    async def test_hackathon_scope_filters_by_hackathon_tag(self, stores, users, events):
        await award_xp(stores, events, "user-alice", "JOIN_HACKATHON", 10, ref_id="h1", hackathon_id="h1")
        await award_xp(stores, events, "user-alice", "JOIN_TEAM", 10, ref_type="team", ref_id="team-x", hackathon_id="h1")
        await award_xp(stores, events, "user-bob", "JOIN_HACKATHON", 10, ref_id="h2", hackathon_id="h2")
        await award_xp(stores, events, "user-carol", "BONUS", 50)

        entries = await get_leaderboard(stores, scope=LeaderboardScope.HACKATHON, scope_id="h1")
        assert [(e["user"]["id"], e["points"]) for e in entries] == [("user-alice", 20)]

    @pytest.mark.asyncio
    async def test_challenge_scope_filters_by_reference(self, stores, users, events):
        await award_xp(stores, events, "user-alice", "CHALLENGE_WINNER", 300, ref_type="challenge", ref_id="c1")
        await award_xp(stores, events, "user-bob", "CHALLENGE_WINNER", 300, ref_type="challenge", ref_id="c2")
        await award_xp(stores, events, "user-carol", "JOIN_TEAM", 10, ref_type="team", ref_id="team-x")

        entries = await get_leaderboard(stores, scope=LeaderboardScope.CHALLENGE, scope_id="c1")
        assert [e["user"]["id"] for e in entries] == ["user-alice"]

    @pytest.mark.asyncio
    async def test_judged_members_outrank_plain_joiner(self, stores, events, hackathon):
        for judge in hackathon.judges:
            await record_score(stores, events, hackathon.final, judge, hackathon.innovation, 70)
        # carol joins after judging: only the join XP
        await join_team(stores, events, hackathon.team_id, "user-carol")

        entries = await get_leaderboard(stores, scope=LeaderboardScope.HACKATHON, scope_id=hackathon.id)
        assert [(e["user"]["id"], e["points"]) for e in entries] == [
            ("user-alice", 30), ("user-bob", 30), ("user-carol", 20),
        ]

    @pytest.mark.asyncio
    async def test_scoped_board_requires_scope_id(self, stores):
        with pytest.raises(ValidationError):
            await get_leaderboard(stores, scope=LeaderboardScope.CHALLENGE)

    @pytest.mark.asyncio
    async def test_accepts_plain_strings(self, stores, users, events):
        await award_xp(stores, events, "user-alice", "X", 10)
        entries = await get_leaderboard(stores, scope="GLOBAL", period="MONTH")
        assert len(entries) == 1
