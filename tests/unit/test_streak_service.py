"""Daily streak tests, including UTC day boundaries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ilab.gamification.streak_service import STREAK_MILESTONES, days_between, touch_daily_activity

T0 = datetime(2026, 4, 6, 10, 0, tzinfo=timezone.utc)


class TestDaysBetween:
    def test_same_day(self):
        assert days_between(T0, T0 + timedelta(hours=5)) == 0

    def test_midnight_crossing_is_one_day(self):
        """23:59 -> 00:01 is the next calendar day, not 0 elapsed days."""
        late = datetime(2026, 4, 6, 23, 59, tzinfo=timezone.utc)
        early = datetime(2026, 4, 7, 0, 1, tzinfo=timezone.utc)
        assert days_between(late, early) == 1

    def test_almost_48_hours_is_one_day(self):
        start = datetime(2026, 4, 6, 0, 1, tzinfo=timezone.utc)
        end = datetime(2026, 4, 7, 23, 59, tzinfo=timezone.utc)
        assert days_between(start, end) == 1

    def test_clock_skew_counts_as_same_day(self):
        assert days_between(T0, T0 - timedelta(days=3)) == 0

    def test_naive_treated_as_utc(self):
        naive = datetime(2026, 4, 6, 23, 30)
        assert days_between(naive, datetime(2026, 4, 7, 0, 30, tzinfo=timezone.utc)) == 1

    def test_other_timezones_normalised(self):
        # 2026-04-07 01:00 +02:00 is still 2026-04-06 in UTC
        plus_two = timezone(timedelta(hours=2))
        assert days_between(T0, datetime(2026, 4, 7, 1, 0, tzinfo=plus_two)) == 0


class TestTouchDailyActivity:
    @pytest.mark.asyncio
    async def test_first_activity_starts_streak(self, stores, users, events):
        result = await touch_daily_activity(stores, events, "user-alice", now=T0)
        assert result == {"counted": True, "streak_days": 1, "xp_awarded": 5, "milestone": None}
        profile = await stores.profiles.get("user-alice")
        assert profile.streak_days == 1
        assert profile.xp == 5

    @pytest.mark.asyncio
    async def test_same_day_is_noop(self, stores, users, events):
        await touch_daily_activity(stores, events, "user-alice", now=T0)
        result = await touch_daily_activity(stores, events, "user-alice", now=T0 + timedelta(hours=8))
        assert result["counted"] is False
        assert result["xp_awarded"] == 0
        profile = await stores.profiles.get("user-alice")
        assert profile.streak_days == 1
        assert profile.xp == 5

    @pytest.mark.asyncio
    async def test_next_day_extends_streak(self, stores, users, events):
        await touch_daily_activity(stores, events, "user-alice", now=T0)
        result = await touch_daily_activity(stores, events, "user-alice", now=T0 + timedelta(days=1))
        assert result["streak_days"] == 2
        profile = await stores.profiles.get("user-alice")
        assert profile.xp == 10

    @pytest.mark.asyncio
    async def test_gap_resets_to_one(self, stores, users, events):
        for day in range(4):
            await touch_daily_activity(stores, events, "user-alice", now=T0 + timedelta(days=day))
        result = await touch_daily_activity(stores, events, "user-alice", now=T0 + timedelta(days=6))
        assert result["streak_days"] == 1
        assert result["counted"] is True
        assert result["xp_awarded"] == 5

    @pytest.mark.asyncio
    async def test_stamps_last_activity(self, stores, users, events):
        later = T0 + timedelta(days=1, hours=3)
        await touch_daily_activity(stores, events, "user-alice", now=T0)
        await touch_daily_activity(stores, events, "user-alice", now=later)
        profile = await stores.profiles.get("user-alice")
        assert profile.last_activity_at.replace(tzinfo=timezone.utc) == later

    @pytest.mark.asyncio
    async def test_seven_day_milestone(self, stores, users, events, published_events):
        results = [
            await touch_daily_activity(stores, events, "user-alice", now=T0 + timedelta(days=day))
            for day in range(7)
        ]
        assert results[-1]["streak_days"] == 7
        assert results[-1]["milestone"] == 7
        assert results[-1]["xp_awarded"] == 5 + 50

        profile = await stores.profiles.get("user-alice")
        assert "streak-7" in profile.badges
        assert profile.xp == 7 * 5 + 50
        assert await stores.xp_events.sum_points("user-alice") == profile.xp

        [message] = published_events("streak_milestone")
        assert message["data"]["streak_days"] == 7

    @pytest.mark.asyncio
    async def test_custom_milestones(self, stores, users, events):
        milestones = {2: ("STREAK_BONUS_7DAYS", "streak-2")}
        await touch_daily_activity(stores, events, "user-alice", now=T0, milestones=milestones)
        result = await touch_daily_activity(
            stores, events, "user-alice", now=T0 + timedelta(days=1), milestones=milestones,
        )
        assert result["milestone"] == 2
        profile = await stores.profiles.get("user-alice")
        assert profile.badges == ["streak-2"]

    @pytest.mark.asyncio
    async def test_xp_award_counts_as_activity(self, stores, users, events):
        """Any XP award stamps last activity, so a same-day check-in is a no-op."""
        from ilab.gamification.xp_service import award_xp

        await award_xp(stores, events, "user-alice", "SUBMIT_PROJECT", 50, now=T0)
        result = await touch_daily_activity(stores, events, "user-alice", now=T0 + timedelta(hours=1))
        assert result["counted"] is False

    def test_milestone_table(self):
        assert STREAK_MILESTONES[7] == ("STREAK_BONUS_7DAYS", "streak-7")
        assert STREAK_MILESTONES[30] == ("STREAK_BONUS_30DAYS", "streak-30")
