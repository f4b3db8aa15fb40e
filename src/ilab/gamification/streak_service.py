"""Daily activity streaks with UTC calendar-day boundaries."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ilab.events import STREAK_MILESTONE, DomainEvent, EventPublisher
from ilab.gamification.badge_service import award_badge
from ilab.gamification.xp_points import XP_POINTS
from ilab.gamification.xp_service import award_xp, get_or_create_profile
from ilab.stores import Stores

logger = logging.getLogger(__name__)

# --- Streak milestone thresholds: days -> (bonus XP event, badge slug) ---
STREAK_MILESTONES: dict[int, tuple[str, str]] = {
    7: ("STREAK_BONUS_7DAYS", "streak-7"),
    30: ("STREAK_BONUS_30DAYS", "streak-30"),
}


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_between(last: datetime, now: datetime) -> int:
    """Whole UTC calendar days from ``last`` to ``now``.

    23:59 -> 00:01 is one day. A ``now`` before ``last`` counts as 0.
    """
    delta = (_as_utc(now).date() - _as_utc(last).date()).days
    return max(0, delta)


async def touch_daily_activity(
    stores: Stores,
    events: EventPublisher,
    user_id: str,
    now: datetime | None = None,
    milestones: dict[int, tuple[str, str]] = STREAK_MILESTONES,
) -> dict:
    """Count a qualifying activity (e.g. login) towards the user's streak.

    First activity starts a streak of 1. A second call on the same UTC day
    does nothing. The next day extends the streak; a longer gap restarts
    it at 1. Every counted day earns DAILY_LOGIN XP, and reaching a
    milestone length adds the bonus XP and the streak badge.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    profile = await get_or_create_profile(stores, user_id)
    last = profile.last_activity_at
    days = None if last is None else days_between(last, now)

    if days == 0:
        return {"counted": False, "streak_days": profile.streak_days, "xp_awarded": 0, "milestone": None}

    if days == 1:
        streak = profile.streak_days + 1
    else:
        if days is not None:
            logger.info("Streak reset for user %s after %d days (was %d)", user_id, days, profile.streak_days)
        streak = 1

    if not await stores.profiles.update_streak(user_id, streak, now, last):
        # A concurrent request counted this activity first
        current = await stores.profiles.get(user_id)
        return {
            "counted": False,
            "streak_days": current.streak_days if current else profile.streak_days,
            "xp_awarded": 0,
            "milestone": None,
        }

    xp_awarded = XP_POINTS["DAILY_LOGIN"]
    await award_xp(
        stores, events, user_id, "DAILY_LOGIN", xp_awarded,
        metadata={"streak_days": streak}, now=now,
    )

    milestone = None
    if days == 1 and streak in milestones:
        bonus_event, badge_slug = milestones[streak]
        bonus = XP_POINTS[bonus_event]
        await award_xp(
            stores, events, user_id, bonus_event, bonus,
            metadata={"streak_days": streak}, now=now,
        )
        await award_badge(stores, events, user_id, badge_slug)
        xp_awarded += bonus
        milestone = streak
        logger.info("User %s reached a %d-day streak", user_id, streak)
        await events.notify(DomainEvent(
            type=STREAK_MILESTONE,
            user_id=user_id,
            payload={"streak_days": streak, "bonus_xp": bonus, "badge_slug": badge_slug},
        ))

    return {"counted": True, "streak_days": streak, "xp_awarded": xp_awarded, "milestone": milestone}
