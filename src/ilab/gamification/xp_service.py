"""XP ledger: awards, level recomputation and profile reads."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ilab.db.models import GamificationProfile, XpEvent
from ilab.events import LEVEL_UP, XP_AWARDED, DomainEvent, EventPublisher
from ilab.exceptions import ValidationError
from ilab.gamification.badge_service import check_level_milestones
from ilab.gamification.level_curve import level_for_xp, level_progress
from ilab.stores import Stores

logger = logging.getLogger(__name__)


async def get_or_create_profile(stores: Stores, user_id: str) -> GamificationProfile:
    """Get or lazily create the gamification profile for a user."""
    profile = await stores.profiles.get(user_id)
    if profile is None:
        profile = await stores.profiles.create(user_id)
    return profile


async def award_xp(
    stores: Stores,
    events: EventPublisher,
    user_id: str,
    event_type: str,
    points: int,
    ref_type: str | None = None,
    ref_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    idempotency_key: str | None = None,
    now: datetime | None = None,
    hackathon_id: str | None = None,
) -> GamificationProfile | None:
    """Award XP to a user. Returns the updated profile, or None if duplicate.

    1. Append the ledger row (conditional on ``idempotency_key`` when given)
    2. Atomically add ``points`` to the profile's xp
    3. Store the level derived from the new xp
    4. If the level rose, emit level_up and check level-milestone badges

    Without an idempotency key two calls for the same action award twice;
    callers needing at-most-once either pass a key or check ``has_xp_event``.
    ``hackathon_id`` tags the row for the hackathon leaderboard.
    """
    if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
        raise ValidationError(f"XP points must be a positive integer, got {points!r}")
    if now is None:
        now = datetime.now(timezone.utc)

    await get_or_create_profile(stores, user_id)

    entry = await stores.xp_events.append(
        user_id=user_id,
        event_type=event_type,
        points=points,
        ref_type=ref_type,
        ref_id=ref_id,
        metadata=metadata,
        idempotency_key=idempotency_key,
        now=now,
        hackathon_id=hackathon_id,
    )
    if entry is None:
        logger.debug("Skipping duplicate XP award %s for user %s", idempotency_key, user_id)
        return None

    increment = await stores.profiles.increment_xp(user_id, points, now)
    new_level = level_for_xp(increment.xp)
    await stores.profiles.sync_level(user_id, increment.xp, new_level)

    await events.notify(DomainEvent(
        type=XP_AWARDED,
        user_id=user_id,
        hackathon_id=hackathon_id,
        payload={
            "event_type": event_type,
            "points": points,
            "xp": increment.xp,
            "level": new_level,
            "ref_type": ref_type,
            "ref_id": ref_id,
        },
    ))

    if new_level > increment.old_level:
        logger.info("User %s levelled up: %d -> %d", user_id, increment.old_level, new_level)
        await events.notify(DomainEvent(
            type=LEVEL_UP,
            user_id=user_id,
            payload={"old_level": increment.old_level, "new_level": new_level, "xp": increment.xp},
        ))
        await check_level_milestones(stores, events, user_id, new_level, old_level=increment.old_level)

    return await stores.profiles.get(user_id)


async def has_xp_event(stores: Stores, user_id: str, event_type: str, ref_id: str | None = None) -> bool:
    """Ledger lookup by user, event type and reference id."""
    return await stores.xp_events.exists(user_id, event_type, ref_id)


async def get_xp_events(stores: Stores, user_id: str, limit: int = 50) -> list[XpEvent]:
    """Most recent ledger entries for a user, newest first."""
    return list(await stores.xp_events.recent(user_id, limit))


async def get_profile(stores: Stores, user_id: str, recent_limit: int = 10) -> dict:
    """Profile with level progress and the most recent ledger entries.

    Creates the profile if the user has none yet.
    """
    profile = await get_or_create_profile(stores, user_id)
    recent = await stores.xp_events.recent(user_id, recent_limit)

    return {
        "user_id": profile.user_id,
        "xp": profile.xp,
        "level": profile.level,
        "streak_days": profile.streak_days,
        "last_activity_at": profile.last_activity_at,
        "vault_keys": profile.vault_keys,
        "badges": list(profile.badges or []),
        "progress": level_progress(profile.xp),
        "recent_events": list(recent),
    }
