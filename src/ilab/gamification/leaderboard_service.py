"""XP leaderboards by scope and time window.

GLOBAL/ALLTIME reads the materialized ``xp`` on profiles. Every other
combination sums ledger points since the start of the window. HACKATHON
boards count every row tagged with the hackathon id (joins, team XP, judge
scores, placements); CHALLENGE boards count rows referencing the challenge.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum

from ilab.db.models import GamificationProfile, User
from ilab.exceptions import ValidationError
from ilab.gamification.badge_service import rarity_rank
from ilab.stores import Stores

logger = logging.getLogger(__name__)


class LeaderboardScope(str, Enum):
    GLOBAL = "GLOBAL"
    HACKATHON = "HACKATHON"
    CHALLENGE = "CHALLENGE"


class LeaderboardPeriod(str, Enum):
    ALLTIME = "ALLTIME"
    SEASON = "SEASON"
    MONTH = "MONTH"
    WEEK = "WEEK"


# Ledger ref_type matched by CHALLENGE boards
CHALLENGE_REF_TYPE = "challenge"


def get_monday(dt: datetime) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = dt.date()
    return d - timedelta(days=d.weekday())


def period_start(period: LeaderboardPeriod, now: datetime | None = None) -> datetime | None:
    """Start of the window (UTC midnight) for ``period``; None for all time.

    WEEK starts Monday, MONTH on the 1st, SEASON on the first day of the
    calendar quarter.
    """
    if period is LeaderboardPeriod.ALLTIME:
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)

    if period is LeaderboardPeriod.WEEK:
        start = get_monday(now)
    elif period is LeaderboardPeriod.MONTH:
        start = now.date().replace(day=1)
    else:
        quarter_month = 3 * ((now.month - 1) // 3) + 1
        start = date(now.year, quarter_month, 1)
    return datetime.combine(start, time.min, tzinfo=timezone.utc)


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    if limit is None:
        return default
    return max(1, min(limit, maximum))


def _user_payload(user_id: str, user: User | None) -> dict:
    if user is None:
        return {"id": user_id, "name": "Anonymous", "handle": "unknown", "avatar_url": None}
    return {
        "id": user_id,
        "name": user.name or "Anonymous",
        "handle": user.handle or "unknown",
        "avatar_url": user.avatar_url,
    }


async def get_leaderboard(
    stores: Stores,
    scope: LeaderboardScope = LeaderboardScope.GLOBAL,
    period: LeaderboardPeriod = LeaderboardPeriod.ALLTIME,
    scope_id: str | None = None,
    limit: int | None = None,
    default_limit: int = 100,
    max_limit: int = 500,
    now: datetime | None = None,
) -> list[dict]:
    """Ranked page of users, highest first. Ties go to the lower user id.

    ``rank`` is the 1-based position in the returned page.
    """
    scope = LeaderboardScope(scope)
    period = LeaderboardPeriod(period)
    if scope is not LeaderboardScope.GLOBAL and not scope_id:
        raise ValidationError(f"scope_id is required for {scope.value} leaderboards")
    limit = clamp_limit(limit, default_limit, max_limit)

    rows: list[tuple[str, int, GamificationProfile | None, User | None]] = []
    if scope is LeaderboardScope.GLOBAL and period is LeaderboardPeriod.ALLTIME:
        for profile, user in await stores.profiles.top_by_xp(limit):
            rows.append((profile.user_id, profile.xp, profile, user))
    else:
        is_challenge = scope is LeaderboardScope.CHALLENGE
        totals = await stores.xp_events.totals_since(
            since=period_start(period, now),
            ref_type=CHALLENGE_REF_TYPE if is_challenge else None,
            ref_id=scope_id if is_challenge else None,
            limit=limit,
            hackathon_id=scope_id if scope is LeaderboardScope.HACKATHON else None,
        )
        details = await stores.profiles.get_many([t.user_id for t in totals])
        for total in totals:
            profile, user = details.get(total.user_id, (None, None))
            rows.append((total.user_id, total.points, profile, user))

    held = {slug for _, _, profile, _ in rows if profile for slug in (profile.badges or [])}
    rarity_by_slug = {b.slug: b.rarity for b in await stores.badges.list_by_slugs(sorted(held))}

    entries = []
    for position, (user_id, points, profile, user) in enumerate(rows, start=1):
        badges = list(profile.badges or []) if profile else []
        # Stable sort keeps earn order within a rarity
        badges.sort(key=lambda slug: rarity_rank(rarity_by_slug.get(slug)))
        entries.append({
            "rank": position,
            "user": _user_payload(user_id, user),
            "xp": profile.xp if profile else 0,
            "level": profile.level if profile else 1,
            "points": points,
            "badges": badges,
        })

    logger.debug("Leaderboard %s/%s(%s): %d entries", scope.value, period.value, scope_id, len(entries))
    return entries
