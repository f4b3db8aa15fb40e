"""Badge awards, level-milestone rules and the badge catalog."""

from __future__ import annotations

import logging

from ilab.db.models import Badge
from ilab.events import BADGE_EARNED, DomainEvent, EventPublisher
from ilab.exceptions import ConflictError, NotFoundError, ValidationError
from ilab.stores import Stores

logger = logging.getLogger(__name__)

RARITIES = ("common", "uncommon", "rare", "epic", "legendary")

# --- Level milestone thresholds ---
LEVEL_MILESTONE_BADGES: dict[int, str] = {
    5: "level-5",
    10: "level-10",
    15: "level-15",
    20: "level-20",
    25: "level-25",
    30: "level-30",
}


def rarity_rank(rarity: str | None) -> int:
    """Sort key placing rarer badges first; unknown rarities sort last."""
    if rarity not in RARITIES:
        return len(RARITIES)
    return len(RARITIES) - 1 - RARITIES.index(rarity)


async def award_badge(
    stores: Stores,
    events: EventPublisher,
    user_id: str,
    badge_slug: str,
) -> bool:
    """Add a badge slug to a user's profile.

    Returns True if awarded, False if the profile already held it.
    Raises NotFoundError when the user has no profile; badges are never
    the first thing a user earns, so the profile is not created here.
    The slug does not have to exist in the catalog.
    """
    profile = await stores.profiles.get(user_id)
    if profile is None:
        raise NotFoundError(f"Gamification profile not found for user {user_id}")
    if badge_slug in (profile.badges or []):
        return False

    added = await stores.profiles.add_badge(user_id, badge_slug)
    if not added:
        return False

    badge = await stores.badges.get(badge_slug)
    logger.info("Awarded badge %s to user %s", badge_slug, user_id)
    await events.notify(DomainEvent(
        type=BADGE_EARNED,
        user_id=user_id,
        payload={
            "badge_slug": badge_slug,
            "badge_name": badge.name if badge else badge_slug,
            "rarity": badge.rarity if badge else None,
            "icon": badge.icon if badge else None,
        },
    ))
    return True


async def check_level_milestones(
    stores: Stores,
    events: EventPublisher,
    user_id: str,
    new_level: int,
    old_level: int | None = None,
) -> list[str]:
    """Award the badge mapped to ``new_level``, if any.

    With ``old_level`` every milestone in ``(old_level, new_level]`` is
    awarded, so a single large award that jumps several levels does not
    skip one. Returns the slugs newly awarded.
    """
    if old_level is None:
        levels = [new_level]
    else:
        levels = [lvl for lvl in sorted(LEVEL_MILESTONE_BADGES) if old_level < lvl <= new_level]

    awarded: list[str] = []
    for level in levels:
        slug = LEVEL_MILESTONE_BADGES.get(level)
        if slug is None:
            continue
        if await award_badge(stores, events, user_id, slug):
            awarded.append(slug)
    return awarded


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


async def list_badges(stores: Stores) -> list[Badge]:
    return list(await stores.badges.list_all())


async def get_badge(stores: Stores, slug: str) -> Badge:
    badge = await stores.badges.get(slug)
    if badge is None:
        raise NotFoundError(f"Badge not found: {slug}")
    return badge


async def create_badge(
    stores: Stores,
    slug: str,
    name: str,
    description: str = "",
    icon: str = "",
    xp_required: int = 0,
    rarity: str = "common",
) -> Badge:
    if rarity not in RARITIES:
        raise ValidationError(f"Unknown rarity {rarity!r}; expected one of {', '.join(RARITIES)}")
    if await stores.badges.get(slug) is not None:
        raise ConflictError(f"Badge already exists: {slug}")
    badge = await stores.badges.create(
        slug=slug,
        name=name,
        description=description,
        icon=icon,
        xp_required=xp_required,
        rarity=rarity,
    )
    logger.info("Created badge %s", slug)
    return badge


async def delete_badge(stores: Stores, slug: str) -> None:
    """Remove a badge from the catalog. Profiles keep the slug."""
    badge = await get_badge(stores, slug)
    await stores.badges.delete(badge)
    logger.info("Deleted badge %s", slug)


async def get_user_badges(stores: Stores, user_id: str) -> list[Badge]:
    """Catalog entries for the badges a user holds, in the order earned.

    Slugs whose catalog entry was deleted are skipped.
    """
    profile = await stores.profiles.get(user_id)
    if profile is None:
        return []
    slugs = list(profile.badges or [])
    by_slug = {b.slug: b for b in await stores.badges.list_by_slugs(slugs)}
    return [by_slug[s] for s in slugs if s in by_slug]
