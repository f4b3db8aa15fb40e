"""Team membership: capacity-checked joins with XP awards."""

from __future__ import annotations

import logging

from ilab.events import TEAM_MEMBER_JOINED, DomainEvent, EventPublisher
from ilab.exceptions import ConflictError, NotFoundError, TeamFullError
from ilab.gamification.xp_points import XP_POINTS
from ilab.gamification.xp_service import award_xp
from ilab.stores import Stores

logger = logging.getLogger(__name__)

MEMBER_ROLE = "MEMBER"


def join_hackathon_key(hackathon_id: str, user_id: str) -> str:
    """Idempotency key making JOIN_HACKATHON XP at-most-once per user and hackathon."""
    return f"join-hackathon:{hackathon_id}:{user_id}"


async def join_team(
    stores: Stores,
    events: EventPublisher,
    team_id: str,
    user_id: str,
    role: str = MEMBER_ROLE,
) -> list[str]:
    """Add ``user_id`` to a team. Returns the team's member ids afterwards.

    The member count is compared with ``max_members`` in the same
    statement that inserts the membership, so concurrent joins cannot
    overfill a team.
    """
    team = await stores.teams.get(team_id)
    if team is None:
        raise NotFoundError("Team not found")
    if await stores.teams.is_member(team_id, user_id):
        raise ConflictError("User is already a team member")

    if not await stores.teams.add_member_if_capacity(team, user_id, role):
        raise TeamFullError("Team is full")
    logger.info("User %s joined team %s", user_id, team_id)

    await award_xp(
        stores, events, user_id,
        "JOIN_HACKATHON", XP_POINTS["JOIN_HACKATHON"],
        ref_type="hackathon", ref_id=team.hackathon_id,
        idempotency_key=join_hackathon_key(team.hackathon_id, user_id),
        hackathon_id=team.hackathon_id,
    )
    await award_xp(
        stores, events, user_id,
        "JOIN_TEAM", XP_POINTS["JOIN_TEAM"],
        ref_type="team", ref_id=team_id,
        hackathon_id=team.hackathon_id,
    )

    await events.notify(DomainEvent(
        type=TEAM_MEMBER_JOINED,
        user_id=user_id,
        hackathon_id=team.hackathon_id,
        team_id=team_id,
        payload={"role": role},
    ))
    return await stores.teams.member_ids(team_id)
