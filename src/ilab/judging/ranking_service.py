"""Hackathon ranking pass and placement XP."""

from __future__ import annotations

import logging

from ilab.events import LEADERBOARD_UPDATE, WINNERS_ANNOUNCED, DomainEvent, EventPublisher
from ilab.exceptions import NotFoundError
from ilab.gamification.xp_points import XP_POINTS
from ilab.gamification.xp_service import award_xp
from ilab.judging.ranking import rank_submissions
from ilab.stores import Stores

logger = logging.getLogger(__name__)

PLACEMENT_EVENTS = {
    1: "WIN_HACKATHON_1ST",
    2: "WIN_HACKATHON_2ND",
    3: "WIN_HACKATHON_3RD",
}


def placement_key(hackathon_id: str, submission_id: str, user_id: str) -> str:
    return f"hackathon-winner:{hackathon_id}:{submission_id}:{user_id}"


async def calculate_rankings(stores: Stores, events: EventPublisher, hackathon_id: str) -> dict:
    """Rank every scored submission of a hackathon from scratch.

    All ranks in the hackathon are cleared first, so submissions that lost
    their aggregate since the last pass end up unranked. Safe to re-run.
    """
    if await stores.hackathons.get(hackathon_id) is None:
        raise NotFoundError("Hackathon not found")

    submissions = await stores.submissions.list_scored(hackathon_id)
    ranked = rank_submissions(submissions)

    await stores.submissions.clear_ranks(hackathon_id)
    for submission, rank in ranked:
        await stores.submissions.set_rank(submission.id, rank)

    logger.info("Ranked %d submissions for hackathon %s", len(ranked), hackathon_id)
    await events.notify(DomainEvent(
        type=LEADERBOARD_UPDATE,
        hackathon_id=hackathon_id,
        payload={
            "rankings": [
                {
                    "submission_id": submission.id,
                    "team_id": submission.team_id,
                    "rank": rank,
                    "score_aggregate": submission.score_aggregate,
                }
                for submission, rank in ranked
            ],
        },
    ))
    return {"ranked_count": len(ranked)}


async def award_winners(stores: Stores, events: EventPublisher, hackathon_id: str) -> dict:
    """Give placement XP to every member of the top three submissions.

    Reads the ranks stored by the last ranking pass. Each award is keyed by
    hackathon, submission and member, so re-running after a re-rank only
    pays members of submissions that newly entered the top three.
    """
    if await stores.hackathons.get(hackathon_id) is None:
        raise NotFoundError("Hackathon not found")

    winners = []
    awarded_count = 0
    for submission in await stores.submissions.list_ranked(hackathon_id, max(PLACEMENT_EVENTS)):
        event_type = PLACEMENT_EVENTS[submission.rank]
        points = XP_POINTS[event_type]
        member_ids = await stores.teams.member_ids(submission.team_id)
        awarded = []
        for member_id in member_ids:
            profile = await award_xp(
                stores, events, member_id,
                event_type, points,
                ref_type="submission", ref_id=submission.id,
                metadata={"rank": submission.rank},
                idempotency_key=placement_key(hackathon_id, submission.id, member_id),
                hackathon_id=hackathon_id,
            )
            if profile is not None:
                awarded.append(member_id)
        awarded_count += len(awarded)
        winners.append({
            "submission_id": submission.id,
            "team_id": submission.team_id,
            "rank": submission.rank,
            "xp_awarded": points,
            "member_ids": member_ids,
            "awarded_member_ids": awarded,
        })

    logger.info("Placement XP for hackathon %s: %d awards", hackathon_id, awarded_count)
    if awarded_count:
        await events.notify(DomainEvent(
            type=WINNERS_ANNOUNCED,
            hackathon_id=hackathon_id,
            payload={"winners": [{k: w[k] for k in ("submission_id", "team_id", "rank")} for w in winners]},
        ))
    return {"awarded_count": awarded_count, "winners": winners}
