"""Judge assignment, score entry and aggregate recomputation."""

from __future__ import annotations

import logging

from ilab.db.models import Judge, Score, Submission, User
from ilab.events import SUBMISSION_SCORED, DomainEvent, EventPublisher
from ilab.exceptions import (
    ConflictError,
    ConflictOfInterestError,
    DuplicateScoreError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ilab.gamification.xp_points import XP_POINTS
from ilab.gamification.xp_service import award_xp
from ilab.judging.aggregation import AggregationPolicy, aggregate_scores
from ilab.stores import Stores

logger = logging.getLogger(__name__)

SCOREABLE_STATUS = "FINAL"


def _check_bounds(value: float, max_score: int) -> None:
    if value < 0 or value > max_score:
        raise ValidationError(f"Score must be between 0 and {max_score} for this criterion")


async def recompute_aggregate(
    stores: Stores,
    submission_id: str,
    policy: AggregationPolicy = AggregationPolicy.JUDGE_TOTAL,
) -> float | None:
    """Recompute and store a submission's aggregate from all of its scores.

    No scores means no aggregate (None), never zero.
    """
    scores = await stores.scores.list_for_submission(submission_id)
    criteria = None
    if policy is AggregationPolicy.CRITERION_WEIGHTED:
        criteria = await stores.hackathons.get_criteria(sorted({s.criterion_id for s in scores}))
    aggregate = aggregate_scores(scores, policy, criteria)
    await stores.submissions.set_aggregate(submission_id, aggregate)
    logger.debug("Submission %s aggregate -> %s (%d scores)", submission_id, aggregate, len(scores))
    return aggregate


async def _get_submission(stores: Stores, submission_id: str) -> Submission:
    submission = await stores.submissions.get(submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


async def _get_own_score(stores: Stores, score_id: str, judge_user_id: str) -> tuple[Score, Judge]:
    score = await stores.scores.get(score_id)
    if score is None:
        raise NotFoundError("Score not found")
    judge = await stores.hackathons.get_judge_by_id(score.judge_id)
    if judge is None or judge.user_id != judge_user_id:
        raise PermissionDeniedError("You can only change your own scores")
    return score, judge


async def record_score(
    stores: Stores,
    events: EventPublisher,
    submission_id: str,
    judge_user_id: str,
    criterion_id: str,
    value: float,
    feedback: str | None = None,
    policy: AggregationPolicy = AggregationPolicy.JUDGE_TOTAL,
) -> Score:
    """Record a judge's score for one criterion of a submission.

    Checks, in order: submission exists and is FINAL, criterion belongs
    to the hackathon, value within [0, max_score], caller is an assigned
    judge, caller is not on the submitting team, no score yet for this
    (submission, judge, criterion). Re-scoring goes through update_score.

    Afterwards the aggregate is recomputed and every team member gets
    RECEIVE_JUDGE_SCORE XP, one independent award each.
    """
    submission = await _get_submission(stores, submission_id)
    if submission.status != SCOREABLE_STATUS:
        raise ValidationError("Can only score finalized submissions")

    criterion = await stores.hackathons.get_criterion(submission.hackathon_id, criterion_id)
    if criterion is None:
        raise NotFoundError("Criterion not found for this hackathon")
    _check_bounds(value, criterion.max_score)

    judge = await stores.hackathons.get_judge(submission.hackathon_id, judge_user_id)
    if judge is None:
        raise PermissionDeniedError("You are not assigned as a judge for this hackathon")

    if await stores.teams.is_member(submission.team_id, judge_user_id):
        raise ConflictOfInterestError("Cannot score your own team's submission")

    if await stores.scores.find(submission_id, judge.id, criterion_id) is not None:
        raise DuplicateScoreError("You have already scored this criterion for this submission")

    score = await stores.scores.add(submission_id, judge.id, criterion_id, value, feedback)
    aggregate = await recompute_aggregate(stores, submission_id, policy)

    for member_id in await stores.teams.member_ids(submission.team_id):
        await award_xp(
            stores, events, member_id,
            "RECEIVE_JUDGE_SCORE", XP_POINTS["RECEIVE_JUDGE_SCORE"],
            ref_type="score", ref_id=score.id,
            hackathon_id=submission.hackathon_id,
        )

    logger.info("Judge %s scored submission %s on %s: %s", judge_user_id, submission_id, criterion_id, value)
    await events.notify(DomainEvent(
        type=SUBMISSION_SCORED,
        hackathon_id=submission.hackathon_id,
        team_id=submission.team_id,
        payload={
            "submission_id": submission_id,
            "score_id": score.id,
            "criterion_id": criterion_id,
            "score_aggregate": aggregate,
        },
    ))
    return score


async def update_score(
    stores: Stores,
    judge_user_id: str,
    score_id: str,
    value: float | None = None,
    feedback: str | None = None,
    policy: AggregationPolicy = AggregationPolicy.JUDGE_TOTAL,
) -> Score:
    """Change value and/or feedback of the caller's own score."""
    score, judge = await _get_own_score(stores, score_id, judge_user_id)
    if value is not None:
        criterion = await stores.hackathons.get_criterion(judge.hackathon_id, score.criterion_id)
        if criterion is None:
            raise NotFoundError("Criterion not found for this hackathon")
        _check_bounds(value, criterion.max_score)

    score = await stores.scores.update(score, value, feedback)
    await recompute_aggregate(stores, score.submission_id, policy)
    return score


async def delete_score(
    stores: Stores,
    judge_user_id: str,
    score_id: str,
    policy: AggregationPolicy = AggregationPolicy.JUDGE_TOTAL,
) -> Score:
    """Remove the caller's own score and refresh the aggregate. Returns the removed score."""
    score, _judge = await _get_own_score(stores, score_id, judge_user_id)
    submission_id = score.submission_id
    await stores.scores.delete(score)
    await recompute_aggregate(stores, submission_id, policy)
    return score


async def get_scores(stores: Stores, submission_id: str) -> list[Score]:
    await _get_submission(stores, submission_id)
    return list(await stores.scores.list_for_submission(submission_id))


# ---------------------------------------------------------------------------
# Judge assignment
# ---------------------------------------------------------------------------


async def assign_judge(stores: Stores, hackathon_id: str, user_id: str) -> Judge:
    if await stores.hackathons.get(hackathon_id) is None:
        raise NotFoundError("Hackathon not found")
    if await stores.hackathons.get_user(user_id) is None:
        raise NotFoundError("User not found")
    if await stores.hackathons.get_judge(hackathon_id, user_id) is not None:
        raise ConflictError("Judge already assigned to this hackathon")

    judge = await stores.hackathons.add_judge(hackathon_id, user_id)
    logger.info("Assigned judge %s to hackathon %s", user_id, hackathon_id)
    return judge


async def remove_judge(stores: Stores, hackathon_id: str, user_id: str) -> None:
    """Unassign a judge. Judges who already scored cannot be removed."""
    judge = await stores.hackathons.get_judge(hackathon_id, user_id)
    if judge is None:
        raise NotFoundError("Judge assignment not found")
    if await stores.scores.count_for_judge(judge.id) > 0:
        raise ValidationError("Cannot remove judge who has already scored submissions")

    await stores.hackathons.delete_judge(judge)
    logger.info("Removed judge %s from hackathon %s", user_id, hackathon_id)


async def list_judges(stores: Stores, hackathon_id: str) -> list[tuple[Judge, User | None]]:
    if await stores.hackathons.get(hackathon_id) is None:
        raise NotFoundError("Hackathon not found")
    return list(await stores.hackathons.list_judges(hackathon_id))
