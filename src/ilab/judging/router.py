"""Judging API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ilab.dependencies import get_current_user_id, get_events, get_stores, require_admin
from ilab.events import EventPublisher
from ilab.judging import scoring_service
from ilab.judging.ranking_service import award_winners, calculate_rankings
from ilab.judging.schemas import (
    AssignJudgeRequest,
    CreateScoreRequest,
    JudgeResponse,
    JudgesResponse,
    JudgeUser,
    RankingsResponse,
    ScoreResponse,
    ScoresResponse,
    UpdateScoreRequest,
    WinnersResponse,
)
from ilab.stores import Stores

router = APIRouter(prefix="/api/v1/judging", tags=["Judging"])


# ── Judges ──


@router.post(
    "/hackathons/{hackathon_id}/judges",
    response_model=JudgeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_judge(
    hackathon_id: str,
    body: AssignJudgeRequest,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
):
    judge = await scoring_service.assign_judge(stores, hackathon_id, body.user_id)
    await stores.commit()
    return JudgeResponse(
        id=judge.id,
        hackathon_id=judge.hackathon_id,
        user_id=judge.user_id,
        created_at=judge.created_at,
    )


@router.get("/hackathons/{hackathon_id}/judges", response_model=JudgesResponse)
async def list_judges(hackathon_id: str, stores: Stores = Depends(get_stores)):
    rows = await scoring_service.list_judges(stores, hackathon_id)
    return JudgesResponse(judges=[
        JudgeResponse(
            id=judge.id,
            hackathon_id=judge.hackathon_id,
            user_id=judge.user_id,
            created_at=judge.created_at,
            user=JudgeUser.model_validate(user) if user else None,
        )
        for judge, user in rows
    ])


@router.delete("/hackathons/{hackathon_id}/judges/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_judge(
    hackathon_id: str,
    user_id: str,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
) -> None:
    await scoring_service.remove_judge(stores, hackathon_id, user_id)
    await stores.commit()


# ── Scores ──


@router.post(
    "/submissions/{submission_id}/scores",
    response_model=ScoreResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_score(
    submission_id: str,
    body: CreateScoreRequest,
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    """Score one criterion of a submission as the calling judge."""
    score = await scoring_service.record_score(
        stores, events, submission_id, user_id, body.criterion_id, body.value, body.feedback,
    )
    await stores.commit()
    return ScoreResponse.model_validate(score)


@router.get("/submissions/{submission_id}/scores", response_model=ScoresResponse)
async def list_scores(submission_id: str, stores: Stores = Depends(get_stores)):
    scores = await scoring_service.get_scores(stores, submission_id)
    return ScoresResponse(scores=[ScoreResponse.model_validate(s) for s in scores])


@router.patch("/scores/{score_id}", response_model=ScoreResponse)
async def update_score(
    score_id: str,
    body: UpdateScoreRequest,
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
):
    score = await scoring_service.update_score(stores, user_id, score_id, body.value, body.feedback)
    await stores.commit()
    return ScoreResponse.model_validate(score)


@router.delete("/scores/{score_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_score(
    score_id: str,
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
) -> None:
    await scoring_service.delete_score(stores, user_id, score_id)
    await stores.commit()


# ── Rankings ──


@router.post("/hackathons/{hackathon_id}/rankings", response_model=RankingsResponse)
async def rankings(
    hackathon_id: str,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    """Run a full ranking pass over the hackathon's scored submissions."""
    result = await calculate_rankings(stores, events, hackathon_id)
    await stores.commit()
    return RankingsResponse(**result)


@router.post("/hackathons/{hackathon_id}/winners", response_model=WinnersResponse)
async def winners(
    hackathon_id: str,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    """Award placement XP to the members of the top three ranked submissions."""
    result = await award_winners(stores, events, hackathon_id)
    await stores.commit()
    return WinnersResponse(**result)
