"""Pydantic request/response models for judging endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AssignJudgeRequest(BaseModel):
    user_id: str


class JudgeUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    handle: str | None = None
    avatar_url: str | None = None


class JudgeResponse(BaseModel):
    id: str
    hackathon_id: str
    user_id: str
    created_at: datetime | None = None
    user: JudgeUser | None = None


class JudgesResponse(BaseModel):
    judges: list[JudgeResponse]


class CreateScoreRequest(BaseModel):
    criterion_id: str
    value: float = Field(ge=0)
    feedback: str | None = None


class UpdateScoreRequest(BaseModel):
    value: float | None = Field(default=None, ge=0)
    feedback: str | None = None


class ScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    submission_id: str
    judge_id: str
    criterion_id: str
    value: float
    feedback: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ScoresResponse(BaseModel):
    scores: list[ScoreResponse]


class RankingsResponse(BaseModel):
    ranked_count: int


class WinnerResponse(BaseModel):
    submission_id: str
    team_id: str
    rank: int
    xp_awarded: int
    member_ids: list[str]
    awarded_member_ids: list[str]


class WinnersResponse(BaseModel):
    awarded_count: int
    winners: list[WinnerResponse]
