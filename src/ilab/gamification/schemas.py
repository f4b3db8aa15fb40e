"""Pydantic request/response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# --- XP ---


class XpEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_type: str
    points: int
    ref_type: str | None = None
    ref_id: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="event_metadata")
    created_at: datetime | None = None


class XpEventsResponse(BaseModel):
    events: list[XpEventResponse]
    total_points: int


class LevelProgress(BaseModel):
    level: int
    current_level_xp: int
    next_level_xp: int
    xp_to_next_level: int
    is_max_level: bool


class ProfileResponse(BaseModel):
    user_id: str
    xp: int
    level: int
    streak_days: int
    last_activity_at: datetime | None = None
    vault_keys: int
    badges: list[str]
    progress: LevelProgress
    recent_events: list[XpEventResponse]


class AwardXpRequest(BaseModel):
    user_id: str
    event_type: str
    points: int
    ref_type: str | None = None
    ref_id: str | None = None
    metadata: dict[str, Any] | None = None
    idempotency_key: str | None = None


class AwardXpResponse(BaseModel):
    awarded: bool
    xp: int
    level: int


# --- Levels ---


class LevelEntry(BaseModel):
    level: int
    xp_required: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]
    max_level: int


# --- Badges ---


class BadgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slug: str
    name: str
    description: str
    icon: str
    xp_required: int
    rarity: str


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class UserBadgesResponse(BaseModel):
    user_id: str
    badges: list[BadgeResponse]


class CreateBadgeRequest(BaseModel):
    slug: str = Field(min_length=1, max_length=64, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    name: str = Field(min_length=1, max_length=128)
    description: str = ""
    icon: str = Field(default="", max_length=256)
    xp_required: int = Field(default=0, ge=0)
    rarity: str = "common"


class AwardBadgeRequest(BaseModel):
    user_id: str
    badge_slug: str


class AwardBadgeResponse(BaseModel):
    awarded: bool
    badges: list[str]


# --- Streak ---


class DailyCheckinResponse(BaseModel):
    counted: bool
    streak_days: int
    xp_awarded: int
    milestone: int | None = None


# --- Leaderboard ---


class LeaderboardUser(BaseModel):
    id: str
    name: str
    handle: str
    avatar_url: str | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    user: LeaderboardUser
    xp: int
    level: int
    points: int
    badges: list[str]


class LeaderboardResponse(BaseModel):
    scope: str
    period: str
    scope_id: str | None = None
    entries: list[LeaderboardEntry]
