"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ilab.config import Settings
from ilab.dependencies import get_app_settings, get_current_user_id, get_events, get_stores, require_admin
from ilab.events import EventPublisher
from ilab.exceptions import NotFoundError
from ilab.gamification import badge_service, xp_service
from ilab.gamification.leaderboard_service import LeaderboardPeriod, LeaderboardScope, get_leaderboard
from ilab.gamification.level_curve import LEVEL_THRESHOLDS, MAX_LEVEL
from ilab.gamification.schemas import (
    AllBadgesResponse,
    AllLevelsResponse,
    AwardBadgeRequest,
    AwardBadgeResponse,
    AwardXpRequest,
    AwardXpResponse,
    BadgeResponse,
    CreateBadgeRequest,
    DailyCheckinResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    LevelEntry,
    ProfileResponse,
    UserBadgesResponse,
    XpEventResponse,
    XpEventsResponse,
)
from ilab.gamification.streak_service import touch_daily_activity
from ilab.stores import Stores

router = APIRouter(prefix="/api/v1/gamification", tags=["Gamification"])


def _profile_response(view: dict) -> ProfileResponse:
    return ProfileResponse(
        **{k: v for k, v in view.items() if k != "recent_events"},
        recent_events=[XpEventResponse.model_validate(e) for e in view["recent_events"]],
    )


# ── Profiles ──


async def _profile_view(stores: Stores, user_id: str, recent_limit: int) -> dict:
    if await stores.hackathons.get_user(user_id) is None:
        raise NotFoundError("User not found")
    return await xp_service.get_profile(stores, user_id, recent_limit)


@router.get("/profile", response_model=ProfileResponse)
async def my_profile(
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
    settings: Settings = Depends(get_app_settings),
):
    """Caller's profile with level progress and recent XP events."""
    view = await _profile_view(stores, user_id, settings.recent_xp_events_limit)
    await stores.commit()
    return _profile_response(view)


@router.get("/profile/{user_id}", response_model=ProfileResponse)
async def user_profile(
    user_id: str,
    stores: Stores = Depends(get_stores),
    settings: Settings = Depends(get_app_settings),
):
    view = await _profile_view(stores, user_id, settings.recent_xp_events_limit)
    await stores.commit()
    return _profile_response(view)


@router.get("/xp-events", response_model=XpEventsResponse)
async def my_xp_events(
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
):
    """Caller's XP ledger, newest first."""
    entries = await xp_service.get_xp_events(stores, user_id, limit)
    total = await stores.xp_events.sum_points(user_id)
    return XpEventsResponse(
        events=[XpEventResponse.model_validate(e) for e in entries],
        total_points=total,
    )


@router.post("/daily-checkin", response_model=DailyCheckinResponse)
async def daily_checkin(
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    """Count today's activity towards the caller's streak."""
    result = await touch_daily_activity(stores, events, user_id)
    await stores.commit()
    return DailyCheckinResponse(**result)


# ── Leaderboard & levels ──


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    scope: LeaderboardScope = Query(LeaderboardScope.GLOBAL),
    period: LeaderboardPeriod = Query(LeaderboardPeriod.ALLTIME),
    scope_id: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
    stores: Stores = Depends(get_stores),
    settings: Settings = Depends(get_app_settings),
):
    entries = await get_leaderboard(
        stores,
        scope=scope,
        period=period,
        scope_id=scope_id,
        limit=limit,
        default_limit=settings.leaderboard_default_limit,
        max_limit=settings.leaderboard_max_limit,
    )
    return LeaderboardResponse(
        scope=scope.value,
        period=period.value,
        scope_id=scope_id,
        entries=[LeaderboardEntry(**e) for e in entries],
    )


@router.get("/levels", response_model=AllLevelsResponse)
async def all_levels():
    """Full level table."""
    return AllLevelsResponse(
        levels=[LevelEntry(level=i + 1, xp_required=xp) for i, xp in enumerate(LEVEL_THRESHOLDS)],
        max_level=MAX_LEVEL,
    )


# ── Badges ──


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(stores: Stores = Depends(get_stores)):
    badges = await badge_service.list_badges(stores)
    return AllBadgesResponse(badges=[BadgeResponse.model_validate(b) for b in badges])


@router.get("/badges/user/{user_id}", response_model=UserBadgesResponse)
async def user_badges(user_id: str, stores: Stores = Depends(get_stores)):
    badges = await badge_service.get_user_badges(stores, user_id)
    return UserBadgesResponse(user_id=user_id, badges=[BadgeResponse.model_validate(b) for b in badges])


# ── Admin ──


@router.post("/award-xp", response_model=AwardXpResponse)
async def admin_award_xp(
    body: AwardXpRequest,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    """Award XP on behalf of a collaborator service."""
    profile = await xp_service.award_xp(
        stores,
        events,
        body.user_id,
        body.event_type,
        body.points,
        ref_type=body.ref_type,
        ref_id=body.ref_id,
        metadata=body.metadata,
        idempotency_key=body.idempotency_key,
    )
    if profile is None:
        profile = await stores.profiles.get(body.user_id)
        if profile is None:
            raise NotFoundError(f"Gamification profile not found for user {body.user_id}")
        awarded = False
    else:
        awarded = True
    await stores.commit()
    return AwardXpResponse(awarded=awarded, xp=profile.xp, level=profile.level)


@router.post("/award-badge", response_model=AwardBadgeResponse)
async def admin_award_badge(
    body: AwardBadgeRequest,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    awarded = await badge_service.award_badge(stores, events, body.user_id, body.badge_slug)
    profile = await stores.profiles.get(body.user_id)
    await stores.commit()
    return AwardBadgeResponse(awarded=awarded, badges=list(profile.badges or []) if profile else [])


@router.post("/badges", response_model=BadgeResponse, status_code=status.HTTP_201_CREATED)
async def create_badge(
    body: CreateBadgeRequest,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
):
    badge = await badge_service.create_badge(stores, **body.model_dump())
    await stores.commit()
    return BadgeResponse.model_validate(badge)


@router.delete("/badges/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_badge(
    slug: str,
    _admin: str = Depends(require_admin),
    stores: Stores = Depends(get_stores),
) -> None:
    await badge_service.delete_badge(stores, slug)
    await stores.commit()
