"""Team membership endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ilab.dependencies import get_current_user_id, get_events, get_stores
from ilab.events import EventPublisher
from ilab.stores import Stores
from ilab.teams.service import join_team

router = APIRouter(prefix="/api/v1/teams", tags=["Teams"])


class JoinTeamResponse(BaseModel):
    team_id: str
    member_ids: list[str]


@router.post("/{team_id}/join", response_model=JoinTeamResponse)
async def join(
    team_id: str,
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
    events: EventPublisher = Depends(get_events),
):
    """Join a team as the calling user."""
    member_ids = await join_team(stores, events, team_id, user_id)
    await stores.commit()
    return JoinTeamResponse(team_id=team_id, member_ids=member_ids)
