"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ilab.config import Settings, get_settings
from ilab.database import get_session as _get_session
from ilab.events import EventPublisher
from ilab.redis_client import get_redis_or_none
from ilab.stores import Stores

get_db = _get_session

ADMIN_ROLE = "admin"


async def get_stores(db: AsyncSession = Depends(get_db)) -> Stores:  # noqa: B008
    """Store bundle bound to the request's session."""
    return Stores(db)


async def get_events() -> EventPublisher:
    """Event publisher on the shared Redis pool (no-op when Redis is not started)."""
    return EventPublisher(get_redis_or_none())


def get_app_settings() -> Settings:
    return get_settings()


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity asserted by the upstream gateway."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def _roles(header: str | None) -> set[str]:
    if not header:
        return set()
    return {role.strip().lower() for role in header.split(",") if role.strip()}


async def require_admin(
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    x_user_roles: str | None = Header(default=None),
) -> str:
    """Reject callers without the admin role. Returns the caller's user id."""
    if ADMIN_ROLE not in _roles(x_user_roles):
        raise HTTPException(status_code=403, detail="Admin role required")
    return user_id
