"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ilab.config import get_settings
from ilab.database import get_session
from ilab.redis_client import get_redis

router = APIRouter()

OK = "ok"


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.scalar(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return OK


async def _check_redis() -> str:
    try:
        await get_redis().ping()
    except Exception as exc:
        return f"error: {exc}"
    return OK


@router.get("/health")
async def health() -> dict[str, str]:
    """200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready", response_model=None)
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object] | JSONResponse:
    """Database and Redis connectivity.

    Without the database nothing can be served: 503 ``unavailable``.
    Redis only carries event fan-out, so losing it alone is a 200 ``degraded``.
    """
    checks = {"database": await _check_database(db), "redis": await _check_redis()}

    if checks["database"] != OK:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "checks": checks},
        )
    if checks["redis"] != OK:
        return {"status": "degraded", "checks": checks}
    return {"status": "ready", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
