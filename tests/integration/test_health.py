"""Health endpoint and middleware tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    """GET /health returns 200 with healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_degraded_without_redis(client: AsyncClient) -> None:
    """Database reachable, Redis never started: still 200 but degraded."""
    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"].startswith("error:")


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert "environment" in data


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.headers["content-type"] == "application/json"
    assert response.json()["detail"] == "Not Found"


@pytest.mark.asyncio
async def test_engine_error_shape(client: AsyncClient, db_session) -> None:
    """Engine errors carry their class name next to the message."""
    response = await client.get("/api/v1/judging/hackathons/missing/judges")
    assert response.status_code == 404
    assert response.json() == {"detail": "Hackathon not found", "error": "NotFoundError"}


@pytest.mark.asyncio
async def test_missing_identity_is_401(client: AsyncClient) -> None:
    response = await client.get("/api/v1/gamification/profile")
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing X-User-Id header"


@pytest.mark.asyncio
async def test_admin_route_requires_role(client: AsyncClient, as_user) -> None:
    response = await client.post(
        "/api/v1/gamification/award-xp",
        json={"user_id": "user-alice", "event_type": "BONUS", "points": 10},
        headers=as_user("user-alice"),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_request_validation_is_422(client: AsyncClient, as_user) -> None:
    response = await client.post(
        "/api/v1/gamification/award-xp",
        json={"user_id": "user-alice"},
        headers=as_user("user-admin", "admin"),
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation error"


class _UnreachableSession:
    async def scalar(self, *args, **kwargs):
        raise ConnectionError("db down")


@pytest.mark.asyncio
async def test_readiness_unavailable_without_database(client: AsyncClient, app) -> None:
    """Database unreachable: 503 regardless of Redis."""
    from ilab.database import get_session

    async def unreachable():
        yield _UnreachableSession()

    app.dependency_overrides[get_session] = unreachable
    response = await client.get("/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["checks"]["database"] == "error: db down"
