"""End-to-end API test against the SQL repositories on SQLite."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.app.api.deps import get_crud_rate_limiter, get_weather_service
from backend.app.db.engine import get_session
from backend.app.db.inmemory import InMemoryRateLimiter
from backend.app.db.sql_repositories import SqlAccountRepository
from backend.app.main import app
from backend.app.weather.service import WeatherService


@pytest.mark.asyncio
async def test_trip_lifecycle_through_sql(sqlite_engine: AsyncEngine) -> None:
    """Test create, itinerary and delete through the real session dependency."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
            yield session

    async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
        account = await SqlAccountRepository(session).create_account(
            "sql@example.com", "Sql", "stub"
        )
    headers = {"Authorization": f"Bearer {account.account_id}"}

    limiter = InMemoryRateLimiter(max_requests=1000, window_seconds=300)
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_weather_service] = lambda: WeatherService(None)
    app.dependency_overrides[get_crud_rate_limiter] = lambda: limiter

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            created = await client.post(
                "/trips",
                json={
                    "title": "Oslo",
                    "destination": "Oslo",
                    "start_date": "2025-07-10",
                    "end_date": "2025-07-11",
                },
                headers=headers,
            )
            assert created.status_code == 201, created.text
            trip_id = created.json()["id"]

            for day_number, cost in [(1, 80), (2, 20.25), (3, 5)]:
                response = await client.post(
                    "/activities",
                    json={
                        "trip_id": trip_id,
                        "day_number": day_number,
                        "title": f"Day {day_number}",
                        "cost": cost,
                    },
                    headers=headers,
                )
                assert response.status_code == 201, response.text

            itinerary = await client.get(f"/itinerary/{trip_id}", headers=headers)
            assert itinerary.status_code == 200
            data = itinerary.json()
            assert [day["total_cost"] for day in data["days"]] == [80, 20.25]
            assert data["total_activities"] == 3
            assert data["total_cost"] == 100.25
            assert data["weather"] is None
            assert data["weather_error_kind"] == "misconfigured"

            stats = await client.get(f"/itinerary/{trip_id}/stats", headers=headers)
            assert stats.json()["total_cost"] == 105.25

            deleted = await client.delete(f"/trips/{trip_id}", headers=headers)
            assert deleted.status_code == 200

            gone = await client.get(f"/trips/{trip_id}", headers=headers)
            assert gone.status_code == 404
    finally:
        app.dependency_overrides.clear()
