"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator, Callable
from datetime import date, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from backend.app.db.inmemory import (
    InMemoryAccountRepository,
    InMemoryActivityRepository,
    InMemoryRecordStore,
    InMemoryTripRepository,
)
from backend.app.db.models import Base
from backend.app.errors import TripPlannerError
from backend.app.models.weather import ForecastDay, GeocodingResult


class FakeWeatherProvider:
    """Scripted weather provider that records the calls made to it."""

    def __init__(self) -> None:
        self.forecast: list[ForecastDay] = []
        self.current: ForecastDay | None = None
        self.geocode_errors: list[Exception] = []
        self.forecast_errors: list[Exception] = []
        self.geocode_calls: list[str] = []
        self.forecast_calls: list[int] = []

    async def geocode(self, destination: str) -> GeocodingResult:
        self.geocode_calls.append(destination)
        if self.geocode_errors:
            raise self.geocode_errors.pop(0)
        return GeocodingResult(name=destination, lat=48.8566, lon=2.3522, country="FR")

    async def fetch_forecast(self, lat: float, lon: float, days: int) -> list[ForecastDay]:
        self.forecast_calls.append(days)
        if self.forecast_errors:
            raise self.forecast_errors.pop(0)
        return self.forecast[:days]

    async def fetch_current(self, lat: float, lon: float) -> ForecastDay:
        if self.current is None:
            raise TripPlannerError("no current conditions scripted")
        return self.current


def make_forecast_day(day: date, temp: int = 20) -> ForecastDay:
    """Forecast entry with plausible defaults."""
    return ForecastDay(
        date=day,
        temp=temp,
        temp_min=temp - 3,
        temp_max=temp + 3,
        feels_like=temp,
        humidity=60,
        description="clear sky",
        icon="01d",
        wind_speed=3.5,
        clouds=10,
    )


@pytest.fixture
def forecast_days() -> Callable[[date, int], list[ForecastDay]]:
    """Factory for consecutive forecast days starting at a date."""

    def build(start: date, count: int) -> list[ForecastDay]:
        return [make_forecast_day(start + timedelta(days=i), temp=15 + i) for i in range(count)]

    return build


@pytest.fixture
def fake_provider() -> FakeWeatherProvider:
    """Weather provider with no forecast scripted."""
    return FakeWeatherProvider()


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def account_repo(store: InMemoryRecordStore) -> InMemoryAccountRepository:
    return InMemoryAccountRepository(store)


@pytest.fixture
def trip_repo(store: InMemoryRecordStore) -> InMemoryTripRepository:
    return InMemoryTripRepository(store)


@pytest.fixture
def activity_repo(store: InMemoryRecordStore) -> InMemoryActivityRepository:
    return InMemoryActivityRepository(store)


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Async SQLite engine on a throwaway file with all tables created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'trips.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the SQLite engine, matching the app's session settings."""
    async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
        yield session
