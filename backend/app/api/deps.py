"""FastAPI dependencies wiring repositories and services."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import get_settings
from backend.app.db.engine import get_session
from backend.app.db.repositories import (
    AccountRepository,
    ActivityRepository,
    RateLimiter,
    TripRepository,
)
from backend.app.db.sql_repositories import (
    SqlAccountRepository,
    SqlActivityRepository,
    SqlTripRepository,
)
from backend.app.itinerary.assembler import ItineraryAssembler
from backend.app.ratelimit import create_rate_limiter
from backend.app.weather.service import WeatherService, create_weather_service


async def get_account_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AccountRepository:
    """Account repository bound to the request session."""
    return SqlAccountRepository(session)


async def get_trip_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripRepository:
    """Trip repository bound to the request session."""
    return SqlTripRepository(session)


async def get_activity_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ActivityRepository:
    """Activity repository bound to the request session."""
    return SqlActivityRepository(session)


@lru_cache
def get_weather_service() -> WeatherService:
    """Process-wide weather service (holds the admission budgets)."""
    return create_weather_service(get_settings())


@lru_cache
def get_crud_rate_limiter() -> RateLimiter:
    """Process-wide limiter for CRUD endpoints."""
    settings = get_settings()
    return create_rate_limiter(settings, settings.crud_ops_per_window, settings.crud_window_seconds)


async def get_itinerary_assembler(
    trips: Annotated[TripRepository, Depends(get_trip_repository)],
    activities: Annotated[ActivityRepository, Depends(get_activity_repository)],
    weather: Annotated[WeatherService, Depends(get_weather_service)],
) -> ItineraryAssembler:
    """Itinerary assembler for the request."""
    return ItineraryAssembler(trips, activities, weather)
