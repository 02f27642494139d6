"""Weather endpoints - forecast and current conditions for a destination."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_weather_service
from backend.app.db.context import RequestContext
from backend.app.models.weather import ForecastDay, ForecastResult
from backend.app.weather.service import WeatherService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weather", tags=["weather"])


@router.get("/forecast/{destination}", response_model=ForecastResult)
async def get_forecast(
    destination: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    weather: Annotated[WeatherService, Depends(get_weather_service)],
    days: Annotated[int, Query()] = 5,
) -> ForecastResult:
    """Get a daily forecast for a destination.

    More days than the provider offers yields a shorter forecast with a note.
    """
    logger.info(f"Fetching weather for {destination!r} ({days} days)")
    return await weather.get_forecast(destination, days, ctx)


@router.get("/current/{destination}", response_model=ForecastDay)
async def get_current_weather(
    destination: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    weather: Annotated[WeatherService, Depends(get_weather_service)],
) -> ForecastDay:
    """Get current conditions for a destination."""
    logger.info(f"Fetching current weather for {destination!r}")
    return await weather.get_current_weather(destination, ctx)
