"""Itinerary endpoints - day-by-day view and activity stats."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from backend.app.api.auth import enforce_crud_rate_limit, get_current_context
from backend.app.api.deps import get_itinerary_assembler
from backend.app.db.context import RequestContext
from backend.app.itinerary.assembler import ItineraryAssembler
from backend.app.models.itinerary import ActivityStats, ItineraryView, WeatherItineraryView

router = APIRouter(
    prefix="/itinerary", tags=["itinerary"], dependencies=[Depends(enforce_crud_rate_limit)]
)


@router.get("/{trip_id}", response_model=None)
async def get_itinerary(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    assembler: Annotated[ItineraryAssembler, Depends(get_itinerary_assembler)],
    include_weather: Annotated[bool, Query()] = True,
) -> WeatherItineraryView | ItineraryView:
    """Get the full itinerary for a trip.

    With include_weather (the default) each day carries its positionally
    aligned forecast. A weather failure still returns 200, with weather null
    and weather_error describing the failure.

    Raises:
        NotFoundError: 404 if the trip does not exist
        AccessDeniedError: 403 if another account owns it
    """
    if include_weather:
        return await assembler.build_itinerary_with_weather(trip_id, ctx)
    return await assembler.build_itinerary(trip_id, ctx)


@router.get("/{trip_id}/stats", response_model=ActivityStats)
async def get_itinerary_stats(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    assembler: Annotated[ItineraryAssembler, Depends(get_itinerary_assembler)],
) -> ActivityStats:
    """Get activity statistics for a trip."""
    return await assembler.get_stats(trip_id, ctx)
