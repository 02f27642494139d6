"""Models package - re-exports for convenience."""

from backend.app.models.common import MAX_ACTIVITY_COST, ActivityCategory
from backend.app.models.itinerary import (
    ActivityStats,
    DayItinerary,
    DayWithWeather,
    ItineraryView,
    WeatherItineraryView,
    WeatherOverlay,
)
from backend.app.models.trip import (
    Activity,
    ActivityCreate,
    ActivityPatch,
    Trip,
    TripCreate,
    TripPatch,
    TripWithActivities,
)
from backend.app.models.weather import ForecastDay, ForecastResult, GeocodingResult

__all__ = [
    # Common
    "ActivityCategory",
    "MAX_ACTIVITY_COST",
    # Trips
    "Trip",
    "TripCreate",
    "TripPatch",
    "TripWithActivities",
    "Activity",
    "ActivityCreate",
    "ActivityPatch",
    # Weather
    "GeocodingResult",
    "ForecastDay",
    "ForecastResult",
    # Itinerary
    "DayItinerary",
    "ItineraryView",
    "ActivityStats",
    "DayWithWeather",
    "WeatherOverlay",
    "WeatherItineraryView",
]
