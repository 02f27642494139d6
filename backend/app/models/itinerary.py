"""Itinerary models - day-partitioned views for user consumption."""

from datetime import date

from pydantic import BaseModel

from backend.app.models.trip import Activity, Trip
from backend.app.models.weather import ForecastDay


class DayItinerary(BaseModel):
    """Activities and cost rollup for a single trip day."""

    day_number: int
    date: date
    activities: list[Activity]
    total_cost: float


class ItineraryView(BaseModel):
    """Complete day-by-day itinerary for a trip."""

    trip: Trip
    days: list[DayItinerary]
    total_activities: int
    total_cost: float


class ActivityStats(BaseModel):
    """Activity rollup across every activity of a trip."""

    total_activities: int
    completed_activities: int
    total_cost: float
    days_with_activities: int


class DayWithWeather(DayItinerary):
    """Day itinerary with its positionally aligned forecast, if any."""

    weather: ForecastDay | None = None


class WeatherOverlay(BaseModel):
    """Forecast metadata attached to a weather-augmented itinerary."""

    city: str
    country: str
    note: str | None = None


class WeatherItineraryView(ItineraryView):
    """Itinerary with the weather overlay.

    When the weather path fails, weather is None and weather_error explains why;
    the itinerary itself is still complete.
    """

    days: list[DayWithWeather]
    weather: WeatherOverlay | None = None
    weather_error: str | None = None
    weather_error_kind: str | None = None
    weather_retryable: bool | None = None
