"""Itinerary assembly - ownership check, day partitioning and weather overlay.

Partitioning failures (missing or foreign trip, storage errors) fail the whole
request. Weather is an enhancement: any failure on the weather path is logged
and turned into a weather_error on an otherwise complete itinerary.
"""

import logging

from backend.app.db.context import RequestContext
from backend.app.db.repositories import ActivityRepository, TripRepository
from backend.app.errors import TripPlannerError
from backend.app.itinerary.partition import partition_activities
from backend.app.models.itinerary import (
    ActivityStats,
    DayWithWeather,
    ItineraryView,
    WeatherItineraryView,
    WeatherOverlay,
)
from backend.app.models.weather import ForecastResult
from backend.app.ownership import verify_trip_ownership
from backend.app.utils.metrics import PrometheusWeatherMetrics
from backend.app.weather.service import WeatherService

logger = logging.getLogger(__name__)


def align_forecast(itinerary: ItineraryView, forecast: ForecastResult) -> list[DayWithWeather]:
    """Attach forecast[i] to days[i]; days past the forecast get no weather."""
    aligned: list[DayWithWeather] = []
    for index, day in enumerate(itinerary.days):
        weather = forecast.forecast[index] if index < len(forecast.forecast) else None
        aligned.append(DayWithWeather(**day.model_dump(), weather=weather))
    return aligned


class ItineraryAssembler:
    """Builds itinerary views for a caller's trips."""

    def __init__(
        self,
        trips: TripRepository,
        activities: ActivityRepository,
        weather: WeatherService | None = None,
        metrics: PrometheusWeatherMetrics | None = None,
    ) -> None:
        self._trips = trips
        self._activities = activities
        self._weather = weather
        self._metrics = metrics or PrometheusWeatherMetrics()

    async def build_itinerary(self, trip_id: int, ctx: RequestContext) -> ItineraryView:
        """Day-partitioned itinerary without weather.

        Raises:
            NotFoundError: Trip does not exist
            AccessDeniedError: Trip belongs to another account
        """
        trip = await verify_trip_ownership(self._trips, trip_id, ctx.account_id)
        activities = await self._activities.list_activities(trip.id)
        return partition_activities(trip, activities)

    async def build_itinerary_with_weather(
        self, trip_id: int, ctx: RequestContext
    ) -> WeatherItineraryView:
        """Itinerary with the forecast aligned positionally to its days.

        Ownership and storage failures propagate. Weather failures do not:
        the itinerary is returned with weather_error set instead.
        """
        itinerary = await self.build_itinerary(trip_id, ctx)
        plain_days = [DayWithWeather(**day.model_dump()) for day in itinerary.days]

        if self._weather is None:
            return self._degraded(itinerary, plain_days, "not_configured", "not configured", False)

        try:
            forecast = await self._weather.get_forecast(
                itinerary.trip.destination, len(itinerary.days), ctx
            )
        except TripPlannerError as e:
            logger.warning(f"Weather unavailable for trip {trip_id}: {e.kind} - {e.message}")
            return self._degraded(itinerary, plain_days, e.kind, e.message, e.retryable)
        except Exception as e:
            logger.exception(f"Unexpected weather failure for trip {trip_id}")
            return self._degraded(itinerary, plain_days, "internal", str(e) or type(e).__name__, True)

        return WeatherItineraryView(
            trip=itinerary.trip,
            days=align_forecast(itinerary, forecast),
            total_activities=itinerary.total_activities,
            total_cost=itinerary.total_cost,
            weather=WeatherOverlay(city=forecast.city, country=forecast.country, note=forecast.note),
        )

    async def get_stats(self, trip_id: int, ctx: RequestContext) -> ActivityStats:
        """Activity stats for a trip the caller owns."""
        trip = await verify_trip_ownership(self._trips, trip_id, ctx.account_id)
        return await self._activities.get_activity_stats(trip.id)

    def _degraded(
        self,
        itinerary: ItineraryView,
        days: list[DayWithWeather],
        kind: str,
        reason: str,
        retryable: bool,
    ) -> WeatherItineraryView:
        self._metrics.inc_degraded(kind)
        return WeatherItineraryView(
            trip=itinerary.trip,
            days=days,
            total_activities=itinerary.total_activities,
            total_cost=itinerary.total_cost,
            weather=None,
            weather_error=f"weather unavailable: {reason}",
            weather_error_kind=kind,
            weather_retryable=retryable,
        )
