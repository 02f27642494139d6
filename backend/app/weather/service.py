"""Weather alignment service - validation, admission control and the provider cap.

The service never reads configuration on its own: the provider, limits and
retry policy are passed in, and create_weather_service builds them from
Settings once.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol, TypeVar

from backend.app.adapters.weather import PROVIDER_MAX_DAYS, OpenWeatherClient
from backend.app.config import Settings
from backend.app.db.context import RequestContext
from backend.app.db.repositories import RateLimiter
from backend.app.errors import (
    InvalidArgumentError,
    MisconfiguredError,
    RateLimitedError,
    UpstreamUnavailableError,
)
from backend.app.models.weather import ForecastDay, ForecastResult, GeocodingResult
from backend.app.ratelimit import create_rate_limiter, make_global_rate_limit_key, make_rate_limit_key
from backend.app.utils.metrics import PrometheusWeatherMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEATHER_BUCKET = "weather"


class WeatherProvider(Protocol):
    """Protocol for weather provider clients."""

    async def geocode(self, destination: str) -> GeocodingResult:
        """Resolve a place name to coordinates."""
        ...

    async def fetch_forecast(self, lat: float, lon: float, days: int) -> list[ForecastDay]:
        """Fetch daily forecasts, ascending by date."""
        ...

    async def fetch_current(self, lat: float, lon: float) -> ForecastDay:
        """Fetch current conditions."""
        ...


class WeatherService:
    """Fetches forecasts for destinations within local and provider limits."""

    def __init__(
        self,
        provider: WeatherProvider | None,
        *,
        max_days: int = PROVIDER_MAX_DAYS,
        max_destination_length: int = 100,
        user_limiter: RateLimiter | None = None,
        global_limiter: RateLimiter | None = None,
        retry_count: int = 1,
        retry_jitter_ms: tuple[int, int] = (200, 500),
        metrics: PrometheusWeatherMetrics | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            provider: Provider client, or None when no credential is configured
            max_days: Provider-side forecast horizon
            max_destination_length: Longest accepted destination string
            user_limiter: Per-account admission budget
            global_limiter: Budget shared by all callers
            retry_count: Retries for retryable upstream failures
            retry_jitter_ms: (min, max) delay before a retry
            metrics: Optional metrics sink
        """
        self._provider = provider
        self._max_days = max_days
        self._max_destination_length = max_destination_length
        self._user_limiter = user_limiter
        self._global_limiter = global_limiter
        self._retry_count = retry_count
        self._retry_jitter_ms = retry_jitter_ms
        self._metrics = metrics or PrometheusWeatherMetrics()

    @property
    def max_days(self) -> int:
        """Provider-side forecast horizon."""
        return self._max_days

    async def get_forecast(
        self,
        destination: str,
        requested_days: int,
        ctx: RequestContext | None = None,
    ) -> ForecastResult:
        """Get a daily forecast for a destination.

        Asking for more days than the provider offers is not an error: the
        forecast is shortened and a note explains why.

        Args:
            destination: Free-text place name
            requested_days: Number of days wanted
            ctx: Caller context for the per-account budget

        Returns:
            ForecastResult ascending by date

        Raises:
            InvalidArgumentError: Bad destination or day count
            MisconfiguredError: No provider credential
            RateLimitedError: Local or upstream budget exhausted
            NotFoundError: Destination could not be resolved
            UpstreamUnavailableError: Provider timeout, unreachable or 5xx
            UpstreamRejectedError: Other provider 4xx
            UpstreamDataInvalidError: Provider payload unusable
        """
        place = self._validate_destination(destination)
        if isinstance(requested_days, bool) or not isinstance(requested_days, int):
            raise InvalidArgumentError("Requested days must be an integer")
        if requested_days < 1:
            raise InvalidArgumentError("Requested days must be positive")

        provider = self._require_provider()
        await self._admit(ctx)

        days = min(requested_days, self._max_days)
        geo = await self._with_retry(lambda: provider.geocode(place))
        forecast = await self._with_retry(
            lambda: provider.fetch_forecast(geo.lat, geo.lon, days)
        )

        note = None
        if requested_days > self._max_days:
            note = (
                f"Forecast is limited to {self._max_days} days; "
                f"{requested_days} days were requested."
            )
        elif len(forecast) < days:
            note = f"Provider returned {len(forecast)} of {days} requested days."

        return ForecastResult(city=geo.name, country=geo.country, forecast=forecast, note=note)

    async def get_current_weather(
        self, destination: str, ctx: RequestContext | None = None
    ) -> ForecastDay:
        """Get current conditions for a destination."""
        place = self._validate_destination(destination)
        provider = self._require_provider()
        await self._admit(ctx)

        geo = await self._with_retry(lambda: provider.geocode(place))
        return await self._with_retry(lambda: provider.fetch_current(geo.lat, geo.lon))

    def _validate_destination(self, destination: str) -> str:
        if not isinstance(destination, str) or not destination.strip():
            raise InvalidArgumentError("Destination is required")
        place = destination.strip()
        if len(place) > self._max_destination_length:
            raise InvalidArgumentError(
                f"Destination must be at most {self._max_destination_length} characters"
            )
        return place

    def _require_provider(self) -> WeatherProvider:
        if self._provider is None:
            raise MisconfiguredError("Weather service is not configured (missing API key)")
        return self._provider

    async def _admit(self, ctx: RequestContext | None) -> None:
        now = datetime.now()

        if self._user_limiter is not None and ctx is not None:
            retry_after = await self._user_limiter.check_quota(
                make_rate_limit_key(ctx, WEATHER_BUCKET), now
            )
            if retry_after is not None:
                self._metrics.inc_admission_rejected("user")
                raise RateLimitedError(
                    "Too many weather requests. Please wait a moment and try again.",
                    retry_after=retry_after.seconds,
                )

        if self._global_limiter is not None:
            retry_after = await self._global_limiter.check_quota(
                make_global_rate_limit_key(WEATHER_BUCKET), now
            )
            if retry_after is not None:
                self._metrics.inc_admission_rejected("global")
                raise RateLimitedError(
                    "Weather service is busy. Please try again later.",
                    retry_after=retry_after.seconds,
                )

    async def _with_retry(self, call: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await call()
            except UpstreamUnavailableError as e:
                if attempt >= self._retry_count:
                    raise
                attempt += 1
                delay_ms = random.randint(*self._retry_jitter_ms)
                logger.info(
                    f"Retrying weather provider call after {e.reason} "
                    f"(attempt {attempt + 1}, delay {delay_ms}ms)"
                )
                await asyncio.sleep(delay_ms / 1000)


def create_weather_service(settings: Settings) -> WeatherService:
    """Build the weather service from settings.

    Without an API key the service is still created, but every call fails with
    MisconfiguredError.
    """
    provider: WeatherProvider | None = None
    if settings.openweather_api_key:
        provider = OpenWeatherClient(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            geo_url=settings.openweather_geo_url,
            timeout_seconds=settings.weather_timeout_seconds,
        )
    else:
        logger.warning("OPENWEATHER_API_KEY not set; weather lookups are disabled")

    return WeatherService(
        provider,
        max_days=settings.weather_provider_max_days,
        max_destination_length=settings.max_destination_length,
        user_limiter=create_rate_limiter(
            settings, settings.weather_user_requests, settings.weather_user_window_seconds
        ),
        global_limiter=create_rate_limiter(
            settings, settings.weather_global_requests, settings.weather_global_window_seconds
        ),
        retry_count=settings.weather_retry_count,
        retry_jitter_ms=(settings.retry_jitter_min_ms, settings.retry_jitter_max_ms),
    )
