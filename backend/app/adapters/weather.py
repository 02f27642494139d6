"""Weather adapter using the OpenWeather API (free tier, 5 day / 3 hour forecast)."""

import math
import time
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from backend.app.errors import (
    MisconfiguredError,
    NotFoundError,
    RateLimitedError,
    TripPlannerError,
    UpstreamDataInvalidError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from backend.app.models.weather import ForecastDay, GeocodingResult
from backend.app.utils.logging import StructuredProviderLogger
from backend.app.utils.metrics import PrometheusWeatherMetrics

# Free tier forecast horizon: 5 days of 3-hourly samples
PROVIDER_MAX_DAYS = 5
SAMPLES_PER_DAY = 8
MAX_SAMPLES = PROVIDER_MAX_DAYS * SAMPLES_PER_DAY

NOON_HOUR = 12


def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves rounding up."""
    return math.floor(float(value) + 0.5)


def _accumulation(sample: dict[str, Any], field: str, window: str) -> float:
    block = sample.get(field)
    if block is None:
        return 0.0
    if not isinstance(block, dict):
        raise TypeError(f"{field} must be an object, got {type(block).__name__}")
    value = block.get(window)
    return float(value) if value is not None else 0.0


def sample_timestamp(sample: dict[str, Any]) -> tuple[date, int]:
    """Calendar date and hour of a forecast sample.

    Raises:
        KeyError, ValueError, IndexError: If dt_txt is missing or malformed
    """
    # dt_txt looks like "2024-12-01 12:00:00"
    day_part, time_part = sample["dt_txt"].split(" ")
    return date.fromisoformat(day_part), int(time_part.split(":")[0])


def normalize_sample(
    sample: dict[str, Any], sample_date: date, accumulation_window: str = "3h"
) -> ForecastDay | None:
    """Normalize one provider sample; returns None when required fields are missing."""
    try:
        main = sample["main"]
        conditions = sample["weather"][0]
        return ForecastDay(
            date=sample_date,
            temp=round_half_up(main["temp"]),
            temp_min=round_half_up(main["temp_min"]),
            temp_max=round_half_up(main["temp_max"]),
            feels_like=round_half_up(main["feels_like"]),
            humidity=main["humidity"],
            description=conditions["description"],
            icon=conditions["icon"],
            wind_speed=sample["wind"]["speed"],
            clouds=sample["clouds"]["all"],
            rain=_accumulation(sample, "rain", accumulation_window),
            snow=_accumulation(sample, "snow", accumulation_window),
        )
    except (
        KeyError,
        IndexError,
        TypeError,
        ValueError,
        AttributeError,
        OverflowError,
        ValidationError,
    ):
        return None


def collapse_to_daily(samples: Iterable[dict[str, Any]]) -> list[ForecastDay]:
    """Collapse sub-daily samples to one ForecastDay per date, ascending.

    For each date the sample closest to noon wins: an exact 12:00 sample always
    wins, and among samples equally far from noon the first one seen is kept.
    Samples that fail to normalize are dropped.
    """
    chosen: dict[date, tuple[int, ForecastDay]] = {}

    for sample in samples:
        try:
            sample_date, hour = sample_timestamp(sample)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError):
            continue

        day = normalize_sample(sample, sample_date)
        if day is None:
            continue

        distance = abs(hour - NOON_HOUR)
        current = chosen.get(sample_date)
        if current is None or distance < current[0]:
            chosen[sample_date] = (distance, day)

    return [chosen[key][1] for key in sorted(chosen)]


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:200]


def raise_for_provider_status(response: httpx.Response) -> None:
    """Map a provider error status onto the error taxonomy."""
    status = response.status_code
    if status < 400:
        return

    if status == 401:
        raise MisconfiguredError("Weather provider rejected the API key")
    if status == 404:
        raise NotFoundError("Location not found by weather provider")
    if status == 429:
        retry_after = response.headers.get("Retry-After", "60")
        raise RateLimitedError(
            "Weather provider rate limit reached",
            retry_after=int(retry_after) if retry_after.isdigit() else 60,
            upstream=True,
        )
    if status >= 500:
        raise UpstreamUnavailableError(
            f"Weather provider server error ({status})", reason="server_error"
        )

    raise UpstreamRejectedError(
        f"Weather provider error ({status}): {_provider_message(response)}",
        upstream_status=status,
    )


class OpenWeatherClient:
    """OpenWeather geocoding, forecast and current-conditions calls."""

    name = "openweather"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        geo_url: str = "https://api.openweathermap.org/geo/1.0",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        metrics: PrometheusWeatherMetrics | None = None,
        call_logger: StructuredProviderLogger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: OpenWeather API key
            base_url: Data API base URL
            geo_url: Geocoding API base URL
            timeout_seconds: Per-call timeout
            client: Optional httpx client (for testing with mocks)
            metrics: Optional metrics sink
            call_logger: Optional structured call logger
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._geo_url = geo_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client = client
        self._metrics = metrics or PrometheusWeatherMetrics()
        self._call_logger = call_logger or StructuredProviderLogger()

    async def geocode(self, destination: str) -> GeocodingResult:
        """Resolve a place name to its first/best match.

        Raises:
            NotFoundError: No match for the destination
        """
        payload = await self._get_json(
            "geocode", f"{self._geo_url}/direct", {"q": destination, "limit": 1}
        )

        if not isinstance(payload, list):
            raise UpstreamDataInvalidError("Geocoding response is not a list")
        if not payload:
            raise NotFoundError(f"No coordinates found for: {destination}")

        match = payload[0]
        try:
            return GeocodingResult(
                name=match["name"],
                lat=match["lat"],
                lon=match["lon"],
                country=match.get("country", ""),
                state=match.get("state"),
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise UpstreamDataInvalidError("Geocoding match is missing coordinates") from e

    async def fetch_forecast(self, lat: float, lon: float, days: int) -> list[ForecastDay]:
        """Fetch up to `days` daily forecasts (at most PROVIDER_MAX_DAYS).

        Raises:
            UpstreamDataInvalidError: No sample could be normalized
        """
        params = {
            "lat": lat,
            "lon": lon,
            "units": "metric",  # Celsius
            "cnt": min(days * SAMPLES_PER_DAY, MAX_SAMPLES),
        }
        payload = await self._get_json("forecast", f"{self._base_url}/forecast", params)

        samples = payload.get("list") if isinstance(payload, dict) else None
        if not isinstance(samples, list):
            raise UpstreamDataInvalidError("Forecast response has no sample list")

        forecast = collapse_to_daily(samples)
        if not forecast:
            raise UpstreamDataInvalidError("Forecast response contained no usable samples")

        return forecast[:days]

    async def fetch_current(self, lat: float, lon: float) -> ForecastDay:
        """Fetch current conditions as a single ForecastDay for today."""
        params = {"lat": lat, "lon": lon, "units": "metric"}
        payload = await self._get_json("current", f"{self._base_url}/weather", params)

        if not isinstance(payload, dict):
            raise UpstreamDataInvalidError("Current weather response is not an object")

        current = normalize_sample(payload, datetime.now(UTC).date(), accumulation_window="1h")
        if current is None:
            raise UpstreamDataInvalidError("Current weather response is missing fields")
        return current

    async def _get_json(self, call: str, url: str, params: dict[str, Any]) -> Any:
        started = time.perf_counter()
        try:
            payload = await self._request(url, params)
        except TripPlannerError as e:
            self._observe(call, e.kind, started)
            raise
        self._observe(call, "success", started)
        return payload

    async def _request(self, url: str, params: dict[str, Any]) -> Any:
        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout_seconds)
            close_client = True

        try:
            response = await client.get(
                url,
                params={**params, "appid": self._api_key},
                timeout=self._timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError("Weather provider timed out", reason="timeout") from e
        except httpx.TransportError as e:
            raise UpstreamUnavailableError(
                "Weather provider unreachable", reason="unreachable"
            ) from e
        finally:
            if close_client:
                await client.aclose()

        raise_for_provider_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamDataInvalidError("Weather provider returned invalid JSON") from e

    def _observe(self, call: str, outcome: str, started: float) -> None:
        latency_ms = (time.perf_counter() - started) * 1000
        self._metrics.record_latency(call, outcome, latency_ms)
        if outcome != "success":
            self._metrics.inc_error(call, outcome)
        self._call_logger.log_call(
            provider=self.name,
            call=call,
            outcome=outcome,
            latency_ms=latency_ms,
            error_reason=None if outcome == "success" else outcome,
        )
