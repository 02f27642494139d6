"""Tests for the OpenWeather adapter."""

from datetime import date
from typing import Any

import httpx
import pytest

from backend.app.adapters.weather import (
    OpenWeatherClient,
    collapse_to_daily,
    normalize_sample,
    round_half_up,
)
from backend.app.errors import (
    MisconfiguredError,
    NotFoundError,
    RateLimitedError,
    UpstreamDataInvalidError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)


def make_sample(dt_txt: str, temp: float = 20.0, **extra: Any) -> dict[str, Any]:
    """Forecast sample shaped like an OpenWeather /forecast list entry."""
    sample: dict[str, Any] = {
        "dt_txt": dt_txt,
        "main": {
            "temp": temp,
            "temp_min": temp - 2,
            "temp_max": temp + 2,
            "feels_like": temp - 1,
            "humidity": 55,
        },
        "weather": [{"description": "scattered clouds", "icon": "03d"}],
        "wind": {"speed": 4.2},
        "clouds": {"all": 40},
    }
    sample.update(extra)
    return sample


def make_client(handler: Any) -> OpenWeatherClient:
    return OpenWeatherClient(
        api_key="test-key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.parametrize(
    "value,expected",
    [(20.5, 21), (20.49, 20), (-0.5, 0), (-1.5, -1), (2.4, 2), (0, 0)],
)
def test_round_half_up(value: float, expected: int) -> None:
    """Test temperatures round to the nearest degree with halves going up."""
    assert round_half_up(value) == expected


def test_normalize_sample_defaults_precipitation() -> None:
    """Test missing rain/snow blocks default to 0."""
    day = normalize_sample(make_sample("2025-06-01 12:00:00", temp=18.6), date(2025, 6, 1))

    assert day is not None
    assert day.temp == 19
    assert day.temp_min == 17
    assert day.temp_max == 21
    assert day.rain == 0.0
    assert day.snow == 0.0
    assert day.humidity == 55
    assert day.wind_speed == 4.2
    assert day.clouds == 40
    assert day.icon == "03d"


def test_normalize_sample_reads_accumulation() -> None:
    """Test rain/snow come from the requested accumulation window."""
    sample = make_sample("2025-06-01 12:00:00", rain={"3h": 1.25}, snow={"1h": 0.4})

    day = normalize_sample(sample, date(2025, 6, 1))

    assert day is not None
    assert day.rain == 1.25
    assert day.snow == 0.0


def test_normalize_sample_missing_fields_returns_none() -> None:
    """Test a sample missing required sub-fields is rejected."""
    sample = make_sample("2025-06-01 12:00:00")
    del sample["wind"]

    assert normalize_sample(sample, date(2025, 6, 1)) is None


def test_collapse_prefers_exact_noon() -> None:
    """Test a 12:00 sample wins over every other hour of that date."""
    samples = [
        make_sample("2025-06-01 09:00:00", temp=10),
        make_sample("2025-06-01 12:00:00", temp=22),
        make_sample("2025-06-01 15:00:00", temp=25),
    ]

    days = collapse_to_daily(samples)

    assert len(days) == 1
    assert days[0].temp == 22


def test_collapse_prefers_nearest_noon_then_first_seen() -> None:
    """Test without a noon sample the nearest hour wins, ties keep the first."""
    samples = [
        make_sample("2025-06-01 06:00:00", temp=5),
        make_sample("2025-06-01 15:00:00", temp=15),
        make_sample("2025-06-01 09:00:00", temp=9),
    ]

    days = collapse_to_daily(samples)

    assert days[0].temp == 15


def test_collapse_orders_by_date_and_drops_bad_samples() -> None:
    """Test output is ascending by date and malformed samples are skipped."""
    broken = make_sample("2025-06-02 12:00:00")
    del broken["main"]
    samples = [
        make_sample("2025-06-03 12:00:00", temp=30),
        broken,
        make_sample("2025-06-01 12:00:00", temp=10),
        {"dt_txt": "garbage"},
        {"main": {}},
    ]

    days = collapse_to_daily(samples)

    assert [day.date for day in days] == [date(2025, 6, 1), date(2025, 6, 3)]


def test_collapse_drops_sample_with_scalar_precipitation() -> None:
    """Test a rain/snow value that is not an object drops only that sample."""
    samples = [
        make_sample("2025-06-01 12:00:00", temp=18),
        make_sample("2025-06-02 12:00:00", rain=0.5),
        make_sample("2025-06-03 12:00:00", snow=1),
    ]

    days = collapse_to_daily(samples)

    assert len(days) == 1
    assert days[0].date == date(2025, 6, 1)
    assert days[0].temp == 18


def test_collapse_drops_sample_with_non_finite_values() -> None:
    """Test infinite or NaN readings drop the sample instead of raising."""
    samples = [
        make_sample("2025-06-01 12:00:00", temp=float("inf")),
        make_sample("2025-06-02 12:00:00", wind={"speed": float("nan")}),
        make_sample("2025-06-03 12:00:00", rain={"3h": float("inf")}),
        make_sample("2025-06-04 12:00:00", temp=12),
    ]

    days = collapse_to_daily(samples)

    assert [day.date for day in days] == [date(2025, 6, 4)]


@pytest.mark.asyncio
async def test_geocode_returns_first_match() -> None:
    """Test geocoding asks for one match and parses it."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json=[{"name": "Paris", "lat": 48.85, "lon": 2.35, "country": "FR"}]
        )

    client = make_client(handler)
    result = await client.geocode("Paris")

    assert result.name == "Paris"
    assert result.country == "FR"
    assert result.state is None
    assert seen[0].url.path.endswith("/geo/1.0/direct")
    assert seen[0].url.params["q"] == "Paris"
    assert seen[0].url.params["limit"] == "1"
    assert seen[0].url.params["appid"] == "test-key"


@pytest.mark.asyncio
async def test_geocode_no_match_is_not_found() -> None:
    """Test an empty geocoding result raises NotFoundError."""
    client = make_client(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(NotFoundError):
        await client.geocode("Atlantis")


@pytest.mark.asyncio
async def test_fetch_forecast_caps_sample_count() -> None:
    """Test the sample count is capped at the free-tier horizon."""
    seen: list[httpx.Request] = []
    samples = [
        make_sample(f"2025-06-0{day} 12:00:00", temp=10 + day) for day in range(1, 6)
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"list": samples})

    client = make_client(handler)
    forecast = await client.fetch_forecast(48.85, 2.35, days=10)

    assert seen[0].url.params["cnt"] == "40"
    assert seen[0].url.params["units"] == "metric"
    assert len(forecast) == 5
    assert forecast[0].date == date(2025, 6, 1)


@pytest.mark.asyncio
async def test_fetch_forecast_slices_to_requested_days() -> None:
    """Test extra provider days beyond the request are trimmed."""
    samples = [make_sample(f"2025-06-0{day} 12:00:00") for day in range(1, 5)]
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"list": samples})

    client = make_client(handler)
    forecast = await client.fetch_forecast(48.85, 2.35, days=2)

    assert seen[0].url.params["cnt"] == "16"
    assert [day.date for day in forecast] == [date(2025, 6, 1), date(2025, 6, 2)]


@pytest.mark.asyncio
async def test_fetch_forecast_all_samples_dropped() -> None:
    """Test a payload with no usable samples raises UpstreamDataInvalidError."""
    client = make_client(
        lambda request: httpx.Response(200, json={"list": [{"dt_txt": "2025-06-01 12:00:00"}]})
    )

    with pytest.raises(UpstreamDataInvalidError):
        await client.fetch_forecast(48.85, 2.35, days=3)


@pytest.mark.asyncio
async def test_fetch_forecast_missing_list() -> None:
    """Test a payload without a sample list raises UpstreamDataInvalidError."""
    client = make_client(lambda request: httpx.Response(200, json={"cod": "200"}))

    with pytest.raises(UpstreamDataInvalidError):
        await client.fetch_forecast(48.85, 2.35, days=3)


@pytest.mark.asyncio
async def test_fetch_forecast_drops_sample_with_scalar_snow() -> None:
    """Test one malformed sample does not abort the whole forecast."""
    samples = [
        make_sample("2025-06-01 12:00:00", temp=14),
        make_sample("2025-06-02 12:00:00", snow=1),
    ]
    client = make_client(lambda request: httpx.Response(200, json={"list": samples}))

    forecast = await client.fetch_forecast(48.85, 2.35, days=2)

    assert len(forecast) == 1
    assert forecast[0].date == date(2025, 6, 1)
    assert forecast[0].snow == 0.0


@pytest.mark.asyncio
async def test_fetch_current_scalar_rain_is_data_invalid() -> None:
    """Test a current-conditions payload with a scalar rain value is rejected."""
    payload = make_sample("2025-06-01 12:00:00", rain=0.6)
    client = make_client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(UpstreamDataInvalidError):
        await client.fetch_current(48.85, 2.35)


@pytest.mark.asyncio
async def test_fetch_current_uses_hourly_accumulation() -> None:
    """Test current conditions read the 1h precipitation window."""
    payload = make_sample("2025-06-01 12:00:00", temp=11.5, rain={"1h": 0.6})
    client = make_client(lambda request: httpx.Response(200, json=payload))

    current = await client.fetch_current(48.85, 2.35)

    assert current.temp == 12
    assert current.rain == 0.6


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_type",
    [
        (401, MisconfiguredError),
        (404, NotFoundError),
        (500, UpstreamUnavailableError),
        (503, UpstreamUnavailableError),
        (400, UpstreamRejectedError),
    ],
)
async def test_provider_status_mapping(status: int, error_type: type[Exception]) -> None:
    """Test provider error statuses map onto distinct error kinds."""
    client = make_client(lambda request: httpx.Response(status, json={"message": "nope"}))

    with pytest.raises(error_type):
        await client.geocode("Paris")


@pytest.mark.asyncio
async def test_provider_rejection_carries_message_and_status() -> None:
    """Test other 4xx responses surface the provider's message."""
    client = make_client(
        lambda request: httpx.Response(400, json={"message": "wrong latitude"})
    )

    with pytest.raises(UpstreamRejectedError) as exc_info:
        await client.fetch_forecast(999, 0, days=1)

    assert exc_info.value.upstream_status == 400
    assert "wrong latitude" in exc_info.value.message
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_provider_rate_limit_uses_retry_after() -> None:
    """Test a provider 429 becomes an upstream RateLimitedError."""
    client = make_client(
        lambda request: httpx.Response(429, headers={"Retry-After": "17"}, json={})
    )

    with pytest.raises(RateLimitedError) as exc_info:
        await client.geocode("Paris")

    assert exc_info.value.retry_after == 17
    assert exc_info.value.upstream is True


@pytest.mark.asyncio
async def test_timeout_is_retryable_unavailable() -> None:
    """Test a timeout maps to UpstreamUnavailableError(reason=timeout)."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_client(handler)

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await client.geocode("Paris")

    assert exc_info.value.reason == "timeout"
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_connect_error_is_unreachable() -> None:
    """Test a connection failure maps to UpstreamUnavailableError(reason=unreachable)."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await client.fetch_forecast(48.85, 2.35, days=1)

    assert exc_info.value.reason == "unreachable"


@pytest.mark.asyncio
async def test_invalid_json_is_data_invalid() -> None:
    """Test a non-JSON body raises UpstreamDataInvalidError."""
    client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(UpstreamDataInvalidError):
        await client.geocode("Paris")
