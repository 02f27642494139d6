"""Weather provider result shapes."""

from datetime import date

from pydantic import BaseModel, ConfigDict


class GeocodingResult(BaseModel):
    """Best geocoding match for a free-text destination."""

    name: str
    lat: float
    lon: float
    country: str
    state: str | None = None


class ForecastDay(BaseModel):
    """One calendar day of forecast (or current conditions)."""

    model_config = ConfigDict(allow_inf_nan=False)

    date: date
    temp: int  # Celsius
    temp_min: int
    temp_max: int
    feels_like: int
    humidity: float
    description: str
    icon: str  # OpenWeather icon code
    wind_speed: float
    clouds: float
    rain: float = 0.0
    snow: float = 0.0


class ForecastResult(BaseModel):
    """Forecast for a destination, ascending by date."""

    city: str
    country: str
    forecast: list[ForecastDay]
    note: str | None = None
