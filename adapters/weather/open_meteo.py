"""
Open-Meteo weather provider.

Implements the WeatherProvider protocol against the free Open-Meteo API
(no API key required): current conditions, a daily forecast and city
geocoding. Every expected failure comes back as ``Result.err`` carrying a
WeatherUnavailableError (or InvalidLocationError for bad places) so the
prediction engine can fall back to pattern-only scoring.
"""

from typing import Any

import httpx
from pydantic import ValidationError

from healthcast.config import WeatherConfig
from healthcast.domain.models import Location, WeatherForecastPoint, WeatherSnapshot
from healthcast.services.sources import (
    InvalidLocationError,
    Result,
    WeatherUnavailableError,
    logger,
)

CURRENT_FIELDS = (
    "temperature_2m",
    "relative_humidity_2m",
    "pressure_msl",
    "wind_speed_10m",
    "precipitation",
    "weather_code",
    "uv_index",
)

DAILY_FIELDS = (
    "temperature_2m_max",
    "temperature_2m_min",
    "relative_humidity_2m_mean",
    "pressure_msl_mean",
    "wind_speed_10m_max",
    "precipitation_sum",
    "weather_code",
    "uv_index_max",
)

WEATHER_CODE_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int | None) -> str:
    """Human readable WMO weather code."""
    if code is None:
        return "Unknown"
    return WEATHER_CODE_DESCRIPTIONS.get(code, "Unknown")


def _check_coordinates(lat: float, lon: float) -> None:
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise InvalidLocationError(f"Coordinates out of range: lat={lat}, lon={lon}")


class OpenMeteoWeatherProvider:
    """
    Weather data from api.open-meteo.com.

    ``transport`` exists so tests can plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: WeatherConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.provider_name = "open-meteo"
        self.config = config or WeatherConfig()
        self._transport = transport
        self.logger = logger.bind(source=self.provider_name)

    async def fetch_current(
        self, lat: float, lon: float
    ) -> Result[WeatherSnapshot, WeatherUnavailableError]:
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": ",".join(CURRENT_FIELDS),
            "timezone": "auto",
        }
        try:
            _check_coordinates(lat, lon)
            data = await self._get_json(self.config.base_url, params)
            current = data["current"]
            snapshot = WeatherSnapshot(
                date=current["time"].split("T")[0],
                temperature_c=current["temperature_2m"],
                humidity_pct=current["relative_humidity_2m"],
                pressure_hpa=current["pressure_msl"],
                wind_kmh=current.get("wind_speed_10m") or 0.0,
                precipitation_mm=current.get("precipitation") or 0.0,
                weather_code=current.get("weather_code"),
                uv_index=current.get("uv_index") or 0.0,
            )
        except WeatherUnavailableError as e:
            self.logger.warning("current_weather_unavailable", error=str(e), lat=lat, lon=lon)
            return Result.err(e)
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            self.logger.warning("current_weather_malformed", error=str(e))
            return Result.err(WeatherUnavailableError(f"Malformed current weather payload: {e}"))

        self.logger.info(
            "current_weather_fetched",
            temperature_c=snapshot.temperature_c,
            pressure_hpa=snapshot.pressure_hpa,
        )
        return Result.ok(snapshot)

    async def fetch_forecast(
        self, lat: float, lon: float
    ) -> Result[list[WeatherForecastPoint], WeatherUnavailableError]:
        params = {
            "latitude": lat,
            "longitude": lon,
            "daily": ",".join(DAILY_FIELDS),
            "timezone": "auto",
            "forecast_days": self.config.forecast_days,
        }
        try:
            _check_coordinates(lat, lon)
            data = await self._get_json(self.config.base_url, params)
            forecast = self._parse_daily(data["daily"])
        except WeatherUnavailableError as e:
            self.logger.warning("weather_forecast_unavailable", error=str(e), lat=lat, lon=lon)
            return Result.err(e)
        except (KeyError, TypeError, IndexError, AttributeError, ValidationError) as e:
            self.logger.warning("weather_forecast_malformed", error=str(e))
            return Result.err(WeatherUnavailableError(f"Malformed forecast payload: {e}"))

        self.logger.info("weather_forecast_fetched", days=len(forecast))
        return Result.ok(forecast)

    async def geocode_city(self, name: str) -> Result[Location, WeatherUnavailableError]:
        """Resolve a city name to coordinates."""
        if not name.strip():
            return Result.err(InvalidLocationError("City name must not be empty"))

        params = {"name": name.strip(), "count": 1, "language": "en", "format": "json"}
        try:
            data = await self._get_json(self.config.geocoding_url, params)
            results = data.get("results") or []
            if not results:
                raise InvalidLocationError(f"City not found: {name}")
            first = results[0]
            location = Location(
                lat=first["latitude"], lon=first["longitude"], label=first.get("name", name)
            )
        except WeatherUnavailableError as e:
            self.logger.warning("geocoding_failed", error=str(e), city=name)
            return Result.err(e)
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            self.logger.warning("geocoding_malformed", error=str(e), city=name)
            return Result.err(WeatherUnavailableError(f"Malformed geocoding payload: {e}"))

        self.logger.info("city_geocoded", city=name, lat=location.lat, lon=location.lon)
        return Result.ok(location)

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET and decode JSON, translating transport problems into WeatherUnavailableError."""
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise WeatherUnavailableError(f"Weather request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise WeatherUnavailableError(f"Weather request failed: {e}") from e

        if response.status_code == 400:
            # Open-Meteo answers 400 with {"error": true, "reason": ...} for bad coordinates
            raise InvalidLocationError(self._error_reason(response))
        if response.is_error:
            raise WeatherUnavailableError(
                f"Weather service returned HTTP {response.status_code}: "
                f"{self._error_reason(response)}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise WeatherUnavailableError(f"Weather service returned invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise WeatherUnavailableError("Weather service returned an unexpected payload")
        return payload

    @staticmethod
    def _error_reason(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict) and body.get("reason"):
            return str(body["reason"])
        return response.text[:200]

    @staticmethod
    def _parse_daily(daily: dict[str, Any]) -> list[WeatherForecastPoint]:
        points = []
        for index, day in enumerate(daily["time"]):
            high = daily["temperature_2m_max"][index]
            low = daily["temperature_2m_min"][index]
            points.append(
                WeatherForecastPoint(
                    date=day,
                    days_ahead=index,
                    temperature_c=(high + low) / 2,
                    humidity_pct=daily["relative_humidity_2m_mean"][index],
                    pressure_hpa=daily["pressure_msl_mean"][index],
                    wind_kmh=daily["wind_speed_10m_max"][index] or 0.0,
                    precipitation_mm=daily["precipitation_sum"][index] or 0.0,
                    weather_code=daily["weather_code"][index],
                    uv_index=daily["uv_index_max"][index] or 0.0,
                )
            )
        return points
