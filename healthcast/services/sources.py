"""
Boundary contracts for the prediction core.

Key patterns:
- Protocol-based dependency injection for every external collaborator
- Generic Result type for expected failures (weather outages, bad locations)
- Structured logging configured once for the whole package
"""

from collections.abc import Sequence
from typing import Any, Generic, Protocol

import structlog
from typing_extensions import TypeVar

from healthcast.domain.models import Location, WeatherForecastPoint, WeatherSnapshot

# Configure structured logging (production-ready observability)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException, default=Exception)


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    Weather providers return one of these so the engine branches on failure
    instead of relying on exceptions crossing module boundaries.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


class WeatherUnavailableError(Exception):
    """Weather provider could not supply data (network, HTTP or payload failure)."""


class InvalidLocationError(WeatherUnavailableError):
    """The requested coordinates or place name cannot be resolved."""


class JournalSource(Protocol):
    """
    Supplies the user's journal.

    Records are returned raw (``{"date": "2024-05-06", "symptoms": [...]}``)
    and validated by the engine so a single malformed entry never poisons a run.
    """

    def fetch_records(self) -> Sequence[Any]: ...


class WeatherProvider(Protocol):
    """
    Supplies current conditions and a multi-day forecast.

    Implementations must not raise for expected failures; they return
    ``Result.err(WeatherUnavailableError(...))`` instead.
    """

    provider_name: str

    async def fetch_current(
        self, lat: float, lon: float
    ) -> Result[WeatherSnapshot, WeatherUnavailableError]: ...

    async def fetch_forecast(
        self, lat: float, lon: float
    ) -> Result[list[WeatherForecastPoint], WeatherUnavailableError]: ...


class RecommendationLookup(Protocol):
    """Preventive advice keyed by symptom label, with a non-empty generic fallback."""

    def recommendations_for(self, symptom: str) -> list[str]: ...


class Geocoder(Protocol):
    async def geocode_city(self, name: str) -> Result[Location, WeatherUnavailableError]: ...
