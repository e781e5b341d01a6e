"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- User prediction preferences are NOT configuration; they live in the store
"""

import logging
import os
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from healthcast.domain.models import Location

# Load environment variables from .env file
load_dotenv()


class WeatherConfig(BaseModel):
    """Weather provider configuration."""

    base_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast", description="Forecast endpoint"
    )
    geocoding_url: str = Field(
        default="https://geocoding-api.open-meteo.com/v1/search",
        description="City name to coordinates endpoint",
    )
    timeout_seconds: float = Field(
        default=8.0, gt=0.0, le=30.0, description="Upper bound on a whole weather fetch"
    )
    forecast_days: int = Field(default=7, ge=2, le=16, description="Days of daily forecast")
    default_location: Location = Field(
        default_factory=lambda: Location(lat=40.7128, lon=-74.0060, label="New York"),
        description="Used when the user has not set a location",
    )


class EngineConfig(BaseModel):
    """Tunable detector constants, kept here to ease recalibration."""

    min_records: int = Field(default=7, ge=1, description="Records needed before predicting")
    weekday_share_threshold: float = Field(
        default=0.4, gt=0.0, le=1.0, description="Share of occurrences on the modal weekday"
    )
    monthly_variance_threshold: float = Field(
        default=25.0, gt=0.0, description="Max day-of-month variance for a monthly pattern"
    )
    monthly_min_occurrences: int = Field(default=3, ge=2)
    max_recommendations: int = Field(default=4, ge=1, le=4)


class StorageConfig(BaseModel):
    path: str = Field(
        default="./data/predictions.json", description="Prediction + settings document"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    weather_config = WeatherConfig(
        base_url=os.getenv("WEATHER_BASE_URL", "https://api.open-meteo.com/v1/forecast"),
        geocoding_url=os.getenv(
            "WEATHER_GEOCODING_URL", "https://geocoding-api.open-meteo.com/v1/search"
        ),
        timeout_seconds=float(os.getenv("WEATHER_TIMEOUT_SECONDS", "8.0")),
        default_location=Location(
            lat=float(os.getenv("DEFAULT_LOCATION_LAT", "40.7128")),
            lon=float(os.getenv("DEFAULT_LOCATION_LON", "-74.0060")),
            label=os.getenv("DEFAULT_LOCATION_LABEL", "New York"),
        ),
    )

    engine_config = EngineConfig(
        weekday_share_threshold=float(os.getenv("WEEKDAY_SHARE_THRESHOLD", "0.4")),
        monthly_variance_threshold=float(os.getenv("MONTHLY_VARIANCE_THRESHOLD", "25.0")),
    )

    storage_config = StorageConfig(
        path=os.getenv("PREDICTION_STORE_PATH", "./data/predictions.json"),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        weather=weather_config,
        engine=engine_config,
        storage=storage_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def configure_logging(config: LoggingConfig) -> None:
    """Apply level and renderer choice on top of the package's structlog setup."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, config.level))
    logging.getLogger().setLevel(getattr(logging, config.level))

    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
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
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"✅ Configuration loaded for {config.environment} environment")
        print(f"✅ Weather timeout bounded at {config.weather.timeout_seconds}s")
    except Exception as e:
        print(f"❌ Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\n🔧 CONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\n🌦️ WEATHER CONFIGURATION")
    print(f"Forecast endpoint: {config.weather.base_url}")
    print(f"Timeout: {config.weather.timeout_seconds}s")
    location = config.weather.default_location
    print(f"Default location: {location.label} ({location.lat}, {location.lon})")

    print("\n📈 ENGINE CONFIGURATION")
    print(f"Minimum records: {config.engine.min_records}")
    print(f"Weekday share threshold: {config.engine.weekday_share_threshold:.0%}")
    print(f"Monthly variance threshold: {config.engine.monthly_variance_threshold}")

    print("\n💾 STORAGE")
    print(f"Document: {config.storage.path}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
