"""
Weather trigger correlation.

Compares current conditions with tomorrow's forecast and flags which
historical symptoms are likely to react to the coming change.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from healthcast.domain.models import TriggerMatch, WeatherForecastPoint, WeatherSnapshot
from healthcast.services.sources import logger

PRESSURE_DROP_THRESHOLD_HPA = 5.0
TEMPERATURE_CHANGE_THRESHOLD_C = 10.0
HUMIDITY_CHANGE_THRESHOLD_PCT = 20.0

# Symptom labels containing one of these are treated as pressure sensitive
PRESSURE_SENSITIVE_KEYWORDS: tuple[str, ...] = ("headache", "migraine")

PRESSURE_DROP = "pressure drop"
TEMPERATURE_CHANGE = "temperature change"
HUMIDITY_CHANGE = "humidity change"


@dataclass(frozen=True)
class WeatherChanges:
    """Day-over-day weather deltas between now and tomorrow."""

    pressure_drop: float = 0.0
    temperature_change: float = 0.0
    humidity_change: float = 0.0


def compute_weather_changes(
    current: WeatherSnapshot, forecast: Sequence[WeatherForecastPoint]
) -> WeatherChanges:
    """Deltas against the forecast point one day ahead; all zero when it is missing."""
    tomorrow = next((point for point in forecast if point.days_ahead == 1), None)
    if tomorrow is None:
        return WeatherChanges()

    return WeatherChanges(
        pressure_drop=current.pressure_hpa - tomorrow.pressure_hpa,
        temperature_change=tomorrow.temperature_c - current.temperature_c,
        humidity_change=tomorrow.humidity_pct - current.humidity_pct,
    )


def is_pressure_sensitive(symptom: str) -> bool:
    label = symptom.lower()
    return any(keyword in label for keyword in PRESSURE_SENSITIVE_KEYWORDS)


def trigger_factors_for(symptom: str, changes: WeatherChanges) -> tuple[str, ...]:
    factors: list[str] = []
    if is_pressure_sensitive(symptom) and changes.pressure_drop > PRESSURE_DROP_THRESHOLD_HPA:
        factors.append(PRESSURE_DROP)
    if abs(changes.temperature_change) > TEMPERATURE_CHANGE_THRESHOLD_C:
        factors.append(TEMPERATURE_CHANGE)
    if abs(changes.humidity_change) > HUMIDITY_CHANGE_THRESHOLD_PCT:
        factors.append(HUMIDITY_CHANGE)
    return tuple(factors)


def correlate_weather_triggers(
    current: WeatherSnapshot | None,
    forecast: Sequence[WeatherForecastPoint],
    symptoms: Iterable[str],
) -> list[TriggerMatch]:
    """
    Produce one TriggerMatch per distinct historical symptom.

    Pure function over the supplied snapshots. Without current conditions
    there is nothing to compare against, so the match set is empty.
    """
    if current is None:
        return []

    changes = compute_weather_changes(current, forecast)
    matches = []
    for symptom in sorted(set(symptoms)):
        factors = trigger_factors_for(symptom, changes)
        matches.append(
            TriggerMatch(symptom=symptom, weather_sensitive=bool(factors), trigger_factors=factors)
        )

    logger.debug(
        "weather_triggers_correlated",
        pressure_drop=round(changes.pressure_drop, 2),
        temperature_change=round(changes.temperature_change, 2),
        humidity_change=round(changes.humidity_change, 2),
        sensitive_symptoms=[m.symptom for m in matches if m.weather_sensitive],
    )
    return matches
