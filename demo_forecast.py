"""
End-to-end demo of the health prediction pipeline.

This script exercises:
1. Configuration loading and validation
2. Pattern detection on a synthetic journal
3. Live weather from Open-Meteo (tolerates being offline)
4. Prediction generation, persistence and lifecycle queries
5. Degraded mode when the weather provider fails

Run with: uv run python demo_forecast.py
Set JOURNAL_PATH to a JSON journal file to forecast from real entries.
"""

import asyncio
import os
from datetime import date, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.journal.json_file import JsonFileJournalSource
from adapters.recommendations.prevention_table import PreventionTableLookup
from adapters.weather.open_meteo import OpenMeteoWeatherProvider, describe_weather_code
from healthcast.config import configure_logging, get_config, print_config_summary, validate_config
from healthcast.domain.models import (
    JournalRecord,
    Prediction,
    PredictionSettings,
    WeatherForecastPoint,
    WeatherSnapshot,
)
from healthcast.services.patterns import PatternDetector
from healthcast.services.prediction_engine import PredictionEngine
from healthcast.services.prediction_store import PredictionStore
from healthcast.services.sources import Result, WeatherUnavailableError

console = Console()

CurrentResult = Result[WeatherSnapshot, WeatherUnavailableError]
ForecastResult = Result[list[WeatherForecastPoint], WeatherUnavailableError]


def synthetic_journal(today: date, weeks: int = 6) -> list[JournalRecord]:
    """Daily entries with Monday headaches and fatigue around the 15th."""
    records = []
    for offset in range(1, weeks * 7 + 1):
        day = today - timedelta(days=offset)
        symptoms = []
        if day.weekday() == 0:
            symptoms.append("Headache")
        if 13 <= day.day <= 16:
            symptoms.append("Fatigue")
        records.append(JournalRecord(date=day, symptoms=symptoms))
    return records


class StormFrontWeather:
    """Deterministic provider: a sharp pressure drop arrives tomorrow."""

    provider_name = "storm-front"

    async def fetch_current(self, lat: float, lon: float) -> CurrentResult:
        return Result.ok(
            WeatherSnapshot(
                date=date.today(), temperature_c=18.0, humidity_pct=55.0, pressure_hpa=1018.0
            )
        )

    async def fetch_forecast(self, lat: float, lon: float) -> ForecastResult:
        return Result.ok(
            [
                WeatherForecastPoint(
                    date=date.today() + timedelta(days=i),
                    days_ahead=i,
                    temperature_c=18.0 - 2 * i,
                    humidity_pct=55.0 + 10 * i,
                    pressure_hpa=1018.0 - 8 * i,
                )
                for i in range(7)
            ]
        )


class OfflineWeather:
    provider_name = "offline"

    async def fetch_current(self, lat: float, lon: float) -> CurrentResult:
        return Result.err(WeatherUnavailableError("network unreachable"))

    async def fetch_forecast(self, lat: float, lon: float) -> ForecastResult:
        return Result.err(WeatherUnavailableError("network unreachable"))


def render_predictions(title: str, predictions: list[Prediction]) -> None:
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Symptom", style="magenta")
    table.add_column("Risk", style="white")
    table.add_column("Likelihood", style="green")
    table.add_column("Triggers", style="yellow")

    risk_style = {"high": "bold red", "medium": "yellow", "low": "green"}
    for prediction in predictions:
        risk = prediction.risk_level.value
        table.add_row(
            f"{prediction.predicted_date} (+{prediction.days_ahead}d)",
            prediction.symptom or "-",
            f"[{risk_style[risk]}]{risk.upper()}[/]",
            f"{prediction.likelihood}%",
            ", ".join(t.factor for t in prediction.triggers),
        )
    console.print(table)


async def check_configuration() -> bool:
    console.print(Panel("🔧 Checking Configuration", style="blue"))
    try:
        validate_config()
        print_config_summary()
        return True
    except Exception as e:
        console.print(f"❌ Configuration check failed: {e}", style="red")
        return False


async def check_pattern_detection() -> bool:
    console.print(Panel("🔍 Checking Pattern Detection", style="blue"))
    records = synthetic_journal(date.today())
    patterns = PatternDetector().detect(records)

    table = Table(title=f"Patterns in {len(records)} journal entries")
    table.add_column("Symptom", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Position", style="green")
    table.add_column("Occurrences", style="yellow")

    weekdays = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    for pattern in patterns:
        if pattern.day_of_week is not None:
            kind, position = "weekly", weekdays[pattern.day_of_week]
        else:
            kind, position = "monthly", f"day {pattern.day_of_month}"
        table.add_row(pattern.symptom, kind, position, str(pattern.occurrence_count))

    console.print(table)
    return bool(patterns)


async def check_live_weather() -> bool:
    console.print(Panel("🌦️ Checking Live Weather (Open-Meteo)", style="blue"))
    config = get_config()
    provider = OpenMeteoWeatherProvider(config.weather)
    location = config.weather.default_location

    current = await provider.fetch_current(location.lat, location.lon)
    if current.is_err():
        console.print(f"⚠️  Weather unavailable: {current.unwrap_err()}", style="yellow")
        console.print("Predictions will fall back to pattern-only scoring", style="yellow")
        return True

    snapshot = current.unwrap()
    console.print(
        f"✅ {location.label}: {snapshot.temperature_c:.1f}°C, "
        f"{snapshot.pressure_hpa:.0f} hPa, {describe_weather_code(snapshot.weather_code)}",
        style="green",
    )
    return True


async def check_generation() -> bool:
    console.print(Panel("📈 Checking Prediction Generation", style="blue"))
    today = date.today()
    store = PredictionStore.from_config(get_config().storage, today=lambda: today)
    engine = PredictionEngine(
        store=store,
        recommendations=PreventionTableLookup(),
        weather=StormFrontWeather(),
        today=lambda: today,
    )

    journal_path = os.getenv("JOURNAL_PATH")
    settings = PredictionSettings(min_confidence=0.4, days_to_predict=7)
    if journal_path:
        report = await engine.generate_from_source(JsonFileJournalSource(journal_path), settings)
    else:
        report = await engine.generate_report(synthetic_journal(today), settings)

    console.print(
        f"Reason: {report.reason.value} | records used: {report.records_used} | "
        f"weather used: {report.weather_used} | persisted: {report.persisted}"
    )
    render_predictions("Upcoming flare-ups", report.predictions)

    for prediction in store.get_high_risk():
        console.print(f"\n🚨 {prediction.symptom} on {prediction.predicted_date}", style="red")
        console.print(f"  {prediction.reasoning}")
        for advice in prediction.recommendations:
            console.print(f"  • {advice}")

    return report.persisted


async def check_degraded_weather() -> bool:
    console.print(Panel("🛡️ Checking Degraded Weather Mode", style="blue"))
    today = date.today()
    engine = PredictionEngine(
        store=PredictionStore(today=lambda: today),
        recommendations=PreventionTableLookup(),
        weather=OfflineWeather(),
        today=lambda: today,
    )
    predictions = await engine.generate(
        synthetic_journal(today), PredictionSettings(min_confidence=0.4, days_to_predict=7)
    )
    weather_triggers = [t for p in predictions for t in p.triggers if t.type.value == "weather"]
    render_predictions("Pattern-only predictions", predictions)
    return not weather_triggers


async def run_all_checks() -> None:
    console.print(Panel("🧪 Health Forecast - Pipeline Demo", style="bold blue"))
    configure_logging(get_config().logging)

    checks = [
        ("Configuration", check_configuration),
        ("Pattern Detection", check_pattern_detection),
        ("Live Weather", check_live_weather),
        ("Prediction Generation", check_generation),
        ("Degraded Weather", check_degraded_weather),
    ]

    results = []
    for name, check in checks:
        console.print(f"\n{'=' * 60}")
        try:
            results.append((name, await check()))
        except KeyboardInterrupt:
            console.print("\n⏹️  Demo interrupted by user", style="yellow")
            break
        except Exception as e:
            console.print(f"❌ {name} failed with exception: {e}", style="red")
            results.append((name, False))

    console.print(f"\n{'=' * 60}")
    summary_table = Table(title="Summary")
    summary_table.add_column("Check", style="cyan")
    summary_table.add_column("Result", style="white")

    passed = 0
    for name, ok in results:
        summary_table.add_row(name, "✅ PASSED" if ok else "❌ FAILED")
        passed += int(ok)

    console.print(summary_table)
    console.print(f"\n🎯 Results: {passed}/{len(results)} checks passed")


if __name__ == "__main__":
    try:
        asyncio.run(run_all_checks())
    except KeyboardInterrupt:
        console.print("\n👋 Demo stopped by user", style="yellow")
