"""
Prediction generation: the end-to-end forecasting pipeline.

One run:
1. Validate and order journal records (malformed entries are skipped)
2. Detect weekday and monthly symptom patterns
3. Optionally correlate patterns with tomorrow's weather change
4. Score, filter and explain each candidate
5. Persist the prediction set and hand it back

Recoverable conditions (too little data, weather outage, bad records)
degrade the result; only store failures and invalid settings reach the caller.
"""

import asyncio
import calendar
from collections.abc import Callable, Mapping, Sequence
from datetime import date, timedelta
from typing import Any

from pydantic import ValidationError

from healthcast.config import AppConfig, get_config
from healthcast.domain.models import (
    GenerationReason,
    GenerationReport,
    JournalRecord,
    Location,
    PatternMatch,
    Prediction,
    PredictionSettings,
    PredictionTrigger,
    RiskLevel,
    TriggerMatch,
    TriggerType,
    WeatherForecastPoint,
    WeatherSnapshot,
)
from healthcast.services.patterns import PatternDetector, day_of_week
from healthcast.services.prediction_store import PredictionStore, PredictionStoreError
from healthcast.services.scoring import (
    calculate_confidence,
    classify_risk,
    likelihood_from_confidence,
)
from healthcast.services.sources import (
    JournalSource,
    RecommendationLookup,
    Result,
    WeatherProvider,
    WeatherUnavailableError,
    logger,
)
from healthcast.services.triggers import correlate_weather_triggers

WEEKLY_PATTERN_IMPACT = 0.6
WEATHER_TRIGGER_IMPACT = 0.4
MONTHLY_CYCLE_IMPACT = 0.7

WeatherBundle = tuple[WeatherSnapshot, list[WeatherForecastPoint]]


class PredictionGenerationError(Exception):
    """
    Generation finished but its result could not be persisted.

    The computed predictions are still attached so the caller can show them,
    flagged as unsaved.
    """

    def __init__(self, message: str, report: GenerationReport) -> None:
        super().__init__(message)
        self.report = report

    @property
    def predictions(self) -> list[Prediction]:
        return self.report.predictions


def days_until_weekday(today: date, weekday: int) -> int:
    """Days to the next given weekday (0 = Sunday); today itself rolls to next week."""
    return (weekday - day_of_week(today)) % 7 or 7


def days_until_day_of_month(today: date, day_of_month: int) -> int:
    """Days to the next calendar day with that number, clamped to short months."""
    this_month_last = calendar.monthrange(today.year, today.month)[1]
    target = today.replace(day=min(day_of_month, this_month_last))
    if target >= today:
        return (target - today).days

    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    next_month_last = calendar.monthrange(year, month)[1]
    return (date(year, month, min(day_of_month, next_month_last)) - today).days


class PredictionEngine:
    """
    Orchestrates pattern detection, weather correlation and scoring.

    Callers own one engine and one store per user session; nothing here is global.
    """

    def __init__(
        self,
        store: PredictionStore,
        recommendations: RecommendationLookup,
        weather: WeatherProvider | None = None,
        config: AppConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.recommendations = recommendations
        self.weather = weather
        self.config = config or get_config()
        self._today = today
        self.logger = logger.bind(component="prediction_engine")

        engine_config = self.config.engine
        self.detector = PatternDetector(
            min_records=engine_config.min_records,
            weekday_share_threshold=engine_config.weekday_share_threshold,
            monthly_variance_threshold=engine_config.monthly_variance_threshold,
            monthly_min_occurrences=engine_config.monthly_min_occurrences,
        )

    async def generate(
        self,
        records: Sequence[Any],
        settings: PredictionSettings | Mapping[str, Any] | None = None,
    ) -> list[Prediction]:
        """Generate, persist and return predictions for the given journal records."""
        report = await self.generate_report(records, settings)
        return report.predictions

    async def generate_from_source(
        self,
        journal: JournalSource,
        settings: PredictionSettings | Mapping[str, Any] | None = None,
    ) -> GenerationReport:
        return await self.generate_report(journal.fetch_records(), settings)

    async def generate_report(
        self,
        records: Sequence[Any],
        settings: PredictionSettings | Mapping[str, Any] | None = None,
    ) -> GenerationReport:
        """
        Same as ``generate`` but also says why the result looks the way it does.

        Raises:
            PredictionGenerationError: predictions were computed but not saved.
            pydantic.ValidationError: ``settings`` has the wrong shape.
        """
        resolved = self._resolve_settings(settings)

        if not resolved.enabled:
            self.logger.info("prediction_generation_skipped", reason="disabled")
            return GenerationReport(predictions=[], reason=GenerationReason.DISABLED)

        if len(records) < self.config.engine.min_records:
            self.logger.info(
                "prediction_generation_skipped",
                reason="insufficient_data",
                records=len(records),
            )
            return GenerationReport(predictions=[], reason=GenerationReason.INSUFFICIENT_DATA)

        try:
            report = await self._run(records, resolved)
        except Exception as e:
            self.logger.exception("prediction_generation_failed", error=str(e))
            return GenerationReport(predictions=[], reason=GenerationReason.FAILED)

        if report.reason == GenerationReason.INSUFFICIENT_DATA:
            return report

        try:
            self.store.save(report.predictions)
        except PredictionStoreError as e:
            self.logger.error(
                "prediction_persistence_failed", error=str(e), predictions=len(report.predictions)
            )
            raise PredictionGenerationError(
                f"Predictions were generated but not saved: {e}", report
            ) from e

        return report.model_copy(update={"persisted": True})

    def _resolve_settings(
        self, settings: PredictionSettings | Mapping[str, Any] | None
    ) -> PredictionSettings:
        if settings is None:
            return self.store.get_settings()
        if isinstance(settings, PredictionSettings):
            return settings
        return PredictionSettings.model_validate(settings)

    async def _run(self, records: Sequence[Any], settings: PredictionSettings) -> GenerationReport:
        valid_records, skipped = self._validate_records(records)

        if len(valid_records) < self.config.engine.min_records:
            self.logger.info(
                "prediction_generation_skipped",
                reason="insufficient_valid_records",
                valid_records=len(valid_records),
                skipped_records=skipped,
            )
            return GenerationReport(
                predictions=[],
                reason=GenerationReason.INSUFFICIENT_DATA,
                records_used=len(valid_records),
                records_skipped=skipped,
            )

        ordered = sorted(valid_records, key=lambda r: r.date, reverse=True)
        patterns = self.detector.detect(ordered)

        triggers: list[TriggerMatch] = []
        if settings.weather_integration and patterns:
            triggers = await self._weather_triggers(ordered, settings.location)

        today = self._today()
        predictions = self._predict(patterns, triggers, len(ordered), settings, today)
        predictions.sort(key=lambda p: (p.days_ahead, -p.confidence))

        self.logger.info(
            "predictions_generated",
            predictions=len(predictions),
            patterns=len(patterns),
            records_used=len(ordered),
            records_skipped=skipped,
            weather_used=bool(triggers),
            high_risk=sum(1 for p in predictions if p.risk_level == RiskLevel.HIGH),
        )

        return GenerationReport(
            predictions=predictions,
            reason=GenerationReason.GENERATED if predictions else GenerationReason.NO_PATTERNS,
            records_used=len(ordered),
            records_skipped=skipped,
            weather_used=bool(triggers),
        )

    def _validate_records(self, records: Sequence[Any]) -> tuple[list[JournalRecord], int]:
        valid: list[JournalRecord] = []
        skipped = 0
        for raw in records:
            if isinstance(raw, JournalRecord):
                valid.append(raw)
                continue
            try:
                valid.append(JournalRecord.model_validate(raw))
            except ValidationError:
                skipped += 1

        if skipped:
            # One warning per run, not per record
            self.logger.warning("malformed_records_skipped", skipped=skipped, valid=len(valid))
        return valid, skipped

    async def _weather_triggers(
        self, records: Sequence[JournalRecord], location: Location | None
    ) -> list[TriggerMatch]:
        result = await self._fetch_weather(location or self.config.weather.default_location)
        if result.is_err():
            # Weather is optional enrichment; fall back to pattern-only scoring
            return []

        current, forecast = result.unwrap()
        symptoms = {symptom for record in records for symptom in record.symptoms}
        return correlate_weather_triggers(current, forecast, symptoms)

    async def _fetch_weather(
        self, location: Location
    ) -> Result[WeatherBundle, WeatherUnavailableError]:
        """Fetch current conditions and forecast under one bounded timeout."""
        if self.weather is None:
            self.logger.warning("weather_provider_missing")
            return Result.err(WeatherUnavailableError("No weather provider configured"))

        timeout = self.config.weather.timeout_seconds
        try:
            current_result, forecast_result = await asyncio.wait_for(
                self._fetch_both(self.weather, location), timeout=timeout
            )
        except TimeoutError:
            self.logger.warning("weather_fetch_timeout", timeout_seconds=timeout)
            return Result.err(WeatherUnavailableError(f"Weather fetch timed out after {timeout}s"))
        except Exception as e:
            self.logger.warning("weather_fetch_failed", error=str(e), provider_raised=True)
            return Result.err(WeatherUnavailableError(str(e)))

        for partial in (current_result, forecast_result):
            if partial.is_err():
                error = partial.unwrap_err()
                self.logger.warning(
                    "weather_fetch_failed",
                    error=str(error),
                    error_type=type(error).__name__,
                    provider=getattr(self.weather, "provider_name", type(self.weather).__name__),
                )
                return Result.err(error)

        return Result.ok((current_result.unwrap(), forecast_result.unwrap()))

    @staticmethod
    async def _fetch_both(
        weather: WeatherProvider, location: Location
    ) -> tuple[
        Result[WeatherSnapshot, WeatherUnavailableError],
        Result[list[WeatherForecastPoint], WeatherUnavailableError],
    ]:
        """Run both provider calls; if one raises, the other is cancelled."""
        async with asyncio.TaskGroup() as task_group:
            current_task = task_group.create_task(
                weather.fetch_current(location.lat, location.lon)
            )
            forecast_task = task_group.create_task(
                weather.fetch_forecast(location.lat, location.lon)
            )
        return current_task.result(), forecast_task.result()

    def _predict(
        self,
        patterns: Sequence[PatternMatch],
        triggers: Sequence[TriggerMatch],
        total_entries: int,
        settings: PredictionSettings,
        today: date,
    ) -> list[Prediction]:
        trigger_by_symptom = {t.symptom: t for t in triggers}
        # Day-of-week wins over day-of-month for the same symptom
        weekly_symptoms = {p.symptom for p in patterns if p.day_of_week is not None}

        predictions: list[Prediction] = []
        for pattern in patterns:
            if pattern.day_of_week is not None:
                prediction = self._weekly_prediction(
                    pattern,
                    days_until_weekday(today, pattern.day_of_week),
                    trigger_by_symptom.get(pattern.symptom),
                    total_entries,
                    settings,
                    today,
                )
            elif pattern.day_of_month is not None and pattern.symptom not in weekly_symptoms:
                prediction = self._monthly_prediction(
                    pattern,
                    pattern.day_of_month,
                    days_until_day_of_month(today, pattern.day_of_month),
                    total_entries,
                    settings,
                    today,
                )
            else:
                continue

            if prediction is not None:
                predictions.append(prediction)
        return predictions

    def _weekly_prediction(
        self,
        pattern: PatternMatch,
        days_ahead: int,
        trigger: TriggerMatch | None,
        total_entries: int,
        settings: PredictionSettings,
        today: date,
    ) -> Prediction | None:
        if days_ahead > settings.days_to_predict:
            return None

        weather_match = trigger is not None and trigger.weather_sensitive
        confidence = calculate_confidence(
            pattern.occurrence_count,
            total_entries,
            weather_match,
            (today - pattern.last_occurrence_date).days,
        )
        if confidence < settings.min_confidence:
            self._log_discard(pattern, confidence, settings)
            return None

        prediction_triggers = [
            PredictionTrigger(
                type=TriggerType.PATTERN,
                factor="Weekly pattern",
                impact=WEEKLY_PATTERN_IMPACT,
                description=f"{pattern.symptom} often occurs on this day of the week",
            )
        ]
        if trigger is not None and weather_match:
            prediction_triggers.append(
                PredictionTrigger(
                    type=TriggerType.WEATHER,
                    factor=", ".join(trigger.trigger_factors),
                    impact=WEATHER_TRIGGER_IMPACT,
                    description="Weather conditions may trigger symptoms",
                )
            )

        return self._build_prediction(
            pattern,
            confidence,
            days_ahead,
            today,
            prediction_triggers,
            reasoning=(
                f"Based on {pattern.occurrence_count} previous occurrences and pattern analysis"
            ),
        )

    def _monthly_prediction(
        self,
        pattern: PatternMatch,
        day_of_month: int,
        days_ahead: int,
        total_entries: int,
        settings: PredictionSettings,
        today: date,
    ) -> Prediction | None:
        if days_ahead <= 0 or days_ahead > settings.days_to_predict:
            return None

        # Monthly patterns are scored without weather, even when a trigger exists
        confidence = calculate_confidence(
            pattern.occurrence_count,
            total_entries,
            False,
            (today - pattern.last_occurrence_date).days,
        )
        if confidence < settings.min_confidence:
            self._log_discard(pattern, confidence, settings)
            return None

        return self._build_prediction(
            pattern,
            confidence,
            days_ahead,
            today,
            [
                PredictionTrigger(
                    type=TriggerType.CYCLIC,
                    factor="Monthly cycle",
                    impact=MONTHLY_CYCLE_IMPACT,
                    description=(
                        f"{pattern.symptom} tends to occur around day "
                        f"{day_of_month} of the month"
                    ),
                )
            ],
            reasoning=(
                f"Based on consistent monthly timing across "
                f"{pattern.occurrence_count} previous occurrences"
            ),
        )

    def _build_prediction(
        self,
        pattern: PatternMatch,
        confidence: float,
        days_ahead: int,
        today: date,
        triggers: list[PredictionTrigger],
        reasoning: str,
    ) -> Prediction:
        likelihood = likelihood_from_confidence(confidence)
        limit = self.config.engine.max_recommendations
        return Prediction(
            symptom=pattern.symptom,
            risk_level=classify_risk(confidence, likelihood),
            confidence=confidence,
            days_ahead=days_ahead,
            predicted_date=today + timedelta(days=days_ahead),
            likelihood=likelihood,
            triggers=triggers,
            recommendations=list(self.recommendations.recommendations_for(pattern.symptom))[:limit],
            reasoning=reasoning,
        )

    def _log_discard(
        self, pattern: PatternMatch, confidence: float, settings: PredictionSettings
    ) -> None:
        self.logger.debug(
            "prediction_candidate_discarded",
            symptom=pattern.symptom,
            confidence=round(confidence, 3),
            min_confidence=settings.min_confidence,
        )
