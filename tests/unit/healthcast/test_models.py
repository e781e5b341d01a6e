"""
Tests for domain model validation.

Covers:
- Journal record normalization and rejection of malformed input
- Prediction invariants (likelihood identity, bounds, immutability)
- Prediction settings clamping and defaults
"""

from datetime import date

import pytest
from pydantic import ValidationError

from healthcast.domain.models import (
    JournalRecord,
    Prediction,
    PredictionSettings,
    PredictionType,
    RiskLevel,
)


class TestJournalRecord:
    def test_parses_iso_date_and_normalizes_symptoms(self):
        record = JournalRecord.model_validate(
            {"date": "2024-05-06", "symptoms": ["Headache ", "", "  ", "Headache", "Nausea"]}
        )

        assert record.date == date(2024, 5, 6)
        assert record.symptoms == frozenset({"Headache", "Nausea"})

    def test_extra_fields_are_ignored(self):
        record = JournalRecord.model_validate(
            {"date": "2024-05-06", "symptoms": [], "mood": 3, "notes": "rough day"}
        )
        assert record.symptoms == frozenset()

    def test_missing_symptoms_means_none_logged(self):
        assert JournalRecord.model_validate({"date": "2024-05-06"}).symptoms == frozenset()

    @pytest.mark.parametrize(
        "payload",
        [
            {"symptoms": ["Headache"]},
            {"date": "not-a-date", "symptoms": []},
            {"date": "2024-05-06", "symptoms": "Headache"},
            {"date": "2024-05-06", "symptoms": 5},
            {"date": "2024-05-06", "symptoms": ["Headache", 7]},
        ],
    )
    def test_malformed_records_are_rejected(self, payload):
        with pytest.raises(ValidationError):
            JournalRecord.model_validate(payload)


class TestPrediction:
    def _prediction(self, **overrides):
        fields = {
            "symptom": "Headache",
            "risk_level": RiskLevel.MEDIUM,
            "confidence": 0.66,
            "days_ahead": 5,
            "predicted_date": date(2024, 5, 13),
            "likelihood": 66,
            "reasoning": "Based on 4 previous occurrences and pattern analysis",
        }
        fields.update(overrides)
        return Prediction(**fields)

    def test_defaults(self):
        prediction = self._prediction()

        assert prediction.id.startswith("pred-")
        assert prediction.prediction_type == PredictionType.SYMPTOM
        assert prediction.triggers == []
        assert prediction.created_at.tzinfo is not None

    def test_ids_are_unique(self):
        assert self._prediction().id != self._prediction().id

    def test_likelihood_must_match_confidence(self):
        with pytest.raises(ValidationError, match="likelihood"):
            self._prediction(likelihood=70)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"confidence": 1.2, "likelihood": 120},
            {"days_ahead": 8},
            {"days_ahead": -1},
            {"recommendations": ["a", "b", "c", "d", "e"]},
        ],
    )
    def test_bounds_are_enforced(self, overrides):
        with pytest.raises(ValidationError):
            self._prediction(**overrides)

    def test_predictions_are_immutable(self):
        prediction = self._prediction()
        with pytest.raises(ValidationError):
            prediction.confidence = 0.9

    def test_json_round_trip_keeps_dates(self):
        prediction = self._prediction()
        restored = Prediction.model_validate_json(prediction.model_dump_json())

        assert restored.model_dump() == prediction.model_dump()
        assert restored.predicted_date == date(2024, 5, 13)


class TestPredictionSettings:
    def test_defaults(self):
        settings = PredictionSettings()

        assert settings.enabled
        assert settings.notifications_enabled
        assert settings.weather_integration
        assert settings.min_confidence == 0.6
        assert settings.days_to_predict == 3
        assert settings.location is None

    @pytest.mark.parametrize("value,expected", [(-0.5, 0.0), (0.75, 0.75), (1.7, 1.0)])
    def test_min_confidence_is_clamped(self, value, expected):
        assert PredictionSettings(min_confidence=value).min_confidence == expected

    @pytest.mark.parametrize("value,expected", [(0, 1), (5, 5), (30, 7)])
    def test_days_to_predict_is_clamped(self, value, expected):
        assert PredictionSettings(days_to_predict=value).days_to_predict == expected

    def test_location_is_validated(self):
        with pytest.raises(ValidationError):
            PredictionSettings.model_validate({"location": {"lat": 120.0, "lon": 0.0}})

    def test_wrong_types_are_rejected(self):
        with pytest.raises(ValidationError):
            PredictionSettings.model_validate({"enabled": "sometimes"})
