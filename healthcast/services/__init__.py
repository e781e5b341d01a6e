"""
Core services for the prediction engine.

This package contains pattern detection, weather trigger correlation,
confidence scoring, prediction generation and the prediction store.
"""

from .patterns import PatternDetector
from .prediction_engine import PredictionEngine, PredictionGenerationError
from .prediction_store import PredictionStore, PredictionStoreError
from .scoring import calculate_confidence, classify_risk, likelihood_from_confidence
from .sources import (
    InvalidLocationError,
    JournalSource,
    RecommendationLookup,
    Result,
    WeatherProvider,
    WeatherUnavailableError,
)
from .triggers import correlate_weather_triggers

__all__ = [
    "PatternDetector",
    "PredictionEngine",
    "PredictionGenerationError",
    "PredictionStore",
    "PredictionStoreError",
    "Result",
    "JournalSource",
    "WeatherProvider",
    "RecommendationLookup",
    "WeatherUnavailableError",
    "InvalidLocationError",
    "calculate_confidence",
    "classify_risk",
    "likelihood_from_confidence",
    "correlate_weather_triggers",
]
