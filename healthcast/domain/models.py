"""
Domain models for personal health event forecasting.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation and for serializing the persisted prediction
document, but carry no storage or network concerns of their own.
"""

from datetime import UTC, date, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RiskLevel(str, Enum):
    """Discrete urgency bucket shown to the user."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TriggerType(str, Enum):
    """Kinds of evidence cited for a prediction."""

    WEATHER = "weather"
    PATTERN = "pattern"
    SEASONAL = "seasonal"
    CYCLIC = "cyclic"


class PredictionType(str, Enum):
    SYMPTOM = "symptom"
    MOOD = "mood"
    SLEEP = "sleep"
    STRESS = "stress"
    GENERAL = "general"


class GenerationReason(str, Enum):
    """Why a generation run produced the predictions it did."""

    GENERATED = "generated"
    NO_PATTERNS = "no_patterns"
    INSUFFICIENT_DATA = "insufficient_data"
    DISABLED = "disabled"
    FAILED = "failed"


class JournalRecord(BaseModel):
    """One dated journal entry. Fields other than date and symptoms are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    date: date
    symptoms: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("symptoms", mode="before")
    @classmethod
    def normalize_symptoms(cls, v: object) -> frozenset[str]:
        if v is None:
            return frozenset()
        if isinstance(v, str) or not isinstance(v, list | tuple | set | frozenset):
            raise ValueError("symptoms must be a sequence of strings")

        labels: set[str] = set()
        for item in v:
            if not isinstance(item, str):
                raise ValueError("symptom labels must be strings")
            label = item.strip()
            if label:
                labels.add(label)
        return frozenset(labels)


class PatternMatch(BaseModel):
    """A recurring association between a symptom and a weekday or day of month."""

    model_config = ConfigDict(frozen=True)

    symptom: str
    day_of_week: int | None = Field(default=None, ge=0, le=6, description="0 = Sunday")
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    occurrence_count: int = Field(ge=2)
    last_occurrence_date: date


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    label: str | None = None


class WeatherSnapshot(BaseModel):
    """Observed (or forecast) conditions for a single day."""

    model_config = ConfigDict(frozen=True)

    date: date
    temperature_c: float
    humidity_pct: float
    pressure_hpa: float
    precipitation_mm: float = 0.0
    wind_kmh: float = 0.0
    weather_code: int | None = Field(default=None, description="WMO weather interpretation code")
    uv_index: float = 0.0


class WeatherForecastPoint(WeatherSnapshot):
    days_ahead: int = Field(ge=0, description="0 = today")


class TriggerMatch(BaseModel):
    """Weather sensitivity of one historical symptom for the coming day."""

    model_config = ConfigDict(frozen=True)

    symptom: str
    weather_sensitive: bool
    trigger_factors: tuple[str, ...] = ()


class PredictionTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TriggerType
    factor: str
    impact: float = Field(ge=0.0, le=1.0)
    description: str


class Prediction(BaseModel):
    """A risk-scored, explainable forecast of a symptom flare-up."""

    model_config = ConfigDict(frozen=True)  # Immutable once generated

    id: str = Field(default_factory=lambda: f"pred-{uuid4().hex}")
    prediction_type: PredictionType = PredictionType.SYMPTOM
    symptom: str | None = None
    risk_level: RiskLevel
    confidence: float = Field(ge=0.0, le=1.0)
    days_ahead: int = Field(ge=0, le=7)
    predicted_date: date
    likelihood: int = Field(ge=0, le=100, description="Confidence as a user-facing percentage")
    triggers: list[PredictionTrigger] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list, max_length=4)
    reasoning: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def likelihood_matches_confidence(self) -> "Prediction":
        if self.likelihood != round(self.confidence * 100):
            raise ValueError("likelihood must equal round(confidence * 100)")
        return self


class PredictionSettings(BaseModel):
    """User-owned prediction preferences, read by the engine on every run."""

    enabled: bool = True
    notifications_enabled: bool = True
    weather_integration: bool = True
    min_confidence: float = Field(default=0.6, description="Recommended range 0.4-0.9")
    days_to_predict: int = Field(default=3, description="Prediction window in days (1-7)")
    location: Location | None = None

    @field_validator("min_confidence")
    @classmethod
    def clamp_min_confidence(cls, v: float) -> float:
        return min(max(v, 0.0), 1.0)

    @field_validator("days_to_predict")
    @classmethod
    def clamp_days_to_predict(cls, v: int) -> int:
        return min(max(v, 1), 7)


class GenerationReport(BaseModel):
    """Outcome of one generation run, including why the result may be empty."""

    predictions: list[Prediction]
    reason: GenerationReason
    records_used: int = Field(default=0, ge=0)
    records_skipped: int = Field(default=0, ge=0)
    weather_used: bool = False
    persisted: bool = False
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
