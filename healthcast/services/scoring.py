"""
Confidence scoring and risk classification.

Confidence is additive, each term capped on its own:
pattern strength (<= 0.4) + weather match (0.3) + recency (<= 0.3).
"""

from healthcast.domain.models import RiskLevel

MAX_PATTERN_STRENGTH = 0.4
WEATHER_MATCH_BONUS = 0.3
MAX_RECENCY_BONUS = 0.3
RECENCY_DECAY_PER_DAY = 0.02

HIGH_RISK_SCORE = 0.7
MEDIUM_RISK_SCORE = 0.5


def clamp_confidence(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def calculate_confidence(
    pattern_occurrence_count: int,
    total_entries: int,
    weather_match: bool,
    days_since_last_occurrence: int,
) -> float:
    """Bounded confidence in [0, 1] for one candidate prediction."""
    if total_entries > 0:
        pattern_strength = min(pattern_occurrence_count / total_entries, MAX_PATTERN_STRENGTH)
    else:
        pattern_strength = 0.0

    weather_bonus = WEATHER_MATCH_BONUS if weather_match else 0.0

    days_since = max(days_since_last_occurrence, 0)
    recency_bonus = max(0.0, MAX_RECENCY_BONUS - RECENCY_DECAY_PER_DAY * days_since)

    return clamp_confidence(pattern_strength + weather_bonus + recency_bonus)


def likelihood_from_confidence(confidence: float) -> int:
    """User-facing percentage; always the same quantity as confidence."""
    return round(clamp_confidence(confidence) * 100)


def classify_risk(confidence: float, likelihood: int) -> RiskLevel:
    score = (clamp_confidence(confidence) + likelihood / 100) / 2

    if score >= HIGH_RISK_SCORE:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
