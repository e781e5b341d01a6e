"""
Tests for confidence scoring and risk classification.

Includes property-based checks that confidence stays in [0, 1] and that
risk classification is a monotone function of confidence.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from healthcast.domain.models import RiskLevel
from healthcast.services.scoring import (
    calculate_confidence,
    classify_risk,
    likelihood_from_confidence,
)


class TestCalculateConfidence:
    def test_pattern_strength_is_capped(self):
        # 10/10 would be 1.0, capped to 0.4
        assert calculate_confidence(10, 10, False, 100) == pytest.approx(0.4)

    def test_weather_match_adds_fixed_bonus(self):
        without = calculate_confidence(2, 20, False, 30)
        with_weather = calculate_confidence(2, 20, True, 30)
        assert with_weather - without == pytest.approx(0.3)

    def test_recency_decays_two_points_per_day(self):
        assert calculate_confidence(0, 10, False, 0) == pytest.approx(0.3)
        assert calculate_confidence(0, 10, False, 5) == pytest.approx(0.2)
        assert calculate_confidence(0, 10, False, 15) == pytest.approx(0.0)
        assert calculate_confidence(0, 10, False, 40) == pytest.approx(0.0)

    def test_combined_terms(self):
        # 3/12 = 0.25, weather 0.3, recency 0.3 - 0.04 = 0.26
        assert calculate_confidence(3, 12, True, 2) == pytest.approx(0.81)

    def test_all_terms_at_maximum_reach_one(self):
        assert calculate_confidence(5, 5, True, 0) == pytest.approx(1.0)

    def test_zero_total_entries_means_zero_strength(self):
        assert calculate_confidence(3, 0, False, 30) == 0.0

    def test_future_last_occurrence_counts_as_today(self):
        assert calculate_confidence(0, 10, False, -3) == pytest.approx(0.3)

    @given(
        count=st.integers(min_value=0, max_value=500),
        total=st.integers(min_value=0, max_value=500),
        weather=st.booleans(),
        days_since=st.integers(min_value=-30, max_value=3650),
    )
    def test_confidence_is_always_bounded(self, count, total, weather, days_since):
        confidence = calculate_confidence(count, total, weather, days_since)
        assert 0.0 <= confidence <= 1.0


class TestLikelihood:
    @pytest.mark.parametrize(
        "confidence,expected",
        [(0.0, 0), (0.403, 40), (0.66, 66), (0.814, 81), (1.0, 100)],
    )
    def test_likelihood_is_rounded_percentage(self, confidence, expected):
        assert likelihood_from_confidence(confidence) == expected

    @given(confidence=st.floats(min_value=0.0, max_value=1.0))
    def test_likelihood_in_percentage_range(self, confidence):
        assert 0 <= likelihood_from_confidence(confidence) <= 100


class TestClassifyRisk:
    @pytest.mark.parametrize(
        "confidence,expected",
        [
            (0.95, RiskLevel.HIGH),
            (0.7, RiskLevel.HIGH),
            (0.69, RiskLevel.MEDIUM),
            (0.5, RiskLevel.MEDIUM),
            (0.49, RiskLevel.LOW),
            (0.1, RiskLevel.LOW),
        ],
    )
    def test_thresholds(self, confidence, expected):
        assert classify_risk(confidence, likelihood_from_confidence(confidence)) == expected

    @given(
        low=st.floats(min_value=0.0, max_value=1.0),
        high=st.floats(min_value=0.0, max_value=1.0),
    )
    def test_higher_confidence_never_lowers_risk(self, low, high):
        if low > high:
            low, high = high, low
        order = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]

        low_risk = classify_risk(low, likelihood_from_confidence(low))
        high_risk = classify_risk(high, likelihood_from_confidence(high))
        assert order.index(low_risk) <= order.index(high_risk)
