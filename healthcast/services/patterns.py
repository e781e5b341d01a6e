"""
Temporal pattern detection over a symptom journal.

Looks for two kinds of recurrence per symptom label:
- weekday concentration (e.g. headaches mostly on Mondays)
- day-of-month clustering (e.g. cramps around the 14th)

Both checks run independently, so one symptom can yield two matches.
Detection is a pure, deterministic function of the input records.
"""

import math
import statistics
from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import date

from healthcast.domain.models import JournalRecord, PatternMatch
from healthcast.services.sources import logger

MIN_RECORDS = 7
MIN_OCCURRENCES = 2

# Share of a symptom's occurrences that must fall on its most common weekday
WEEKDAY_SHARE_THRESHOLD = 0.4
# The modal weekday has to recur; a single hit on a weekday is not a pattern
MIN_WEEKDAY_REPEATS = 2

# Population variance of day-of-month below this means roughly +/-5 days
MONTHLY_VARIANCE_THRESHOLD = 25.0
MONTHLY_MIN_OCCURRENCES = 3


def day_of_week(day: date) -> int:
    """Weekday index with 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7


class PatternDetector:
    """Finds weekday and monthly recurrence in dated symptom records."""

    def __init__(
        self,
        min_records: int = MIN_RECORDS,
        weekday_share_threshold: float = WEEKDAY_SHARE_THRESHOLD,
        min_weekday_repeats: int = MIN_WEEKDAY_REPEATS,
        monthly_variance_threshold: float = MONTHLY_VARIANCE_THRESHOLD,
        monthly_min_occurrences: int = MONTHLY_MIN_OCCURRENCES,
    ) -> None:
        self.min_records = min_records
        self.weekday_share_threshold = weekday_share_threshold
        self.min_weekday_repeats = min_weekday_repeats
        self.monthly_variance_threshold = monthly_variance_threshold
        self.monthly_min_occurrences = monthly_min_occurrences
        self.logger = logger.bind(component="pattern_detector")

    def detect(self, records: Sequence[JournalRecord]) -> list[PatternMatch]:
        if len(records) < self.min_records:
            self.logger.debug(
                "insufficient_records_for_patterns",
                records=len(records),
                required=self.min_records,
            )
            return []

        occurrences = self._collect_occurrences(records)

        patterns: list[PatternMatch] = []
        for symptom in sorted(occurrences):
            dates = occurrences[symptom]
            if len(dates) < MIN_OCCURRENCES:
                continue

            weekly = self._weekday_pattern(symptom, dates)
            if weekly:
                patterns.append(weekly)

            monthly = self._monthly_pattern(symptom, dates)
            if monthly:
                patterns.append(monthly)

        self.logger.info(
            "patterns_detected",
            symptoms=len(occurrences),
            patterns=len(patterns),
            weekly=sum(1 for p in patterns if p.day_of_week is not None),
            monthly=sum(1 for p in patterns if p.day_of_month is not None),
        )
        return patterns

    def _collect_occurrences(self, records: Sequence[JournalRecord]) -> dict[str, list[date]]:
        """Occurrence dates per symptom label."""
        occurrences: defaultdict[str, list[date]] = defaultdict(list)
        for record in records:
            for symptom in record.symptoms:
                occurrences[symptom].append(record.date)
        return occurrences

    def _weekday_pattern(self, symptom: str, dates: list[date]) -> PatternMatch | None:
        histogram = Counter(day_of_week(d) for d in dates)
        # Highest count wins, lowest weekday index breaks ties
        mode_day, mode_count = min(histogram.items(), key=lambda item: (-item[1], item[0]))

        required = math.ceil(round(self.weekday_share_threshold * len(dates), 9))
        if mode_count < max(required, self.min_weekday_repeats):
            return None

        return PatternMatch(
            symptom=symptom,
            day_of_week=mode_day,
            occurrence_count=len(dates),
            last_occurrence_date=max(dates),
        )

    def _monthly_pattern(self, symptom: str, dates: list[date]) -> PatternMatch | None:
        if len(dates) < self.monthly_min_occurrences:
            return None

        days_of_month = [d.day for d in dates]
        mean_day = statistics.fmean(days_of_month)
        variance = statistics.pvariance(days_of_month, mu=mean_day)
        if variance >= self.monthly_variance_threshold:
            return None

        return PatternMatch(
            symptom=symptom,
            day_of_month=min(max(math.floor(mean_day + 0.5), 1), 31),
            occurrence_count=len(dates),
            last_occurrence_date=max(dates),
        )
