# =============================================================================
# RideSignal - Behavioral Similarity Scorers
# =============================================================================
"""
Pluggable scorers for the behavioral dimension of account comparison.

The engine talks to a `BehaviorScorer`; deployments can swap in their own
implementation. Each method returns a similarity in [0, 100], or None when
either account lacks the data (the factor is then left out).
"""

from __future__ import annotations

from collections import Counter
from typing import Optional, Protocol

import numpy as np

from ridesignal.models.telemetry import AppUsageStats, RidePattern, UsageTime


class BehaviorScorer(Protocol):
    """Interface for behavioral similarity between two accounts."""

    def ride_pattern_similarity(
        self,
        patterns1: Optional[list[RidePattern]],
        patterns2: Optional[list[RidePattern]],
    ) -> Optional[float]: ...

    def timing_similarity(
        self,
        times1: Optional[list[UsageTime]],
        times2: Optional[list[UsageTime]],
    ) -> Optional[float]: ...

    def usage_similarity(
        self,
        usage1: Optional[AppUsageStats],
        usage2: Optional[AppUsageStats],
    ) -> Optional[float]: ...


class NullBehaviorScorer:
    """Scores every behavioral factor as zero evidence."""

    def ride_pattern_similarity(self, patterns1, patterns2) -> Optional[float]:
        return None

    def timing_similarity(self, times1, times2) -> Optional[float]:
        return None

    def usage_similarity(self, usage1, usage2) -> Optional[float]:
        return None


class PatternBehaviorScorer:
    """
    Default scorer built on aggregate ride and session patterns.

    - Ride patterns: weighted Jaccard over (pickup area, dropoff area, hour).
    - Timing: cosine similarity of 7x24 weekday/hour session histograms.
    - App usage: mean relative closeness of numeric stats plus payment
      method equality.
    """

    HOURS_PER_WEEK_SHAPE = (7, 24)

    def ride_pattern_similarity(
        self,
        patterns1: Optional[list[RidePattern]],
        patterns2: Optional[list[RidePattern]],
    ) -> Optional[float]:
        if not patterns1 or not patterns2:
            return None

        counts1: Counter = Counter()
        counts2: Counter = Counter()
        for pattern in patterns1:
            counts1[pattern.key] += pattern.count
        for pattern in patterns2:
            counts2[pattern.key] += pattern.count

        keys = counts1.keys() | counts2.keys()
        intersection = sum(min(counts1[k], counts2[k]) for k in keys)
        union = sum(max(counts1[k], counts2[k]) for k in keys)
        return intersection / union * 100.0 if union else None

    def _histogram(self, times: list[UsageTime]) -> np.ndarray:
        histogram = np.zeros(self.HOURS_PER_WEEK_SHAPE, dtype=float)
        for slot in times:
            histogram[slot.day_of_week, slot.hour] += slot.sessions
        return histogram.ravel()

    def timing_similarity(
        self,
        times1: Optional[list[UsageTime]],
        times2: Optional[list[UsageTime]],
    ) -> Optional[float]:
        if not times1 or not times2:
            return None

        h1, h2 = self._histogram(times1), self._histogram(times2)
        norm = float(np.linalg.norm(h1) * np.linalg.norm(h2))
        if norm == 0.0:
            return 0.0

        cosine = float(np.dot(h1, h2)) / norm
        return float(np.clip(cosine * 100.0, 0.0, 100.0))

    @staticmethod
    def _closeness(a: float, b: float) -> float:
        largest = max(a, b)
        if largest == 0:
            return 100.0
        return (1.0 - abs(a - b) / largest) * 100.0

    def usage_similarity(
        self,
        usage1: Optional[AppUsageStats],
        usage2: Optional[AppUsageStats],
    ) -> Optional[float]:
        if usage1 is None or usage2 is None:
            return None

        scores: list[float] = []
        for field_name in ("sessions_per_day", "avg_session_minutes", "promo_redemptions"):
            v1 = getattr(usage1, field_name)
            v2 = getattr(usage2, field_name)
            if v1 is not None and v2 is not None:
                scores.append(self._closeness(float(v1), float(v2)))

        if usage1.preferred_payment_method and usage2.preferred_payment_method:
            same = (
                usage1.preferred_payment_method.strip().lower()
                == usage2.preferred_payment_method.strip().lower()
            )
            scores.append(100.0 if same else 0.0)

        if not scores:
            return None
        return sum(scores) / len(scores)
