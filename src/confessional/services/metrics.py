# src/confessional/services/metrics.py
"""Anonymized usage metrics derived from submission metadata only.

Samples record how long a ciphertext was and when it arrived. They carry no
confession id, session id or content, so deleting a confession never touches
its sample and no aggregate can be traced back to a submission.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from threading import Lock
from typing import Final

from confessional.db.time import as_utc, utcnow
from confessional.services.store import Clock

logger = logging.getLogger(__name__)

HOURS_PER_DAY: Final[int] = 24
DAYS_PER_WEEK: Final[int] = 7

# More than this many submissions inside the window flags elevated activity.
CRISIS_THRESHOLD: Final[int] = 10
CRISIS_WINDOW: Final[timedelta] = timedelta(hours=24)


class RiskLevel(str, Enum):
    """Coarse activity level reported by the crisis heuristic."""

    NORMAL = "normal"
    ELEVATED = "elevated"


@dataclass(frozen=True)
class MetricsSample:
    """Metadata captured for one accepted confession."""

    timestamp: datetime
    text_length: int
    hour_of_day: int
    day_of_week: int

    @classmethod
    def from_submission(cls, text_length: int, timestamp: datetime) -> MetricsSample:
        """Derive a sample from the ciphertext length and submission time.

        Hour and weekday are taken in UTC; weekdays run 0 = Sunday to
        6 = Saturday.
        """
        ts = as_utc(timestamp)
        return cls(
            timestamp=ts,
            text_length=text_length,
            hour_of_day=ts.hour,
            day_of_week=(ts.weekday() + 1) % DAYS_PER_WEEK,
        )


@dataclass(frozen=True)
class SentimentAggregate:
    """Totals and histograms over every retained sample."""

    total_count: int
    average_length: float
    hour_histogram: tuple[int, ...]
    weekday_histogram: tuple[int, ...]

    @classmethod
    def from_counts(
        cls,
        total_count: int,
        total_length: int,
        hour_histogram: Iterable[int],
        weekday_histogram: Iterable[int],
    ) -> SentimentAggregate:
        average = total_length / total_count if total_count > 0 else 0.0
        return cls(
            total_count=total_count,
            average_length=float(average),
            hour_histogram=tuple(hour_histogram),
            weekday_histogram=tuple(weekday_histogram),
        )


@dataclass(frozen=True)
class CrisisLevel:
    """Frequency-based activity flag for the trailing window."""

    level: RiskLevel
    frequency: int
    window: timedelta = CRISIS_WINDOW

    @property
    def message(self) -> str:
        if self.level is RiskLevel.ELEVATED:
            return f"Elevated activity detected in the past {_describe_window(self.window)}"
        return "Activity within normal parameters"


def _describe_window(window: timedelta) -> str:
    hours = window.total_seconds() / 3600
    if hours == 1:
        return "hour"
    if hours.is_integer():
        return f"{int(hours)} hours"
    return f"{hours:g} hours"


def classify_frequency(
    frequency: int,
    threshold: int = CRISIS_THRESHOLD,
    window: timedelta = CRISIS_WINDOW,
) -> CrisisLevel:
    """Return ``elevated`` when ``frequency`` is strictly above ``threshold``."""
    level = RiskLevel.ELEVATED if frequency > threshold else RiskLevel.NORMAL
    return CrisisLevel(level=level, frequency=frequency, window=window)


def fold_samples(samples: Iterable[MetricsSample]) -> SentimentAggregate:
    """Fold samples into totals, average length and hour/weekday histograms."""
    hours = [0] * HOURS_PER_DAY
    weekdays = [0] * DAYS_PER_WEEK
    total = 0
    total_length = 0
    for sample in samples:
        total += 1
        total_length += sample.text_length
        hours[sample.hour_of_day] += 1
        weekdays[sample.day_of_week] += 1
    return SentimentAggregate.from_counts(total, total_length, hours, weekdays)


class MetricsAggregator:
    """In-memory, append-only sample log.

    With a positive ``capacity`` the oldest samples are dropped to make room
    for new ones, so ``record`` never fails.
    """

    def __init__(
        self,
        clock: Clock = utcnow,
        capacity: int = 0,
        crisis_threshold: int = CRISIS_THRESHOLD,
        crisis_window: timedelta = CRISIS_WINDOW,
    ) -> None:
        self._clock = clock
        self._samples: deque[MetricsSample] = deque(maxlen=capacity or None)
        self._lock = Lock()
        self.crisis_threshold = crisis_threshold
        self.crisis_window = crisis_window

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def record(self, sample: MetricsSample) -> None:
        with self._lock:
            if self._samples.maxlen is not None and len(self._samples) == self._samples.maxlen:
                logger.debug("Metrics capacity %d reached; dropping oldest sample", self._samples.maxlen)
            self._samples.append(sample)

    def aggregate(self) -> SentimentAggregate:
        with self._lock:
            snapshot = list(self._samples)
        return fold_samples(snapshot)

    def recent_frequency(self, window: timedelta) -> int:
        """Count samples with ``now - window <= timestamp <= now``."""
        now = self._clock()
        start = now - window
        with self._lock:
            return sum(1 for sample in self._samples if start <= sample.timestamp <= now)

    def crisis_level(self) -> CrisisLevel:
        return classify_frequency(
            self.recent_frequency(self.crisis_window),
            self.crisis_threshold,
            self.crisis_window,
        )
