# src/confessional/schemas/research.py
"""Schemas for the anonymized researcher dashboard."""

from pydantic import Field

from confessional.services.metrics import CrisisLevel, RiskLevel, SentimentAggregate

from .common import CamelModel


def _nonzero_buckets(histogram: tuple[int, ...]) -> dict[str, int]:
    return {str(bucket): count for bucket, count in enumerate(histogram) if count}


class SentimentReport(CamelModel):
    """Aggregate submission statistics; no content, ids or sessions."""

    total_confessions: int
    average_length: float
    time_distribution: dict[str, int] = Field(
        default_factory=dict,
        description="Submissions per UTC hour (0-23); empty hours are omitted",
    )
    weekday_distribution: dict[str, int] = Field(
        default_factory=dict,
        description="Submissions per weekday (0 = Sunday); empty days are omitted",
    )

    @classmethod
    def from_aggregate(cls, aggregate: SentimentAggregate) -> "SentimentReport":
        return cls(
            total_confessions=aggregate.total_count,
            average_length=aggregate.average_length,
            time_distribution=_nonzero_buckets(aggregate.hour_histogram),
            weekday_distribution=_nonzero_buckets(aggregate.weekday_histogram),
        )


class CrisisAlert(CamelModel):
    """Frequency-based activity flag for the trailing 24 hours."""

    risk_level: RiskLevel
    frequency: int
    message: str

    @classmethod
    def from_level(cls, crisis: CrisisLevel) -> "CrisisAlert":
        return cls(risk_level=crisis.level, frequency=crisis.frequency, message=crisis.message)
