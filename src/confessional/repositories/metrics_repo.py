"""SQLAlchemy-backed metrics aggregator."""
from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from confessional.db.time import to_db_time, utcnow
from confessional.models.metrics_sample import MetricsSampleRow
from confessional.services.errors import StorageFailureError
from confessional.services.metrics import (
    CRISIS_THRESHOLD,
    CRISIS_WINDOW,
    DAYS_PER_WEEK,
    HOURS_PER_DAY,
    CrisisLevel,
    MetricsSample,
    SentimentAggregate,
    classify_frequency,
)
from confessional.services.store import Clock

__all__ = ["SqlMetricsAggregator"]


class SqlMetricsAggregator:
    """Metrics aggregator persisting samples in the ``metrics_sample`` table.

    Aggregates are computed in SQL, so the fold never loads every sample
    into memory.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock = utcnow,
        crisis_threshold: int = CRISIS_THRESHOLD,
        crisis_window: timedelta = CRISIS_WINDOW,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self.crisis_threshold = crisis_threshold
        self.crisis_window = crisis_window

    def record(self, sample: MetricsSample) -> None:
        row = MetricsSampleRow(
            timestamp=to_db_time(sample.timestamp),
            text_length=sample.text_length,
            hour_of_day=sample.hour_of_day,
            day_of_week=sample.day_of_week,
        )
        with self._session_factory() as session:
            try:
                session.add(row)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageFailureError("Failed to record metrics sample") from exc

    def aggregate(self) -> SentimentAggregate:
        hours = [0] * HOURS_PER_DAY
        weekdays = [0] * DAYS_PER_WEEK
        with self._session_factory() as session:
            try:
                total, total_length = session.execute(
                    select(
                        func.count(MetricsSampleRow.id),
                        func.coalesce(func.sum(MetricsSampleRow.text_length), 0),
                    )
                ).one()
                for hour, count in session.execute(
                    select(MetricsSampleRow.hour_of_day, func.count(MetricsSampleRow.id))
                    .group_by(MetricsSampleRow.hour_of_day)
                ):
                    hours[hour] = count
                for day, count in session.execute(
                    select(MetricsSampleRow.day_of_week, func.count(MetricsSampleRow.id))
                    .group_by(MetricsSampleRow.day_of_week)
                ):
                    weekdays[day] = count
            except SQLAlchemyError as exc:
                raise StorageFailureError("Failed to aggregate metrics") from exc
        return SentimentAggregate.from_counts(int(total), int(total_length), hours, weekdays)

    def recent_frequency(self, window: timedelta) -> int:
        """Count samples with ``now - window <= timestamp <= now``."""
        now = to_db_time(self._clock())
        stmt = select(func.count(MetricsSampleRow.id)).where(
            MetricsSampleRow.timestamp >= now - window,
            MetricsSampleRow.timestamp <= now,
        )
        with self._session_factory() as session:
            try:
                return int(session.execute(stmt).scalar_one())
            except SQLAlchemyError as exc:
                raise StorageFailureError("Failed to count recent metrics") from exc

    def crisis_level(self) -> CrisisLevel:
        return classify_frequency(
            self.recent_frequency(self.crisis_window),
            self.crisis_threshold,
            self.crisis_window,
        )
