# src/confessional/services/confessions.py
"""Confession service facade.

The only entry point the API layer uses. It validates input, assigns
lifecycle timestamps, and composes a confession store with a metrics
aggregator that only ever sees submission metadata.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.orm import Session, sessionmaker

from confessional.core.settings import Settings, settings
from confessional.db.time import as_utc, utcnow
from confessional.services.errors import InvalidInputError, StorageFailureError
from confessional.services.metrics import (
    CrisisLevel,
    MetricsAggregator,
    MetricsSample,
    SentimentAggregate,
)
from confessional.services.store import (
    Clock,
    ConfessionRecord,
    ConfessionStore,
    InMemoryConfessionStore,
)

logger = logging.getLogger(__name__)

CONFESSION_TTL = timedelta(hours=72)
MAX_CIPHERTEXT_LENGTH = 1_000_000
MAX_CLOCK_SKEW = timedelta(minutes=15)


class MetricsRecorder(Protocol):
    """Contract shared by the in-memory and SQL-backed aggregators."""

    def record(self, sample: MetricsSample) -> None: ...

    def aggregate(self) -> SentimentAggregate: ...

    def recent_frequency(self, window: timedelta) -> int: ...

    def crisis_level(self) -> CrisisLevel: ...


@dataclass(frozen=True)
class ConfessionPayload:
    """What a reader gets back: the encrypted blob, verbatim."""

    ciphertext: str
    nonce: str
    timestamp: datetime


class ConfessionService:
    """Create, fetch and delete ephemeral encrypted confessions."""

    def __init__(
        self,
        store: ConfessionStore,
        metrics: MetricsRecorder,
        *,
        clock: Clock = utcnow,
        ttl: timedelta = CONFESSION_TTL,
        delete_on_read: bool = False,
        max_ciphertext_length: int = MAX_CIPHERTEXT_LENGTH,
        max_clock_skew: timedelta = MAX_CLOCK_SKEW,
    ) -> None:
        """Initialize the facade.

        Args:
            store: Backend holding the confessions.
            metrics: Aggregator receiving one anonymous sample per create.
            clock: Source of the current aware UTC time.
            ttl: Lifetime of a confession from its creation time.
            delete_on_read: Remove a confession as part of its first fetch.
            max_ciphertext_length: Largest ciphertext accepted, in characters.
            max_clock_skew: How far a caller timestamp may drift from the
                server clock before it is replaced with server time.
        """
        self.store = store
        self.metrics = metrics
        self._clock = clock
        self.ttl = ttl
        self.delete_on_read = delete_on_read
        self.max_ciphertext_length = max_ciphertext_length
        self.max_clock_skew = max_clock_skew

    def create(
        self,
        session_id: str,
        ciphertext: str,
        nonce: str,
        timestamp: datetime | None = None,
    ) -> str:
        """Store a confession and return its id.

        Raises:
            InvalidInputError: If a required field is empty or the ciphertext
                is too long.
            StorageFailureError: If the store or aggregator cannot write.
        """
        if not session_id or not session_id.strip():
            raise InvalidInputError("sessionId is required")
        if not ciphertext:
            raise InvalidInputError("ciphertext is required")
        if not nonce:
            raise InvalidInputError("nonce is required")
        if len(ciphertext) > self.max_ciphertext_length:
            raise InvalidInputError("ciphertext is too large")

        created_at = self._resolve_created_at(timestamp)
        record = ConfessionRecord(
            session_id=session_id,
            ciphertext=ciphertext,
            nonce=nonce,
            created_at=created_at,
            expires_at=created_at + self.ttl,
        )

        try:
            confession_id = self.store.insert(record)
        except StorageFailureError:
            logger.error("Failed to store confession", exc_info=True)
            raise

        try:
            self.metrics.record(MetricsSample.from_submission(len(ciphertext), created_at))
        except StorageFailureError:
            # The id is never handed out, so take the record back out too.
            logger.error("Failed to record metrics sample; discarding confession", exc_info=True)
            self.store.delete(confession_id)
            raise

        logger.debug("Stored confession of %d characters", len(ciphertext))
        return confession_id

    def fetch(self, confession_id: str) -> ConfessionPayload | None:
        """Return the confession's encrypted payload, or None if it is gone."""
        if self.delete_on_read:
            record = self.store.pop(confession_id)
        else:
            record = self.store.get(confession_id)
            if record is not None:
                self.store.record_read(confession_id)
        if record is None:
            return None
        return ConfessionPayload(
            ciphertext=record.ciphertext,
            nonce=record.nonce,
            timestamp=record.created_at,
        )

    def delete(self, confession_id: str) -> bool:
        """Delete a confession; return whether one was removed."""
        return self.store.delete(confession_id)

    def aggregate(self) -> SentimentAggregate:
        return self.metrics.aggregate()

    def crisis_level(self) -> CrisisLevel:
        return self.metrics.crisis_level()

    def _resolve_created_at(self, timestamp: datetime | None) -> datetime:
        now = self._clock()
        if timestamp is None:
            return now
        candidate = as_utc(timestamp)
        if abs(candidate - now) > self.max_clock_skew:
            logger.debug("Client timestamp outside allowed skew; using server time")
            return now
        return candidate


def build_confession_service(
    config: Settings = settings,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock = utcnow,
) -> ConfessionService:
    """Assemble a service from configuration.

    Args:
        config: Settings selecting the backend and lifecycle parameters.
        session_factory: Session factory for the ``database`` backend;
            defaults to the application's ``SessionLocal``.
        clock: Source of the current aware UTC time.
    """
    store: ConfessionStore
    metrics: MetricsRecorder
    if config.store_backend == "database":
        from confessional.db.session import SessionLocal
        from confessional.repositories import SqlConfessionStore, SqlMetricsAggregator

        factory = session_factory or SessionLocal
        store = SqlConfessionStore(factory, clock=clock)
        metrics = SqlMetricsAggregator(
            factory,
            clock=clock,
            crisis_threshold=config.crisis_threshold,
            crisis_window=config.crisis_window,
        )
    else:
        store = InMemoryConfessionStore(clock=clock, max_records=config.max_live_confessions)
        metrics = MetricsAggregator(
            clock=clock,
            capacity=config.metrics_capacity,
            crisis_threshold=config.crisis_threshold,
            crisis_window=config.crisis_window,
        )

    return ConfessionService(
        store,
        metrics,
        clock=clock,
        ttl=config.confession_ttl,
        delete_on_read=config.delete_on_read,
        max_ciphertext_length=config.max_ciphertext_length,
        max_clock_skew=config.client_clock_skew,
    )
