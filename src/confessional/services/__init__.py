# src/confessional/services/__init__.py
"""Business logic services for the Confessional application."""

from .confessions import ConfessionPayload, ConfessionService, build_confession_service
from .errors import ConfessionError, InvalidInputError, StorageFailureError
from .expiry import ExpirySweeper
from .metrics import CrisisLevel, MetricsAggregator, MetricsSample, RiskLevel, SentimentAggregate
from .responder import SupportResponder
from .store import ConfessionRecord, InMemoryConfessionStore

__all__ = [
    "ConfessionError", "InvalidInputError", "StorageFailureError",
    "ConfessionPayload", "ConfessionService", "build_confession_service",
    "ConfessionRecord", "InMemoryConfessionStore",
    "CrisisLevel", "MetricsAggregator", "MetricsSample", "RiskLevel", "SentimentAggregate",
    "ExpirySweeper",
    "SupportResponder",
]
