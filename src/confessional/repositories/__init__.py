# src/confessional/repositories/__init__.py
"""Durable, SQLAlchemy-backed implementations of the store contracts."""

from .confession_repo import SqlConfessionStore
from .metrics_repo import SqlMetricsAggregator

__all__ = ["SqlConfessionStore", "SqlMetricsAggregator"]
