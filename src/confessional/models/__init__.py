# src/confessional/models/__init__.py
"""SQLAlchemy models for the Confessional application."""

from .confession import Confession
from .metrics_sample import MetricsSampleRow

__all__ = ["Confession", "MetricsSampleRow"]
