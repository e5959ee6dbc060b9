# src/confessional/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .confession import ConfessionCreate, ConfessionCreated, ConfessionDeleted, ConfessionResponse
from .research import CrisisAlert, SentimentReport
from .support import SupportRequest, SupportResponse

__all__ = [
    "ConfessionCreate", "ConfessionCreated", "ConfessionDeleted", "ConfessionResponse",
    "CrisisAlert", "SentimentReport",
    "SupportRequest", "SupportResponse",
]
