# src/confessional/schemas/confession.py
"""Confession-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel


class ConfessionCreate(CamelModel):
    """Schema for submitting an encrypted confession."""

    session_id: str = Field(..., description="Opaque token for the writer's ephemeral session")
    ciphertext: str = Field(..., description="Client-side encrypted confession, opaque to the server")
    nonce: str = Field(..., description="Nonce paired with the ciphertext")
    timestamp: datetime | None = Field(None, description="Client submission time (ISO 8601)")


class ConfessionCreated(CamelModel):
    """Schema returned after a confession is stored."""

    id: str
    message: str = "Confession encrypted and stored securely"


class ConfessionResponse(CamelModel):
    """Schema for the encrypted payload returned to a reader."""

    ciphertext: str
    nonce: str
    timestamp: datetime


class ConfessionDeleted(CamelModel):
    """Schema returned after an explicit delete."""

    deleted: bool = True
    message: str = "Confession permanently deleted"
