# src/confessional/schemas/support.py
"""Schemas for the supportive AI responder."""

from pydantic import Field

from .common import CamelModel


class SupportRequest(CamelModel):
    """Request for a supportive reply; confession content is never sent."""

    confession_id: str | None = Field(None, description="Confession the reply relates to")
    session_id: str | None = Field(None, description="Writer's ephemeral session")


class SupportResponse(CamelModel):
    """A short, non-judgmental acknowledgement."""

    response: str
