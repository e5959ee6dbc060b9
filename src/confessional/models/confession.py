# src/confessional/models/confession.py
"""Model describing a stored, end-to-end encrypted confession."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from confessional.db.session import Base


class Confession(Base):
    """Encrypted confession held until it expires or is deleted.

    The server never decrypts ``ciphertext``; it and ``nonce`` are stored
    and returned verbatim.
    """

    __tablename__ = "confession"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_id: Mapped[str] = mapped_column(Text, nullable=False)

    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    nonce: Mapped[str] = mapped_column(Text, nullable=False)

    # Stored as naive UTC; see confessional.db.time.as_utc.
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    read_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
