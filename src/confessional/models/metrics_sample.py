# src/confessional/models/metrics_sample.py
"""Anonymized submission metadata used for aggregate statistics."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, SmallInteger
from sqlalchemy.orm import Mapped, mapped_column

from confessional.db.session import Base


class MetricsSampleRow(Base):
    """One metrics sample per accepted confession.

    Carries no confession id, session id or content, so a sample can never
    be joined back to the confession it came from.
    """

    __tablename__ = "metrics_sample"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    # 0-23, UTC.
    hour_of_day: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    # 0 = Sunday ... 6 = Saturday.
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
