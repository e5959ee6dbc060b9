"""SQLAlchemy-backed confession store."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from confessional.db.time import as_utc, to_db_time, utcnow
from confessional.models.confession import Confession
from confessional.services.errors import StorageFailureError
from confessional.services.store import Clock, ConfessionRecord, generate_confession_id

__all__ = ["SqlConfessionStore"]

logger = logging.getLogger(__name__)


def _to_record(row: Confession) -> ConfessionRecord:
    return ConfessionRecord(
        id=row.id,
        session_id=row.session_id,
        ciphertext=row.ciphertext,
        nonce=row.nonce,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
        read_count=row.read_count,
    )


class SqlConfessionStore:
    """Durable confession store over the ``confession`` table.

    Rows whose ``expires_at`` has passed are filtered out of every query,
    so they are unreachable before :meth:`purge_expired` removes them.
    """

    def __init__(self, session_factory: sessionmaker[Session], clock: Clock = utcnow) -> None:
        """Initialize the store with a SQLAlchemy session factory."""
        self._session_factory = session_factory
        self._clock = clock

    def _now(self) -> datetime:
        return to_db_time(self._clock())

    def insert(self, record: ConfessionRecord) -> str:
        """Persist ``record`` under a fresh id and return the id.

        Raises:
            StorageFailureError: If the database rejects the write.
        """
        # One retry on a primary key clash; a second clash means something else is wrong.
        for attempt in range(2):
            confession_id = generate_confession_id()
            row = Confession(
                id=confession_id,
                session_id=record.session_id,
                ciphertext=record.ciphertext,
                nonce=record.nonce,
                created_at=to_db_time(record.created_at),
                expires_at=to_db_time(record.expires_at),
                read_count=0,
            )
            with self._session_factory() as session:
                try:
                    session.add(row)
                    session.commit()
                    return confession_id
                except IntegrityError as exc:
                    session.rollback()
                    if attempt:
                        raise StorageFailureError("Could not allocate a confession id") from exc
                    logger.warning("Confession id collision; retrying with a fresh id")
                except SQLAlchemyError as exc:
                    session.rollback()
                    raise StorageFailureError("Failed to store confession") from exc
        raise StorageFailureError("Could not allocate a confession id")  # pragma: no cover

    def get(self, confession_id: str) -> ConfessionRecord | None:
        """Return the visible record for ``confession_id`` or None."""
        stmt = select(Confession).where(
            Confession.id == confession_id,
            Confession.expires_at > self._now(),
        )
        with self._session_factory() as session:
            try:
                row = session.execute(stmt).scalars().first()
            except SQLAlchemyError as exc:
                raise StorageFailureError("Failed to load confession") from exc
            return _to_record(row) if row is not None else None

    def record_read(self, confession_id: str) -> int | None:
        """Increment the read counter of a visible record."""
        with self._session_factory() as session:
            try:
                result = session.execute(
                    update(Confession)
                    .where(Confession.id == confession_id, Confession.expires_at > self._now())
                    .values(read_count=Confession.read_count + 1)
                )
                if result.rowcount == 0:
                    session.rollback()
                    return None
                read_count = session.execute(
                    select(Confession.read_count).where(Confession.id == confession_id)
                ).scalar_one_or_none()
                session.commit()
                return read_count
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageFailureError("Failed to update confession") from exc

    def pop(self, confession_id: str) -> ConfessionRecord | None:
        """Delete a visible record and return what it held.

        The delete is conditional on the row still existing, so two
        concurrent pops cannot both return the record.
        """
        with self._session_factory() as session:
            try:
                row = session.execute(
                    select(Confession).where(
                        Confession.id == confession_id,
                        Confession.expires_at > self._now(),
                    )
                ).scalars().first()
                if row is None:
                    return None
                record = _to_record(row)
                result = session.execute(delete(Confession).where(Confession.id == confession_id))
                if result.rowcount == 0:
                    session.rollback()
                    return None
                session.commit()
                return record
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageFailureError("Failed to delete confession") from exc

    def delete(self, confession_id: str) -> bool:
        """Delete a visible record; return whether a row was removed."""
        with self._session_factory() as session:
            try:
                result = session.execute(
                    delete(Confession).where(
                        Confession.id == confession_id,
                        Confession.expires_at > self._now(),
                    )
                )
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageFailureError("Failed to delete confession") from exc
        return result.rowcount > 0

    def purge_expired(self, batch_size: int = 500) -> int:
        """Delete expired rows in batches of ``batch_size``.

        Returns:
            Number of rows removed.
        """
        purged = 0
        while True:
            now = self._now()
            with self._session_factory() as session:
                try:
                    expired_ids = list(
                        session.execute(
                            select(Confession.id)
                            .where(Confession.expires_at <= now)
                            .limit(batch_size)
                        ).scalars()
                    )
                    if not expired_ids:
                        return purged
                    result = session.execute(
                        delete(Confession).where(
                            Confession.id.in_(expired_ids),
                            Confession.expires_at <= now,
                        )
                    )
                    session.commit()
                except SQLAlchemyError as exc:
                    session.rollback()
                    raise StorageFailureError("Failed to purge expired confessions") from exc
            purged += result.rowcount
            if len(expired_ids) < batch_size:
                return purged
