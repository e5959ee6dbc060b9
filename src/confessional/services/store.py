# src/confessional/services/store.py
"""Ephemeral storage for encrypted confessions.

A store owns the mapping from confession id to :class:`ConfessionRecord`.
Records are visible only while ``now < expires_at``; once a record expires
or is deleted, its id never resolves again. Expired records may linger
physically until :meth:`purge_expired` runs or an access touches them, but
no read path can observe them.
"""

from __future__ import annotations

import dataclasses
import heapq
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Protocol

from confessional.db.time import utcnow
from confessional.services.errors import StorageFailureError

CONFESSION_ID_PREFIX = "conf_"
# 16 bytes of entropy: 128-bit ids are unique by construction across restarts.
CONFESSION_ID_BYTES = 16

Clock = Callable[[], datetime]


def generate_confession_id() -> str:
    """Return a fresh, cryptographically random confession id."""
    return f"{CONFESSION_ID_PREFIX}{secrets.token_urlsafe(CONFESSION_ID_BYTES)}"


@dataclass
class ConfessionRecord:
    """A stored confession and its lifecycle metadata.

    ``ciphertext`` and ``nonce`` are opaque to the server. They are never
    parsed, transformed or logged.
    """

    session_id: str
    ciphertext: str
    nonce: str
    created_at: datetime
    expires_at: datetime
    id: str | None = None
    read_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        """Return True once ``now`` has reached the expiry timestamp."""
        return now >= self.expires_at

    def __repr__(self) -> str:
        return (
            f"ConfessionRecord(id={self.id!r}, created_at={self.created_at.isoformat()}, "
            f"expires_at={self.expires_at.isoformat()}, read_count={self.read_count})"
        )


class ConfessionStore(Protocol):
    """Contract shared by the in-memory and SQL-backed stores."""

    def insert(self, record: ConfessionRecord) -> str: ...

    def get(self, confession_id: str) -> ConfessionRecord | None: ...

    def record_read(self, confession_id: str) -> int | None: ...

    def pop(self, confession_id: str) -> ConfessionRecord | None: ...

    def delete(self, confession_id: str) -> bool: ...

    def purge_expired(self, batch_size: int = 500) -> int: ...


class InMemoryConfessionStore:
    """Process-local confession store guarded by a single lock.

    Expiry is enforced lazily on every access and physically reclaimed by
    :meth:`purge_expired`, which walks a min-heap ordered by ``expires_at``.
    """

    def __init__(self, clock: Clock = utcnow, max_records: int = 0) -> None:
        """Initialize an empty store.

        Args:
            clock: Source of the current aware UTC time.
            max_records: Upper bound on live records; 0 means unbounded.
        """
        self._clock = clock
        self._max_records = max_records
        self._records: dict[str, ConfessionRecord] = {}
        self._expiry_heap: list[tuple[datetime, str]] = []
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for record in self._records.values() if not record.is_expired(now))

    def insert(self, record: ConfessionRecord) -> str:
        """Store ``record`` under a freshly generated id and return the id.

        Raises:
            StorageFailureError: If the store is at capacity.
        """
        with self._lock:
            if self._max_records and len(self._records) >= self._max_records:
                # Expired entries don't count against capacity.
                self._purge_locked(self._clock(), len(self._expiry_heap))
                if len(self._records) >= self._max_records:
                    raise StorageFailureError("Confession store is at capacity")

            confession_id = generate_confession_id()
            while confession_id in self._records:
                confession_id = generate_confession_id()

            stored = dataclasses.replace(record, id=confession_id, read_count=0)
            self._records[confession_id] = stored
            heapq.heappush(self._expiry_heap, (stored.expires_at, confession_id))
            return confession_id

    def get(self, confession_id: str) -> ConfessionRecord | None:
        """Return a snapshot of the record, or None if absent or expired."""
        with self._lock:
            record = self._lookup_locked(confession_id)
            return dataclasses.replace(record) if record is not None else None

    def record_read(self, confession_id: str) -> int | None:
        """Increment the read counter and return its new value."""
        with self._lock:
            record = self._lookup_locked(confession_id)
            if record is None:
                return None
            record.read_count += 1
            return record.read_count

    def pop(self, confession_id: str) -> ConfessionRecord | None:
        """Atomically remove and return a visible record."""
        with self._lock:
            record = self._lookup_locked(confession_id)
            if record is None:
                return None
            del self._records[confession_id]
            return record

    def delete(self, confession_id: str) -> bool:
        """Remove a visible record; return whether one was removed."""
        with self._lock:
            if self._lookup_locked(confession_id) is None:
                return False
            del self._records[confession_id]
            return True

    def purge_expired(self, batch_size: int = 500) -> int:
        """Physically drop expired records, ``batch_size`` per lock hold.

        Returns:
            Number of records removed.
        """
        purged = 0
        while True:
            with self._lock:
                now = self._clock()
                purged += self._purge_locked(now, batch_size)
                pending = bool(self._expiry_heap) and self._expiry_heap[0][0] <= now
            if not pending:
                return purged

    def _purge_locked(self, now: datetime, limit: int) -> int:
        removed = 0
        examined = 0
        while self._expiry_heap and examined < limit and self._expiry_heap[0][0] <= now:
            _, confession_id = heapq.heappop(self._expiry_heap)
            examined += 1
            # Heap entries of explicitly deleted records are skipped here.
            if self._records.pop(confession_id, None) is not None:
                removed += 1
        return removed

    def _lookup_locked(self, confession_id: str) -> ConfessionRecord | None:
        record = self._records.get(confession_id)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            del self._records[confession_id]
            return None
        return record
