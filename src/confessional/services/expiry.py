"""Background reclamation of expired confessions.

Expired confessions are already invisible to every read path; this worker
only frees the space they occupy. A single task serves the whole store,
walking its expiry index in bounded batches.
"""

from __future__ import annotations

import asyncio
import logging

from confessional.services.errors import StorageFailureError
from confessional.services.store import ConfessionStore

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodically purges expired confessions from a store."""

    def __init__(
        self,
        store: ConfessionStore,
        interval_seconds: float = 60.0,
        batch_size: int = 500,
    ) -> None:
        """Initialize the sweeper.

        Args:
            store: Store whose expired records should be reclaimed.
            interval_seconds: Pause between sweeps.
            batch_size: Records removed per lock hold or transaction.
        """
        self.store = store
        self.interval_seconds = max(0.1, float(interval_seconds))
        self.batch_size = batch_size
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def sweep_once(self) -> int:
        """Run a single purge in a worker thread and return how many were removed."""
        purged = await asyncio.to_thread(self.store.purge_expired, self.batch_size)
        if purged:
            logger.info("Purged %d expired confessions", purged)
        return purged

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.sweep_once()
            except StorageFailureError as e:
                logger.warning("ExpirySweeper encountered storage failure: %s", e)
            except (OSError, RuntimeError) as e:
                logger.error("ExpirySweeper encountered unexpected error: %s", e, exc_info=True)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(
                    "ExpirySweeper encountered data processing error: %s", e, exc_info=True
                )

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
