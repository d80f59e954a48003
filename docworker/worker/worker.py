import asyncio

import psycopg

from docworker.config.settings import Settings
from docworker.logging.logger import Log
from docworker.processing.exceptions import PersistenceFailure
from docworker.processing.orchestrator import BatchOrchestrator
from docworker.processing.store import BatchStore
from docworker.worker.job_runner import BatchRunner


class Worker:
    """Poll loop: reconcile stale -> find pending -> dispatch -> sleep."""

    def __init__(
        self,
        store: BatchStore,
        orchestrator: BatchOrchestrator,
        batch_runner: BatchRunner,
        settings: Settings,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._batch_runner = batch_runner
        self._settings = settings

    async def run(self, max_batches: int | None = None) -> None:
        """Main poll loop. Runs until cancelled.

        If max_batches is set, stop after dispatching that many batches (for testing).
        """
        Log.info("Worker started, polling for batches")
        batches_done = 0
        try:
            while max_batches is None or batches_done < max_batches:
                await self._reconcile_stale()
                batch_id = await self._try_next_batch()
                if batch_id:
                    await self._batch_runner.run(batch_id)
                    batches_done += 1
                else:
                    Log.debug("No batches available, sleeping")
                    await asyncio.sleep(self._settings.batch_poll_interval_seconds)
        except asyncio.CancelledError:
            Log.info("Worker shutting down gracefully")
            raise

    async def _reconcile_stale(self) -> None:
        try:
            await self._orchestrator.reconcile_stale(self._settings.batch_lease_seconds)
        except (PersistenceFailure, psycopg.Error) as exc:
            Log.warning(f"Stale batch reconciliation failed, will retry: {exc}")

    async def _try_next_batch(self) -> str | None:
        """Oldest Pending batch id. Database errors are logged and retried next cycle."""
        try:
            return await self._store.next_pending_batch_id()
        except psycopg.Error as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
