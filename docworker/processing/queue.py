import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from docworker.logging.logger import Log

BatchRunnerFn = Callable[[str], Awaitable[None]]


class BaseBatchQueue(ABC):
    """Schedules batch execution without making the submitter wait."""

    @abstractmethod
    async def enqueue(self, batch_id: str) -> None:
        """Hand a Pending batch over for execution."""


class InProcessBatchQueue(BaseBatchQueue):
    """Runs each batch as an asyncio task in the current event loop."""

    def __init__(self, runner: BatchRunnerFn) -> None:
        self._runner = runner
        self._tasks: set[asyncio.Task[None]] = set()

    async def enqueue(self, batch_id: str) -> None:
        task = asyncio.create_task(self._runner(batch_id), name=f"batch-{batch_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        Log.info(f"Batch {batch_id} scheduled in-process")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait for every scheduled batch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


class DatabaseBatchQueue(BaseBatchQueue):
    """The Pending row is the queue entry; a polling Worker picks it up."""

    async def enqueue(self, batch_id: str) -> None:
        Log.info(f"Batch {batch_id} queued for worker pickup")
