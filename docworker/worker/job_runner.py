from docworker.logging.logger import Log
from docworker.processing.exceptions import BatchNotClaimable
from docworker.processing.processor import BatchProcessor


class BatchRunner:
    """Run one batch and keep its failure from escaping the caller.

    The processor has already moved a failed batch to the Failed state by
    the time an exception reaches here; there is no automatic retry.
    """

    def __init__(self, processor: BatchProcessor) -> None:
        self._processor = processor

    async def run(self, batch_id: str) -> None:
        Log.info(f"Running batch {batch_id}")
        try:
            context = await self._processor.execute(batch_id)
        except BatchNotClaimable as exc:
            Log.info(f"Batch {batch_id} skipped: {exc}")
        except Exception as exc:
            Log.error(f"Batch {batch_id} failed: {exc}")
        else:
            Log.info(
                f"Batch {batch_id} completed successfully "
                f"({context.tokens_used} tokens, {context.processing_time_ms} ms)"
            )
