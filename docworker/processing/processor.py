import time
from collections.abc import Callable

from docworker.config.settings import Settings
from docworker.extraction.extractor import TextExtractor
from docworker.inference.client_base import BaseChatClient
from docworker.logging.logger import Log
from docworker.processing.exceptions import BatchNotClaimable
from docworker.processing.pipeline import PipelineContext, PipelineStep
from docworker.processing.steps import (
    CleanResultStep,
    CommitResultsStep,
    ExtractTextStep,
    GenerateStep,
    LoadBatchStep,
    MarkFailedStep,
    MarkProcessingStep,
    MeasureUsageStep,
    MergeTextStep,
    ResolvePromptStep,
)
from docworker.processing.store import BatchStore
from docworker.prompts.resolver import PromptResolver


class BatchProcessor:
    """Executes one batch through the step pipeline.

    Pipeline: load -> claim -> extract -> merge -> prompt -> generate ->
    clean -> measure -> commit. Any error after loading runs the failure
    step (batch, documents and job -> Failed) and is re-raised; a batch that
    could not be claimed is left untouched.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        failure_step: PipelineStep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._steps = steps
        self._failure_step = failure_step
        self._clock = clock

    async def execute(self, batch_id: str) -> PipelineContext:
        context = PipelineContext(batch_id=batch_id, clock=self._clock)
        context.started_at = self._clock()
        Log.info(f"Executing batch {batch_id}")
        try:
            for step in self._steps:
                context = await step.run(context)
        except BatchNotClaimable:
            raise
        except Exception as exc:
            context.error_message = str(exc) or exc.__class__.__name__
            await self._record_failure(context)
            raise
        return context

    async def _record_failure(self, context: PipelineContext) -> None:
        try:
            await self._failure_step.run(context)
        except Exception:
            Log.exception(f"Could not record failure of batch {context.batch_id}")


def build_batch_processor(
    settings: Settings,
    store: BatchStore,
    extractor: TextExtractor,
    resolver: PromptResolver,
    chat_client: BaseChatClient,
) -> BatchProcessor:
    """Build a BatchProcessor with the standard step sequence."""
    steps: list[PipelineStep] = [
        LoadBatchStep(store),
        MarkProcessingStep(store),
        ExtractTextStep(extractor, store),
        MergeTextStep(),
        ResolvePromptStep(resolver),
        GenerateStep(
            chat_client,
            model=settings.inference_model_general,
            temperature=settings.inference_temperature,
            max_tokens=settings.inference_max_tokens,
        ),
        CleanResultStep(),
        MeasureUsageStep(),
        CommitResultsStep(store),
    ]
    return BatchProcessor(steps, MarkFailedStep(store))
