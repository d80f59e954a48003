from dataclasses import dataclass

from docworker.config.settings import Settings
from docworker.extraction.extractor import TextExtractorFactory
from docworker.extraction.rasterizer import PdfRasterizer
from docworker.inference.factory import ChatClientFactory
from docworker.logging.logger import Log
from docworker.processing.orchestrator import BatchOrchestrator
from docworker.processing.processor import BatchProcessor, build_batch_processor
from docworker.processing.queue import BaseBatchQueue, DatabaseBatchQueue, InProcessBatchQueue
from docworker.processing.results import ResultService
from docworker.processing.resubmission import ResubmissionService
from docworker.processing.store import BatchStore
from docworker.prompts.base import BasePromptRegistry
from docworker.prompts.factory import PromptRegistryFactory
from docworker.prompts.resolver import PromptResolver
from docworker.storage.s3_blob_store import S3BlobStore
from docworker.storage.uploads import UploadService
from docworker.worker.job_runner import BatchRunner


@dataclass
class Services:
    """Everything an entry point (worker, web layer, script) needs."""

    store: BatchStore
    processor: BatchProcessor
    runner: BatchRunner
    queue: BaseBatchQueue
    orchestrator: BatchOrchestrator
    resubmission: ResubmissionService
    results: ResultService
    uploads: UploadService
    rasterizer: PdfRasterizer
    prompt_registry: BasePromptRegistry

    async def aclose(self) -> None:
        """Close the HTTP clients held by the rasterizer and the prompt registry."""
        for name, resource in (("rasterizer", self.rasterizer), ("prompt registry", self.prompt_registry)):
            try:
                await resource.close()
            except Exception:
                Log.exception(f"Could not close {name}")


def build_services(settings: Settings, *, in_process: bool = False) -> Services:
    """Wire adapters from settings.

    With ``in_process`` the orchestrator runs batches as asyncio tasks of the
    caller's loop; otherwise submissions wait for a polling Worker. Call
    ``Services.aclose`` when done.
    """
    blob_store = S3BlobStore.from_settings(settings)
    chat_client = ChatClientFactory.create(settings)
    prompt_registry = PromptRegistryFactory.create(settings)
    resolver = PromptResolver(prompt_registry, project_tag=settings.prompt_project_tag)
    rasterizer = PdfRasterizer.from_settings(settings, blob_store)
    extractor = TextExtractorFactory.create(settings, blob_store, chat_client, rasterizer)
    store = BatchStore()
    processor = build_batch_processor(settings, store, extractor, resolver, chat_client)
    runner = BatchRunner(processor)
    queue: BaseBatchQueue = InProcessBatchQueue(runner.run) if in_process else DatabaseBatchQueue()
    orchestrator = BatchOrchestrator(store, processor, queue)
    return Services(
        store=store,
        processor=processor,
        runner=runner,
        queue=queue,
        orchestrator=orchestrator,
        resubmission=ResubmissionService(store, orchestrator),
        results=ResultService(store),
        uploads=UploadService(blob_store, max_file_size=settings.upload_max_file_size),
        rasterizer=rasterizer,
        prompt_registry=prompt_registry,
    )
