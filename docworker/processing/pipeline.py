import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from docworker.processing.models import ChatMessage
from docworker.processing.state import BatchState


@dataclass(slots=True)
class PipelineContext:
    batch_id: str
    clock: Callable[[], float] = time.monotonic
    started_at: float = 0.0
    batch: BatchState | None = None
    job_id: str | None = None
    combined_text: str = ""
    messages: list[ChatMessage] = field(default_factory=list)
    raw_output: str = ""
    result_text: str = ""
    tokens_used: int = 0
    processing_time_ms: int = 0
    error_message: str = ""

    def elapsed_ms(self) -> int:
        return max(0, round((self.clock() - self.started_at) * 1000))

    def require_batch(self) -> BatchState:
        if self.batch is None:
            raise ValueError("PipelineContext.batch must be loaded first")
        return self.batch


class PipelineStep(ABC):
    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
