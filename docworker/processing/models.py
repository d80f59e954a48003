from dataclasses import dataclass, field
from enum import Enum


class ProcessingMode(str, Enum):
    """Operation requested for a batch."""

    OCR = "OCR"
    TRANSLATE = "TRANSLATE"
    TRANSLATE_JUR = "TRANSLATE_JUR"
    SUMMARISE = "SUMMARISE"
    SUMMARISE_ONCO = "SUMMARISE_ONCO"

    @property
    def requires_target_language(self) -> bool:
        return self is not ProcessingMode.OCR


class Language(str, Enum):
    """Closed set of supported language codes. AUTO means "detect"."""

    AUTO = "auto"
    AR = "ar"
    EN = "en"
    ES = "es"
    FR = "fr"
    DE = "de"
    HE = "he"
    IT = "it"
    PT = "pt"
    RU = "ru"
    UK = "uk"
    UZ = "uz"


class BatchStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (BatchStatus.COMPLETED, BatchStatus.FAILED)


# Documents share the batch lifecycle states.
DocumentStatus = BatchStatus


class JobStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobType(str, Enum):
    TEXT_EXTRACTION = "TEXT_EXTRACTION"
    TRANSLATION = "TRANSLATION"


class LedgerEntryType(str, Enum):
    INITIAL_GRANT = "INITIAL_GRANT"
    MANUAL_ADD = "MANUAL_ADD"
    MANUAL_SUBTRACT = "MANUAL_SUBTRACT"
    PROCESSING_USE = "PROCESSING_USE"
    REFUND = "REFUND"


_JOB_TYPES: dict[ProcessingMode, JobType] = {
    ProcessingMode.TRANSLATE: JobType.TRANSLATION,
    ProcessingMode.TRANSLATE_JUR: JobType.TRANSLATION,
    ProcessingMode.OCR: JobType.TEXT_EXTRACTION,
    ProcessingMode.SUMMARISE: JobType.TEXT_EXTRACTION,
    ProcessingMode.SUMMARISE_ONCO: JobType.TEXT_EXTRACTION,
}


def job_type_for(mode: ProcessingMode) -> JobType:
    """Map a processing mode to the job type recorded on ProcessingJob."""
    return _JOB_TYPES[mode]


@dataclass(frozen=True)
class FileSubmission:
    """One already-uploaded file referenced by its blob store key."""

    object_key: str
    original_name: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class SubmissionRequest:
    files: list[FileSubmission]
    source_language: str
    target_language: str | None
    mode: ProcessingMode
    user_id: str


@dataclass(frozen=True)
class SubmissionResult:
    """Returned to the caller as soon as the batch is queued."""

    batch_id: str
    document_id: str
    document_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChatMessage:
    """Role-tagged message sent to the inference endpoint."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}
