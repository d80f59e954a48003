import posixpath
from dataclasses import dataclass

from docworker.processing.exceptions import DocumentNotFound
from docworker.processing.models import DocumentStatus
from docworker.processing.store import BatchStore

RESULT_CONTENT_TYPE = "text/plain"


@dataclass(frozen=True)
class ResultDownload:
    file_name: str
    content: str
    content_type: str
    size: int


def result_file_name(original_name: str, mode: str) -> str:
    """``report.pdf`` in OCR mode becomes ``report_ocr_result.txt``."""
    stem, _ = posixpath.splitext(original_name)
    return f"{stem}_{mode.lower()}_result.txt"


class ResultService:
    def __init__(self, store: BatchStore) -> None:
        self._store = store

    async def get_result(self, document_id: str, user_id: str) -> ResultDownload:
        """Text download of a Completed document owned by ``user_id``.

        Raises:
            DocumentNotFound: the document is missing, foreign, not Completed
                or carries no text.
        """
        document = await self._store.find_document(document_id)
        if (
            document is None
            or document.user_id != user_id
            or document.status != DocumentStatus.COMPLETED.value
        ):
            raise DocumentNotFound(f"Document {document_id} not found or not accessible")

        content = document.result_text or document.extracted_text
        if not content:
            raise DocumentNotFound(f"No result available for download for document {document_id}")
        return ResultDownload(
            file_name=result_file_name(document.original_name, document.mode),
            content=content,
            content_type=RESULT_CONTENT_TYPE,
            size=len(content.encode("utf-8")),
        )
