from unittest.mock import AsyncMock

import pytest

from docworker.database.models import DocumentRecord
from docworker.processing.exceptions import DocumentNotFound
from docworker.processing.results import ResultService, result_file_name
from docworker.processing.store import BatchStore


def _document(**overrides) -> DocumentRecord:
    fields = dict(
        id="doc-1",
        user_id="user-1",
        object_key="user-1/1700000000000/report.pdf",
        original_name="report.pdf",
        mime_type="application/pdf",
        file_size=1024,
        mode="OCR",
        source_language="ru",
        target_language=None,
        status="COMPLETED",
        extracted_text="Извлечённый текст",
        result_text="Распознанный текст",
    )
    fields.update(overrides)
    return DocumentRecord(**fields)


def _service(document: DocumentRecord | None) -> ResultService:
    store = AsyncMock(spec=BatchStore)
    store.find_document.return_value = document
    return ResultService(store)


class TestResultFileName:
    def test_replaces_extension(self) -> None:
        assert result_file_name("report.pdf", "OCR") == "report_ocr_result.txt"

    def test_keeps_inner_dots(self) -> None:
        assert result_file_name("scan.v2.png", "TRANSLATE_JUR") == "scan.v2_translate_jur_result.txt"

    def test_name_without_extension(self) -> None:
        assert result_file_name("notes", "SUMMARISE") == "notes_summarise_result.txt"


class TestGetResult:
    @pytest.mark.asyncio
    async def test_returns_result_text_with_byte_size(self) -> None:
        download = await _service(_document()).get_result("doc-1", "user-1")

        assert download.file_name == "report_ocr_result.txt"
        assert download.content == "Распознанный текст"
        assert download.content_type == "text/plain"
        assert download.size == len("Распознанный текст".encode("utf-8"))

    @pytest.mark.asyncio
    async def test_falls_back_to_extracted_text(self) -> None:
        download = await _service(_document(result_text=None)).get_result("doc-1", "user-1")

        assert download.content == "Извлечённый текст"

    @pytest.mark.asyncio
    async def test_not_completed_is_not_found(self) -> None:
        with pytest.raises(DocumentNotFound):
            await _service(_document(status="PROCESSING")).get_result("doc-1", "user-1")

    @pytest.mark.asyncio
    async def test_foreign_document_is_not_found(self) -> None:
        with pytest.raises(DocumentNotFound):
            await _service(_document()).get_result("doc-1", "intruder")

    @pytest.mark.asyncio
    async def test_missing_document_is_not_found(self) -> None:
        with pytest.raises(DocumentNotFound):
            await _service(None).get_result("doc-1", "user-1")

    @pytest.mark.asyncio
    async def test_completed_without_text_is_not_found(self) -> None:
        document = _document(result_text=None, extracted_text=None)
        with pytest.raises(DocumentNotFound, match="No result available"):
            await _service(document).get_result("doc-1", "user-1")
