import time
from collections.abc import Callable

from docworker.logging.logger import Log
from docworker.storage.base import BaseBlobStore
from docworker.storage.models import UploadTicket


class InvalidUploadRequest(ValueError):
    """Raised when an upload request fails validation."""


def build_object_key(user_id: str, file_name: str, timestamp_ms: int) -> str:
    """``<user_id>/<epoch_ms>/<file_name>`` with directory parts stripped from the name."""
    safe_name = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    return f"{user_id}/{timestamp_ms}/{safe_name}"


class UploadService:
    """Issues presigned upload forms so clients send bytes straight to the blob store."""

    def __init__(
        self,
        blob_store: BaseBlobStore,
        *,
        max_file_size: int,
        clock_ms: Callable[[], int] | None = None,
    ) -> None:
        self._blob_store = blob_store
        self._max_file_size = max_file_size
        self._clock_ms = clock_ms or (lambda: int(time.time() * 1000))

    async def create_upload(
        self,
        user_id: str,
        file_name: str,
        file_size: int,
        mime_type: str,
    ) -> UploadTicket:
        """Validate the request and return the upload form plus a read URL.

        Raises:
            InvalidUploadRequest: on an empty name/mime type or an out-of-range size.
        """
        if not file_name.strip():
            raise InvalidUploadRequest("fileName must not be empty")
        if not mime_type.strip():
            raise InvalidUploadRequest("mimeType must not be empty")
        if file_size <= 0:
            raise InvalidUploadRequest("fileSize must be positive")
        if file_size > self._max_file_size:
            raise InvalidUploadRequest(
                f"fileSize {file_size} exceeds the limit of {self._max_file_size} bytes"
            )

        object_key = build_object_key(user_id, file_name, self._clock_ms())
        upload_form = await self._blob_store.presigned_upload_form(object_key, file_size)
        download_url = await self._blob_store.presigned_get_url(object_key)
        Log.info(f"Issued upload form for {object_key} ({file_size} bytes)")
        return UploadTicket(
            object_key=object_key,
            upload_form=upload_form,
            download_url=download_url,
            file_size=file_size,
            mime_type=mime_type,
        )
