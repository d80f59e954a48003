from abc import ABC, abstractmethod

from docworker.storage.models import PresignedUploadForm


class BaseBlobStore(ABC):
    """Contract for object storage adapters. Objects are addressed by key only."""

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        size: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store bytes under ``key`` and return the object's URL.

        Raises:
            BlobStoreError: if the upload fails.
        """

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Return the object's bytes.

        Raises:
            BlobNotFound: if no object exists under ``key``.
            BlobStoreError: on any other failure.
        """

    @abstractmethod
    async def presigned_get_url(self, key: str, ttl_seconds: int | None = None) -> str:
        """Time-limited read URL for ``key``."""

    @abstractmethod
    async def presigned_upload_form(
        self,
        key: str,
        max_size: int,
        ttl_seconds: int | None = None,
    ) -> PresignedUploadForm:
        """Presigned POST policy accepting 1..max_size bytes at ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the object stored under ``key``."""
