from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from docworker.extraction.models import DocumentSource, RasterizedPage
from docworker.storage.base import BaseBlobStore


@dataclass
class ExtractionContext:
    """Per-document scratch state shared by the tiers of one extraction.

    The file bytes and the rasterized pages are fetched at most once, so a
    later tier reuses what an earlier tier already paid for.
    """

    source: DocumentSource
    blob_store: BaseBlobStore
    pages: list[RasterizedPage] | None = None
    _content: bytes | None = field(default=None, repr=False)

    async def content(self) -> bytes:
        if self._content is None:
            self._content = await self.blob_store.get(self.source.object_key)
        return self._content


class ExtractionTier(ABC):
    """One strategy in a tier chain."""

    name: str = "tier"

    @abstractmethod
    async def attempt(self, context: ExtractionContext) -> str | None:
        """Return extracted text, or ``None`` to hand over to the next tier.

        Raises:
            ExtractionError: if the document cannot be read at all.
        """
