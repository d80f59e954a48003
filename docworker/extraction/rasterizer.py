"""Client for the external PDF-to-PNG rasterization service.

``POST {base_url}/convert/pdf-to-png?all=true`` with the PDF as the body. The
service answers ``image/png`` for a single page, ``application/zip`` with one
PNG per page, or ``application/json`` describing an error. Rendered pages are
uploaded to the blob store under the document's pages prefix so vision OCR
can reach them by URL.
"""

import asyncio
import io
import posixpath
import re
import zipfile

import httpx

from docworker.config.settings import Settings
from docworker.extraction.exceptions import RasterizationError
from docworker.extraction.models import RasterizedPage
from docworker.logging.logger import Log
from docworker.storage.base import BaseBlobStore

CONVERT_PATH = "/convert/pdf-to-png"
SINGLE_PAGE_NAME = "page-1-of-1.png"

_DIGITS = re.compile(r"(\d+)")


class PdfRasterizer:
    def __init__(
        self,
        *,
        base_url: str,
        blob_store: BaseBlobStore,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._blob_store = blob_store
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, blob_store: BaseBlobStore) -> "PdfRasterizer":
        return cls(
            base_url=settings.rasterizer_base_url,
            blob_store=blob_store,
            timeout_seconds=settings.rasterizer_timeout_seconds,
        )

    async def rasterize(self, pdf_bytes: bytes, pages_prefix: str) -> list[RasterizedPage]:
        """Render every page and upload it under ``pages_prefix``.

        Raises:
            RasterizationError: on transport failure, an error reply or an
                empty archive.
        """
        try:
            response = await self._client.post(
                CONVERT_PATH,
                params={"all": "true"},
                content=pdf_bytes,
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.HTTPError as exc:
            raise RasterizationError(f"Rasterization request failed: {exc}") from exc

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        Log.debug(
            f"Rasterizer replied {response.status_code} ({content_type}, {len(response.content)} bytes)"
        )

        if content_type == "application/json" or response.is_error:
            raise RasterizationError(_error_message(response))
        if content_type == "image/png":
            named_pages = [(SINGLE_PAGE_NAME, response.content)]
        elif content_type == "application/zip":
            named_pages = _unzip_pages(response.content)
        else:
            raise RasterizationError(f"Unexpected rasterizer content type: {content_type or 'none'}")

        pages = await asyncio.gather(
            *(self._upload(pages_prefix, name, data) for name, data in named_pages)
        )
        Log.info(f"Rasterized PDF into {len(pages)} page(s) under {pages_prefix}")
        return list(pages)

    async def close(self) -> None:
        await self._client.aclose()

    async def _upload(self, pages_prefix: str, name: str, data: bytes) -> RasterizedPage:
        key = posixpath.join(pages_prefix, name)
        await self._blob_store.put(key, data, len(data), {"Content-Type": "image/png"})
        return RasterizedPage(key=key, data=data)


def natural_sort_key(name: str) -> list[int | str]:
    """``page-2`` sorts before ``page-10``."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS.split(name)]


def _unzip_pages(archive: bytes) -> list[tuple[str, bytes]]:
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            names = [
                info.filename
                for info in zf.infolist()
                if not info.is_dir() and info.filename.lower().endswith(".png")
            ]
            pages = [(posixpath.basename(n), zf.read(n)) for n in sorted(names, key=natural_sort_key)]
    except zipfile.BadZipFile as exc:
        raise RasterizationError(f"Rasterizer returned an invalid archive: {exc}") from exc
    if not pages:
        raise RasterizationError("No entry found in zip file")
    return pages


def _error_message(response: httpx.Response) -> str:
    detail = response.text
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = str(body.get("error") or body.get("message") or body)
    return f"Rasterization failed ({response.status_code}): {detail}"
