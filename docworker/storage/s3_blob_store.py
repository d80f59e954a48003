"""S3-compatible blob store (MinIO in deployment) built on aioboto3."""

from typing import Any

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from docworker.config.settings import Settings
from docworker.logging.logger import Log
from docworker.storage.base import BaseBlobStore
from docworker.storage.exceptions import BlobNotFound, BlobStoreError
from docworker.storage.models import PresignedUploadForm

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3BlobStore(BaseBlobStore):
    """Blob store adapter for a single bucket on an S3-compatible endpoint."""

    def __init__(
        self,
        *,
        endpoint_url: str,
        bucket: str,
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        download_ttl_seconds: int = 24 * 60 * 60,
        upload_ttl_seconds: int = 3600,
    ) -> None:
        self._endpoint_url = endpoint_url.rstrip("/")
        self._bucket = bucket
        self._access_key = access_key
        self._secret_key = secret_key
        self._region = region
        self._download_ttl = download_ttl_seconds
        self._upload_ttl = upload_ttl_seconds
        self._session = aioboto3.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        return cls(
            endpoint_url=settings.blob_endpoint_url,
            bucket=settings.blob_bucket,
            access_key=settings.blob_access_key,
            secret_key=settings.blob_secret_key,
            region=settings.blob_region,
            download_ttl_seconds=settings.blob_download_ttl_seconds,
            upload_ttl_seconds=settings.blob_upload_ttl_seconds,
        )

    def _client(self) -> Any:
        return self._session.client(
            "s3",
            endpoint_url=self._endpoint_url,
            aws_access_key_id=self._access_key,
            aws_secret_access_key=self._secret_key,
            region_name=self._region,
            config=Config(s3={"addressing_style": "path"}),
        )

    async def put(
        self,
        key: str,
        data: bytes,
        size: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        extra: dict[str, Any] = {}
        if size is not None:
            extra["ContentLength"] = size
        if metadata:
            content_type = metadata.get("Content-Type")
            if content_type:
                extra["ContentType"] = content_type
            extra["Metadata"] = {k: v for k, v in metadata.items() if k != "Content-Type"}
        try:
            async with self._client() as s3:
                await s3.put_object(Bucket=self._bucket, Key=key, Body=data, **extra)
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(f"Failed to upload {key}: {exc}") from exc
        Log.debug(f"Uploaded {len(data)} bytes to {key}")
        return f"{self._endpoint_url}/{self._bucket}/{key}"

    async def get(self, key: str) -> bytes:
        try:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=self._bucket, Key=key)
                return await response["Body"].read()
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _NOT_FOUND_CODES:
                raise BlobNotFound(f"Object not found: {key}") from exc
            raise BlobStoreError(f"Failed to download {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise BlobStoreError(f"Failed to download {key}: {exc}") from exc

    async def presigned_get_url(self, key: str, ttl_seconds: int | None = None) -> str:
        try:
            async with self._client() as s3:
                return await s3.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self._bucket, "Key": key},
                    ExpiresIn=ttl_seconds or self._download_ttl,
                )
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(f"Failed to generate file URL for {key}: {exc}") from exc

    async def presigned_upload_form(
        self,
        key: str,
        max_size: int,
        ttl_seconds: int | None = None,
    ) -> PresignedUploadForm:
        try:
            async with self._client() as s3:
                policy = await s3.generate_presigned_post(
                    Bucket=self._bucket,
                    Key=key,
                    Conditions=[["content-length-range", 1, max_size]],
                    ExpiresIn=ttl_seconds or self._upload_ttl,
                )
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(f"Failed to generate upload form for {key}: {exc}") from exc
        return PresignedUploadForm(url=policy["url"], fields=dict(policy["fields"]))

    async def delete(self, key: str) -> None:
        try:
            async with self._client() as s3:
                await s3.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(f"Failed to delete {key}: {exc}") from exc
        Log.info(f"Deleted object {key}")
