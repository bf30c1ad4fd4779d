"""S3 object store used to stage recordings, transcripts, and synthesized audio."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class StorageError(RuntimeError):
    """Raised when S3 asset persistence fails."""


class InvalidLocatorError(StorageError):
    """Raised when a bucket/key pair cannot address an S3 object."""


class ObjectNotFoundError(StorageError):
    """Raised when a requested object does not exist."""


@dataclass(frozen=True)
class StorageLocator:
    """A (bucket, key) pair identifying one object in the store."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @classmethod
    def parse(cls, uri: str) -> "StorageLocator":
        """Parse ``s3://bucket/key`` into a locator, rejecting anything else."""

        parsed = urlparse(uri or "")
        if parsed.scheme != "s3":
            raise InvalidLocatorError(f"Invalid S3 URI (expected s3:// scheme): {uri!r}")
        locator = cls(bucket=parsed.netloc, key=parsed.path.lstrip("/"))
        return locator.validate()

    def validate(self) -> "StorageLocator":
        if not self.bucket or not self.bucket.strip():
            raise InvalidLocatorError(f"Invalid S3 URI (empty bucket): {self.uri}")
        if not self.key or not self.key.strip():
            raise InvalidLocatorError(f"Invalid S3 URI (empty key): {self.uri}")
        return self

    def __str__(self) -> str:
        return self.uri


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore:
    """Async facade over a boto3 S3 client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
    ) -> StorageLocator:
        """Upload ``data`` and return the locator of the stored object."""

        locator = StorageLocator(bucket, key).validate()
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {locator.uri}: {exc}") from exc

        logger.debug("Stored %s (%d bytes, %s)", locator.uri, len(data), content_type)
        return locator

    async def put_text(self, bucket: str, key: str, text: str) -> StorageLocator:
        return await self.put(bucket, key, text.encode("utf-8"), "text/plain")

    async def get(self, bucket: str, key: str) -> bytes:
        """Download an object fully into memory."""

        locator = StorageLocator(bucket, key).validate()

        def _read() -> bytes:
            response = self._client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()

        try:
            return await run_in_threadpool(_read)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                raise ObjectNotFoundError(f"Object not found: {locator.uri}") from exc
            raise StorageError(f"Failed to download {locator.uri}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to download {locator.uri}: {exc}") from exc

    async def get_json(self, bucket: str, key: str) -> Any:
        """Download and decode a JSON document."""

        payload = await self.get(bucket, key)
        try:
            return json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageError(f"Object s3://{bucket}/{key} is not valid JSON: {exc}") from exc

    async def exists(self, bucket: str, key: str) -> bool:
        """Return whether the object exists (HEAD request)."""

        locator = StorageLocator(bucket, key).validate()
        try:
            await run_in_threadpool(self._client.head_object, Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                return False
            raise StorageError(f"Failed to inspect {locator.uri}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to inspect {locator.uri}: {exc}") from exc
        return True


__all__ = [
    "InvalidLocatorError",
    "ObjectNotFoundError",
    "S3ObjectStore",
    "StorageError",
    "StorageLocator",
]
