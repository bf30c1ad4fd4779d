"""Request ingestion helpers: validate uploads and stage them in S3."""

from __future__ import annotations

import mimetypes
from typing import Final

from fastapi import UploadFile

from mindspace.services.storage import S3ObjectStore, StorageLocator
from mindspace.utils.naming import unique_suffix

_ALLOWED_CONTENT_TYPES: Final[set[str]] = {
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/x-m4a",
    "audio/m4a",
    "audio/wav",
    "audio/x-wav",
    "audio/webm",
    "audio/ogg",
    "application/octet-stream",
}

RECORDING_CONTENT_TYPE: Final[str] = "audio/mp3"


class UploadRejectedError(ValueError):
    """Raised when the uploaded recording cannot be used."""


def resolve_content_type(audio_file: UploadFile) -> str:
    """Accept audio uploads regardless of whether the client set a content-type."""

    content_type = audio_file.content_type
    if not content_type and audio_file.filename:
        guessed_type, _ = mimetypes.guess_type(audio_file.filename)
        content_type = guessed_type

    content_type = (content_type or "audio/mpeg").split(";", 1)[0].strip().lower()

    if content_type not in _ALLOWED_CONTENT_TYPES:
        raise UploadRejectedError(f"Unsupported audio content type: {content_type}")
    return content_type


async def read_audio_bytes(audio_file: UploadFile) -> bytes:
    """Load the upload fully into memory, rejecting empty payloads."""

    audio_bytes = await audio_file.read()
    await audio_file.close()

    if not audio_bytes:
        raise UploadRejectedError("Uploaded audio file is empty")
    return audio_bytes


def new_recording_key(prefix: str = "recording") -> str:
    return f"{prefix}-{unique_suffix()}.mp3"


async def upload_recording(
    store: S3ObjectStore,
    bucket: str,
    audio_bytes: bytes,
    *,
    prefix: str = "recording",
) -> StorageLocator:
    """Store a recording in the input bucket under a fresh unique key."""

    return await store.put(bucket, new_recording_key(prefix), audio_bytes, RECORDING_CONTENT_TYPE)


__all__ = [
    "RECORDING_CONTENT_TYPE",
    "UploadRejectedError",
    "new_recording_key",
    "read_audio_bytes",
    "resolve_content_type",
    "upload_recording",
]
