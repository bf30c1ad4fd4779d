"""Transcription stage of the voice pipeline."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from mindspace.config.settings import TranscribeConfig
from mindspace.services.storage import (
    InvalidLocatorError,
    ObjectNotFoundError,
    S3ObjectStore,
    StorageError,
    StorageLocator,
)
from mindspace.services.transcribe import (
    JobState,
    TranscribeJobService,
    TranscriptionJobStatus,
    TranscriptionServiceError,
)
from mindspace.utils.naming import unique_suffix

from .errors import (
    InvalidReferenceError,
    PipelineTimeoutError,
    ResultParseError,
    SourceNotFoundError,
    TranscriptPersistError,
    TranscriptionFailedError,
)
from .types import TranscriptText

logger = logging.getLogger("mindspace.pipeline")


def extract_transcript(document: Any) -> str:
    """Join ``results.transcripts[*].transcript`` with newlines, in order."""

    if not isinstance(document, dict):
        raise ResultParseError("Transcript document is not a JSON object.")
    results = document.get("results")
    transcripts = results.get("transcripts") if isinstance(results, dict) else None
    if not isinstance(transcripts, list):
        raise ResultParseError("Transcript document has no results.transcripts list.")

    segments: list[str] = []
    for entry in transcripts:
        if not isinstance(entry, dict) or not isinstance(entry.get("transcript"), str):
            raise ResultParseError("Transcript segment is missing its text.")
        segments.append(entry["transcript"])
    return "\n".join(segments)


class TranscriptionStage:
    """Submit a Transcribe job for an uploaded recording and wait for its text."""

    def __init__(
        self,
        store: S3ObjectStore,
        service: TranscribeJobService,
        config: TranscribeConfig,
        *,
        input_bucket: str,
        transcript_bucket: str,
    ) -> None:
        self._store = store
        self._service = service
        self._config = config
        self._input_bucket = input_bucket
        self._transcript_bucket = transcript_bucket

    def new_job_name(self) -> str:
        return f"{self._config.job_name_prefix}-{unique_suffix()}"

    def resolve_source(self, audio_reference: str) -> StorageLocator:
        """Accept either a full ``s3://`` URI or a key inside the input bucket."""

        try:
            if audio_reference and "://" in audio_reference:
                return StorageLocator.parse(audio_reference)
            return StorageLocator(self._input_bucket, audio_reference or "").validate()
        except InvalidLocatorError as exc:
            raise InvalidReferenceError(str(exc)) from exc

    async def run(self, audio_reference: str, *, job_name: str | None = None) -> TranscriptText:
        source = self.resolve_source(audio_reference)
        job_name = job_name or self.new_job_name()

        await self._ensure_source_exists(source)

        try:
            await self._service.submit(job_name, source, output_bucket=self._transcript_bucket)
        except TranscriptionServiceError as exc:
            raise TranscriptionFailedError(str(exc)) from exc

        await self.wait_for_completion(job_name)
        return await self._collect_text(job_name, source)

    async def _ensure_source_exists(self, source: StorageLocator) -> None:
        try:
            found = await self._store.exists(source.bucket, source.key)
        except StorageError as exc:
            raise SourceNotFoundError(
                f"S3 object not found or inaccessible: {source.uri} -- {exc}"
            ) from exc
        if not found:
            raise SourceNotFoundError(f"S3 object not found or inaccessible: {source.uri}")

    async def wait_for_completion(self, job_name: str) -> TranscriptionJobStatus:
        """Poll with exponential backoff until the job is terminal or the deadline passes."""

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.max_wait_seconds
        delay = self._config.poll_interval_seconds
        polls = 0

        while True:
            try:
                status = await self._service.get_status(job_name)
            except TranscriptionServiceError as exc:
                raise TranscriptionFailedError(str(exc)) from exc
            polls += 1

            if status.is_terminal:
                if status.state is JobState.FAILED:
                    reason = status.failure_reason or "no reason given"
                    raise TranscriptionFailedError(
                        f"Transcription job {job_name} failed: {reason}"
                    )
                logger.info(
                    "Transcription job %s completed after %d polls: %s",
                    job_name,
                    polls,
                    status.transcript_uri or "-",
                )
                return status

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise PipelineTimeoutError(
                    f"Transcription job {job_name} did not finish within "
                    f"{self._config.max_wait_seconds:g}s"
                )
            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * self._config.poll_backoff, self._config.max_poll_interval_seconds)

    async def _collect_text(self, job_name: str, source: StorageLocator) -> TranscriptText:
        json_key = f"{job_name}.json"
        try:
            document = await self._store.get_json(self._transcript_bucket, json_key)
        except ObjectNotFoundError as exc:
            raise ResultParseError(
                f"Transcript document s3://{self._transcript_bucket}/{json_key} is missing"
            ) from exc
        except StorageError as exc:
            raise ResultParseError(str(exc)) from exc

        text = extract_transcript(document)

        try:
            text_locator = await self._store.put_text(
                self._transcript_bucket, f"{job_name}.txt", text
            )
        except StorageError as exc:
            raise TranscriptPersistError(f"Failed to persist transcript text: {exc}") from exc
        logger.info("Text file saved to S3: %s", text_locator.uri)

        return TranscriptText(
            text=text,
            job_name=job_name,
            source=source,
            text_locator=text_locator,
        )


__all__ = ["TranscriptionStage", "extract_transcript"]
