"""Amazon Transcribe integration helpers using the batch job API."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from mindspace.config.settings import TranscribeConfig

from .storage import StorageLocator

logger = logging.getLogger(__name__)


class JobState(str, enum.Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


_STATE_MAP = {
    "QUEUED": JobState.RUNNING,
    "IN_PROGRESS": JobState.RUNNING,
    "COMPLETED": JobState.COMPLETED,
    "FAILED": JobState.FAILED,
}


@dataclass(frozen=True)
class TranscriptionJobStatus:
    """Snapshot of one Transcribe job as reported by the service."""

    job_name: str
    state: JobState
    transcript_uri: str | None = None
    failure_reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state is not JobState.RUNNING


class TranscriptionServiceError(RuntimeError):
    """Raised when Amazon Transcribe rejects or cannot report on a job."""


class TranscribeJobService:
    """High-level facade for submitting and polling Amazon Transcribe jobs."""

    def __init__(self, client: Any, config: TranscribeConfig) -> None:
        self._client = client
        self._config = config

    async def submit(
        self,
        job_name: str,
        source: StorageLocator,
        *,
        output_bucket: str,
    ) -> None:
        """Start an asynchronous transcription job for ``source``."""

        params: dict[str, Any] = {
            "TranscriptionJobName": job_name,
            "LanguageCode": self._config.language_code,
            "MediaFormat": self._config.media_format,
            "Media": {"MediaFileUri": source.uri},
            "OutputBucketName": output_bucket,
        }
        if self._config.data_access_role_arn:
            params["JobExecutionSettings"] = {
                "DataAccessRoleArn": self._config.data_access_role_arn,
            }
            logger.info("Using DataAccessRoleArn: %s", self._config.data_access_role_arn)

        logger.info("Starting transcription job %s with MediaFileUri: %s", job_name, source.uri)
        try:
            await run_in_threadpool(self._client.start_transcription_job, **params)
        except (BotoCoreError, ClientError) as exc:
            raise TranscriptionServiceError(
                f"Failed to start transcription job {job_name}: {exc}"
            ) from exc

    async def get_status(self, job_name: str) -> TranscriptionJobStatus:
        """Fetch the current status of ``job_name``."""

        try:
            response: dict[str, Any] = await run_in_threadpool(
                self._client.get_transcription_job,
                TranscriptionJobName=job_name,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TranscriptionServiceError(
                f"Failed to fetch transcription job {job_name}: {exc}"
            ) from exc

        job = response.get("TranscriptionJob") or {}
        raw_status = job.get("TranscriptionJobStatus")
        state = _STATE_MAP.get(str(raw_status))
        if state is None:
            raise TranscriptionServiceError(
                f"Unexpected status {raw_status!r} for transcription job {job_name}"
            )

        return TranscriptionJobStatus(
            job_name=job_name,
            state=state,
            transcript_uri=(job.get("Transcript") or {}).get("TranscriptFileUri"),
            failure_reason=job.get("FailureReason"),
        )


__all__ = [
    "JobState",
    "TranscribeJobService",
    "TranscriptionJobStatus",
    "TranscriptionServiceError",
]
