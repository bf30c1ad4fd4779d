"""Service layer helpers for external integrations."""

from .llm_client import LlmConfigurationError, LlmInvocationError, WatsonxLlmClient
from .speech import PollySpeechService, SpeechResult, SpeechServiceError
from .storage import (
    InvalidLocatorError,
    ObjectNotFoundError,
    S3ObjectStore,
    StorageError,
    StorageLocator,
)
from .transcribe import (
    JobState,
    TranscribeJobService,
    TranscriptionJobStatus,
    TranscriptionServiceError,
)

__all__ = [
    "WatsonxLlmClient",
    "LlmInvocationError",
    "LlmConfigurationError",
    "PollySpeechService",
    "SpeechResult",
    "SpeechServiceError",
    "S3ObjectStore",
    "StorageLocator",
    "StorageError",
    "InvalidLocatorError",
    "ObjectNotFoundError",
    "TranscribeJobService",
    "TranscriptionJobStatus",
    "TranscriptionServiceError",
    "JobState",
]
