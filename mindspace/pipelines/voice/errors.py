"""Failure taxonomy of the voice pipeline.

Every error carries the stage it belongs to so the coordinator can report
which part of the run broke without inspecting messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from .types import PipelineStageName

if TYPE_CHECKING:
    from .types import SpeechArtifact


class PipelineError(RuntimeError):
    """Base class for stage failures."""

    stage: PipelineStageName = PipelineStageName.TRANSCRIPTION

    def __init__(self, message: str, *, stage: PipelineStageName | None = None) -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage


class InvalidReferenceError(PipelineError):
    """The audio reference is not a well-formed storage locator."""


class SourceNotFoundError(PipelineError):
    """The referenced audio object does not exist or is inaccessible."""


class TranscriptionFailedError(PipelineError):
    """Transcribe could not start the job or reported it as FAILED."""


class ResultParseError(PipelineError):
    """The transcript document is missing or not in the expected shape."""


class PipelineTimeoutError(PipelineError, TimeoutError):
    """The transcription job did not reach a terminal state in time."""


class TranscriptPersistError(PipelineError):
    """The plain-text transcript could not be written back to storage."""


class GenerationError(PipelineError):
    """The language model could not produce a reply."""

    stage = PipelineStageName.GENERATION

    def __init__(self, message: str, *, configuration_missing: bool = False) -> None:
        super().__init__(message)
        self.configuration_missing = configuration_missing


SynthesisFailureKind = Literal[
    "service",
    "local_write",
    "storage_write",
    "local_and_storage_write",
]


class SynthesisError(PipelineError):
    """Speech synthesis or one of the audio writes failed.

    For write failures ``artifact`` holds the synthesized audio and whichever
    copy was written successfully.
    """

    stage = PipelineStageName.SYNTHESIS

    def __init__(
        self,
        message: str,
        *,
        kind: SynthesisFailureKind = "service",
        artifact: "SpeechArtifact | None" = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.artifact = artifact


__all__ = [
    "GenerationError",
    "InvalidReferenceError",
    "PipelineError",
    "PipelineTimeoutError",
    "ResultParseError",
    "SourceNotFoundError",
    "SynthesisError",
    "SynthesisFailureKind",
    "TranscriptPersistError",
    "TranscriptionFailedError",
]
