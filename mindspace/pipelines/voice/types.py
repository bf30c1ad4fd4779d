"""Typed containers shared across the voice pipeline.

These dataclasses live in their own module so the stages (`transcription`,
`generation`, `synthesis`) and the coordinator in `flow` can import them
without creating circular dependencies.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

from mindspace.services.storage import StorageLocator


class PipelineStageName(str, enum.Enum):
    TRANSCRIPTION = "transcription"
    GENERATION = "generation"
    SYNTHESIS = "synthesis"


@dataclass(frozen=True)
class TranscriptText:
    """Recognized text of a completed transcription job."""

    text: str
    job_name: str
    source: StorageLocator
    text_locator: StorageLocator


@dataclass(frozen=True)
class GeneratedText:
    """Language-model output and the prompt that produced it."""

    text: str
    prompt: str


@dataclass(frozen=True)
class SpeechArtifact:
    """Synthesized audio and where copies of it ended up.

    ``local_path`` or ``storage`` is ``None`` when the respective write failed.
    """

    audio_bytes: bytes = field(repr=False)
    media_type: str
    voice_id: str
    spoken_text: str
    truncated: bool
    local_path: Path | None = None
    public_path: str | None = None
    storage: StorageLocator | None = None


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one end-to-end run; returned to the caller, never persisted."""

    success: bool
    run_id: str
    input_text: str | None = None
    generated_text: str | None = None
    audio: SpeechArtifact | None = None
    transcript: TranscriptText | None = None
    completed_stages: tuple[PipelineStageName, ...] = ()
    failed_stage: PipelineStageName | None = None
    error: str | None = None
    error_type: str | None = None

    @property
    def audio_file(self) -> str | None:
        return self.audio.public_path if self.audio else None

    @property
    def audio_url(self) -> str | None:
        if self.audio and self.audio.storage:
            return self.audio.storage.uri
        return None


__all__ = [
    "GeneratedText",
    "PipelineResult",
    "PipelineStageName",
    "SpeechArtifact",
    "TranscriptText",
]
