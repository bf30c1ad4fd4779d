"""Voice pipeline package.

Modules are organised by the order in which `/upload-to-s3` executes:

1. `ingestion` – validate the upload and stage it in the input bucket.
2. `transcription` – run an Amazon Transcribe job and collect the text.
3. `generation` – prompt watsonx.ai for a supportive reply.
4. `truncation` – fit the reply into Polly's input limit.
5. `synthesis` – speak the reply and store the audio locally and in S3.
6. `flow` – the coordinator that chains the stages and reports failures.
"""

from .artifacts import LocalAudioStore
from .errors import (
    GenerationError,
    InvalidReferenceError,
    PipelineError,
    PipelineTimeoutError,
    ResultParseError,
    SourceNotFoundError,
    SynthesisError,
    TranscriptPersistError,
    TranscriptionFailedError,
)
from .flow import StageDescription, VoicePipeline
from .generation import GenerationStage, build_prompt
from .ingestion import (
    UploadRejectedError,
    read_audio_bytes,
    resolve_content_type,
    upload_recording,
)
from .synthesis import SynthesisStage
from .transcription import TranscriptionStage, extract_transcript
from .truncation import truncate_for_speech
from .types import (
    GeneratedText,
    PipelineResult,
    PipelineStageName,
    SpeechArtifact,
    TranscriptText,
)

__all__ = [
    "VoicePipeline",
    "StageDescription",
    "PipelineResult",
    "PipelineStageName",
    "TranscriptText",
    "GeneratedText",
    "SpeechArtifact",
    "TranscriptionStage",
    "GenerationStage",
    "SynthesisStage",
    "LocalAudioStore",
    "PipelineError",
    "InvalidReferenceError",
    "SourceNotFoundError",
    "TranscriptionFailedError",
    "TranscriptPersistError",
    "ResultParseError",
    "PipelineTimeoutError",
    "GenerationError",
    "SynthesisError",
    "UploadRejectedError",
    "build_prompt",
    "extract_transcript",
    "read_audio_bytes",
    "resolve_content_type",
    "truncate_for_speech",
    "upload_recording",
]
