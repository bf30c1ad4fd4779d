"""Coordinator for the voice-in, voice-out pipeline.

A full run executes three stages strictly in order:

1. ``transcription`` – submit an Amazon Transcribe job for the uploaded
   recording, wait for it, and persist the plain-text transcript.
2. ``generation`` – wrap the transcript in the supportive-assistant prompt and
   ask watsonx.ai for a reply.
3. ``synthesis`` – speak the reply with Polly, keep a local copy for playback,
   and store a uniquely keyed copy in S3.

The first failing stage ends the run. Nothing is retried and object-store
writes that already happened are not rolled back.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Iterable, List, TypeVar

from mindspace.telemetry import observe_stage, record_pipeline_run
from mindspace.utils.naming import new_run_id

from .errors import PipelineError, SynthesisError
from .generation import GenerationStage
from .synthesis import SynthesisStage
from .transcription import TranscriptionStage
from .types import (
    GeneratedText,
    PipelineResult,
    PipelineStageName,
    SpeechArtifact,
    TranscriptText,
)

logger = logging.getLogger("mindspace.pipeline")
transcript_logger = logging.getLogger("mindspace.logs.transcript")

T = TypeVar("T")


@dataclass(frozen=True)
class StageDescription:
    """Human-readable description of one stage in the voice pipeline."""

    order: int
    name: PipelineStageName
    service: str
    summary: str


def _preview(value: str, max_length: int = 100) -> str:
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."


class VoicePipeline:
    """Drive one recording through transcription, generation, and synthesis."""

    _STAGES: List[StageDescription] = [
        StageDescription(
            1,
            PipelineStageName.TRANSCRIPTION,
            "Amazon Transcribe",
            "Verify the uploaded recording, run a transcription job, and save the text to S3.",
        ),
        StageDescription(
            2,
            PipelineStageName.GENERATION,
            "IBM watsonx.ai Granite",
            "Wrap the transcript in the supportive-assistant prompt and generate a reply.",
        ),
        StageDescription(
            3,
            PipelineStageName.SYNTHESIS,
            "Amazon Polly",
            "Truncate the reply for speech, synthesize audio, save it locally and to S3.",
        ),
    ]

    def __init__(
        self,
        transcription: TranscriptionStage,
        generation: GenerationStage,
        synthesis: SynthesisStage,
    ) -> None:
        self._transcription = transcription
        self._generation = generation
        self._synthesis = synthesis

    @classmethod
    def describe(cls) -> Iterable[StageDescription]:
        """Expose the ordered list of stages for status reports."""

        return tuple(cls._STAGES)

    async def run(self, audio_reference: str) -> PipelineResult:
        """Run the full pipeline for a recording stored in the input bucket."""

        run_id = new_run_id()
        completed: list[PipelineStageName] = []
        transcript: TranscriptText | None = None
        generated: GeneratedText | None = None
        logger.info("Starting voice pipeline run=%s audio=%s", run_id, audio_reference)

        try:
            transcript = await self._timed(
                PipelineStageName.TRANSCRIPTION,
                self._transcription.run(audio_reference),
            )
            completed.append(PipelineStageName.TRANSCRIPTION)
            logger.info(
                "Transcription completed run=%s job=%s: %s",
                run_id,
                transcript.job_name,
                _preview(transcript.text),
            )

            generated = await self._timed(
                PipelineStageName.GENERATION,
                self._generation.run(transcript.text),
            )
            completed.append(PipelineStageName.GENERATION)
            transcript_logger.info(
                "run=%s | heard=%s | reply=%s", run_id, transcript.text, generated.text
            )

            audio = await self._timed(
                PipelineStageName.SYNTHESIS,
                self._synthesis.run(generated.text, run_id=run_id),
            )
            completed.append(PipelineStageName.SYNTHESIS)
        except PipelineError as exc:
            return self._failure(
                run_id,
                exc,
                completed,
                input_text=transcript.text if transcript else None,
                generated=generated,
                transcript=transcript,
            )

        return self._success(
            run_id,
            completed,
            input_text=transcript.text,
            generated=generated,
            audio=audio,
            transcript=transcript,
        )

    async def run_text(self, text: str) -> PipelineResult:
        """Skip transcription: generate a reply for ``text`` and speak it."""

        run_id = new_run_id()
        completed: list[PipelineStageName] = []
        generated: GeneratedText | None = None
        logger.info("Starting text pipeline run=%s: %s", run_id, _preview(text))

        try:
            generated = await self._timed(
                PipelineStageName.GENERATION,
                self._generation.run(text),
            )
            completed.append(PipelineStageName.GENERATION)
            transcript_logger.info("run=%s | typed=%s | reply=%s", run_id, text, generated.text)

            audio = await self._timed(
                PipelineStageName.SYNTHESIS,
                self._synthesis.run(generated.text, run_id=run_id),
            )
            completed.append(PipelineStageName.SYNTHESIS)
        except PipelineError as exc:
            return self._failure(run_id, exc, completed, input_text=text, generated=generated)

        return self._success(run_id, completed, input_text=text, generated=generated, audio=audio)

    async def _timed(self, stage: PipelineStageName, step: Awaitable[T]) -> T:
        started = time.perf_counter()
        succeeded = False
        try:
            result = await step
            succeeded = True
            return result
        finally:
            observe_stage(stage.value, succeeded, time.perf_counter() - started)

    def _success(
        self,
        run_id: str,
        completed: list[PipelineStageName],
        *,
        input_text: str,
        generated: GeneratedText,
        audio: SpeechArtifact,
        transcript: TranscriptText | None = None,
    ) -> PipelineResult:
        record_pipeline_run(None)
        logger.info(
            "Voice pipeline finished run=%s audio=%s storage=%s",
            run_id,
            audio.public_path,
            audio.storage.uri if audio.storage else None,
        )
        return PipelineResult(
            success=True,
            run_id=run_id,
            input_text=input_text,
            generated_text=generated.text,
            audio=audio,
            transcript=transcript,
            completed_stages=tuple(completed),
        )

    def _failure(
        self,
        run_id: str,
        exc: PipelineError,
        completed: list[PipelineStageName],
        *,
        input_text: str | None,
        generated: GeneratedText | None,
        transcript: TranscriptText | None = None,
    ) -> PipelineResult:
        record_pipeline_run(exc.stage.value)
        logger.error(
            "Voice pipeline failed run=%s stage=%s error=%s: %s",
            run_id,
            exc.stage.value,
            type(exc).__name__,
            exc.message,
        )
        return PipelineResult(
            success=False,
            run_id=run_id,
            input_text=input_text,
            generated_text=generated.text if generated else None,
            audio=exc.artifact if isinstance(exc, SynthesisError) else None,
            transcript=transcript,
            completed_stages=tuple(completed),
            failed_stage=exc.stage,
            error=exc.message,
            error_type=type(exc).__name__,
        )


__all__ = ["StageDescription", "VoicePipeline"]
