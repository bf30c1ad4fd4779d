"""Common FastAPI dependencies reused across controllers.

Each external client is built once per process and handed to the pipeline
explicitly; tests swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from mindspace.config.settings import settings
from mindspace.pipelines.voice import (
    GenerationStage,
    LocalAudioStore,
    SynthesisStage,
    TranscriptionStage,
    VoicePipeline,
)
from mindspace.services import (
    PollySpeechService,
    S3ObjectStore,
    TranscribeJobService,
    WatsonxLlmClient,
)
from mindspace.services.aws import create_boto3_client


@lru_cache(maxsize=1)
def get_object_store() -> S3ObjectStore:
    return S3ObjectStore(create_boto3_client("s3"))


@lru_cache(maxsize=1)
def get_local_audio_store() -> LocalAudioStore:
    return LocalAudioStore(
        settings.pipeline.audio_output_dir,
        current_filename=settings.pipeline.current_audio_filename,
        public_root=settings.pipeline.public_dir,
        max_files=settings.pipeline.max_local_audio_files,
    )


@lru_cache(maxsize=1)
def get_llm_client() -> WatsonxLlmClient:
    return WatsonxLlmClient(settings.watsonx)


@lru_cache(maxsize=1)
def get_voice_pipeline() -> VoicePipeline:
    """Assemble the coordinator from the process-wide client handles."""

    store = get_object_store()
    transcription = TranscriptionStage(
        store,
        TranscribeJobService(create_boto3_client("transcribe"), settings.transcribe),
        settings.transcribe,
        input_bucket=settings.s3.input_bucket,
        transcript_bucket=settings.s3.resolved_transcript_bucket,
    )
    generation = GenerationStage(
        get_llm_client(),
        max_tokens=settings.watsonx.max_new_tokens,
    )
    synthesis = SynthesisStage(
        PollySpeechService(create_boto3_client("polly"), settings.polly),
        store,
        get_local_audio_store(),
        output_bucket=settings.s3.output_bucket,
        key_prefix=settings.pipeline.synthesis_prefix,
        slot_mode=settings.pipeline.audio_slot_mode,
        max_chars=settings.pipeline.max_speech_chars,
    )
    return VoicePipeline(transcription, generation, synthesis)


ObjectStoreDep = Annotated[S3ObjectStore, Depends(get_object_store)]
LocalAudioDep = Annotated[LocalAudioStore, Depends(get_local_audio_store)]
VoicePipelineDep = Annotated[VoicePipeline, Depends(get_voice_pipeline)]


__all__ = [
    "LocalAudioDep",
    "ObjectStoreDep",
    "VoicePipelineDep",
    "get_llm_client",
    "get_local_audio_store",
    "get_object_store",
    "get_voice_pipeline",
]
