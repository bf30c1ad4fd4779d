"""Shared fakes for the voice pipeline tests."""

from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Any, Iterable

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from mindspace.config.settings import TranscribeConfig  # noqa: E402
from mindspace.pipelines.voice import (  # noqa: E402
    GenerationStage,
    LocalAudioStore,
    SynthesisStage,
    TranscriptionStage,
    VoicePipeline,
)
from mindspace.services import (  # noqa: E402
    JobState,
    LlmInvocationError,
    ObjectNotFoundError,
    SpeechResult,
    SpeechServiceError,
    StorageError,
    StorageLocator,
    TranscriptionJobStatus,
)

INPUT_BUCKET = "test-in"
OUTPUT_BUCKET = "test-out"


class InMemoryObjectStore:
    def __init__(self, calls: list[str] | None = None) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.calls = calls if calls is not None else []
        self.fail_puts_to: set[str] = set()

    async def put(self, bucket: str, key: str, data: bytes, content_type: str) -> StorageLocator:
        self.calls.append(f"store.put:{bucket}/{key}")
        if bucket in self.fail_puts_to:
            raise StorageError(f"Failed to upload s3://{bucket}/{key}: AccessDenied")
        self.objects[(bucket, key)] = (bytes(data), content_type)
        return StorageLocator(bucket, key)

    async def put_text(self, bucket: str, key: str, text: str) -> StorageLocator:
        return await self.put(bucket, key, text.encode("utf-8"), "text/plain")

    async def get(self, bucket: str, key: str) -> bytes:
        try:
            return self.objects[(bucket, key)][0]
        except KeyError:
            raise ObjectNotFoundError(f"Object not found: s3://{bucket}/{key}") from None

    async def get_json(self, bucket: str, key: str) -> Any:
        payload = await self.get(bucket, key)
        try:
            return json.loads(payload.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise StorageError(f"Object s3://{bucket}/{key} is not valid JSON") from exc

    async def exists(self, bucket: str, key: str) -> bool:
        self.calls.append(f"store.exists:{bucket}/{key}")
        return (bucket, key) in self.objects

    def keys(self, bucket: str) -> list[str]:
        return sorted(key for b, key in self.objects if b == bucket)


class FakeTranscribeService:
    """Replays a scripted sequence of job states and writes the result document."""

    def __init__(
        self,
        store: InMemoryObjectStore,
        states: Iterable[JobState] = (JobState.RUNNING, JobState.COMPLETED),
        *,
        segments: Iterable[str] = ("I feel a bit anxious today.",),
        calls: list[str] | None = None,
        failure_reason: str | None = None,
        write_document: bool = True,
    ) -> None:
        self.store = store
        self.states = list(states)
        self.segments = list(segments)
        self.calls = calls if calls is not None else []
        self.failure_reason = failure_reason
        self.write_document = write_document
        self.submitted: list[tuple[str, StorageLocator, str]] = []
        self.polls = 0

    async def submit(self, job_name: str, source: StorageLocator, *, output_bucket: str) -> None:
        self.calls.append("transcribe.submit")
        self.submitted.append((job_name, source, output_bucket))

    async def get_status(self, job_name: str) -> TranscriptionJobStatus:
        self.calls.append("transcribe.status")
        state = self.states[min(self.polls, len(self.states) - 1)]
        self.polls += 1
        if state is JobState.COMPLETED and self.write_document:
            output_bucket = self.submitted[-1][2]
            document = {
                "jobName": job_name,
                "results": {"transcripts": [{"transcript": s} for s in self.segments]},
            }
            self.store.objects[(output_bucket, f"{job_name}.json")] = (
                json.dumps(document).encode("utf-8"),
                "application/json",
            )
        return TranscriptionJobStatus(
            job_name=job_name,
            state=state,
            transcript_uri=f"https://s3.amazonaws.com/{job_name}.json",
            failure_reason=self.failure_reason if state is JobState.FAILED else None,
        )


class FakeLlmClient:
    def __init__(
        self,
        reply: str = "That sounds hard. Try a slow breath.",
        *,
        error: Exception | None = None,
        calls: list[str] | None = None,
    ) -> None:
        self.reply = reply
        self.error = error
        self.calls = calls if calls is not None else []
        self.prompts: list[tuple[str, int | None]] = []

    async def generate(self, prompt: str, *, max_tokens: int | None = None) -> str:
        self.calls.append("llm.generate")
        self.prompts.append((prompt, max_tokens))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSpeechService:
    def __init__(
        self,
        audio_chunks: Iterable[bytes] = (b"audio-1", b"audio-2", b"audio-3"),
        *,
        error: Exception | None = None,
        calls: list[str] | None = None,
    ) -> None:
        self.audio_chunks = list(audio_chunks)
        self.error = error
        self.calls = calls if calls is not None else []
        self.texts: list[str] = []

    async def synthesize(
        self,
        text: str,
        *,
        voice_id: str | None = None,
        output_format: str | None = None,
    ) -> SpeechResult:
        self.calls.append("speech.synthesize")
        if self.error is not None:
            raise self.error
        self.texts.append(text)
        audio = self.audio_chunks[min(len(self.texts) - 1, len(self.audio_chunks) - 1)]
        return SpeechResult(
            audio_bytes=audio,
            media_type="audio/mpeg",
            extension=".mp3",
            voice_id=voice_id or "Joanna",
            output_format=output_format or "mp3",
        )


@pytest.fixture()
def calls() -> list[str]:
    return []


@pytest.fixture()
def transcribe_config() -> TranscribeConfig:
    return TranscribeConfig(
        poll_interval_seconds=0.001,
        max_poll_interval_seconds=0.005,
        max_wait_seconds=2.0,
    )


@pytest.fixture()
def store(calls: list[str]) -> InMemoryObjectStore:
    object_store = InMemoryObjectStore(calls)
    object_store.objects[(INPUT_BUCKET, "recording-1.mp3")] = (b"ID3-recording", "audio/mp3")
    return object_store


@pytest.fixture()
def local_audio(tmp_path: Path) -> LocalAudioStore:
    return LocalAudioStore(tmp_path / "public" / "aud_op", public_root=tmp_path / "public")


@pytest.fixture()
def transcribe_service(store: InMemoryObjectStore, calls: list[str]) -> FakeTranscribeService:
    return FakeTranscribeService(store, calls=calls)


@pytest.fixture()
def llm(calls: list[str]) -> FakeLlmClient:
    return FakeLlmClient(calls=calls)


@pytest.fixture()
def speech(calls: list[str]) -> FakeSpeechService:
    return FakeSpeechService(calls=calls)


def make_pipeline(
    store: InMemoryObjectStore,
    transcribe_service: FakeTranscribeService,
    llm: FakeLlmClient,
    speech: FakeSpeechService,
    local_audio: LocalAudioStore,
    transcribe_config: TranscribeConfig,
    *,
    slot_mode: str = "per_run",
    max_chars: int = 2500,
) -> VoicePipeline:
    transcription = TranscriptionStage(
        store,
        transcribe_service,
        transcribe_config,
        input_bucket=INPUT_BUCKET,
        transcript_bucket=INPUT_BUCKET,
    )
    generation = GenerationStage(llm, max_tokens=150)
    synthesis = SynthesisStage(
        speech,
        store,
        local_audio,
        output_bucket=OUTPUT_BUCKET,
        slot_mode=slot_mode,
        max_chars=max_chars,
    )
    return VoicePipeline(transcription, generation, synthesis)


@pytest.fixture()
def pipeline(store, transcribe_service, llm, speech, local_audio, transcribe_config) -> VoicePipeline:
    return make_pipeline(store, transcribe_service, llm, speech, local_audio, transcribe_config)


__all__ = [
    "FakeLlmClient",
    "FakeSpeechService",
    "FakeTranscribeService",
    "InMemoryObjectStore",
    "INPUT_BUCKET",
    "LlmInvocationError",
    "OUTPUT_BUCKET",
    "SpeechServiceError",
    "make_pipeline",
]
