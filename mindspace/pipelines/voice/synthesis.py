"""TTS synthesis stage of the voice pipeline."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Literal

from fastapi.concurrency import run_in_threadpool

from mindspace.services.speech import PollySpeechService, SpeechServiceError
from mindspace.services.storage import S3ObjectStore, StorageError
from mindspace.utils.naming import unique_suffix

from .artifacts import LocalAudioStore
from .errors import SynthesisError
from .truncation import DEFAULT_MAX_SPEECH_CHARS, truncate_for_speech
from .types import SpeechArtifact

logger = logging.getLogger("mindspace.pipeline")


class SynthesisStage:
    """Speak the reply with Polly, then keep a local copy and a durable S3 copy."""

    def __init__(
        self,
        speech: PollySpeechService,
        store: S3ObjectStore,
        local_audio: LocalAudioStore,
        *,
        output_bucket: str,
        key_prefix: str = "polly-output",
        slot_mode: Literal["single", "per_run"] = "per_run",
        max_chars: int = DEFAULT_MAX_SPEECH_CHARS,
        voice_id: str | None = None,
        output_format: str | None = None,
    ) -> None:
        self._speech = speech
        self._store = store
        self._local_audio = local_audio
        self._output_bucket = output_bucket
        self._key_prefix = key_prefix
        self._slot_mode = slot_mode
        self._max_chars = max_chars
        self._voice_id = voice_id
        self._output_format = output_format

    def new_storage_key(self, extension: str) -> str:
        return f"{self._key_prefix}-{unique_suffix()}{extension}"

    async def run(self, text: str, *, run_id: str) -> SpeechArtifact:
        spoken = truncate_for_speech(text, self._max_chars)
        if spoken != text:
            logger.warning(
                "Text truncated from %d to %d characters for Polly", len(text), len(spoken)
            )

        try:
            speech = await self._speech.synthesize(
                spoken,
                voice_id=self._voice_id,
                output_format=self._output_format,
            )
        except SpeechServiceError as exc:
            raise SynthesisError(str(exc), kind="service") from exc

        artifact = SpeechArtifact(
            audio_bytes=speech.audio_bytes,
            media_type=speech.media_type,
            voice_id=speech.voice_id,
            spoken_text=spoken,
            truncated=spoken != text,
        )

        local_error: OSError | None = None
        try:
            local_path = await run_in_threadpool(
                self._write_local, run_id, speech.audio_bytes, speech.extension
            )
        except OSError as exc:
            local_error = exc
            logger.error("Failed to save synthesized audio locally: %s", exc)
        else:
            artifact = replace(
                artifact,
                local_path=local_path,
                public_path=self._local_audio.public_path(local_path),
            )
            logger.info("Speech saved locally to: %s", local_path)

        # The S3 copy is attempted even when the local write failed.
        storage_error: StorageError | None = None
        try:
            locator = await self._store.put(
                self._output_bucket,
                self.new_storage_key(speech.extension),
                speech.audio_bytes,
                speech.media_type,
            )
        except StorageError as exc:
            storage_error = exc
            logger.error("Failed to upload synthesized audio: %s", exc)
        else:
            artifact = replace(artifact, storage=locator)
            logger.info("Speech uploaded to S3: %s", locator.uri)

        if local_error and storage_error:
            raise SynthesisError(
                f"Local save failed ({local_error}) and S3 upload failed ({storage_error})",
                kind="local_and_storage_write",
                artifact=artifact,
            ) from storage_error
        if local_error:
            raise SynthesisError(
                f"Local save failed: {local_error}",
                kind="local_write",
                artifact=artifact,
            ) from local_error
        if storage_error:
            raise SynthesisError(
                f"S3 upload failed: {storage_error}",
                kind="storage_write",
                artifact=artifact,
            ) from storage_error
        return artifact

    def _write_local(self, run_id: str, data: bytes, extension: str) -> Path:
        if self._slot_mode == "single":
            return self._local_audio.write_current(data, extension)
        return self._local_audio.write_for_run(run_id, data, extension)


__all__ = ["SynthesisStage"]
