"""Amazon Polly text-to-speech client."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from mindspace.config.settings import PollyConfig

logger = logging.getLogger(__name__)

_MEDIA_TYPES = {
    "mp3": ("audio/mpeg", ".mp3"),
    "ogg_vorbis": ("audio/ogg", ".ogg"),
    "pcm": ("audio/pcm", ".pcm"),
}


def media_type_for(output_format: str) -> tuple[str, str]:
    """Return ``(content_type, file_extension)`` for a Polly output format."""

    try:
        return _MEDIA_TYPES[output_format]
    except KeyError as exc:
        raise SpeechServiceError(f"Unsupported Polly output format: {output_format}") from exc


@dataclass(frozen=True)
class SpeechResult:
    """Synthesised audio bytes returned by Polly."""

    audio_bytes: bytes
    media_type: str
    extension: str
    voice_id: str
    output_format: str


class SpeechServiceError(RuntimeError):
    """Raised when Polly speech generation fails."""


class PollySpeechService:
    """Generate speech audio with Amazon Polly."""

    def __init__(self, client: Any, config: PollyConfig) -> None:
        self._client = client
        self._config = config

    async def synthesize(
        self,
        text: str,
        *,
        voice_id: str | None = None,
        output_format: str | None = None,
    ) -> SpeechResult:
        """Convert text to speech and return the complete audio buffer."""

        voice = voice_id or self._config.voice_id
        fmt = output_format or self._config.output_format
        media_type, extension = media_type_for(fmt)

        params: dict[str, Any] = {
            "Text": text,
            "VoiceId": voice,
            "OutputFormat": fmt,
        }
        if self._config.engine:
            params["Engine"] = self._config.engine

        def _call() -> bytes:
            response = self._client.synthesize_speech(**params)
            audio_stream = response.get("AudioStream")
            if audio_stream is None:
                raise SpeechServiceError("Polly returned no audio stream.")
            try:
                return audio_stream.read()
            finally:
                audio_stream.close()

        try:
            audio_bytes = await run_in_threadpool(_call)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Polly synth failed for voice '%s'", voice)
            raise SpeechServiceError(f"Failed to synthesize speech: {exc}") from exc

        if not audio_bytes:
            raise SpeechServiceError("Polly returned an empty audio stream.")

        return SpeechResult(
            audio_bytes=audio_bytes,
            media_type=media_type,
            extension=extension,
            voice_id=voice,
            output_format=fmt,
        )


__all__ = [
    "PollySpeechService",
    "SpeechResult",
    "SpeechServiceError",
    "media_type_for",
]
