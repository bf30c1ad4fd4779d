"""Language generation stage of the voice pipeline."""

from __future__ import annotations

import logging

from mindspace.services.llm_client import (
    LlmConfigurationError,
    LlmInvocationError,
    WatsonxLlmClient,
)

from .errors import GenerationError
from .types import GeneratedText

logger = logging.getLogger("mindspace.pipeline")

SUPPORTIVE_ASSISTANT_TEMPLATE = (
    "You are Mindspace, a warm and supportive listening companion. "
    "The person below has just spoken to you out loud. Reply in a calm, "
    "encouraging tone, acknowledge how they feel, and offer one or two gentle, "
    "practical suggestions. Keep the answer short enough to be read aloud, "
    "avoid lists and markdown, and never give medical diagnoses. If they "
    "mention being in danger, encourage them to contact local emergency "
    "services or a crisis line.\n\n"
    "Person: {text}\n\n"
    "Mindspace:"
)


def build_prompt(text: str) -> str:
    return SUPPORTIVE_ASSISTANT_TEMPLATE.format(text=text.strip())


class GenerationStage:
    """Wrap the recognized text in the assistant prompt and ask the LLM for a reply."""

    def __init__(self, client: WatsonxLlmClient, *, max_tokens: int | None = None) -> None:
        self._client = client
        self._max_tokens = max_tokens

    async def run(self, text: str) -> GeneratedText:
        if not text or not text.strip():
            raise GenerationError("No text to respond to; the transcript was empty.")

        prompt = build_prompt(text)
        try:
            reply = await self._client.generate(prompt, max_tokens=self._max_tokens)
        except LlmConfigurationError as exc:
            raise GenerationError(str(exc), configuration_missing=True) from exc
        except LlmInvocationError as exc:
            raise GenerationError(f"watsonx.ai error: {exc}") from exc

        return GeneratedText(text=reply, prompt=prompt)


__all__ = ["GenerationStage", "SUPPORTIVE_ASSISTANT_TEMPLATE", "build_prompt"]
