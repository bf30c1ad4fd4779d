"""Thin watsonx.ai client wrapper for Granite text generation."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from mindspace.config.settings import WatsonxConfig

logger = logging.getLogger(__name__)

_TOKEN_REFRESH_MARGIN_SECONDS = 60.0


class LlmInvocationError(RuntimeError):
    """Raised when the watsonx.ai invocation fails."""


class LlmConfigurationError(LlmInvocationError):
    """Raised when credentials or endpoints required by watsonx.ai are missing."""


def _preview(value: str, max_length: int = 120) -> str:
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."


def _format_http_error(response: httpx.Response) -> str:
    detail = response.text.strip()
    if len(detail) > 500:
        detail = detail[:500] + "..."
    if detail:
        return f"HTTP {response.status_code} {response.reason_phrase}: {detail}"
    return f"HTTP {response.status_code} {response.reason_phrase}"


class WatsonxLlmClient:
    """Invoke watsonx.ai foundation models with standard configuration."""

    def __init__(
        self,
        config: WatsonxConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = http_client
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def model_id(self) -> str:
        return self._config.model_id

    def missing_configuration(self) -> list[str]:
        """Return the names of required settings that are not configured."""

        missing: list[str] = []
        if not self._config.api_key or not self._config.api_key.get_secret_value():
            missing.append("WATSONX_AI_APIKEY")
        if not self._config.url:
            missing.append("WATSONX_AI_URL")
        if not self._config.project_id:
            missing.append("WATSONX_AI_PROJECT_ID")
        return missing

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _access_token(self) -> str:
        """Exchange the API key for an IAM bearer token, reusing it until near expiry."""

        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        api_key = self._config.api_key.get_secret_value() if self._config.api_key else ""
        try:
            response = await self._get_client().post(
                self._config.iam_url,
                data={
                    "grant_type": "urn:ibm:params:oauth:grant-type:apikey",
                    "apikey": api_key,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise LlmInvocationError(f"IAM token request failed: {exc}") from exc

        if response.status_code != 200:
            raise LlmInvocationError(f"IAM token request failed: {_format_http_error(response)}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise LlmInvocationError("IAM token response was not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise LlmInvocationError("IAM token response was not a JSON object.")

        token = payload.get("access_token")
        if not token or not isinstance(token, str):
            raise LlmInvocationError("IAM token response did not include an access_token.")

        try:
            expires_in = float(payload.get("expires_in") or 3600)
        except (TypeError, ValueError):
            expires_in = 3600.0

        self._token = token
        self._token_expires_at = time.monotonic() + max(
            0.0, expires_in - _TOKEN_REFRESH_MARGIN_SECONDS
        )
        return token

    async def generate(self, prompt: str, *, max_tokens: int | None = None) -> str:
        """Run a text generation call and return the generated text."""

        if not prompt or not isinstance(prompt, str):
            raise LlmInvocationError("Input text is required and must be a string")

        missing = self.missing_configuration()
        if missing:
            raise LlmConfigurationError(
                "watsonx.ai client not configured; set " + ", ".join(missing)
            )

        body: dict[str, Any] = {
            "input": prompt,
            "model_id": self._config.model_id,
            "project_id": self._config.project_id,
            "parameters": {
                "decoding_method": "sample",
                "max_new_tokens": max_tokens or self._config.max_new_tokens,
                "temperature": self._config.temperature,
                "top_p": self._config.top_p,
            },
        }

        logger.info("Sending request to watsonx.ai model %s", self._config.model_id)
        logger.debug("Prompt preview: %s", _preview(prompt))

        token = await self._access_token()
        url = f"{self._config.url.rstrip('/')}/ml/v1/text/generation"
        try:
            response = await self._get_client().post(
                url,
                params={"version": self._config.api_version},
                json=body,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise LlmInvocationError(f"watsonx.ai request failed: {exc}") from exc

        if response.status_code == 401:
            # Token revoked or expired early; drop it so the next call re-authenticates.
            self._token = None
        if response.status_code >= 400:
            raise LlmInvocationError(f"watsonx.ai request failed: {_format_http_error(response)}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise LlmInvocationError("watsonx.ai returned a non-JSON response.") from exc

        text = self._extract_text(payload)
        if not text:
            raise LlmInvocationError("watsonx.ai returned no generated text.")
        return text

    @staticmethod
    def _extract_text(payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        results = payload.get("results")
        if isinstance(results, list) and results and isinstance(results[0], dict):
            return str(results[0].get("generated_text") or "").strip()
        generations = payload.get("generations")
        if isinstance(generations, list) and generations and isinstance(generations[0], dict):
            return str(generations[0].get("text") or "").strip()
        return ""


__all__ = ["LlmConfigurationError", "LlmInvocationError", "WatsonxLlmClient"]
