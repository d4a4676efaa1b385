"""OpenAI generation backend — chat completions via httpx."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

import httpx

from fathom.backends.base import raise_for_provider_status, timeout_error
from fathom.config import Settings, settings as default_settings
from fathom.errors import GenerationFailure, UnknownProviderError

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


class OpenAIChat:
    """Generation backend using OpenAI's chat completions API."""

    name: str = "OpenAI"

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        model: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.api_key = api_key or self.settings.openai_api_key
        self.model = model or self.settings.openai_model
        self.url = f"{self.settings.openai_api_url.rstrip('/')}/chat/completions"
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.generation_timeout, transport=self._transport
        )

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _payload(self, messages: list[dict], temperature: float, max_tokens: int, stream: bool) -> dict:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": stream,
        }

    async def complete(
        self, messages: list[dict], *, temperature: float, max_tokens: int
    ) -> str:
        """Run a non-streaming completion and return its text."""
        try:
            async with self._client() as client:
                response = await client.post(
                    self.url,
                    headers=self._headers(),
                    json=self._payload(messages, temperature, max_tokens, stream=False),
                )
        except httpx.TimeoutException as exc:
            raise timeout_error(exc, self.name) from exc
        except httpx.HTTPError as exc:
            raise UnknownProviderError(f"{self.name}: {exc}", provider=self.name) from exc

        raise_for_provider_status(response, self.name)
        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return ""
        text = (choices[0].get("message") or {}).get("content") or ""
        logger.debug("OpenAI completion returned %d chars", len(text))
        return text

    async def stream(
        self, messages: list[dict], *, temperature: float, max_tokens: int
    ) -> AsyncIterator[str]:
        """Stream a completion, yielding content deltas in arrival order."""
        started = False
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    self.url,
                    headers=self._headers(),
                    json=self._payload(messages, temperature, max_tokens, stream=True),
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        raise_for_provider_status(response, self.name)
                    started = True
                    async for line in response.aiter_lines():
                        fragment = self._parse_line(line)
                        if fragment is None:
                            break
                        if fragment:
                            yield fragment
        except httpx.TimeoutException as exc:
            if started:
                raise GenerationFailure(
                    f"{self.name}: stream timed out", status_code=504, provider=self.name
                ) from exc
            raise timeout_error(exc, self.name) from exc
        except httpx.HTTPError as exc:
            if started:
                raise GenerationFailure(
                    f"{self.name}: stream interrupted ({exc})", provider=self.name
                ) from exc
            raise UnknownProviderError(f"{self.name}: {exc}", provider=self.name) from exc

    def _parse_line(self, line: str) -> str | None:
        """Extract a content delta from one SSE line.

        Returns None at end of stream and "" for lines carrying no content.
        """
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            return ""
        payload = line[len(SSE_DATA_PREFIX):].strip()
        if payload == SSE_DONE:
            return None
        try:
            chunk = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Skipping malformed stream chunk: %s", payload[:200])
            return ""
        error = chunk.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise GenerationFailure(f"{self.name}: {message}", provider=self.name)
        choices = chunk.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("delta") or {}).get("content") or ""
