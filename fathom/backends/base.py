"""Base protocols for the search and generation providers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

import httpx

from fathom.errors import ProviderError, provider_error
from fathom.models.source import SourceDocument


@runtime_checkable
class SearchBackend(Protocol):
    """Interface for web search providers."""

    name: str

    async def search(self, query: str, limit: int) -> list[SourceDocument]:
        """Return up to ``limit`` documents for ``query``, each with a URL."""
        ...


@runtime_checkable
class GenerationBackend(Protocol):
    """Interface for chat-completion providers."""

    name: str

    def stream(
        self, messages: list[dict], *, temperature: float, max_tokens: int
    ) -> AsyncIterator[str]:
        """Yield answer text fragments as the provider produces them."""
        ...

    async def complete(
        self, messages: list[dict], *, temperature: float, max_tokens: int
    ) -> str:
        """Return the full generated text."""
        ...


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return str(error.get("message", error))
        if error:
            return str(error)
    return response.text[:200]


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Raise the matching ProviderError for a non-2xx response.

    The body must already be read (``await response.aread()`` for streams).
    """
    if response.is_success:
        return
    detail = _error_detail(response) or response.reason_phrase
    raise provider_error(response.status_code, f"{provider}: {detail}", provider=provider)


def timeout_error(exc: httpx.TimeoutException, provider: str) -> ProviderError:
    return provider_error(504, f"{provider}: request timed out ({exc})", provider=provider)
