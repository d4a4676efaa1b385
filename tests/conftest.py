"""Shared fixtures and in-memory providers for Fathom tests."""

from __future__ import annotations

import asyncio
import json

import pytest

from fathom.config import Settings
from fathom.models.source import SourceDocument
from fathom.models.turn import Message, Turn


class FakeSearch:
    """Search backend returning canned documents (or raising)."""

    name = "FakeSearch"

    def __init__(self, documents=None, error: Exception | None = None) -> None:
        self.documents = list(documents or [])
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def search(self, query: str, limit: int) -> list[SourceDocument]:
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.documents[:limit]


class FakeGenerator:
    """Generation backend with scripted stream fragments and follow-up text."""

    name = "FakeGenerator"

    def __init__(
        self,
        fragments=("Paris ", "is the capital ", "of France [1]."),
        follow_up: str = "What is the population of Paris?\nWhen did Paris become the capital?",
        stream_error: Exception | None = None,
        complete_error: Exception | None = None,
        block_stream: bool = False,
        block_complete: bool = False,
    ) -> None:
        self.fragments = list(fragments)
        self.follow_up = follow_up
        self.stream_error = stream_error
        self.complete_error = complete_error
        self.block_stream = block_stream
        self.block_complete = block_complete
        self.stream_messages: list[list[dict]] = []
        self.complete_messages: list[list[dict]] = []
        self.stream_cancelled = False
        self.complete_cancelled = False

    async def stream(self, messages, *, temperature, max_tokens):
        self.stream_messages.append(messages)
        try:
            for fragment in self.fragments:
                await asyncio.sleep(0)
                yield fragment
            if self.stream_error is not None:
                raise self.stream_error
            if self.block_stream:
                await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.stream_cancelled = True
            raise

    async def complete(self, messages, *, temperature, max_tokens):
        self.complete_messages.append(messages)
        try:
            if self.block_complete:
                await asyncio.Event().wait()
            await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.complete_cancelled = True
            raise
        if self.complete_error is not None:
            raise self.complete_error
        return self.follow_up


def parse_data_stream(body: str) -> list[dict]:
    """Decode a data stream body into event dicts (text parts become tokens)."""
    events = []
    for line in body.splitlines():
        if not line:
            continue
        prefix, _, payload = line.partition(":")
        if prefix == "0":
            events.append({"type": "token", "text": json.loads(payload)})
        elif prefix == "2":
            events.extend(json.loads(payload))
    return events


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        firecrawl_api_key="fc-test",
        openai_api_key="sk-test",
        sources_render_delay=0,
    )


@pytest.fixture
def documents() -> list[SourceDocument]:
    return [
        SourceDocument(
            url="https://example.com/paris",
            title="Paris",
            markdown="Paris is the capital and most populous city of France.",
        ),
        SourceDocument(
            url="https://example.com/france",
            title="France",
            content="France is a country in Western Europe.",
        ),
        SourceDocument(url="https://example.com/empty", title="Empty page"),
    ]


@pytest.fixture
def first_turn() -> Turn:
    return Turn.from_messages([Message("user", "What is the capital of France?")])


@pytest.fixture
def follow_up_turn() -> Turn:
    return Turn.from_messages([
        Message("user", "What is the capital of France?"),
        Message("assistant", "Paris is the capital of France [1]."),
        Message("user", "How big is it?"),
    ])
