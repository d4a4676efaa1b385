"""Turn orchestrator: search, context, answer stream and follow-ups."""

from __future__ import annotations

import asyncio
import itertools
import logging
import re
import uuid
from collections.abc import AsyncIterator
from enum import Enum

from fathom.backends.base import GenerationBackend, SearchBackend
from fathom.config import Settings, settings as default_settings
from fathom.errors import classify_error
from fathom.models.event import EventType
from fathom.models.source import SourceDocument
from fathom.models.turn import Turn
from fathom.orchestrator.channel import EventChannel
from fathom.orchestrator.context import build_context
from fathom.orchestrator.prompts import build_answer_messages, build_follow_up_messages
from fathom.orchestrator.tickers import detect_ticker

logger = logging.getLogger(__name__)

MAX_FOLLOW_UP_QUESTIONS = 5

_LIST_MARKER = re.compile(r"^(?:[-*•]|\d+[.)])\s+")


class TurnState(Enum):
    IDLE = "idle"
    RETRIEVING = "retrieving"
    CONTEXT_BUILDING = "context_building"
    GENERATING = "generating"
    FOLLOW_UP_WAITING = "follow_up_waiting"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


def parse_follow_up_questions(text: str) -> list[str]:
    """One question per line; blank lines and list markers are dropped."""
    questions = []
    for line in text.splitlines():
        question = _LIST_MARKER.sub("", line.strip()).strip()
        if question:
            questions.append(question)
    return questions[:MAX_FOLLOW_UP_QUESTIONS]


class Orchestrator:
    """Runs one query-to-answer turn and streams its events.

    Each call to :meth:`stream` is independent: it owns its documents,
    context and channel. The only state shared across turns is the turn
    counter.
    """

    _turns = itertools.count(1)

    def __init__(
        self,
        search: SearchBackend,
        generator: GenerationBackend,
        settings: Settings | None = None,
    ) -> None:
        self.search = search
        self.generator = generator
        self.settings = settings or default_settings

    async def stream(self, turn: Turn) -> AsyncIterator[str]:
        """Run a turn in the background and yield its encoded events.

        Closing this generator (caller disconnected) cancels the turn.
        """
        channel = EventChannel(next(self._turns))
        task = asyncio.create_task(self.run(turn, channel))
        try:
            async for event in channel:
                yield event.encode()
        finally:
            channel.close()
            if not task.done():
                task.cancel()

    async def run(self, turn: Turn, channel: EventChannel) -> None:
        """Drive one turn, writing every event to ``channel``.

        Failures end the turn with a single ``error`` event; they never
        propagate. Cancellation does.
        """
        request_id = uuid.uuid4().hex[:7]
        state = TurnState.IDLE
        follow_up_task: asyncio.Task[str] | None = None

        def enter(new_state: TurnState) -> None:
            nonlocal state
            logger.debug("[%s] %s -> %s", request_id, state.value, new_state.value)
            state = new_state

        logger.info("[%s] Turn %d query received: %r", request_id, channel.turn, turn.query)
        try:
            enter(TurnState.RETRIEVING)
            sources = await self._retrieve(turn, channel, request_id)

            enter(TurnState.CONTEXT_BUILDING)
            ticker = detect_ticker(turn.query)
            logger.info("[%s] Query %r -> detected ticker: %s", request_id, turn.query, ticker)
            if ticker:
                channel.send(EventType.SYMBOL, symbol=ticker)
            context = build_context(sources, turn.query, self.settings.context_chars_per_source)
            logger.info("[%s] Context length: %d", request_id, len(context))

            enter(TurnState.GENERATING)
            follow_up_task = asyncio.create_task(
                self.generator.complete(
                    build_follow_up_messages(turn, sources),
                    temperature=self.settings.answer_temperature,
                    max_tokens=self.settings.follow_up_max_tokens,
                )
            )
            answer = await self._stream_answer(turn, context, channel)
            logger.info("[%s] Answer streamed (%d chars)", request_id, len(answer))

            enter(TurnState.FOLLOW_UP_WAITING)
            follow_up_text = await follow_up_task
            questions = parse_follow_up_questions(follow_up_text)
            channel.send(
                EventType.FOLLOW_UP_QUESTIONS,
                questions=questions,
                skipped=not follow_up_text.strip(),
            )

            enter(TurnState.FINALIZING)
            channel.send(EventType.COMPLETE)
            enter(TurnState.COMPLETED)

        except asyncio.CancelledError:
            logger.info("[%s] Turn cancelled during %s", request_id, state.value)
            raise
        except Exception as exc:
            logger.exception("[%s] Turn failed during %s", request_id, state.value)
            enter(TurnState.FAILED)
            report = classify_error(exc)
            channel.send(EventType.ERROR, **report.to_dict())
        finally:
            if follow_up_task is not None:
                if not follow_up_task.done():
                    follow_up_task.cancel()
                elif not follow_up_task.cancelled() and follow_up_task.exception():
                    logger.debug("[%s] Follow-up task failed: %s", request_id, follow_up_task.exception())
            channel.close()

    async def _retrieve(
        self, turn: Turn, channel: EventChannel, request_id: str
    ) -> list[SourceDocument]:
        """Search fresh sources for this turn and announce them."""
        channel.send(EventType.STATUS, message="Starting search...")
        channel.send(EventType.STATUS, message="Searching for relevant sources...")

        results = await self.search.search(turn.query, self.settings.search_limit)
        sources = [doc for doc in results if doc.url]
        logger.info("[%s] %s returned %d sources", request_id, self.search.name, len(sources))
        channel.send(EventType.SOURCES, sources=[s.to_dict() for s in sources])

        # Let the caller render sources before the answer starts
        await asyncio.sleep(self.settings.sources_render_delay)
        channel.send(EventType.STATUS, message="Analyzing sources and generating answer...")
        return sources

    async def _stream_answer(self, turn: Turn, context: str, channel: EventChannel) -> str:
        """Forward answer fragments as they arrive and return the full text."""
        parts: list[str] = []
        async for fragment in self.generator.stream(
            build_answer_messages(turn, context),
            temperature=self.settings.answer_temperature,
            max_tokens=self.settings.answer_max_tokens,
        ):
            parts.append(fragment)
            channel.token(fragment)
        return "".join(parts)
