"""Stream event data model and its wire encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

DATA_STREAM_VERSION = "v1"

# AI data stream protocol part prefixes
TEXT_PART = "0"
DATA_PART = "2"


class EventType(str, Enum):
    STATUS = "status"
    SOURCES = "sources"
    SYMBOL = "symbol"
    TOKEN = "token"
    FOLLOW_UP_QUESTIONS = "follow_up_questions"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_EVENTS = frozenset({EventType.COMPLETE, EventType.ERROR})


@dataclass(frozen=True)
class Event:
    """One value on a turn's output channel.

    ``token`` events carry a raw answer fragment in ``text``; every other
    type is a side-channel signal whose fields live in ``data``.
    """

    type: EventType
    turn: int
    data: dict = field(default_factory=dict)
    text: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENTS

    def to_dict(self) -> dict:
        return {"type": self.type.value, "turn": self.turn, **self.data}

    def encode(self) -> str:
        """Serialise as one line of the data stream protocol."""
        if self.type is EventType.TOKEN:
            return f"{TEXT_PART}:{json.dumps(self.text)}\n"
        return f"{DATA_PART}:{json.dumps([self.to_dict()])}\n"
