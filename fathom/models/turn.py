"""Conversation turn data model."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Message:
    """A single role-tagged chat message."""

    role: str
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Turn:
    """The latest user query plus the conversation that led to it."""

    query: str
    messages: tuple[Message, ...] = field(default_factory=tuple)

    @classmethod
    def from_messages(cls, messages: list[Message], query: str | None = None) -> Turn | None:
        """Build a turn from chat history, falling back to an explicit query.

        Returns None when neither source yields a query.
        """
        latest = messages[-1].content if messages else ""
        text = latest if latest.strip() else query or ""
        if not text.strip():
            return None
        return cls(query=text, messages=tuple(messages))

    @property
    def is_follow_up(self) -> bool:
        # One user/assistant exchange already happened
        return len(self.messages) > 2

    @property
    def prior_messages(self) -> tuple[Message, ...]:
        return self.messages[:-1]
