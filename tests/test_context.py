"""Tests for context assembly and prompt building."""

from __future__ import annotations

from fathom.models.source import SourceDocument
from fathom.models.turn import Message, Turn
from fathom.orchestrator.context import SOURCE_DELIMITER, build_context
from fathom.orchestrator.prompts import (
    HISTORY_RULE,
    INITIAL_SYSTEM_PROMPT,
    build_answer_messages,
    build_follow_up_messages,
)


class TestBuildContext:
    def test_numbered_blocks_in_input_order(self, documents) -> None:
        context = build_context(documents, "capital of France", 2000)
        blocks = context.split(SOURCE_DELIMITER)
        assert len(blocks) == 3
        assert blocks[0] == (
            "[1] Paris\nURL: https://example.com/paris\n"
            "Paris is the capital and most populous city of France."
        )
        assert blocks[1].startswith("[2] France\nURL: https://example.com/france\n")
        assert blocks[1].endswith("France is a country in Western Europe.")

    def test_documents_without_text_are_kept(self, documents) -> None:
        context = build_context(documents, "anything", 2000)
        assert context.endswith("[3] Empty page\nURL: https://example.com/empty\n")

    def test_markdown_preferred_over_content(self) -> None:
        doc = SourceDocument(url="https://x", title="X", content="raw", markdown="**md**")
        assert build_context([doc], "q", 100).endswith("**md**")

    def test_excerpt_respects_budget(self) -> None:
        doc = SourceDocument(url="https://x", title="X", markdown="word " * 1000)
        context = build_context([doc], "word", 300)
        excerpt = context.split("\n", 2)[2]
        assert len(excerpt) <= 300

    def test_empty_documents(self) -> None:
        assert build_context([], "q", 100) == ""


class TestPromptBuilding:
    def test_initial_turn(self, first_turn) -> None:
        messages = build_answer_messages(first_turn, "CTX")
        assert messages[0] == {"role": "system", "content": INITIAL_SYSTEM_PROMPT}
        assert messages[1]["content"] == (
            'Answer this query: "What is the capital of France?"\n\nBased on these sources:\nCTX'
        )

    def test_follow_up_questions_for_first_turn(self, first_turn, documents) -> None:
        system, user = build_follow_up_messages(first_turn, documents)
        assert HISTORY_RULE not in system["content"]
        assert "one per line" in system["content"]
        assert "user: What is the capital of France?" in user["content"]
        assert "Available sources about: Paris, France, Empty page" in user["content"]

    def test_follow_up_questions_without_sources(self, first_turn) -> None:
        _, user = build_follow_up_messages(first_turn, [])
        assert "Available sources" not in user["content"]

    def test_follow_up_questions_include_conversation(self, follow_up_turn, documents) -> None:
        _, user = build_follow_up_messages(follow_up_turn, documents)
        assert "assistant: Paris is the capital of France [1]." in user["content"]
        assert "Query: How big is it?" in user["content"]


class TestModels:
    def test_turn_from_last_message(self) -> None:
        turn = Turn.from_messages([Message("user", "first"), Message("assistant", "a"), Message("user", "second")])
        assert turn.query == "second"
        assert turn.is_follow_up is True
        assert [m.content for m in turn.prior_messages] == ["first", "a"]

    def test_turn_falls_back_to_query(self) -> None:
        turn = Turn.from_messages([], "explicit")
        assert turn.query == "explicit"
        assert turn.is_follow_up is False

    def test_blank_last_message_falls_back_to_query(self) -> None:
        turn = Turn.from_messages([Message("user", "   ")], "explicit")
        assert turn is not None
        assert turn.query == "explicit"

    def test_turn_requires_query(self) -> None:
        assert Turn.from_messages([]) is None
        assert Turn.from_messages([Message("user", "")], "") is None

    def test_source_to_dict_uses_wire_names(self) -> None:
        doc = SourceDocument(
            url="https://x", title="X", published_date="2024-01-01", site_name="Site"
        )
        assert doc.to_dict() == {
            "url": "https://x",
            "title": "X",
            "publishedDate": "2024-01-01",
            "siteName": "Site",
        }
