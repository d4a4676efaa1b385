"""Prompt templates and message assembly for the two generation tasks."""

from __future__ import annotations

from fathom.models.source import SourceDocument
from fathom.models.turn import Turn

CITATION_RULES = """\
- Include citations inline as [1], [2], etc. when referencing specific sources
- Citations should correspond to the source order (first source = [1], second = [2], etc.)
- Use the format [1] not CITATION_1 or any other format\
"""

INITIAL_SYSTEM_PROMPT = f"""\
You are a friendly assistant that helps users find information.

RESPONSE STYLE:
- For greetings (hi, hello), respond warmly and ask how you can help
- For simple questions, give direct, concise answers
- For complex topics, provide detailed explanations only when needed
- Match the user's energy level - be brief if they're brief

FORMAT:
- Use markdown for readability when appropriate
- Keep responses natural and conversational
{CITATION_RULES}\
"""

FOLLOW_UP_SYSTEM_PROMPT = f"""\
You are a friendly assistant continuing our conversation.

REMEMBER:
- Keep the same conversational tone from before
- Build on previous context naturally
- Match the user's communication style
- Use markdown when it helps clarity
{CITATION_RULES}\
"""

FOLLOW_UP_QUESTIONS_PROMPT = """\
Generate 5 natural follow-up questions based on the query and context.

ONLY generate questions if the query warrants them:
- Skip for simple greetings or basic acknowledgments
- Create questions that feel natural, not forced
- Make them genuinely helpful, not just filler
- Focus on the topic and sources available

If the query doesn't need follow-ups, return an empty response.
{history_rule}Return only the questions, one per line, no numbering or bullets.\
"""

HISTORY_RULE = "Consider the full conversation history and avoid repeating previous questions.\n"


def _answer_request(query: str, context: str) -> dict:
    return {
        "role": "user",
        "content": f'Answer this query: "{query}"\n\nBased on these sources:\n{context}',
    }


def build_answer_messages(turn: Turn, context: str) -> list[dict]:
    """Messages for the streamed answer.

    Follow-up turns replay the prior conversation verbatim, but the final
    user message always carries this turn's freshly retrieved context.
    """
    if not turn.is_follow_up:
        return [
            {"role": "system", "content": INITIAL_SYSTEM_PROMPT},
            _answer_request(turn.query, context),
        ]
    return [
        {"role": "system", "content": FOLLOW_UP_SYSTEM_PROMPT},
        *(m.to_dict() for m in turn.prior_messages),
        _answer_request(turn.query, context),
    ]


def build_follow_up_messages(turn: Turn, sources: list[SourceDocument]) -> list[dict]:
    """Messages asking for up to five follow-up questions."""
    if turn.is_follow_up:
        preview = "\n\n".join(f"{m.role}: {m.content}" for m in turn.messages)
    else:
        preview = f"user: {turn.query}"

    topics = ""
    if sources:
        topics = f"Available sources about: {', '.join(s.title for s in sources)}\n\n"

    system = FOLLOW_UP_QUESTIONS_PROMPT.format(
        history_rule=HISTORY_RULE if turn.is_follow_up else "",
    )
    user = (
        f"Query: {turn.query}\n\nConversation context:\n{preview}\n\n{topics}"
        "Generate 5 diverse follow-up questions that would help the user learn "
        "more about this topic from different angles."
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]
