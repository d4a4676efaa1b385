"""Citation-ready context assembly from retrieved sources."""

from __future__ import annotations

from fathom.models.source import SourceDocument
from fathom.orchestrator.content_selection import select_relevant_content

SOURCE_DELIMITER = "\n\n---\n\n"


def build_context(documents: list[SourceDocument], query: str, per_doc_budget: int) -> str:
    """Number each source and attach its most relevant excerpt.

    Block ``[n]`` is the n-th document, so citations in the answer map
    straight back to the ``sources`` event.
    """
    blocks = []
    for index, doc in enumerate(documents, 1):
        excerpt = select_relevant_content(doc.text, query, per_doc_budget)
        blocks.append(f"[{index}] {doc.title}\nURL: {doc.url}\n{excerpt}")
    return SOURCE_DELIMITER.join(blocks)
