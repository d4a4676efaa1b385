"""Relevance windowing: picks the query-relevant parts of a long document.

The document is cut into contiguous windows (paragraphs, with long
paragraphs split further on whitespace). Each window is scored by how often
the query's terms occur in it, and the best windows are packed into the
budget and re-assembled in document order.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

WINDOW_SIZE = 500
GAP_MARKER = "\n...\n"

STOPWORDS = frozenset({
    "a", "about", "an", "and", "are", "as", "at", "be", "by", "can", "could",
    "did", "do", "does", "for", "from", "had", "has", "have", "how", "i", "if",
    "in", "into", "is", "it", "its", "me", "my", "of", "on", "or", "our",
    "should", "so", "tell", "than", "that", "the", "their", "them", "then",
    "there", "these", "they", "this", "to", "was", "we", "were", "what",
    "when", "where", "which", "who", "whom", "why", "will", "with", "would",
    "you", "your",
})

_WORD = re.compile(r"\w+")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class Window:
    start: int
    end: int
    score: int = 0


def query_terms(query: str) -> list[str]:
    """Lowercased, deduplicated query words minus stopwords."""
    terms: list[str] = []
    for word in _WORD.findall(query.lower()):
        if len(word) < 2 or word in STOPWORDS or word in terms:
            continue
        terms.append(word)
    return terms


def _term_matches(text: str, terms: list[str]) -> list[tuple[int, int]]:
    """Sorted ``(start, end)`` spans of every case-insensitive term occurrence."""
    matches: list[tuple[int, int]] = []
    for term in terms:
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        matches.extend(m.span() for m in pattern.finditer(text))
    return sorted(matches)


def _merge(matches: list[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in matches:
        if merged and start < merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _cut_point(text: str, start: int, limit: int) -> int:
    """Largest index <= limit that falls just after whitespace, past start."""
    if limit >= len(text):
        return len(text)
    for i in range(limit, start, -1):
        if text[i - 1].isspace():
            return i
    return limit


def _outside_matches(cut: int, start: int, protected: list[tuple[int, int]]) -> int:
    """Move a hard cut off any protected span it would split."""
    # Last span starting before the cut
    i = bisect.bisect_left(protected, (cut,)) - 1
    if i >= 0:
        span_start, span_end = protected[i]
        if span_start < cut < span_end:
            return span_start if span_start > start else span_end
    return cut


def split_windows(
    text: str, size: int = WINDOW_SIZE, protected: list[tuple[int, int]] | None = None
) -> list[tuple[int, int]]:
    """Cut ``text`` into gap-free ``(start, end)`` spans of at most ``size``.

    Cuts never fall inside a ``protected`` span (sorted, non-overlapping); a
    window that starts on such a span is stretched to its end instead.
    """
    if size <= 0:
        raise ValueError("size must be positive")
    protected = protected or []

    # Paragraph ends, with the blank-line separator kept on the left side
    bounds = [m.end() for m in _PARAGRAPH_BREAK.finditer(text)]
    if not bounds or bounds[-1] != len(text):
        bounds.append(len(text))

    spans: list[tuple[int, int]] = []
    start = 0
    for end in bounds:
        while end - start > size:
            cut = _outside_matches(_cut_point(text, start, start + size), start, protected)
            spans.append((start, cut))
            start = cut
        if end > start:
            spans.append((start, end))
        start = end
    return spans


def score_windows(spans: list[tuple[int, int]], matches: list[tuple[int, int]]) -> list[Window]:
    """Score each span by the number of term occurrences starting inside it."""
    starts = [start for start, _ in matches]
    return [
        Window(start, end, bisect.bisect_left(starts, end) - bisect.bisect_left(starts, start))
        for start, end in spans
    ]


def _assemble(text: str, windows: list[Window]) -> str:
    parts: list[str] = []
    previous_end: int | None = None
    for window in sorted(windows, key=lambda w: w.start):
        if previous_end is not None and window.start != previous_end:
            parts.append(GAP_MARKER)
        parts.append(text[window.start:window.end])
        previous_end = window.end
    return "".join(parts)


def _leading(text: str, max_length: int) -> str:
    cut = _cut_point(text, 0, max_length)
    # Only back off to whitespace when it is near the budget edge
    if cut < max_length * 0.8:
        cut = max_length
    return text[:cut]


def select_relevant_content(text: str, query: str, max_length: int) -> str:
    """Return at most ``max_length`` characters of ``text`` relevant to ``query``.

    Text that already fits is returned unchanged. When no query term occurs
    anywhere, the leading part of the document is used instead.
    """
    if len(text) <= max_length:
        return text
    if max_length <= 0:
        return ""

    matches = _term_matches(text, query_terms(query))
    spans = split_windows(text, min(WINDOW_SIZE, max_length), _merge(matches))
    windows = score_windows(spans, matches)

    ranked = sorted((w for w in windows if w.score > 0), key=lambda w: (-w.score, w.start))
    if not ranked:
        return _leading(text, max_length)

    selected: list[Window] = []
    for window in ranked:
        candidate = _assemble(text, selected + [window])
        if len(candidate) > max_length:
            continue
        selected.append(window)
        if len(candidate) == max_length:
            break
    return _assemble(text, selected)
