"""
Text matcher — finds the estimated span an AI-proposed originalText lives in.

Strategies run from most to least confident and the first one that produces
a span wins. Inside a strategy the earliest span in document order wins, so
the result is deterministic for identical inputs.
"""

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

from resume_patcher.core.diagnostics import DiagnosticObserver, MATCH_MISS, emit
from resume_patcher.schemas.resume_patch import ProposedChange, TextSpan

logger = logging.getLogger(__name__)

OVERLAP_MIN_SPAN_CHARS = 10
OVERLAP_MIN_SEARCH_CHARS = 5
OVERLAP_RATIO = 0.6
PAIR_RATIO = 0.5
MIN_TOKEN_CHARS = 2          # tokens must be longer than this to count
SIGNIFICANT_WORD_CHARS = 4   # single-word fallback needs tokens longer than this


def _normalize(text: str) -> str:
    return text.strip().lower()


def _tokens(search: str) -> List[str]:
    return [t for t in search.split() if len(t) > MIN_TOKEN_CHARS]


def _match_containment(search: str, spans: Sequence[TextSpan]) -> Optional[TextSpan]:
    for span in spans:
        if search in _normalize(span.text):
            return span
    return None


def _match_token_overlap(search: str, spans: Sequence[TextSpan]) -> Optional[TextSpan]:
    if len(search) <= OVERLAP_MIN_SEARCH_CHARS:
        return None
    # Threshold counts every whitespace token; only the longer ones can score
    words = search.split()
    needed = math.ceil(len(words) * OVERLAP_RATIO)
    tokens = _tokens(search)
    for span in spans:
        span_text = _normalize(span.text)
        if len(span_text) <= OVERLAP_MIN_SPAN_CHARS:
            continue
        matched = sum(1 for t in tokens if t in span_text)
        if matched >= needed:
            return span
    return None


def _match_adjacent_pair(search: str, spans: Sequence[TextSpan]) -> Optional[TextSpan]:
    tokens = _tokens(search)
    if len(tokens) <= 1:
        return None
    needed = math.ceil(len(tokens) * PAIR_RATIO)
    for first, second in zip(spans, spans[1:]):
        combined = f"{first.text} {second.text}".lower()
        matched = sum(1 for t in tokens if t in combined)
        if matched >= needed:
            return first.model_copy(update={"width": second.x + second.width - first.x})
    return None


def _match_significant_word(search: str, spans: Sequence[TextSpan]) -> Optional[TextSpan]:
    for token in _tokens(search):
        if len(token) <= SIGNIFICANT_WORD_CHARS:
            continue
        for span in spans:
            if token in span.text.lower():
                return span
    return None


MATCH_STRATEGIES: Tuple[Tuple[str, Callable[[str, Sequence[TextSpan]], Optional[TextSpan]]], ...] = (
    ("containment", _match_containment),
    ("token_overlap", _match_token_overlap),
    ("adjacent_pair", _match_adjacent_pair),
    ("significant_word", _match_significant_word),
)


def find_text_position_with_strategy(
    search_text: str, spans: Sequence[TextSpan]
) -> Tuple[Optional[TextSpan], Optional[str]]:
    """Locate search_text and report which strategy produced the span."""
    search = _normalize(search_text)
    if not search or not spans:
        return None, None

    for name, strategy in MATCH_STRATEGIES:
        span = strategy(search, spans)
        if span is not None:
            logger.debug(f"[MATCH] '{search_text[:60]}' matched by {name} on page {span.page_index}")
            return span, name
    return None, None


def find_text_position(search_text: str, spans: Sequence[TextSpan]) -> Optional[TextSpan]:
    """Return the span holding search_text, or None when no strategy matches."""
    span, _ = find_text_position_with_strategy(search_text, spans)
    return span


def attach_positions(
    changes: Sequence[ProposedChange],
    spans: Sequence[TextSpan],
    observer: Optional[DiagnosticObserver] = None,
) -> List[ProposedChange]:
    """Match each change against spans. A miss keeps any position the change already had."""
    if not spans:
        return list(changes)
    for change in changes:
        position = find_text_position(change.original_text, spans)
        if position is None:
            emit(observer, MATCH_MISS, "No span found for change",
                 change_id=change.id, original_text=change.original_text)
            continue
        change.position = position
    return list(changes)
