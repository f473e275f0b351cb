"""
Change proposals — turn loosely typed AI output into ProposedChange records.

The model is asked for JSON but does not always comply. Parsing degrades
through an ordered chain: parse the payload as-is, then pull the outermost
{...} out of surrounding prose or markdown, and finally fall back to a single
placeholder change so the pipeline never dead-ends. Every change that makes
it through is fully populated and, when spans are available, positioned.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from resume_patcher.core.diagnostics import (
    DiagnosticObserver,
    DUPLICATE_CHANGE,
    KEYWORDS_MALFORMED,
    PROPOSAL_MALFORMED,
    PROPOSAL_PLACEHOLDER,
    PROPOSAL_RECOVERED,
    emit,
)
from resume_patcher.core.errors import MalformedChangeProposal
from resume_patcher.schemas.resume_patch import (
    ChangeType,
    OptimizationResult,
    ProposedChange,
    TextSpan,
)
from resume_patcher.services.text_matcher import attach_positions

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "Resume content"
DEFAULT_SUMMARY = "Resume optimized with selected keywords"
PLACEHOLDER_SUMMARY = "Resume content has been optimized with selected keywords"

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


# ── Degrade chain ─────────────────────────────────────────────────────

def _parse_direct(raw: str) -> Dict[str, Any]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise MalformedChangeProposal(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _parse_embedded(raw: str) -> Dict[str, Any]:
    match = _JSON_OBJECT.search(raw)
    if not match:
        raise MalformedChangeProposal("No JSON object found in response")
    return _parse_direct(match.group(0))


PARSE_TIERS: Tuple[Tuple[str, Callable[[str], Dict[str, Any]]], ...] = (
    ("direct", _parse_direct),
    ("embedded", _parse_embedded),
)


def placeholder_payload(raw: str, selected_keywords: Sequence[str], reason: str) -> Dict[str, Any]:
    """Minimal valid payload used when no tier could parse the response."""
    keywords = list(selected_keywords[:2])
    return {
        "optimizedContent": raw,
        "changes": [PLACEHOLDER_SUMMARY],
        "detailedChanges": [{
            "id": "fallback_change_1",
            "originalText": "Sample original text",
            "modifiedText": "Sample modified text with " + ", ".join(keywords),
            "context": f"Fallback change - {reason}",
            "changeType": ChangeType.KEYWORD.value,
            "keywords": keywords,
        }],
    }


def parse_proposal_payload(
    raw: str,
    selected_keywords: Sequence[str] = (),
    observer: Optional[DiagnosticObserver] = None,
) -> Dict[str, Any]:
    """Run the degrade chain. Always returns a dict."""
    failures: List[str] = []
    for name, tier in PARSE_TIERS:
        try:
            payload = tier(raw)
        except (json.JSONDecodeError, MalformedChangeProposal) as e:
            failures.append(f"{name}: {e}")
            emit(observer, PROPOSAL_MALFORMED, f"Parse tier '{name}' failed: {e}", raw=raw)
            continue
        if failures:
            emit(observer, PROPOSAL_RECOVERED, f"Recovered proposal JSON with tier '{name}'")
        return payload

    reason = "No JSON found in AI response" if not _JSON_OBJECT.search(raw) else "AI response parsing failed"
    emit(observer, PROPOSAL_PLACEHOLDER, f"Using placeholder change: {reason}",
         failures=failures, raw=raw)
    return placeholder_payload(raw, selected_keywords, reason)


# ── Normalization ─────────────────────────────────────────────────────

def _coerce_change_type(value: Any) -> ChangeType:
    try:
        return ChangeType(str(value).lower())
    except ValueError:
        return ChangeType.KEYWORD


def _coerce_keywords(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    keywords: List[str] = []
    for k in value:
        k = str(k).strip()
        if k and k not in keywords:
            keywords.append(k)
    return keywords


def _coerce_position(value: Any) -> Optional[TextSpan]:
    if not isinstance(value, dict):
        return None
    try:
        return TextSpan.model_validate(value)
    except ValidationError:
        return None


def normalize_change(raw: Dict[str, Any], index: int) -> Optional[ProposedChange]:
    """Build a fully defaulted ProposedChange, or None when originalText is unusable."""
    original_text = raw.get("originalText") or ""
    if not isinstance(original_text, str) or not original_text.strip():
        return None

    modified_text = raw.get("modifiedText")
    selected = raw.get("selected")
    return ProposedChange(
        id=str(raw.get("id") or f"change_{index + 1}"),
        original_text=original_text,
        modified_text=modified_text if isinstance(modified_text, str) else "",
        context=str(raw.get("context") or DEFAULT_CONTEXT),
        change_type=_coerce_change_type(raw.get("changeType")),
        keywords=_coerce_keywords(raw.get("keywords")),
        selected=selected if isinstance(selected, bool) else True,
        position=_coerce_position(raw.get("position")),
    )


def normalize_changes(
    raw_changes: Any,
    spans: Optional[Sequence[TextSpan]] = None,
    observer: Optional[DiagnosticObserver] = None,
) -> List[ProposedChange]:
    """Normalize a batch, keep ids unique, drop duplicates, attach positions."""
    if not isinstance(raw_changes, list):
        return []

    changes: List[ProposedChange] = []
    # originalText -> slot in changes; only a selected change holds a text for good
    slots: Dict[str, int] = {}

    for index, raw in enumerate(raw_changes):
        if not isinstance(raw, dict):
            logger.warning(f"[PROPOSAL] Skipping non-object change at index {index}: {raw!r}")
            continue
        change = normalize_change(raw, index)
        if change is None:
            logger.warning(f"[PROPOSAL] Skipping change at index {index} without originalText")
            continue

        slot = slots.get(change.original_text)
        if slot is None:
            slots[change.original_text] = len(changes)
            changes.append(change)
            continue

        holder = changes[slot]
        if change.selected and not holder.selected:
            changes[slot] = change
            dropped, kept = holder, change
        else:
            dropped, kept = change, holder
        emit(observer, DUPLICATE_CHANGE,
             "Dropping change whose originalText repeats another change",
             change_id=dropped.id, kept_change_id=kept.id,
             original_text=change.original_text)

    seen_ids = set()
    for change in changes:
        if change.id in seen_ids:
            suffix = 2
            while f"{change.id}_{suffix}" in seen_ids:
                suffix += 1
            change.id = f"{change.id}_{suffix}"
        seen_ids.add(change.id)

    return attach_positions(changes, spans or [], observer)


def parse_optimization_response(
    raw: str,
    selected_keywords: Sequence[str] = (),
    spans: Optional[Sequence[TextSpan]] = None,
    observer: Optional[DiagnosticObserver] = None,
) -> OptimizationResult:
    """Parse an AI change proposal into a typed OptimizationResult."""
    payload = parse_proposal_payload(raw, selected_keywords, observer)
    changes = normalize_changes(payload.get("detailedChanges"), spans, observer)

    summary = payload.get("changes")
    if not isinstance(summary, list) or not summary:
        summary = [DEFAULT_SUMMARY]
    content = payload.get("optimizedContent")

    logger.info(
        f"[PROPOSAL] {len(changes)} change(s), "
        f"{sum(1 for c in changes if c.position is not None)} positioned"
    )
    return OptimizationResult(
        detailed_changes=changes,
        optimized_content=content if isinstance(content, str) and content else raw,
        changes=[str(s) for s in summary],
    )


# ── Keywords ──────────────────────────────────────────────────────────

def parse_keyword_response(
    raw: str,
    limit: int,
    observer: Optional[DiagnosticObserver] = None,
) -> List[str]:
    """Parse the missing-keyword list. Falls back to one keyword per line."""
    try:
        data = json.loads(raw)
        if isinstance(data, dict):
            data = data.get("keywords")
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
        keywords = [str(k).strip() for k in data]
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        emit(observer, KEYWORDS_MALFORMED, f"Keyword list is not a JSON array: {e}", raw=raw)
        keywords = [re.sub(r"[^\w\s]", "", line).strip() for line in raw.split("\n") if line.strip()]

    unique: List[str] = []
    for k in keywords:
        if k and k not in unique:
            unique.append(k)
    return unique[:limit]
