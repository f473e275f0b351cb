# File: resume_patcher/core/diagnostics.py
"""
Diagnostic events for the recoverable paths of the patch pipeline.

The core never logs from its fallback branches directly. It hands a
DiagnosticEvent to whatever observer the caller injected; the default
observer forwards events to the standard logging module.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Event kinds
MATCH_MISS = "match_miss"
DUPLICATE_CHANGE = "duplicate_change"
POSITION_SKIPPED = "position_skipped"
PATCH_FAILED = "patch_failed"
REFLOW_STARTED = "reflow_started"
PROPOSAL_MALFORMED = "proposal_malformed"
PROPOSAL_RECOVERED = "proposal_recovered"
PROPOSAL_PLACEHOLDER = "proposal_placeholder"
KEYWORDS_MALFORMED = "keywords_malformed"
ESTIMATION_FAILED = "estimation_failed"

_LEVELS = {
    MATCH_MISS: logging.INFO,
    DUPLICATE_CHANGE: logging.WARNING,
    POSITION_SKIPPED: logging.INFO,
    PATCH_FAILED: logging.ERROR,
    REFLOW_STARTED: logging.INFO,
    PROPOSAL_MALFORMED: logging.WARNING,
    PROPOSAL_RECOVERED: logging.INFO,
    PROPOSAL_PLACEHOLDER: logging.ERROR,
    KEYWORDS_MALFORMED: logging.WARNING,
    ESTIMATION_FAILED: logging.WARNING,
}

# Raw payloads can be whole LLM responses
_PAYLOAD_PREVIEW = 500


@dataclass
class DiagnosticEvent:
    kind: str
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)


DiagnosticObserver = Callable[[DiagnosticEvent], None]


class LoggingObserver:
    """Writes diagnostic events to a logger, one line per event."""

    def __init__(self, target: Optional[logging.Logger] = None):
        self.target = target or logger

    def __call__(self, event: DiagnosticEvent) -> None:
        level = _LEVELS.get(event.kind, logging.INFO)
        details = ", ".join(
            f"{key}={_preview(value)}" for key, value in event.payload.items()
        )
        if details:
            self.target.log(level, f"[{event.kind.upper()}] {event.message} ({details})")
        else:
            self.target.log(level, f"[{event.kind.upper()}] {event.message}")


class CollectingObserver:
    """Keeps every event in memory. Handy for callers that report diagnostics back."""

    def __init__(self):
        self.events: List[DiagnosticEvent] = []

    def __call__(self, event: DiagnosticEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [e.kind for e in self.events]


def _preview(value: Any) -> str:
    text = repr(value)
    if len(text) > _PAYLOAD_PREVIEW:
        return text[:_PAYLOAD_PREVIEW] + "..."
    return text


def emit(observer: Optional[DiagnosticObserver], kind: str, message: str, **payload: Any) -> None:
    """Send an event to the observer, or to the default logging observer if none was given."""
    (observer or _default_observer)(DiagnosticEvent(kind=kind, message=message, payload=payload))


_default_observer = LoggingObserver()
