"""
Change applier — runs one resume regeneration request end to end.

extract text → estimate spans → position changes → positional patch,
and on any patch failure, reflow the untouched text instead. The original
PDF is opened once here and the handle is never shared; a failed patch
attempt is discarded whole.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from resume_patcher.core.diagnostics import (
    DiagnosticObserver,
    PATCH_FAILED,
    REFLOW_STARTED,
    emit,
)
from resume_patcher.core.errors import PositionalPatchFailure
from resume_patcher.schemas.resume_patch import PageGeometry, ProposedChange
from resume_patcher.services.pdf_document import PdfDocument
from resume_patcher.services.pdf_patcher import apply_positional_changes, positioned_changes
from resume_patcher.services.pdf_reflow import reflow_pdf
from resume_patcher.services.text_matcher import attach_positions
from resume_patcher.utils.pdf_extractor import estimate_positions, extract_text_with_positions

logger = logging.getLogger(__name__)

STRATEGY_POSITIONAL = "positional"
STRATEGY_REFLOW = "reflow"


@dataclass
class PatchOutcome:
    pdf_bytes: bytes
    strategy: str
    applied: int = 0
    failure: Optional[str] = None


def _patch_in_place(
    document: PdfDocument,
    changes: Sequence[ProposedChange],
    observer: Optional[DiagnosticObserver],
) -> int:
    selected = [c for c in changes if c.selected]
    if selected and not positioned_changes(selected):
        raise PositionalPatchFailure(
            f"None of the {len(selected)} selected change(s) has a position"
        )
    return apply_positional_changes(document, changes, observer)


def run_patch_pipeline(
    original_pdf_bytes: bytes,
    selected_changes: Sequence[ProposedChange],
    original_content: str,
    observer: Optional[DiagnosticObserver] = None,
) -> PatchOutcome:
    """Patch in place if possible, otherwise reflow. Raises ReflowFailure if both fail."""
    changes = list(selected_changes)
    geometry: Optional[PageGeometry] = None
    failure: Optional[Exception] = None

    try:
        document = PdfDocument.load(original_pdf_bytes)
    except Exception as e:
        document = None
        failure = PositionalPatchFailure(f"Cannot open original PDF: {e}", cause=e)

    if document is not None:
        with document:
            try:
                if document.page_count:
                    geometry = document.page_size(0)
                applied = _patch_in_place(document, changes, observer)
                pdf_bytes = document.save()
                logger.info(f"[APPLY] Patched {applied} change(s) in place")
                return PatchOutcome(pdf_bytes=pdf_bytes, strategy=STRATEGY_POSITIONAL, applied=applied)
            except PositionalPatchFailure as e:
                failure = e
            except Exception as e:
                failure = PositionalPatchFailure(f"Positional patching failed: {e}", cause=e)

    emit(observer, PATCH_FAILED, "Positional patch failed, discarding partial edits",
         error=str(failure), changes=len(changes))
    emit(observer, REFLOW_STARTED, "Regenerating PDF from text",
         page_size=None if geometry is None else (geometry.width, geometry.height))
    pdf_bytes = reflow_pdf(geometry, [c for c in changes if c.selected], original_content, observer)
    return PatchOutcome(pdf_bytes=pdf_bytes, strategy=STRATEGY_REFLOW, failure=str(failure))


def generate_modified_pdf(
    original_pdf_bytes: bytes,
    selected_changes: Sequence[ProposedChange],
    original_content: str,
    observer: Optional[DiagnosticObserver] = None,
) -> bytes:
    """Regenerate the resume PDF with the selected changes applied."""
    return run_patch_pipeline(original_pdf_bytes, selected_changes, original_content, observer).pdf_bytes


async def apply_changes_to_resume(
    original_pdf_bytes: bytes,
    changes: Sequence[ProposedChange],
    original_content: Optional[str] = None,
    observer: Optional[DiagnosticObserver] = None,
) -> PatchOutcome:
    """Full request: extract when no text is given, position, then patch or reflow.

    Extracted text re-positions every change. Caller-supplied text only
    positions the changes that arrive without one.

    Raises ExtractionFailure for unreadable PDFs and ReflowFailure when no
    output could be produced.
    """
    if original_content is None:
        original_content, spans = await extract_text_with_positions(original_pdf_bytes, observer)
        attach_positions(changes, spans, observer)
    else:
        spans = estimate_positions(original_content, observer)
        attach_positions([c for c in changes if c.position is None], spans, observer)
    return run_patch_pipeline(original_pdf_bytes, changes, original_content, observer)
