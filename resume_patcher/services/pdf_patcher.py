"""
Positional patcher — erase-and-redraw at estimated span coordinates.

For each selected change that has a position, a white rectangle is filled
over the original text and the replacement is drawn on top at the same spot.
Positions come from the estimator (top-origin y); the page height flips them
into PDF user space. Changes without a position are left alone.
"""

import logging
from typing import List, Optional, Sequence

from resume_patcher.core.config import settings
from resume_patcher.core.diagnostics import (
    DiagnosticObserver,
    POSITION_SKIPPED,
    emit,
)
from resume_patcher.core.errors import PositionalPatchFailure
from resume_patcher.schemas.resume_patch import ProposedChange
from resume_patcher.services.pdf_document import WHITE, BLACK, PdfDocument

logger = logging.getLogger(__name__)

COVER_PADDING = 2.0


def cover_rectangle(change: ProposedChange, page_height: float):
    """(x, y, width, height) of the erase box in bottom-up coordinates."""
    pos = change.position
    return (
        pos.x - COVER_PADDING,
        page_height - pos.y - pos.height - COVER_PADDING,
        pos.width + 2 * COVER_PADDING,
        pos.height + 2 * COVER_PADDING,
    )


def text_origin(change: ProposedChange, page_height: float):
    """Baseline start of the replacement text in bottom-up coordinates."""
    pos = change.position
    return pos.x, page_height - pos.y - pos.font_size


def _resolve_font(document: PdfDocument, font_name: str) -> str:
    try:
        return document.embed_font(font_name)
    except Exception as e:
        logger.debug(f"[PATCH] Cannot embed '{font_name}' ({e}), using {settings.DEFAULT_FONT}")
        return settings.DEFAULT_FONT


def apply_positional_changes(
    document: PdfDocument,
    changes: Sequence[ProposedChange],
    observer: Optional[DiagnosticObserver] = None,
) -> int:
    """Patch every selected, positioned change into document, in input order.

    Returns how many changes were drawn. Raises PositionalPatchFailure when a
    position points past the last page or a draw call fails; the document
    may then hold partial edits and must be discarded.
    """
    applied = 0
    page_count = document.page_count

    for change in changes:
        if not change.selected:
            continue
        if change.position is None:
            emit(observer, POSITION_SKIPPED,
                 "Change has no position, leaving original text in place",
                 change_id=change.id)
            continue

        page_index = change.position.page_index
        if not 0 <= page_index < page_count:
            raise PositionalPatchFailure(
                f"Change {change.id} targets page {page_index} but document has {page_count} page(s)"
            )

        try:
            page_height = document.page_size(page_index).height
            rect_x, rect_y, rect_w, rect_h = cover_rectangle(change, page_height)
            document.draw_rectangle(page_index, rect_x, rect_y, rect_w, rect_h, color=WHITE)

            font = _resolve_font(document, change.position.font_name)
            text_x, text_y = text_origin(change, page_height)
            document.draw_text(
                page_index,
                change.modified_text,
                text_x,
                text_y,
                size=change.position.font_size,
                font=font,
                color=BLACK,
            )
        except Exception as e:
            raise PositionalPatchFailure(
                f"Drawing change {change.id} on page {page_index} failed: {e}", cause=e
            ) from e

        applied += 1
        logger.info(f"[PATCH] Page {page_index}: '{change.original_text[:40]}' → '{change.modified_text[:40]}'")

    return applied


def positioned_changes(changes: Sequence[ProposedChange]) -> List[ProposedChange]:
    return [c for c in changes if c.selected and c.position is not None]
