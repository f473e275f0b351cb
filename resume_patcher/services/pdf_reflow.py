"""
Reflow fallback — rebuild the PDF from plain text when positions can't be trusted.

Selected changes are applied as literal first-occurrence replacements on the
extracted text, then the text is word-wrapped and paginated onto fresh pages
sized like the original's first page. Original formatting is lost; output is
guaranteed.
"""

import logging
from typing import List, Optional, Sequence

from resume_patcher.core.config import settings
from resume_patcher.core.diagnostics import DiagnosticObserver, MATCH_MISS, emit
from resume_patcher.core.errors import ReflowFailure
from resume_patcher.schemas.resume_patch import PageGeometry, ProposedChange
from resume_patcher.services.pdf_document import BLACK, DEFAULT_PAGE_SIZE, PdfDocument

logger = logging.getLogger(__name__)

FONT_SIZE = 11.0
MARGIN = 50.0
LINE_HEIGHT = FONT_SIZE * 1.2


def apply_text_replacements(
    text: str,
    changes: Sequence[ProposedChange],
    observer: Optional[DiagnosticObserver] = None,
) -> str:
    """Replace the first occurrence of each selected change's original text."""
    for change in changes:
        if not change.selected:
            continue
        if change.original_text not in text:
            emit(observer, MATCH_MISS, "Original text not found in document text, skipping",
                 change_id=change.id, original_text=change.original_text)
            continue
        text = text.replace(change.original_text, change.modified_text, 1)
    return text


def wrap_line(line: str, max_width: float, measure) -> List[str]:
    """Greedy word wrap. measure(text) returns the rendered width of text."""
    wrapped: List[str] = []
    current = ""
    for word in line.split():
        candidate = f"{current} {word}" if current else word
        if measure(candidate) <= max_width:
            current = candidate
        else:
            if current:
                wrapped.append(current)
            # A single word wider than the line still gets its own line
            current = word
    if current:
        wrapped.append(current)
    return wrapped


def layout_text(document: PdfDocument, text: str, page_size: PageGeometry) -> None:
    """Word-wrap and paginate text onto new pages of document."""
    font = settings.DEFAULT_FONT
    max_width = page_size.width - 2 * MARGIN
    top = page_size.height - MARGIN

    def measure(candidate: str) -> float:
        return document.width_of_text_at_size(candidate, FONT_SIZE, font)

    page_index = document.add_page(page_size.width, page_size.height)
    y = top

    for line in text.split("\n"):
        # Blank lines draw nothing but still take up a line
        segments = wrap_line(line, max_width, measure) if line.strip() else []
        for i, segment in enumerate(segments):
            if i > 0:
                y -= LINE_HEIGHT
            if y < MARGIN:
                page_index = document.add_page(page_size.width, page_size.height)
                y = top
            document.draw_text(page_index, segment, MARGIN, y, size=FONT_SIZE, font=font, color=BLACK)
        y -= LINE_HEIGHT


def reflow_pdf(
    original_page_geometry: Optional[PageGeometry],
    selected_changes: Sequence[ProposedChange],
    original_full_text: str,
    observer: Optional[DiagnosticObserver] = None,
) -> bytes:
    """Apply changes to the text and lay it out from scratch. Raises ReflowFailure."""
    page_size = original_page_geometry or DEFAULT_PAGE_SIZE
    try:
        modified = apply_text_replacements(original_full_text, selected_changes, observer)
        with PdfDocument.create() as document:
            layout_text(document, modified, page_size)
            logger.info(
                f"[REFLOW] Laid out {len(modified)} characters on {document.page_count} page(s) "
                f"({page_size.width:.0f}x{page_size.height:.0f})"
            )
            return document.save()
    except Exception as e:
        raise ReflowFailure(f"Failed to generate modified PDF: {e}", cause=e) from e
