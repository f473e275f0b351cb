"""
PDF document handle — the drawing capability the patcher and reflow use.

Wraps a PyMuPDF document behind a small surface: page sizes, rectangle and
text drawing, text-width measurement and serialization. Callers speak PDF
user space (origin bottom-left, y grows upward); PyMuPDF's top-left origin
is handled here. Every draw call is also recorded per page so the pipeline
can report exactly what it changed.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import fitz  # PyMuPDF

from resume_patcher.core.config import settings
from resume_patcher.schemas.resume_patch import PageGeometry

logger = logging.getLogger(__name__)

WHITE = (1.0, 1.0, 1.0)
BLACK = (0.0, 0.0, 0.0)

# US Letter, used when no original page size is known
DEFAULT_PAGE_SIZE = PageGeometry(width=612.0, height=792.0)


@dataclass
class DrawOperation:
    """One recorded draw call, in bottom-up coordinates."""
    kind: str  # "rectangle" or "text"
    page_index: int
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    text: str = ""
    font: str = ""
    size: float = 0.0
    color: Tuple[float, float, float] = BLACK


def map_to_fitz_font(pdf_font_name: str) -> str:
    """Map a PDF font name to a PyMuPDF built-in font name."""
    name = pdf_font_name.lower()
    if "times" in name:
        if "bold" in name and "italic" in name:
            return "tibi"
        if "bold" in name:
            return "tibo"
        if "italic" in name:
            return "tiit"
        return "tiro"
    if "arial" in name or "helvetica" in name or name == "helv":
        if "bold" in name and ("italic" in name or "oblique" in name):
            return "hebi"
        if "bold" in name:
            return "hebo"
        if "italic" in name or "oblique" in name:
            return "heit"
        return "helv"
    if "courier" in name:
        if "bold" in name and ("italic" in name or "oblique" in name):
            return "cobi"
        if "bold" in name:
            return "cobo"
        if "italic" in name or "oblique" in name:
            return "coit"
        return "cour"
    raise ValueError(f"No built-in font for '{pdf_font_name}'")


class PdfDocument:
    """Exclusive, mutable handle over one PDF for the length of a request."""

    def __init__(self, doc: fitz.Document):
        self._doc = doc
        self.operations: Dict[int, List[DrawOperation]] = {}

    @classmethod
    def load(cls, pdf_bytes: bytes) -> "PdfDocument":
        return cls(fitz.open(stream=pdf_bytes, filetype="pdf"))

    @classmethod
    def create(cls) -> "PdfDocument":
        return cls(fitz.open())

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()

    # ── Geometry ──────────────────────────────────────────────────────

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def page_size(self, page_index: int) -> PageGeometry:
        if not 0 <= page_index < self._doc.page_count:
            raise IndexError(f"Page {page_index} out of range (0-{self._doc.page_count - 1})")
        rect = self._doc[page_index].rect
        return PageGeometry(width=rect.width, height=rect.height)

    def add_page(self, width: float, height: float) -> int:
        self._doc.new_page(width=width, height=height)
        return self._doc.page_count - 1

    # ── Fonts ─────────────────────────────────────────────────────────

    def embed_font(self, font_name: str) -> str:
        """Resolve font_name to a built-in font PyMuPDF can draw with."""
        fitz_name = map_to_fitz_font(font_name)
        fitz.Font(fitz_name)  # raises if PyMuPDF cannot load it
        return fitz_name

    def width_of_text_at_size(self, text: str, size: float, font: Optional[str] = None) -> float:
        return fitz.get_text_length(text, fontname=font or settings.DEFAULT_FONT, fontsize=size)

    # ── Drawing ───────────────────────────────────────────────────────

    def draw_rectangle(
        self,
        page_index: int,
        x: float,
        y: float,
        width: float,
        height: float,
        color: Tuple[float, float, float] = WHITE,
    ) -> None:
        """Fill a rectangle whose lower-left corner is (x, y)."""
        page_height = self.page_size(page_index).height
        rect = fitz.Rect(x, page_height - y - height, x + width, page_height - y)
        self._doc[page_index].draw_rect(rect, color=None, fill=color, overlay=True)
        self._record(DrawOperation(
            kind="rectangle", page_index=page_index, x=x, y=y,
            width=width, height=height, color=color,
        ))

    def draw_text(
        self,
        page_index: int,
        text: str,
        x: float,
        y: float,
        size: float,
        font: Optional[str] = None,
        color: Tuple[float, float, float] = BLACK,
    ) -> None:
        """Draw text with its baseline starting at (x, y)."""
        page_height = self.page_size(page_index).height
        fontname = font or settings.DEFAULT_FONT
        self._doc[page_index].insert_text(
            fitz.Point(x, page_height - y),
            text,
            fontsize=size,
            fontname=fontname,
            color=color,
        )
        self._record(DrawOperation(
            kind="text", page_index=page_index, x=x, y=y,
            text=text, font=fontname, size=size, color=color,
        ))

    def _record(self, op: DrawOperation) -> None:
        self.operations.setdefault(op.page_index, []).append(op)

    def all_operations(self) -> List[DrawOperation]:
        """Recorded operations in page order, then draw order."""
        return [op for page in sorted(self.operations) for op in self.operations[page]]

    # ── Output ────────────────────────────────────────────────────────

    def save(self) -> bytes:
        return self._doc.tobytes(garbage=4, deflate=True)
