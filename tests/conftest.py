from typing import List

import fitz
import pytest

from resume_patcher.core.diagnostics import CollectingObserver
from resume_patcher.schemas.resume_patch import ProposedChange, TextSpan


def build_pdf(lines: List[str], width: float = 612, height: float = 792, pages: int = 1) -> bytes:
    """Single-column PDF with one text line per entry, all on the first page."""
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page(width=width, height=height)
    y = 72
    for line in lines:
        if line:
            doc[0].insert_text((50, y), line, fontsize=11, fontname="helv")
        y += 14
    data = doc.tobytes()
    doc.close()
    return data


def pdf_lines(pdf_bytes: bytes) -> List[List[str]]:
    """Non-blank text lines of every page, as PyMuPDF reads them back."""
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    pages = [[l.strip() for l in page.get_text().splitlines() if l.strip()] for page in doc]
    doc.close()
    return pages


def make_change(original: str, modified: str, change_id: str = "change_1", **kwargs) -> ProposedChange:
    return ProposedChange(id=change_id, original_text=original, modified_text=modified, **kwargs)


def make_span(text: str, x: float = 50, y: float = 750, width: float = None, page_index: int = 0) -> TextSpan:
    return TextSpan(
        x=x, y=y, width=len(text) * 6 if width is None else width, height=14,
        font_name="Helvetica", font_size=12, text=text, page_index=page_index,
    )


@pytest.fixture
def observer():
    return CollectingObserver()


@pytest.fixture
def resume_text():
    return "Built web apps.\nUsed SQL."


@pytest.fixture
def resume_pdf(resume_text):
    return build_pdf(resume_text.split("\n"))
