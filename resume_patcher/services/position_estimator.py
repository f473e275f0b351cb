"""
Position estimator — turns linear extracted text into approximate spans.

The text extractor gives us no geometry, so every line is assumed to sit on a
uniform grid: fixed line height, fixed font size, fixed glyph width. Each
non-blank line yields one line span followed by one span per meaningful word.
The result is only meant to be plausible enough for the matcher and patcher
to anchor substitutions to.
"""

import logging
from typing import List

from resume_patcher.schemas.resume_patch import TextSpan

logger = logging.getLogger(__name__)

TOP_Y = 750.0            # first line, measured from the page top
LEFT_MARGIN = 50.0
LINE_HEIGHT = 14.0
FONT_SIZE = 12.0
FONT_NAME = "Helvetica"
GLYPH_WIDTH = 6.0        # average width of one character
WORD_GAP = 6.0
PAGE_CONTENT_HEIGHT = 700.0
MIN_WORD_LENGTH = 2      # words of this length or shorter get no span


def page_index_for_line(line_index: int) -> int:
    return int(line_index * LINE_HEIGHT // PAGE_CONTENT_HEIGHT)


def estimate_text_positions(text: str) -> List[TextSpan]:
    """Estimate line-level and word-level spans for every line of text."""
    spans: List[TextSpan] = []
    current_y = TOP_Y

    for line_index, line in enumerate(text.split("\n")):
        stripped = line.strip()
        if stripped:
            page_index = page_index_for_line(line_index)
            spans.append(TextSpan(
                x=LEFT_MARGIN,
                y=current_y,
                width=len(line) * GLYPH_WIDTH,
                height=LINE_HEIGHT,
                font_name=FONT_NAME,
                font_size=FONT_SIZE,
                text=stripped,
                page_index=page_index,
            ))

            current_x = LEFT_MARGIN
            for word in stripped.split():
                if len(word) <= MIN_WORD_LENGTH:
                    continue
                word_width = len(word) * GLYPH_WIDTH
                spans.append(TextSpan(
                    x=current_x,
                    y=current_y,
                    width=word_width,
                    height=LINE_HEIGHT,
                    font_name=FONT_NAME,
                    font_size=FONT_SIZE,
                    text=word,
                    page_index=page_index,
                ))
                current_x += word_width + WORD_GAP

        current_y -= LINE_HEIGHT

    logger.info(f"[ESTIMATE] Estimated {len(spans)} spans from {len(text)} characters")
    return spans
