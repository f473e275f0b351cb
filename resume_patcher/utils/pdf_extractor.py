# File: resume_patcher/utils/pdf_extractor.py
import io
import logging
from typing import List, Tuple

import pdfplumber

from resume_patcher.core.diagnostics import ESTIMATION_FAILED, emit
from resume_patcher.core.errors import ExtractionFailure
from resume_patcher.schemas.resume_patch import TextSpan
from resume_patcher.services.position_estimator import estimate_text_positions

logger = logging.getLogger(__name__)

async def extract_text_from_pdf(pdf_content: bytes) -> str:
    """Extract text content from a PDF file. Raises ExtractionFailure on bad input."""
    if not pdf_content:
        raise ExtractionFailure("Failed to process PDF. The file is empty.")
    try:
        with pdfplumber.open(io.BytesIO(pdf_content)) as pdf:
            full_text = ""
            for page in pdf.pages:
                text = page.extract_text()
                if text:
                    full_text += text + "\n\n"
    except Exception as e:
        logger.error(f"[EXTRACT] Error extracting text from PDF: {str(e)}")
        raise ExtractionFailure(
            f"Failed to extract text from PDF: {str(e) or 'Unknown error'}", cause=e
        ) from e

    logger.info(f"[EXTRACT] Extracted {len(full_text)} characters from PDF using pdfplumber")
    return full_text


def estimate_positions(text: str, observer=None) -> List[TextSpan]:
    """Estimated spans for text, or [] when estimation fails."""
    try:
        return estimate_text_positions(text)
    except Exception as e:
        emit(observer, ESTIMATION_FAILED, f"Position estimation failed: {e}", characters=len(text))
        return []


async def extract_text_with_positions(pdf_content: bytes, observer=None) -> Tuple[str, List[TextSpan]]:
    """Extract text plus estimated span positions. Spans degrade to [] if estimation fails."""
    text = await extract_text_from_pdf(pdf_content)
    return text, estimate_positions(text, observer)
