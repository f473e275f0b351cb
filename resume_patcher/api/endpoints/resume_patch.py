"""
Resume patch API — keyword extraction, change proposals and PDF regeneration.
The client keeps the original PDF and re-uploads it for the generate step.
"""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from typing import Any, Optional
import json
import logging

from resume_patcher.core.errors import ExtractionFailure, ReflowFailure
from resume_patcher.llm.claude_client import ClaudeClient, ClaudeClientError
from resume_patcher.llm.resume_optimizer import extract_missing_keywords, propose_changes
from resume_patcher.schemas.resume_patch import (
    KeywordExtractionResponse,
    OptimizationResult,
    OptimizeRequest,
)
from resume_patcher.services.change_applier import apply_changes_to_resume
from resume_patcher.services.change_proposals import normalize_changes
from resume_patcher.utils.pdf_extractor import extract_text_with_positions

router = APIRouter()
logger = logging.getLogger(__name__)


def get_claude_client() -> ClaudeClient:
    try:
        return ClaudeClient()
    except ValueError as e:
        logger.error(f"[API] Claude client unavailable: {e}")
        raise HTTPException(status_code=503, detail="AI service is not configured")


async def _read_pdf(upload: UploadFile) -> bytes:
    content = await upload.read()
    if not content:
        raise HTTPException(status_code=400, detail="Missing resume file")
    return content


@router.post("/keywords", response_model=KeywordExtractionResponse)
async def extract_keywords(
    job_description: str = Form(...),
    resume: UploadFile = File(...),
    client: ClaudeClient = Depends(get_claude_client),
) -> Any:
    """
    Extract resume text with estimated positions and list the job-description
    keywords the resume is missing.
    """
    if not job_description.strip():
        raise HTTPException(status_code=400, detail="Missing job description or resume file")
    pdf_bytes = await _read_pdf(resume)

    try:
        resume_text, positions = await extract_text_with_positions(pdf_bytes)
    except ExtractionFailure as e:
        raise HTTPException(status_code=422, detail=e.message)

    try:
        keywords = await extract_missing_keywords(job_description, resume_text, client=client)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClaudeClientError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return KeywordExtractionResponse(
        available_keywords=keywords,
        resume_text=resume_text,
        text_positions=positions,
    )


@router.post("/optimize", response_model=OptimizationResult)
async def optimize_with_keywords(
    request: OptimizeRequest,
    client: ClaudeClient = Depends(get_claude_client),
) -> Any:
    """Propose concrete resume changes for the selected keywords."""
    try:
        return await propose_changes(
            request.resume_text,
            request.selected_keywords,
            request.text_positions,
            client=client,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClaudeClientError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/generate")
async def generate_pdf(
    resume: UploadFile = File(...),
    changes: str = Form(...),
    original_content: Optional[str] = Form(None),
) -> Response:
    """
    Regenerate the resume PDF with the selected changes.
    Patches in place when positions are usable, otherwise reflows the text.
    """
    pdf_bytes = await _read_pdf(resume)
    try:
        raw_changes = json.loads(changes)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Changes must be a JSON array: {e}")
    if not isinstance(raw_changes, list):
        raise HTTPException(status_code=400, detail="Changes must be a JSON array")

    selected = normalize_changes(raw_changes)

    try:
        outcome = await apply_changes_to_resume(pdf_bytes, selected, original_content)
    except ExtractionFailure as e:
        raise HTTPException(status_code=422, detail=e.message)
    except ReflowFailure as e:
        logger.error(f"[API] PDF generation failed: {e.message}")
        raise HTTPException(status_code=500, detail=e.message)

    logger.info(f"[API] Generated PDF via {outcome.strategy} ({len(outcome.pdf_bytes)} bytes)")
    return Response(
        content=outcome.pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'attachment; filename="optimized_resume.pdf"',
            "X-Patch-Strategy": outcome.strategy,
        },
    )
