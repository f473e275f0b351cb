# File: resume_patcher/llm/resume_optimizer.py
import logging
from typing import List, Optional, Sequence

from resume_patcher.core.config import settings
from resume_patcher.core.diagnostics import DiagnosticObserver
from resume_patcher.llm.claude_client import ClaudeClient
from resume_patcher.schemas.resume_patch import OptimizationResult, TextSpan
from resume_patcher.services.change_proposals import (
    parse_keyword_response,
    parse_optimization_response,
)

logger = logging.getLogger(__name__)

KEYWORD_SYSTEM_PROMPT = """You are an ATS (Applicant Tracking System) expert. Compare the job description with the resume and identify important ATS keywords that are MISSING from the resume but are present in the job description.

Focus on keywords that would improve ATS matching:
- Technical skills and technologies not mentioned in resume
- Industry-specific terms missing from resume
- Required qualifications not highlighted in resume
- Action verbs and competencies that could be added
- Certifications and tools mentioned in job but not resume

Return only a JSON array of strings representing missing keywords, no other text."""

CHANGES_SYSTEM_PROMPT = """You are a professional resume optimizer. You must respond with ONLY a valid JSON object - no other text.

Analyze the resume and propose specific changes to integrate ONLY the provided keywords while preserving authenticity.

Return this exact JSON structure:
{
  "detailedChanges": [
    {
      "id": "change_1",
      "originalText": "original text segment from resume (15-40 words)",
      "modifiedText": "proposed modification with keyword naturally integrated",
      "context": "where this appears (e.g., 'Skills section', 'Work experience')",
      "changeType": "keyword",
      "keywords": ["keyword1", "keyword2"]
    }
  ],
  "optimizedContent": "full resume text with all changes applied",
  "changes": ["Brief summary of what was changed"]
}

CRITICAL RULES:
1. ONLY return valid JSON - no explanations, no markdown, no extra text
2. Make 3-6 realistic changes that integrate the provided keywords
3. Use actual text from the resume in "originalText"
4. Preserve authenticity and truthfulness
5. Each change should naturally integrate 1-2 keywords
6. Ensure "optimizedContent" has all changes applied"""


async def extract_missing_keywords(
    job_description: str,
    resume_text: str,
    client: Optional[ClaudeClient] = None,
    observer: Optional[DiagnosticObserver] = None,
) -> List[str]:
    """Ask Claude which job-description keywords the resume is missing."""
    if not job_description or not resume_text:
        raise ValueError("Missing job description or resume text")

    client = client or ClaudeClient()
    user_prompt = f"""Job Description:
{job_description}

Resume Content:
{resume_text}

Extract ATS keywords that are missing from the resume but would be valuable to add:"""

    response_text = await client._send_request(KEYWORD_SYSTEM_PROMPT, user_prompt)
    keywords = parse_keyword_response(response_text, settings.MAX_KEYWORDS, observer)
    logger.info(f"[KEYWORDS] Found {len(keywords)} missing keywords")
    return keywords


async def propose_changes(
    resume_text: str,
    selected_keywords: Sequence[str],
    text_positions: Optional[Sequence[TextSpan]] = None,
    client: Optional[ClaudeClient] = None,
    observer: Optional[DiagnosticObserver] = None,
) -> OptimizationResult:
    """Ask Claude for concrete text changes that work the selected keywords in."""
    if not resume_text or not selected_keywords:
        raise ValueError("Missing resume text or selected keywords")

    client = client or ClaudeClient()
    user_prompt = f"""Resume:
{resume_text}

Keywords to integrate: {", ".join(selected_keywords)}

Return ONLY the JSON object with detailed changes:"""

    response_text = await client._send_request(CHANGES_SYSTEM_PROMPT, user_prompt)
    return parse_optimization_response(response_text, selected_keywords, text_positions, observer)
