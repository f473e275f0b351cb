# File: resume_patcher/schemas/resume_patch.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ChangeType(str, Enum):
    KEYWORD = "keyword"
    PHRASING = "phrasing"
    ENHANCEMENT = "enhancement"


class TextSpan(BaseModel):
    """Estimated location of one line or one word of extracted text.

    y is an estimate measured from the page top and decreases line by line;
    the patcher flips it against the page height before drawing.
    """
    model_config = ConfigDict(populate_by_name=True)

    x: float
    y: float
    width: float
    height: float
    font_name: str = Field("Helvetica", alias="fontName")
    font_size: float = Field(12.0, alias="fontSize")
    text: str
    page_index: int = Field(0, alias="pageIndex", ge=0)


class PageGeometry(BaseModel):
    width: float
    height: float


class ProposedChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    original_text: str = Field(alias="originalText", min_length=1)
    modified_text: str = Field("", alias="modifiedText")
    context: str = "Resume content"
    change_type: ChangeType = Field(ChangeType.KEYWORD, alias="changeType")
    keywords: List[str] = []
    selected: bool = True
    position: Optional[TextSpan] = None


class OptimizationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    detailed_changes: List[ProposedChange] = Field(default_factory=list, alias="detailedChanges")
    optimized_content: str = Field("", alias="optimizedContent")
    changes: List[str] = []


# ── API payloads ──────────────────────────────────────────────────────

class KeywordExtractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available_keywords: List[str] = Field(alias="availableKeywords")
    resume_text: str = Field(alias="resumeText")
    text_positions: List[TextSpan] = Field(default_factory=list, alias="textPositions")


class OptimizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_text: str = Field(alias="resumeText")
    selected_keywords: List[str] = Field(alias="selectedKeywords")
    text_positions: Optional[List[TextSpan]] = Field(None, alias="textPositions")
