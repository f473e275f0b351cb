# File: resume_patcher/core/errors.py
from typing import Optional


class ResumePatchError(Exception):
    """Base class for failures raised while regenerating a resume PDF."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ExtractionFailure(ResumePatchError):
    """The source PDF is malformed or unsupported. Surfaced to the caller."""


class PositionalPatchFailure(ResumePatchError):
    """In-place patching failed. Caught by the orchestrator, which reflows instead."""


class ReflowFailure(ResumePatchError):
    """The reflow fallback failed too. Fatal for the request."""


class MalformedChangeProposal(ResumePatchError):
    """The AI payload was not valid JSON for the change schema. Always recovered."""
