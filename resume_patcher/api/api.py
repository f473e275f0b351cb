# File: resume_patcher/api/api.py
from fastapi import APIRouter

from resume_patcher.api.endpoints import resume_patch

api_router = APIRouter(prefix="/api")
api_router.include_router(resume_patch.router, prefix="/resume-patch", tags=["resume-patch"])
