# File: resume_patcher/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from resume_patcher.core.config import settings
from resume_patcher.api.api import api_router

# Set up logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION
)

# Configure CORS with settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Patch-Strategy"],
)

# Include API router
app.include_router(api_router)

@app.get("/")
def read_root():
    return {"status": "Resume Patcher API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
