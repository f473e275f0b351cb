# File: resume_patcher/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    PROJECT_NAME: str = "Resume Patcher API"
    PROJECT_VERSION: str = "0.1.0"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Claude API settings
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-3-sonnet-20240229")
    ANTHROPIC_MAX_TOKENS: int = int(os.getenv("ANTHROPIC_MAX_TOKENS", "4096"))

    # Keyword extraction
    MAX_KEYWORDS: int = int(os.getenv("MAX_KEYWORDS", "20"))

    # Built-in PyMuPDF font used when the original font cannot be embedded
    DEFAULT_FONT: str = os.getenv("DEFAULT_FONT", "helv")

    # CORS settings
    CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

settings = Settings()
