# File: resume_patcher/llm/claude_client.py
import httpx
import logging
from typing import Optional

from resume_patcher.core.config import settings

logger = logging.getLogger(__name__)

class ClaudeClientError(Exception):
    """The Claude API could not be reached or returned an error."""


class ClaudeClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self.base_url = "https://api.anthropic.com/v1/messages"
        self.headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json"
        }
        self.model = model or settings.ANTHROPIC_MODEL
        logger.info(f"Initialized ClaudeClient with model: {self.model}")

    async def _send_request(self, system_prompt: str, user_prompt: str, max_tokens: Optional[int] = None) -> str:
        """Send a request to the Claude API and return the text of the first content block."""
        logger.info(f"Sending request to Claude API with model: {self.model}")
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.base_url,
                    headers=self.headers,
                    json={
                        "model": self.model,
                        "system": system_prompt,
                        "messages": [
                            {
                                "role": "user",
                                "content": user_prompt
                            }
                        ],
                        "max_tokens": max_tokens or settings.ANTHROPIC_MAX_TOKENS
                    },
                    timeout=60.0
                )
        except httpx.HTTPError as e:
            logger.error(f"Error in Claude API request: {str(e)}")
            raise ClaudeClientError(f"Claude API request failed: {str(e)}") from e

        if response.status_code != 200:
            logger.error(f"API request failed with status code {response.status_code}: {response.text}")
            raise ClaudeClientError(f"API request failed with status code {response.status_code}: {response.text}")

        result = response.json()
        content = result.get("content", [{}])[0].get("text", "")
        logger.info(f"Received response from Claude API (first 100 chars): {content[:100]}...")
        return content
