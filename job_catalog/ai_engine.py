"""Chat-completion client used to draft proposals"""
from typing import Optional

import httpx

from .config import AIConfig, Credentials, get_config, get_credentials
from .logger import get_logger

logger = get_logger()

GENERIC_FAILURE = "Failed to generate proposal"


class GenerationError(Exception):
    """The text-generation service failed or returned something unusable"""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def _upstream_message(response: httpx.Response) -> tuple[Optional[str], dict]:
    """Pull the error message out of an OpenAI-style error body if there is one"""
    try:
        body = response.json()
    except ValueError:
        return None, {}
    if not isinstance(body, dict):
        return None, {}
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message"), body
    if isinstance(error, str):
        return error, body
    return None, body


class AIEngine:
    """OpenAI (or compatible) chat-completions client"""

    def __init__(
        self,
        ai_config: Optional[AIConfig] = None,
        credentials: Optional[Credentials] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.ai_config = ai_config or get_config().ai
        self.credentials = credentials or get_credentials()
        self.transport = transport

        # API configuration
        self.api_key = self.credentials.openai_api_key
        self.base_url = self.ai_config.base_url.rstrip("/")
        self.model = self.ai_config.model

        if not self.api_key:
            logger.warning("OpenAI API key not configured. Proposal generation will fail.")

    @property
    def is_available(self) -> bool:
        """Check if the engine has credentials to call the API"""
        return bool(self.api_key)

    async def generate(self, system_prompt: str, user_prompt: str, temperature: Optional[float] = None) -> str:
        """Make one call to the LLM API; no retries"""
        if not self.is_available:
            raise GenerationError("OpenAI API key not configured", status_code=500)

        try:
            async with httpx.AsyncClient(timeout=self.ai_config.timeout_seconds, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json"
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": user_prompt}
                        ],
                        "temperature": self.ai_config.temperature if temperature is None else temperature,
                        "max_tokens": self.ai_config.max_tokens
                    }
                )
        except httpx.HTTPError as e:
            logger.error(f"LLM API call failed: {e!r}")
            raise GenerationError(f"Generation service unreachable: {e}" if str(e) else GENERIC_FAILURE, status_code=502) from e

        if response.is_error:
            message, details = _upstream_message(response)
            logger.error(f"LLM API error {response.status_code}: {details or response.text[:200]}")
            raise GenerationError(message or GENERIC_FAILURE, status_code=response.status_code, details=details)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Malformed LLM API response: {e!r}")
            raise GenerationError(GENERIC_FAILURE, status_code=502) from e

        if not content:
            raise GenerationError(GENERIC_FAILURE, status_code=502)
        return content
