"""
Anthropic Claude integration for text estimation.

Thin request/response wrapper: a prompt and a system instruction go in,
free-form text comes out. Parsing the text is the caller's job.
"""

from typing import Optional
import anthropic
import structlog
from dotenv import load_dotenv
load_dotenv()

from config.settings import settings
from exceptions import EstimatorError

logger = structlog.get_logger(__name__)


class ClaudeClient:
    """
    Async Claude messages client.

    Every failure (API, network, empty reply) is raised as EstimatorError
    so call sites can treat it as an expected, recoverable outcome.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        client: Optional[anthropic.AsyncAnthropic] = None
    ):
        self.model = model or settings.estimator_model
        self.max_tokens = max_tokens or settings.estimator_max_tokens
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key or settings.anthropic_api_key,
            max_retries=1,
        )

    async def complete(self, prompt: str, system: str) -> str:
        """
        Send one prompt and return the reply text.

        Args:
            prompt: User message
            system: System instruction

        Returns:
            Raw response text

        Raises:
            EstimatorError: If the call fails or the reply has no text
        """
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{
                    "role": "user",
                    "content": prompt
                }]
            )
        except anthropic.APIError as e:
            logger.warning("claude_api_error", error=str(e), error_type=type(e).__name__)
            raise EstimatorError(f"Claude API error: {e}") from e

        if not response.content or not getattr(response.content[0], "text", None):
            raise EstimatorError("Claude returned an empty response")

        response_text = response.content[0].text
        logger.debug("claude_response_received", response_length=len(response_text))
        return response_text


# Singleton instance for convenience
_claude_client: Optional[ClaudeClient] = None

def get_claude_client() -> Optional[ClaudeClient]:
    """Get or create ClaudeClient, or None when no API key is configured."""
    global _claude_client
    if not settings.estimator_configured:
        logger.info("claude_not_configured")
        return None
    if _claude_client is None:
        _claude_client = ClaudeClient()
    return _claude_client
