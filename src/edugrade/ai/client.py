"""
AI Client

Single-shot completions against Anthropic Claude. There is no retry and no
fallback provider: any failure is raised to the caller as AIServiceError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Raised when the AI provider is unavailable or returns nothing usable."""

    pass


class AIClient:
    """Thin wrapper over the Anthropic messages API."""

    def __init__(self, *, anthropic_api_key: str | None = None):
        """Initialize AI client.

        Args:
            anthropic_api_key: Anthropic Claude API key
        """
        self.anthropic_api_key = anthropic_api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.anthropic_api_key)

    def generate_completion(
        self,
        *,
        model: str,
        system: str,
        messages: Sequence[dict[str, str]],
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> str:
        """Generate a completion.

        Args:
            model: Model identifier
            system: System prompt
            messages: Conversation messages
            max_tokens: Maximum response tokens
            temperature: Sampling temperature

        Returns:
            Generated text response

        Raises:
            AIServiceError: No API key, API error, or empty response
        """
        if not self.is_configured:
            raise AIServiceError("AI service is not configured")

        try:
            from anthropic import Anthropic

            client = Anthropic(api_key=self.anthropic_api_key)

            response = client.messages.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=list(messages),  # type: ignore[arg-type]
            )
        except Exception as e:
            logger.error(f"Anthropic API error: {e}")
            raise AIServiceError("AI report generation failed, please try again later") from e

        if response.content and len(response.content) > 0:
            content_block = response.content[0]
            text = getattr(content_block, "text", None)
            if text and text.strip():
                logger.info("AI completion successful via Anthropic")
                return text

        logger.warning("Anthropic response had no text content")
        raise AIServiceError("AI service returned an empty response")


def get_ai_client() -> AIClient:
    """Get configured AI client instance.

    Returns:
        AIClient with the API key from settings
    """
    from edugrade.config import settings

    return AIClient(anthropic_api_key=settings.ANTHROPIC_API_KEY or None)
