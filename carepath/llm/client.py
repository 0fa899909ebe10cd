"""
Claude API client for carepath.

Used only by the recommendation service; when no key is configured the
service runs the rule engine instead.
"""

from __future__ import annotations

import logging
import os

from anthropic import Anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_TIMEOUT = 20.0


class LLMResponseError(ValueError):
    """The model replied, but not with something we can use."""


class LLMClient:
    """
    Text generation over the Anthropic Messages API.

    Settings fall back to ANTHROPIC_API_KEY, CAREPATH_LLM_MODEL and
    CAREPATH_LLM_TIMEOUT. The timeout bounds each request, so a slow
    provider turns into an APIError the caller can fall back on.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int = 1,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

        self.model = model or os.environ.get("CAREPATH_LLM_MODEL", DEFAULT_MODEL)
        self.timeout = float(timeout if timeout is not None
                             else os.environ.get("CAREPATH_LLM_TIMEOUT", DEFAULT_TIMEOUT))
        self.client = Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=max_retries)

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> str:
        """Return the text of the first text block in the reply."""
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system or "You are a helpful assistant.",
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        logger.debug("Claude replied with %d content blocks", len(response.content))

        text = next((block.text for block in response.content if block.type == "text"), None)
        if text is None:
            raise LLMResponseError("No text block in response")
        return text


_client: LLMClient | None = None


def get_client() -> LLMClient:
    """Shared client. Raises ValueError without an API key."""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client


def set_client(client: LLMClient | None) -> None:
    """Replace (or clear) the shared client."""
    global _client
    _client = client
