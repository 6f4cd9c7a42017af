"""Anthropic Claude API client wrapper."""

import logging
import time
from typing import Optional

from anthropic import Anthropic, APIError, APIConnectionError, RateLimitError

from ..config import config
from ..errors import CredentialsError, TransportError

logger = logging.getLogger(__name__)


class AnthropicClient:
    """Client wrapper for the Anthropic Messages API.

    Used for script breakdown and prompt regeneration only; rate-limit and
    connection failures are retried with exponential backoff. Media
    generation calls are never retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        client: Optional[Anthropic] = None,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to config.default_model.
            max_retries: Maximum number of attempts for a request.
            retry_delay: Base delay between retries in seconds (exponential backoff).
            client: Preconstructed SDK client.
        """
        self._api_key = api_key or config.anthropic_api_key
        if client is None and not self._api_key:
            raise CredentialsError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY env var."
            )

        self._client = client or Anthropic(api_key=self._api_key)
        self._model = model or config.default_model
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def create_message(
        self,
        prompt: str,
        max_tokens: int = 8192,
        system: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Create a message using Claude.

        Args:
            prompt: The user prompt to send.
            max_tokens: Maximum tokens in the response.
            system: Optional system prompt.
            temperature: Sampling temperature (0.0-1.0).

        Returns:
            The concatenated text content of Claude's response.

        Raises:
            TransportError: If the request fails after all retries.
        """
        messages = [{"role": "user", "content": prompt}]

        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": messages,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        for attempt in range(self._max_retries):
            try:
                logger.debug(
                    f"Sending request to Claude (attempt {attempt + 1}/{self._max_retries})"
                )
                response = self._client.messages.create(**kwargs)
                return "".join(
                    block.text for block in response.content if getattr(block, "type", "") == "text"
                )

            except (RateLimitError, APIConnectionError) as e:
                if attempt == self._max_retries - 1:
                    logger.error(f"Claude request failed after {self._max_retries} attempts: {e}")
                    raise TransportError(f"Claude request failed: {e}") from e
                delay = self._retry_delay * (2**attempt)
                logger.warning(f"{type(e).__name__}: {e}. Retrying in {delay:.1f}s...")
                time.sleep(delay)

            except APIError as e:
                logger.error(f"API error: {e}")
                raise TransportError(f"Claude API error: {e}") from e

        raise TransportError("Max retries exceeded")
