"""Base agent abstraction."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ..services.anthropic import AnthropicClient
from ..config import config

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


def extract_json(response: str) -> str:
    """Extract JSON from a response that may contain markdown or other text."""
    # Try to find JSON in code blocks
    if "```json" in response:
        start = response.find("```json") + 7
        end = response.find("```", start)
        if end > start:
            return response[start:end].strip()

    if "```" in response:
        start = response.find("```") + 3
        end = response.find("```", start)
        if end > start:
            return response[start:end].strip()

    # Try to find raw JSON object or array, whichever opens first
    openers = sorted(
        (response.find(start_char), start_char, end_char)
        for start_char, end_char in [("{", "}"), ("[", "]")]
    )
    for start, start_char, end_char in openers:
        if start != -1:
            # Find matching end bracket, ignoring brackets inside strings
            depth = 0
            in_string = False
            escaped = False
            for i, char in enumerate(response[start:], start):
                if in_string:
                    if escaped:
                        escaped = False
                    elif char == "\\":
                        escaped = True
                    elif char == '"':
                        in_string = False
                elif char == '"':
                    in_string = True
                elif char == start_char:
                    depth += 1
                elif char == end_char:
                    depth -= 1
                    if depth == 0:
                        return response[start:i + 1]

    # Return as-is if no JSON structure found
    return response.strip()


def load_json(response: str) -> Any:
    """Decode the JSON payload of a model answer.

    Raises:
        ValueError: If no valid JSON can be found.
    """
    try:
        return json.loads(extract_json(response))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON: {e}")
        logger.debug(f"Raw response: {response}")
        raise ValueError(f"Invalid JSON in response: {e}")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Claude-backed agent that turns source text into structured output.

    Subclasses supply a name, a system prompt and ``run``; the shared
    ``_ask`` sends one user prompt and returns Claude's text answer.
    """

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: Claude client. Built from ``config`` when omitted, which
                requires ANTHROPIC_API_KEY.
            model: Claude model id. Defaults to config.default_model.
        """
        self._model = model or config.default_model
        self._client = client or AnthropicClient(model=self._model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        ...

    @property
    def model(self) -> str:
        return self._model

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        """Analyze ``input_data`` and return the agent's result."""
        ...

    def _ask(self, prompt: str, max_tokens: int = 8192, temperature: float = 0.7) -> str:
        """Send ``prompt`` with this agent's system prompt and return the answer text.

        Raises:
            TransportError: If Claude cannot be reached after retries.
        """
        self._logger.debug(f"Asking {self._model} ({len(prompt)} prompt characters)")
        try:
            answer = self._client.create_message(
                prompt=prompt,
                max_tokens=max_tokens,
                system=self.system_prompt,
                temperature=temperature,
            )
        except Exception as e:
            self._logger.error(f"{self.name} request failed: {e}")
            raise

        self._logger.debug(f"Answer has {len(answer)} characters")
        return answer
