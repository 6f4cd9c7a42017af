"""Google Gemini client wrapper via Vertex AI (multimodal analysis)."""

import base64
import logging
from typing import Any, Optional

import requests

from ..config import config
from ..errors import TransportError
from .vertex import VertexRestClient

logger = logging.getLogger(__name__)


class GeminiClient(VertexRestClient):
    """Client wrapper for Gemini ``generateContent`` with JSON output."""

    DEFAULT_TIMEOUT = 600.0

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        model: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(
            model=model or config.gemini_model,
            project_id=project_id,
            location=location,
            session=session,
            timeout=self.DEFAULT_TIMEOUT,
        )

    def generate_json(
        self,
        prompt: str,
        response_schema: dict[str, Any],
        media: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> str:
        """Ask the model for a JSON answer, optionally about an inline media file.

        Args:
            prompt: Instruction text.
            response_schema: OpenAPI-style schema the answer must follow.
            media: Raw bytes of an attached video or image.
            mime_type: MIME type of ``media``.

        Returns:
            The raw JSON text of the first candidate.

        Raises:
            TransportError: If the request fails or returns no text.
        """
        parts: list[dict[str, Any]] = []
        if media is not None:
            parts.append({
                "inlineData": {
                    "mimeType": mime_type or "application/octet-stream",
                    "data": base64.b64encode(media).decode("ascii"),
                }
            })
        parts.append({"text": prompt})

        body = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

        logger.info(f"Calling {self._model} (media: {len(media) if media else 0} bytes)")
        data = self.post_json("generateContent", body, what="Gemini")

        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback", {})
            raise TransportError(f"Gemini returned no candidates: {feedback or 'no feedback'}")

        texts = [
            part.get("text", "")
            for part in candidates[0].get("content", {}).get("parts", [])
        ]
        text = "".join(texts).strip()
        if not text:
            raise TransportError("Gemini returned an empty answer")
        return text
