"""Google Imagen API client wrapper via Vertex AI."""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import requests

from ..config import config
from ..errors import ContentFilteredError, TransportError
from ..models import AspectRatio
from .vertex import VertexRestClient

logger = logging.getLogger(__name__)


@dataclass
class ImageResult:
    """Result of an Imagen generation call."""

    prompt: str
    data: bytes
    mime_type: str = "image/jpeg"
    created_at: datetime = field(default_factory=datetime.now)
    metadata: dict = field(default_factory=dict)


class ImagenClient(VertexRestClient):
    """Client wrapper for Google Imagen image generation via Vertex AI."""

    OUTPUT_MIME_TYPE = "image/jpeg"

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        model: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the Imagen client.

        Args:
            project_id: Google Cloud project ID.
            location: GCP region for Vertex AI.
            model: Imagen model name.
            session: HTTP session to reuse.
        """
        super().__init__(
            model=model or config.imagen_model,
            project_id=project_id,
            location=location,
            session=session,
        )

    def generate_image(
        self,
        prompt: str,
        aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE,
        negative_prompt: Optional[str] = None,
    ) -> ImageResult:
        """Generate one image from a flattened text prompt.

        Args:
            prompt: Text description of the image to generate.
            aspect_ratio: Image aspect ratio.
            negative_prompt: Things to avoid in the image.

        Returns:
            ImageResult holding the decoded image bytes.

        Raises:
            TransportError: If the request fails.
            ContentFilteredError: If the response carries no image.
        """
        request_body = {
            "instances": [
                {"prompt": prompt}
            ],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": AspectRatio(aspect_ratio).value,
                "outputOptions": {"mimeType": self.OUTPUT_MIME_TYPE},
            },
        }

        if negative_prompt:
            request_body["parameters"]["negativePrompt"] = negative_prompt

        logger.info(f"Generating image with Imagen: {prompt[:50]}...")
        data = self.post_json("predict", request_body, what="Imagen")

        # Extract image from response
        predictions = data.get("predictions", [])
        if not predictions:
            raise ContentFilteredError(
                "No predictions in response",
                "No image generated. The content may have been filtered by safety guidelines.",
            )

        prediction = predictions[0]
        image_data = prediction.get("bytesBase64Encoded")
        if not image_data:
            reason = prediction.get("raiFilteredReason")
            raise ContentFilteredError(
                f"No image data in response: {reason or 'unknown reason'}",
                reason or "No image generated. The content may have been filtered by safety guidelines.",
            )

        try:
            image_bytes = base64.b64decode(image_data)
        except (binascii.Error, ValueError) as e:
            raise TransportError(f"Imagen returned undecodable image data: {e}") from e

        return ImageResult(
            prompt=prompt,
            data=image_bytes,
            mime_type=prediction.get("mimeType", self.OUTPUT_MIME_TYPE),
            metadata={
                "aspect_ratio": AspectRatio(aspect_ratio).value,
                "model": self._model,
            },
        )
