"""External service integrations."""

from .anthropic import AnthropicClient
from .gemini import GeminiClient
from .imagen import ImagenClient, ImageResult
from .veo import VeoClient, VideoJob, JobStatus, parse_operation

__all__ = [
    "AnthropicClient",
    "GeminiClient",
    "ImagenClient",
    "ImageResult",
    "VeoClient",
    "VideoJob",
    "JobStatus",
    "parse_operation",
]
