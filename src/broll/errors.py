"""Exception types shared across the pipeline."""

from typing import Optional


class BrollError(Exception):
    """Base class for all pipeline errors."""


class InputValidationError(BrollError, ValueError):
    """Rejected input; raised before any state change."""


class CredentialsError(BrollError, ValueError):
    """A required credential or configuration value is missing."""


class AnalysisError(BrollError):
    """Turning a source into scenes failed; no partial scene list exists."""


class GenerationBusyError(BrollError):
    """Another generation class currently holds the generation lock."""


class GenerationError(BrollError):
    """A single scene's generation call failed.

    ``scene_message`` is the human-readable cause written into the scene.
    """

    default_message = "Generation failed"

    def __init__(self, message: str = "", scene_message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.scene_message = scene_message or self.default_message


class TransportError(GenerationError):
    """Network or HTTP failure talking to a generation service."""


class ContentFilteredError(GenerationError):
    """The service answered but produced no usable output (safety filter, empty result)."""

    default_message = "No media generated. The content may have been filtered by safety guidelines."

    def __init__(self, message: str = "", scene_message: Optional[str] = None) -> None:
        super().__init__(message, scene_message or message or self.default_message)


class VideoGenerationError(GenerationError):
    """Failure in one stage of a video job: ``submit``, ``poll`` or ``fetch``."""

    default_message = "Failed to generate video"

    def __init__(
        self,
        stage: str,
        message: str = "",
        scene_message: Optional[str] = None,
    ) -> None:
        super().__init__(message, scene_message)
        self.stage = stage


class JobFailedError(VideoGenerationError):
    """The video operation finished and reported an error."""

    def __init__(self, message: str) -> None:
        super().__init__("poll", message, f"Video generation failed: {message}")


class JobTimeoutError(VideoGenerationError):
    """The video operation did not finish within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            "poll",
            f"Operation did not complete within {timeout:g}s",
            f"Video generation timed out after {timeout:g}s",
        )
