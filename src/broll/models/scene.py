"""Scene data model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SceneStatus(str, Enum):
    """Lifecycle state of a scene."""

    PENDING = "pending"
    GENERATING_IMAGE = "generating-image"
    GENERATING_VIDEO = "generating-video"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def in_flight(self) -> bool:
        return self in (SceneStatus.GENERATING_IMAGE, SceneStatus.GENERATING_VIDEO)


class GenerationMode(str, Enum):
    """Kind of media a generation call produces."""

    IMAGE = "image"
    VIDEO = "video"

    @property
    def generating_status(self) -> SceneStatus:
        if self is GenerationMode.IMAGE:
            return SceneStatus.GENERATING_IMAGE
        return SceneStatus.GENERATING_VIDEO

    @property
    def media_field(self) -> str:
        return "image_url" if self is GenerationMode.IMAGE else "video_url"


class Scene(BaseModel):
    """One source excerpt paired with its visual generation target.

    A scene is visualized as either a still or a clip, never both, and its
    media must agree with its status: ``completed`` carries exactly one media
    reference, ``pending`` and ``error`` carry none. A scene that is being
    regenerated keeps its previous media until the new result lands.
    """

    id: str = Field(..., description="Unique scene identifier")
    original_text: str = Field(..., description="Source excerpt this scene visualizes")
    visual_prompt: str = Field(default="", description="Structured visual prompt (JSON text)")
    status: SceneStatus = Field(default=SceneStatus.PENDING, description="Lifecycle state")
    image_url: Optional[str] = Field(None, description="Generated still")
    video_url: Optional[str] = Field(None, description="Generated clip")
    error: Optional[str] = Field(None, description="Failure cause, only in error state")

    class Config:
        """Pydantic config."""
        frozen = True

    @model_validator(mode="after")
    def _check_media_consistency(self) -> "Scene":
        if self.image_url and self.video_url:
            raise ValueError(f"Scene {self.id} cannot hold both an image and a video")

        has_media = bool(self.image_url or self.video_url)
        if self.status == SceneStatus.COMPLETED and not has_media:
            raise ValueError(f"Completed scene {self.id} has no media")
        if self.status in (SceneStatus.PENDING, SceneStatus.ERROR) and has_media:
            raise ValueError(f"Scene {self.id} in {self.status.value} state cannot hold media")
        if self.status == SceneStatus.ERROR and not self.error:
            raise ValueError(f"Scene {self.id} in error state needs an error message")
        if self.status != SceneStatus.ERROR and self.error:
            raise ValueError(f"Scene {self.id} carries an error outside the error state")
        return self

    @property
    def media_url(self) -> Optional[str]:
        return self.image_url or self.video_url

    def has_media(self, mode: GenerationMode) -> bool:
        return bool(getattr(self, mode.media_field))

    def is_eligible(self, mode: GenerationMode) -> bool:
        """Whether a batch of ``mode`` should pick up this scene."""
        return not self.has_media(mode) and not self.status.in_flight

    def stripped(self) -> "Scene":
        """Copy without media references, for history storage."""
        status = self.status
        if status == SceneStatus.COMPLETED or status.in_flight:
            status = SceneStatus.PENDING
        return self.model_copy(
            update={"image_url": None, "video_url": None, "status": status}
        )
