"""Session and storyboard data models."""

from enum import Enum
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field
import yaml

from .scene import Scene
from .style import AspectRatio, DEFAULT_STYLE


class SourceType(str, Enum):
    """Kind of source a session was analyzed from."""
    SCRIPT = "script"
    VIDEO = "video"


class Session(BaseModel):
    """Historical record of one analysis run."""

    id: str = Field(..., description="Session identifier")
    timestamp: int = Field(..., description="Creation time, epoch milliseconds")
    type: SourceType = Field(..., description="Source type")
    name: str = Field(..., description="Display name")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes at analysis time")

    class Config:
        """Pydantic config."""
        frozen = True

    def stripped(self) -> "Session":
        """Copy with media references removed from every scene."""
        return self.model_copy(update={"scenes": [scene.stripped() for scene in self.scenes]})


class Storyboard(BaseModel):
    """Working file: the live scene list plus the generation settings."""

    session: Session = Field(..., description="Session the scenes came from")
    scenes: List[Scene] = Field(default_factory=list, description="Live scenes")
    style_id: str = Field(default=DEFAULT_STYLE.id, description="Selected visual style")
    aspect_ratio: AspectRatio = Field(default=AspectRatio.LANDSCAPE, description="Selected aspect ratio")

    class Config:
        """Pydantic config."""
        frozen = False

    @classmethod
    def from_yaml(cls, path: Path) -> "Storyboard":
        """Load storyboard from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save storyboard to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
