"""Analysis sources."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..errors import InputValidationError
from .session import SourceType


@dataclass(frozen=True)
class ScriptSource:
    """Narration text to break down line by line."""

    text: str

    type = SourceType.SCRIPT

    @property
    def display_name(self) -> str:
        text = self.text.strip()
        return f"Script: {text[:30]}{'...' if len(text) > 30 else ''}"

    def validate(self) -> None:
        if not self.text.strip():
            raise InputValidationError("Script is empty")


@dataclass(frozen=True)
class VideoSource:
    """Video clip to reverse-engineer into scenes."""

    data: bytes
    mime_type: str
    name: str = "video"

    type = SourceType.VIDEO

    @property
    def display_name(self) -> str:
        return f"Video: {self.name}"

    @classmethod
    def from_path(cls, path: Path, max_bytes: int) -> "VideoSource":
        """Read a video file, rejecting oversized or non-video files before reading."""
        path = Path(path)
        if not path.is_file():
            raise InputValidationError(f"Video file not found: {path}")

        size = path.stat().st_size
        if size > max_bytes:
            raise InputValidationError(
                f"File size exceeds {max_bytes // (1024 * 1024)}MB limit "
                f"({size / (1024 * 1024):.2f} MB). Please upload a smaller video clip."
            )

        mime_type, _ = mimetypes.guess_type(path.name)
        if not mime_type or not mime_type.startswith("video/"):
            raise InputValidationError(f"Not a video file: {path.name}")

        return cls(data=path.read_bytes(), mime_type=mime_type, name=path.name)

    def validate(self) -> None:
        if not self.data:
            raise InputValidationError("Video is empty")
        if not self.mime_type.startswith("video/"):
            raise InputValidationError(f"Unsupported media type: {self.mime_type}")


AnalysisSource = Union[ScriptSource, VideoSource]
