"""Data models for the b-roll director."""

from .scene import Scene, SceneStatus, GenerationMode
from .session import Session, SourceType, Storyboard
from .style import AspectRatio, ImageStyle, VISUAL_STYLES, DEFAULT_STYLE, get_style
from .source import AnalysisSource, ScriptSource, VideoSource

__all__ = [
    "Scene",
    "SceneStatus",
    "GenerationMode",
    "Session",
    "SourceType",
    "Storyboard",
    "AspectRatio",
    "ImageStyle",
    "VISUAL_STYLES",
    "DEFAULT_STYLE",
    "get_style",
    "AnalysisSource",
    "ScriptSource",
    "VideoSource",
]
