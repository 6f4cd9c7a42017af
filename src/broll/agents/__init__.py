"""AI agents for scene breakdown and prompt writing."""

from .base import BaseAgent, extract_json, load_json
from .breakdown import (
    ScriptBreakdownAgent,
    VisualPromptAgent,
    VideoBreakdownAgent,
    parse_scenes,
)

__all__ = [
    "BaseAgent",
    "extract_json",
    "load_json",
    "ScriptBreakdownAgent",
    "VisualPromptAgent",
    "VideoBreakdownAgent",
    "parse_scenes",
]
