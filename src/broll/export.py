"""Plain-text export of scene prompts."""

from typing import Iterable

from .models import AspectRatio, ImageStyle, Scene, SourceType

_SEGMENT_LABELS = {
    SourceType.SCRIPT: "SCRIPT SEGMENT",
    SourceType.VIDEO: "VIDEO SEGMENT",
}


def render_scene(
    index: int,
    scene: Scene,
    source_type: SourceType,
    style: ImageStyle,
    aspect_ratio: AspectRatio,
) -> str:
    """Render one scene block; ``index`` is 1-based."""
    return (
        f"SCENE {index}\n"
        f"------------------\n"
        f"{_SEGMENT_LABELS[SourceType(source_type)]}: \"{scene.original_text}\"\n"
        f"VISUAL PROMPT: {scene.visual_prompt}\n"
        f"STYLE: {style.name} ({AspectRatio(aspect_ratio).value})\n"
    )


def render_prompts(
    scenes: Iterable[Scene],
    source_type: SourceType,
    style: ImageStyle,
    aspect_ratio: AspectRatio,
) -> str:
    """Render every scene as a copy-ready text block, separated by blank lines."""
    return "\n\n".join(
        render_scene(i, scene, source_type, style, aspect_ratio)
        for i, scene in enumerate(scenes, 1)
    )
