"""Visual styles and aspect ratios."""

from enum import Enum

from pydantic import BaseModel, Field


class AspectRatio(str, Enum):
    """Aspect ratios accepted for image generation."""

    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    WIDE = "4:3"
    TALL = "3:4"


class ImageStyle(BaseModel):
    """A named look whose modifier is appended to every flattened prompt."""

    id: str = Field(..., description="Style identifier")
    name: str = Field(..., description="Display name")
    prompt_modifier: str = Field(..., description="Text appended to generation prompts")

    class Config:
        """Pydantic config."""
        frozen = True


VISUAL_STYLES: list[ImageStyle] = [
    ImageStyle(
        id="cinematic",
        name="Cinematic",
        prompt_modifier="cinematic lighting, 35mm film grain, high budget movie production, bokeh, 4k, hyperrealistic",
    ),
    ImageStyle(
        id="ancient",
        name="Ancient Cinematic",
        prompt_modifier=(
            "cinematic shot, ancient historical setting, epic scale, golden hour lighting, "
            "dust and atmosphere, 8k resolution, highly detailed textures, dramatic shadows, "
            "period accurate details"
        ),
    ),
    ImageStyle(
        id="photorealistic",
        name="Photorealistic",
        prompt_modifier="award winning photography, natural lighting, 8k resolution, highly detailed, sharp focus",
    ),
    ImageStyle(
        id="cyberpunk",
        name="Cyberpunk",
        prompt_modifier="neon lights, futuristic city, cybernetic details, synthwave aesthetic, night time, rain",
    ),
    ImageStyle(
        id="anime",
        name="Anime",
        prompt_modifier="anime style, Studio Ghibli inspired, vibrant colors, detailed background, cel shaded",
    ),
    ImageStyle(
        id="watercolor",
        name="Watercolor",
        prompt_modifier="watercolor painting, soft brush strokes, artistic, pastel colors, paper texture, dreamy",
    ),
    ImageStyle(
        id="minimalist",
        name="Minimalist",
        prompt_modifier="minimalist design, clean lines, solid colors, abstract, modern art, vector style",
    ),
]

DEFAULT_STYLE = VISUAL_STYLES[0]


def get_style(style_id: str) -> ImageStyle:
    """Look up a style by id.

    Raises:
        KeyError: If no style has that id.
    """
    for style in VISUAL_STYLES:
        if style.id == style_id:
            return style
    raise KeyError(f"Unknown style: {style_id}. Available: {', '.join(s.id for s in VISUAL_STYLES)}")
