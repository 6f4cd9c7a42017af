"""Structured visual prompt template: parsing and flattening.

Analysis fills ``VISUAL_TEMPLATE`` once per scene and stores it as JSON text.
Generation services take plain language, so before every image or video call
the stored text is flattened into a single directive. The stored text may be
hand-edited or truncated; parsing degrades to progressively cruder extraction
and never raises.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

PLACEHOLDER = "SWAP_ME"
FALLBACK_SUMMARY = "Cinematic B-roll footage"
RAW_SUMMARY_LIMIT = 400

_SCENE_FIELD_RE = re.compile(r'"scene"\s*:\s*"([^"]+)"')
_STRUCTURAL_CHARS_RE = re.compile(r'[{}"]')
_WHITESPACE_RE = re.compile(r"\s+")

VISUAL_TEMPLATE: dict[str, Any] = {
    "scene": PLACEHOLDER,
    "style": PLACEHOLDER,
    "shot": {
        "composition": PLACEHOLDER,
        "camera_motion": PLACEHOLDER,
        "frame_rate": "24 fps",
        "resolution": "1920 × 1080",
        "lens": PLACEHOLDER,
        "look": PLACEHOLDER,
    },
    "voice_over": {
        "language": "English",
        "tone": PLACEHOLDER,
        "mode": "Narrative, explanatory",
        "emotion": PLACEHOLDER,
        "narration_text": PLACEHOLDER,
        "duration_sec": PLACEHOLDER,
    },
    "house_settings": {
        "typeface": {"hook": PLACEHOLDER, "subtext": PLACEHOLDER},
        "overlay_style": PLACEHOLDER,
        "animation": {
            "enter": PLACEHOLDER,
            "enter_duration_ms": 600,
            "exit": PLACEHOLDER,
            "exit_duration_ms": 500,
        },
        "callouts": {"stroke_px": 0, "corner_radius_px": 0},
        "sizes": {
            "hook_font_height_pct": PLACEHOLDER,
            "sublabel_font_height_pct": PLACEHOLDER,
            "safe_margins_pct": 7,
        },
    },
    "timeline": [
        {"time": "0.0–1.5 s", "action": PLACEHOLDER},
        {"time": "1.5–3.0 s", "action": PLACEHOLDER},
        {"time": "3.0–4.0 s", "action": PLACEHOLDER},
        {"time": "4.0–5.5 s", "action": PLACEHOLDER},
        {"time": "5.5–6.5 s", "action": PLACEHOLDER},
        {"time": "6.5–7.5 s", "action": PLACEHOLDER},
        {"time": "7.5–END", "action": PLACEHOLDER},
    ],
    "lighting": {
        "primary": PLACEHOLDER,
        "secondary": PLACEHOLDER,
        "accents": PLACEHOLDER,
    },
    "audio": {
        "ambient": PLACEHOLDER,
        "sfx": [PLACEHOLDER, PLACEHOLDER, PLACEHOLDER],
        "music": {
            "track": PLACEHOLDER,
            "description": PLACEHOLDER,
            "tempo": PLACEHOLDER,
            "key": PLACEHOLDER,
            "dynamic_curve": PLACEHOLDER,
        },
        "mix": {
            "integrated_loudness": "-14 LUFS",
            "sidechain_music_db_on_impacts": -3,
            "natural_reverb": True,
        },
    },
    "text_rules": {"emoji_policy": "no emojis", "contrast": PLACEHOLDER},
    "color_palette": {
        "background": PLACEHOLDER,
        "ink_primary": "#111111",
        "ink_secondary": "#444444",
        "splatter": "#222222",
        "text_primary": "#111111",
    },
    "transitions": {
        "between_scenes": PLACEHOLDER,
        "impact_frame_usage": PLACEHOLDER,
        "forbidden": ["glitch", "marker squeaks", "cartoon pops"],
    },
    "vfx_rules": {
        "grain": PLACEHOLDER,
        "particles": PLACEHOLDER,
        "camera_shake": PLACEHOLDER,
    },
    "visual_rules": {
        "prohibited_elements": ["3D dinos", "cartoon outlines", "logos"],
        "grain": PLACEHOLDER,
        "sharpen": PLACEHOLDER,
    },
    "export": {
        "preset": "1920x1080_h264_high",
        "target_duration_sec": PLACEHOLDER,
    },
    "metadata": {
        "series": PLACEHOLDER,
        "task": PLACEHOLDER,
        "scene_number": PLACEHOLDER,
        "tags": [PLACEHOLDER, PLACEHOLDER, PLACEHOLDER],
    },
}


def template_json() -> str:
    """Minified template, as embedded in analysis instructions."""
    return json.dumps(VISUAL_TEMPLATE, ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True)
class StructuredPrompt:
    """Fields extracted from a well-formed template document."""

    scene: Optional[str] = None
    composition: Optional[str] = None
    camera_motion: Optional[str] = None
    lighting: Optional[str] = None
    actions: list[str] = field(default_factory=list)

    @property
    def summary(self) -> Optional[str]:
        return self.scene

    def clauses(self) -> list[str]:
        parts = []
        if self.composition:
            parts.append(f"Shot: {self.composition}")
        if self.camera_motion:
            parts.append(f"Movement: {self.camera_motion}")
        if self.lighting:
            parts.append(f"Lighting: {self.lighting}")
        if self.actions:
            parts.append(f"Action: {', '.join(self.actions)}")
        return parts


@dataclass(frozen=True)
class RawTextPrompt:
    """Best-effort summary recovered from text that is not a template document."""

    text: str

    @property
    def summary(self) -> Optional[str]:
        return self.text or None

    def clauses(self) -> list[str]:
        return []


ParsedPrompt = Union[StructuredPrompt, RawTextPrompt]


def _text(value: Any) -> Optional[str]:
    """Return a usable string field, dropping placeholders and non-strings."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value == PLACEHOLDER:
        return None
    return value


def _nested(document: dict, key: str, subkey: str) -> Optional[str]:
    value = document.get(key)
    if isinstance(value, dict):
        return _text(value.get(subkey))
    return None


def _timeline_actions(timeline: Any) -> list[str]:
    if not isinstance(timeline, list):
        return []
    actions = []
    for entry in timeline:
        if isinstance(entry, dict):
            action = _text(entry.get("action"))
            if action:
                actions.append(action)
    return actions


def _structured(document: dict) -> StructuredPrompt:
    lighting = document.get("lighting")
    return StructuredPrompt(
        scene=_text(document.get("scene")),
        composition=_nested(document, "shot", "composition"),
        camera_motion=_nested(document, "shot", "camera_motion"),
        lighting=_text(lighting) if isinstance(lighting, str) else _nested(document, "lighting", "primary"),
        actions=_timeline_actions(document.get("timeline")),
    )


def _raw(text: str) -> RawTextPrompt:
    stripped = text.strip()
    if not stripped.startswith("{"):
        return RawTextPrompt(stripped)

    # Broken JSON: salvage the scene summary if it survived.
    match = _SCENE_FIELD_RE.search(stripped)
    if match and _text(match.group(1)):
        return RawTextPrompt(match.group(1).strip())

    cleaned = _STRUCTURAL_CHARS_RE.sub("", stripped)[:RAW_SUMMARY_LIMIT]
    return RawTextPrompt(cleaned.strip())


def parse_visual_prompt(text: Optional[str]) -> ParsedPrompt:
    """Parse a stored visual prompt without ever raising.

    Returns a ``StructuredPrompt`` whenever the text is valid JSON (empty
    unless it is an object) and a ``RawTextPrompt`` otherwise.
    """
    if not text:
        return RawTextPrompt("")

    try:
        document = json.loads(text)
    except (ValueError, RecursionError):
        logger.warning("Visual prompt is not valid JSON, falling back to text extraction")
        return _raw(text)

    if isinstance(document, dict):
        return _structured(document)
    logger.warning(f"Visual prompt is JSON {type(document).__name__}, not an object")
    return StructuredPrompt()


def _sentence(text: str) -> str:
    return text.strip().rstrip(".").strip()


def flatten_prompt(text: Optional[str], style_modifier: str) -> str:
    """Flatten a stored visual prompt into a single natural-language directive.

    Pure and deterministic. The result is never empty, is a single line, and
    always ends with the style modifier.
    """
    parsed = parse_visual_prompt(text)
    summary = _sentence(parsed.summary or "") or FALLBACK_SUMMARY

    sentences = [summary]
    sentences.extend(_sentence(clause) for clause in parsed.clauses())
    sentences = [s for s in sentences if s]

    full_prompt = ". ".join(sentences) + f". Style: {style_modifier or ''}"
    return _WHITESPACE_RE.sub(" ", full_prompt).strip()


def pretty_prompt(text: str) -> str:
    """Re-indent a well-formed JSON prompt; other text is returned unchanged."""
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except (ValueError, TypeError, RecursionError):
        return text
