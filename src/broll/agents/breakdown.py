"""Agents that break a source down into scenes with visual prompts."""

import json
import logging
import time
from typing import Any, Optional

from ..models import Scene
from ..models.source import VideoSource
from ..prompts import pretty_prompt, template_json
from ..services.gemini import GeminiClient
from .base import BaseAgent, load_json

logger = logging.getLogger(__name__)

SCRIPT_SYSTEM_PROMPT = """You are a professional video editor and B-roll director.
You break narration scripts down into visual scenes for AI image and video generation.

Output valid JSON only, with no additional text or markdown formatting.
The JSON must be an object with a "scenes" array. Each scene object has
"originalText" (string) and "visualPrompt" (string holding the filled template JSON)."""

PROMPT_SYSTEM_PROMPT = """You are a professional video editor.
You write detailed visual specifications for single scenes, for AI image and video generators.

Output the filled-out JSON template only, with no additional text or markdown formatting."""

SCENES_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "scenes": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "originalText": {
                        "type": "STRING",
                        "description": "The description of the event or the audio transcript for this scene.",
                    },
                    "visualPrompt": {
                        "type": "STRING",
                        "description": "The filled-out JSON template string",
                    },
                },
                "required": ["originalText", "visualPrompt"],
            },
        }
    },
    "required": ["scenes"],
}


def _visual_prompt_text(value: Any) -> str:
    """Normalize a returned visual prompt to pretty-printed text."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False)
    if value is None:
        return ""
    return pretty_prompt(str(value))


def parse_scenes(response: str, id_prefix: Optional[str] = None) -> list[Scene]:
    """Parse an analysis response into pending scenes.

    Args:
        response: Raw model output holding ``{"scenes": [...]}``.
        id_prefix: Prefix for scene ids. Defaults to ``scene-<epoch ms>``.

    Returns:
        Scenes in the order given.

    Raises:
        ValueError: If the response has no usable scenes array.
    """
    data = load_json(response)

    # Handle different response formats
    scenes_data = data.get("scenes", data) if isinstance(data, dict) else data

    if not isinstance(scenes_data, list):
        raise ValueError("Response does not contain a scenes array")

    prefix = id_prefix or f"scene-{int(time.time() * 1000)}"
    scenes: list[Scene] = []
    for i, scene_data in enumerate(scenes_data):
        if not isinstance(scene_data, dict):
            logger.warning(f"Skipping malformed scene entry {i}")
            continue
        original_text = str(scene_data.get("originalText") or "").strip()
        if not original_text:
            logger.warning(f"Skipping scene entry {i} without source text")
            continue
        scenes.append(Scene(
            id=f"{prefix}-{i}",
            original_text=original_text,
            visual_prompt=_visual_prompt_text(scene_data.get("visualPrompt")),
        ))

    if not scenes:
        raise ValueError("Response contains no scenes")
    return scenes


class ScriptBreakdownAgent(BaseAgent[str, list[Scene]]):
    """Agent for splitting a narration script into scenes.

    Creates a scene for almost every sentence or clause so there is enough
    B-roll to cover the whole narration.
    """

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "ScriptBreakdownAgent"

    @property
    def system_prompt(self) -> str:
        """Return the system prompt for scene breakdown."""
        return SCRIPT_SYSTEM_PROMPT

    def run(self, input_data: str) -> list[Scene]:
        """Break a script down into scenes.

        Raises:
            ValueError: If the response cannot be parsed as scenes.
        """
        self._logger.info(f"Breaking down script ({len(input_data)} characters)")

        response = self._ask(
            prompt=self._build_prompt(input_data),
            max_tokens=32000,
            temperature=0.4,
        )
        scenes = parse_scenes(response)

        self._logger.info(f"Generated {len(scenes)} scenes")
        return scenes

    def _build_prompt(self, script: str) -> str:
        """Build the user prompt for scene breakdown."""
        return "\n".join([
            "Analyze the following video script, which may be up to 10 minutes long.",
            "",
            "Your specific task is to provide a granular, line-by-line breakdown of visual scenes.",
            "",
            "Guidelines:",
            "1. STRICT LINE-BY-LINE ANALYSIS: Do not group large paragraphs. Create a new visual scene "
            "for almost every sentence or distinct clause to ensure there is enough B-roll for the entire duration.",
            "2. For a 10-minute script, generate as many scenes as necessary to cover the audio continuously "
            "(this could be 50-100+ scenes).",
            "3. For each scene, provide:",
            '   - "originalText": The exact sentence or phrase from the script.',
            '   - "visualPrompt": You MUST use the following JSON template for the visual prompt. '
            'Fill in all "SWAP_ME" fields relevant to the scene. Return the result as a valid, '
            "minimized JSON string inside the field.",
            "",
            "Template:",
            template_json(),
            "",
            "Script:",
            script,
        ])


class VisualPromptAgent(BaseAgent[str, str]):
    """Agent for filling the visual template for one edited script segment."""

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "VisualPromptAgent"

    @property
    def system_prompt(self) -> str:
        """Return the system prompt for single-prompt generation."""
        return PROMPT_SYSTEM_PROMPT

    def run(self, input_data: str) -> str:
        """Return a pretty-printed filled template for ``input_data``.

        Raises:
            ValueError: If the response contains no JSON object.
        """
        self._logger.info(f"Regenerating visual prompt for: {input_data[:60]}")

        response = self._ask(
            prompt="\n".join([
                "Create a detailed visual prompt for the following single scene description or script segment.",
                "",
                f'Segment: "{input_data}"',
                "",
                "Task:",
                'Fill in the following JSON template to create a complete visual specification for this scene. '
                'Replace all "SWAP_ME" values with creative, high-quality direction suitable for an AI '
                "video/image generator.",
                "",
                "Template:",
                template_json(),
            ]),
            max_tokens=4096,
            temperature=0.7,
        )

        data = load_json(response)

        # Unwrap {"visualPrompt": ...} if the model echoed the analysis shape
        if isinstance(data, dict) and set(data) == {"visualPrompt"}:
            return _visual_prompt_text(data["visualPrompt"])
        if not isinstance(data, dict):
            raise ValueError("Response is not a JSON object")
        return json.dumps(data, indent=2, ensure_ascii=False)


class VideoBreakdownAgent:
    """Reverse-engineers an uploaded clip into scenes using Gemini.

    Sends the clip inline to Gemini; output contract matches
    ``ScriptBreakdownAgent``.
    """

    name = "VideoBreakdownAgent"

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client or GeminiClient()
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    def run(self, input_data: VideoSource) -> list[Scene]:
        """Break a video down into chronological scenes.

        Raises:
            ValueError: If the response cannot be parsed as scenes.
        """
        self._logger.info(
            f"Analyzing video {input_data.name} ({len(input_data.data)} bytes, {input_data.mime_type})"
        )
        prompt = "\n".join([
            "You are a professional video director.",
            "Analyze this video. We want to recreate this video shot-for-shot using AI generated "
            "stock footage (B-roll).",
            "",
            "Break the video down into chronological visual scenes.",
            "",
            "For each scene:",
            '1. "originalText": Describe exactly what is happening in this segment of the video, '
            "or the narration being spoken.",
            '2. "visualPrompt": Create a detailed instruction to generate a similar shot. You MUST use '
            'the following JSON template. Fill in all "SWAP_ME" fields to match the visual style, '
            "lighting, and composition of the source video.",
            "",
            "Template:",
            template_json(),
            "",
            'Return a JSON object with a "scenes" array.',
        ])
        response = self._client.generate_json(
            prompt,
            SCENES_RESPONSE_SCHEMA,
            media=input_data.data,
            mime_type=input_data.mime_type,
        )
        scenes = parse_scenes(response)

        self._logger.info(f"Generated {len(scenes)} scenes")
        return scenes
