"""
Tests for prompt export.

Tests for broll/export.py
"""

from broll.export import render_prompts
from broll.models import AspectRatio, SourceType, get_style

from conftest import make_scene


class TestRenderPrompts:
    """Tests for render_prompts."""

    def test_script_format(self):
        scenes = [make_scene(0), make_scene(1)]

        text = render_prompts(scenes, SourceType.SCRIPT, get_style("cinematic"), AspectRatio.LANDSCAPE)

        assert text == (
            'SCENE 1\n------------------\nSCRIPT SEGMENT: "Line 0."\n'
            "VISUAL PROMPT: prompt-0\nSTYLE: Cinematic (16:9)\n"
            "\n\n"
            'SCENE 2\n------------------\nSCRIPT SEGMENT: "Line 1."\n'
            "VISUAL PROMPT: prompt-1\nSTYLE: Cinematic (16:9)\n"
        )

    def test_video_label(self):
        text = render_prompts([make_scene(0)], SourceType.VIDEO, get_style("anime"), AspectRatio.SQUARE)

        assert 'VIDEO SEGMENT: "Line 0."' in text
        assert text.endswith("STYLE: Anime (1:1)\n")

    def test_empty(self):
        assert render_prompts([], SourceType.SCRIPT, get_style("cinematic"), AspectRatio.LANDSCAPE) == ""
