"""
Tests for analysis agents.

Tests for broll/agents/
"""

import json
from unittest.mock import MagicMock

import pytest

from broll.agents import (
    ScriptBreakdownAgent,
    VideoBreakdownAgent,
    VisualPromptAgent,
    extract_json,
    parse_scenes,
)
from broll.models import SceneStatus, VideoSource


class TestExtractJson:
    """Tests for extract_json."""

    def test_code_block(self):
        assert extract_json('Here:\n```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_embedded_object(self):
        assert extract_json('Sure! {"a": {"b": 2}} done') == '{"a": {"b": 2}}'

    def test_braces_inside_strings(self):
        text = 'x {"scene": "a } tricky { value"} y'

        assert json.loads(extract_json(text)) == {"scene": "a } tricky { value"}


class TestParseScenes:
    """Tests for parse_scenes."""

    def test_parses_in_order(self):
        response = json.dumps({"scenes": [
            {"originalText": "First.", "visualPrompt": '{"scene":"one"}'},
            {"originalText": "Second.", "visualPrompt": {"scene": "two"}},
        ]})

        scenes = parse_scenes(response, id_prefix="scene-1")

        assert [s.id for s in scenes] == ["scene-1-0", "scene-1-1"]
        assert [s.original_text for s in scenes] == ["First.", "Second."]
        assert json.loads(scenes[0].visual_prompt) == {"scene": "one"}
        assert json.loads(scenes[1].visual_prompt) == {"scene": "two"}
        assert all(s.status == SceneStatus.PENDING for s in scenes)

    def test_bare_array(self):
        scenes = parse_scenes('[{"originalText": "Only.", "visualPrompt": "text"}]', id_prefix="s")

        assert scenes[0].visual_prompt == "text"

    def test_skips_malformed_entries(self):
        response = json.dumps({"scenes": ["junk", {"visualPrompt": "x"}, {"originalText": "Kept."}]})

        scenes = parse_scenes(response, id_prefix="s")

        assert [s.original_text for s in scenes] == ["Kept."]
        assert scenes[0].id == "s-2"

    def test_unique_default_ids(self):
        scenes = parse_scenes('{"scenes": [{"originalText": "a"}, {"originalText": "b"}]}')

        assert len({s.id for s in scenes}) == 2
        assert scenes[0].id.startswith("scene-")

    @pytest.mark.parametrize("response", ["not json", '{"scenes": []}', '{"scenes": {"a": 1}}'])
    def test_invalid(self, response):
        with pytest.raises(ValueError):
            parse_scenes(response)


class TestScriptBreakdownAgent:
    """Tests for the script breakdown agent."""

    def test_run(self):
        client = MagicMock()
        client.create_message.return_value = (
            '```json\n{"scenes": [{"originalText": "Hello.", "visualPrompt": "{}"}]}\n```'
        )
        agent = ScriptBreakdownAgent(client=client)

        scenes = agent.run("Hello.")

        assert [s.original_text for s in scenes] == ["Hello."]
        kwargs = client.create_message.call_args.kwargs
        assert "SWAP_ME" in kwargs["prompt"]
        assert kwargs["prompt"].endswith("Hello.")
        assert kwargs["system"] == agent.system_prompt


class TestVisualPromptAgent:
    """Tests for the visual prompt agent."""

    def test_returns_pretty_json(self):
        client = MagicMock()
        client.create_message.return_value = '{"scene": "A quiet street"}'

        result = VisualPromptAgent(client=client).run("A quiet street.")

        assert result == '{\n  "scene": "A quiet street"\n}'

    def test_unwraps_visual_prompt(self):
        client = MagicMock()
        client.create_message.return_value = '{"visualPrompt": {"scene": "x"}}'

        result = VisualPromptAgent(client=client).run("x")

        assert json.loads(result) == {"scene": "x"}

    def test_rejects_non_json(self):
        client = MagicMock()
        client.create_message.return_value = "I cannot help with that."

        with pytest.raises(ValueError):
            VisualPromptAgent(client=client).run("x")


class TestVideoBreakdownAgent:
    """Tests for the video breakdown agent."""

    def test_run(self):
        client = MagicMock()
        client.generate_json.return_value = '{"scenes": [{"originalText": "Waves crash.", "visualPrompt": "{}"}]}'
        source = VideoSource(data=b"video", mime_type="video/mp4", name="beach.mp4")

        scenes = VideoBreakdownAgent(client=client).run(source)

        assert scenes[0].original_text == "Waves crash."
        kwargs = client.generate_json.call_args.kwargs
        assert kwargs["media"] == b"video"
        assert kwargs["mime_type"] == "video/mp4"
