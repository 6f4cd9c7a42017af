"""
Tests for the scene store.

Tests for broll/store.py
"""

import pytest
from pydantic import ValidationError

from broll.errors import InputValidationError
from broll.models import GenerationMode, SceneStatus
from broll.store import SceneStore

from conftest import make_scene


class TestReplaceById:
    """Tests for replace-by-id updates."""

    def test_replaces_only_target(self, store):
        before = store.scenes

        store.replace_by_id("scene-1", lambda scene: {"visual_prompt": "new"})

        assert store.get("scene-1").visual_prompt == "new"
        assert store.scenes[0] is before[0]
        assert store.scenes[2] is before[2]

    def test_preserves_order(self, store):
        store.replace_by_id("scene-0", lambda scene: {"original_text": "changed"})

        assert [scene.id for scene in store] == ["scene-0", "scene-1", "scene-2"]

    def test_unknown_scene(self, store):
        with pytest.raises(InputValidationError):
            store.replace_by_id("missing", lambda scene: {})

    def test_rejects_invalid_result(self, store):
        with pytest.raises(ValidationError):
            store.replace_by_id(
                "scene-0",
                lambda scene: {"status": SceneStatus.COMPLETED},
            )
        assert store.get("scene-0").status == SceneStatus.PENDING

    def test_notifies_listeners(self, store):
        seen = []
        store.subscribe(lambda scene: seen.append(scene.id))

        store.update_prompt("scene-2", "p")

        assert seen == ["scene-2"]

    def test_failing_listener_does_not_block_update(self, store):
        seen = []

        def broken(scene):
            raise OSError("disk full")

        store.subscribe(broken)
        store.subscribe(lambda scene: seen.append(scene.id))

        store.mark_generating(["scene-0"], GenerationMode.IMAGE)
        result = store.complete("scene-0", GenerationMode.IMAGE, "/assets/scene-0.jpg")

        assert result.status == SceneStatus.COMPLETED
        assert store.get("scene-0").image_url == "/assets/scene-0.jpg"
        assert seen == ["scene-0", "scene-0"]

    def test_load_replaces_collection(self, store):
        store.load([make_scene(7)])

        assert [scene.id for scene in store] == ["scene-7"]
        assert store.find("scene-0") is None


class TestTransitions:
    """Tests for scene state transitions."""

    def test_mark_generating_clears_error(self, store):
        store.mark_generating(["scene-0"], GenerationMode.IMAGE)
        store.fail("scene-0", GenerationMode.IMAGE, "Failed to generate image")

        scene = store.mark_generating(["scene-0"], GenerationMode.VIDEO)[0]

        assert scene.status == SceneStatus.GENERATING_VIDEO
        assert scene.error is None

    def test_complete_sets_one_media_field(self, store):
        store.mark_generating(["scene-0"], GenerationMode.IMAGE)
        store.complete("scene-0", GenerationMode.IMAGE, "/a.jpg")
        store.mark_generating(["scene-0"], GenerationMode.VIDEO)

        assert store.get("scene-0").image_url == "/a.jpg"

        scene = store.complete("scene-0", GenerationMode.VIDEO, "/a.mp4")

        assert scene.video_url == "/a.mp4"
        assert scene.image_url is None

    def test_fail_clears_media(self, completed_scene):
        store = SceneStore([completed_scene])
        store.mark_generating(["scene-9"], GenerationMode.IMAGE)

        scene = store.fail("scene-9", GenerationMode.IMAGE, "Failed to generate image")

        assert scene.status == SceneStatus.ERROR
        assert scene.image_url is None
        assert scene.error == "Failed to generate image"

    def test_result_for_idle_scene_dropped(self, store):
        assert store.complete("scene-0", GenerationMode.IMAGE, "/a.jpg") is None
        assert store.get("scene-0").status == SceneStatus.PENDING

    def test_result_for_other_mode_dropped(self, store):
        store.mark_generating(["scene-0"], GenerationMode.VIDEO)

        assert store.complete("scene-0", GenerationMode.IMAGE, "/a.jpg") is None
        assert store.get("scene-0").status == SceneStatus.GENERATING_VIDEO

    def test_result_for_removed_scene_dropped(self, store):
        store.mark_generating(["scene-0"], GenerationMode.IMAGE)
        store.load([make_scene(5)])

        assert store.fail("scene-0", GenerationMode.IMAGE, "x") is None

    def test_eligible(self, completed_scene):
        store = SceneStore([make_scene(0), make_scene(1), completed_scene])
        store.mark_generating(["scene-1"], GenerationMode.IMAGE)

        assert [s.id for s in store.eligible(GenerationMode.IMAGE)] == ["scene-0"]
        assert [s.id for s in store.eligible(GenerationMode.VIDEO)] == ["scene-0", "scene-9"]

    def test_reset_content(self, completed_scene):
        store = SceneStore([completed_scene])

        scene = store.reset_content("scene-9", "New text.", '{"scene": "new"}')

        assert scene.original_text == "New text."
        assert scene.status == SceneStatus.PENDING
        assert scene.media_url is None
