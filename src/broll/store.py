"""Live scene collection."""

import logging
from typing import Callable, Iterable, Optional, Sequence

from .errors import InputValidationError
from .models import GenerationMode, Scene, SceneStatus

logger = logging.getLogger(__name__)

SceneListener = Callable[[Scene], None]


class SceneStore:
    """Ordered scene collection with replace-by-id updates.

    Every mutation builds a new immutable snapshot and swaps it in without
    awaiting, so concurrent tasks on one event loop cannot lose each other's
    updates as long as each only touches its own scene id.
    """

    def __init__(self, scenes: Optional[Iterable[Scene]] = None) -> None:
        self._scenes: tuple[Scene, ...] = tuple(scenes or ())
        self._listeners: list[SceneListener] = []

    @property
    def scenes(self) -> tuple[Scene, ...]:
        """Current snapshot."""
        return self._scenes

    def __len__(self) -> int:
        return len(self._scenes)

    def __iter__(self):
        return iter(self._scenes)

    def subscribe(self, listener: SceneListener) -> None:
        """Call ``listener`` with every scene that changes."""
        self._listeners.append(listener)

    def find(self, scene_id: str) -> Optional[Scene]:
        for scene in self._scenes:
            if scene.id == scene_id:
                return scene
        return None

    def get(self, scene_id: str) -> Scene:
        scene = self.find(scene_id)
        if scene is not None:
            return scene
        raise InputValidationError(f"Unknown scene: {scene_id}")

    def load(self, scenes: Iterable[Scene]) -> None:
        """Replace the whole collection (new analysis or history reload)."""
        self._scenes = tuple(scenes)
        logger.debug(f"Loaded {len(self._scenes)} scenes")

    def replace_by_id(self, scene_id: str, update: Callable[[Scene], dict]) -> Scene:
        """Apply ``update`` to one scene and swap in the validated result.

        ``update`` receives the current scene and returns the changed fields.

        Raises:
            InputValidationError: If no scene has ``scene_id``.
            pydantic.ValidationError: If the result breaks a scene invariant.
        """
        return self._replace({scene_id: update})[0]

    def _replace(self, updates: dict[str, Callable[[Scene], dict]]) -> list[Scene]:
        missing = set(updates) - {scene.id for scene in self._scenes}
        if missing:
            raise InputValidationError(f"Unknown scene: {', '.join(sorted(missing))}")

        changed: list[Scene] = []
        new_scenes = []
        for scene in self._scenes:
            if scene.id in updates:
                fields = scene.model_dump()
                fields.update(updates[scene.id](scene))
                scene = Scene.model_validate(fields)
                changed.append(scene)
            new_scenes.append(scene)

        self._scenes = tuple(new_scenes)
        for scene in changed:
            self._notify(scene)
        return changed

    def _notify(self, scene: Scene) -> None:
        # The new snapshot is already in place; a failing listener cannot undo it.
        for listener in self._listeners:
            try:
                listener(scene)
            except Exception as e:
                logger.error(f"Scene listener failed for {scene.id}: {e}")

    # Transitions

    def eligible(self, mode: GenerationMode) -> list[Scene]:
        """Scenes a ``mode`` batch would pick up, in order."""
        return [scene for scene in self._scenes if scene.is_eligible(mode)]

    def mark_generating(self, scene_ids: Sequence[str], mode: GenerationMode) -> list[Scene]:
        """Move scenes into ``generating-<mode>`` in a single update."""
        status = mode.generating_status
        return self._replace({
            scene_id: lambda scene: {"status": status, "error": None}
            for scene_id in scene_ids
        })

    def complete(self, scene_id: str, mode: GenerationMode, url: str) -> Optional[Scene]:
        """Record a finished generation; the other media field is cleared.

        Results for a scene that is no longer generating ``mode`` (its text
        was edited meanwhile) are dropped.
        """
        if not self._expecting(scene_id, mode):
            return None
        media = {"image_url": None, "video_url": None, mode.media_field: url}
        return self.replace_by_id(
            scene_id,
            lambda scene: {"status": SceneStatus.COMPLETED, "error": None, **media},
        )

    def fail(self, scene_id: str, mode: GenerationMode, message: str) -> Optional[Scene]:
        """Record a failed generation."""
        if not self._expecting(scene_id, mode):
            return None
        return self.replace_by_id(
            scene_id,
            lambda scene: {
                "status": SceneStatus.ERROR,
                "error": message,
                "image_url": None,
                "video_url": None,
            },
        )

    def update_prompt(self, scene_id: str, visual_prompt: str) -> Scene:
        """Store a hand-edited visual prompt; status and media are kept."""
        return self.replace_by_id(scene_id, lambda scene: {"visual_prompt": visual_prompt})

    def reset_content(self, scene_id: str, original_text: str, visual_prompt: str) -> Scene:
        """New source text and prompt invalidate any previous result."""
        return self.replace_by_id(
            scene_id,
            lambda scene: {
                "original_text": original_text,
                "visual_prompt": visual_prompt,
                "status": SceneStatus.PENDING,
                "image_url": None,
                "video_url": None,
                "error": None,
            },
        )

    def _expecting(self, scene_id: str, mode: GenerationMode) -> bool:
        scene = self.find(scene_id)
        if scene is None:
            logger.warning(f"Dropping {mode.value} result for removed scene {scene_id}")
            return False
        if scene.status != mode.generating_status:
            logger.warning(
                f"Dropping {mode.value} result for scene {scene_id}: "
                f"scene is {scene.status.value}"
            )
            return False
        return True
