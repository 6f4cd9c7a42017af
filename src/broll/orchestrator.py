"""Batch scheduling of scene generation.

Batches mark every eligible scene in flight in one store update, split them
into fixed-size chunks, and run the chunks one after another. Scenes inside a
chunk are dispatched concurrently and the next chunk starts only after every
scene of the current one has settled. A failing scene is written as ``error``
and never affects its siblings.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Sequence

from .config import config
from .errors import (
    AnalysisError,
    GenerationBusyError,
    GenerationError,
    InputValidationError,
    TransportError,
)
from .gateway import GenerationGateway
from .history import HistoryStore
from .models import (
    AnalysisSource,
    AspectRatio,
    DEFAULT_STYLE,
    GenerationMode,
    ImageStyle,
    Scene,
    Session,
)
from .poller import OperationPoller
from .store import SceneStore

logger = logging.getLogger(__name__)

_GENERIC_MESSAGES = {
    GenerationMode.IMAGE: "Failed to generate image",
    GenerationMode.VIDEO: "Failed to generate video",
}


class GenerationClass(str, Enum):
    """Which kind of batch currently owns the generation lock."""

    IDLE = "idle"
    IMAGE_BATCH = "image-batch"
    VIDEO_BATCH = "video-batch"

    @classmethod
    def for_mode(cls, mode: GenerationMode) -> "GenerationClass":
        return cls.IMAGE_BATCH if mode is GenerationMode.IMAGE else cls.VIDEO_BATCH


class GenerationLock:
    """System-wide lock held by at most one batch class at a time."""

    def __init__(self) -> None:
        self._holder = GenerationClass.IDLE

    @property
    def holder(self) -> GenerationClass:
        return self._holder

    @property
    def busy(self) -> bool:
        return self._holder is not GenerationClass.IDLE

    @contextmanager
    def hold(self, generation_class: GenerationClass) -> Iterator[None]:
        if self.busy:
            raise GenerationBusyError(f"Generation busy: {self._holder.value} in progress")
        self._holder = generation_class
        try:
            yield
        finally:
            self._holder = GenerationClass.IDLE


@dataclass
class BatchReport:
    """Outcome counts of one batch run."""

    mode: GenerationMode
    dispatched: int = 0
    completed: int = 0
    failed: int = 0
    chunks: int = 0


def chunked(items: Sequence, size: int) -> list[list]:
    """Split ``items`` into consecutive chunks of at most ``size``."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def scene_error_message(error: Exception, mode: GenerationMode) -> str:
    """Human-readable scene error for a failed generation call."""
    if isinstance(error, GenerationError) and not isinstance(error, TransportError):
        return error.scene_message
    return _GENERIC_MESSAGES[mode]


class BatchOrchestrator:
    """Drives scenes in a ``SceneStore`` through the generation gateway."""

    def __init__(
        self,
        store: SceneStore,
        gateway: GenerationGateway,
        history: Optional[HistoryStore] = None,
        poller: Optional[OperationPoller] = None,
        style: ImageStyle = DEFAULT_STYLE,
        aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE,
        image_batch_size: Optional[int] = None,
        video_batch_size: Optional[int] = None,
        check_video_credentials: Optional[Callable[[], None]] = None,
    ) -> None:
        self.store = store
        self.style = style
        self.aspect_ratio = AspectRatio(aspect_ratio)
        self._gateway = gateway
        self._history = history
        self._poller = poller or OperationPoller(gateway)
        self._batch_sizes = {
            GenerationMode.IMAGE: image_batch_size or config.image_batch_size,
            GenerationMode.VIDEO: video_batch_size or config.video_batch_size,
        }
        self._check_video_credentials = check_video_credentials or config.validate_veo_required
        self._lock = GenerationLock()

    @property
    def lock(self) -> GenerationLock:
        return self._lock

    def batch_size(self, mode: GenerationMode) -> int:
        return self._batch_sizes[mode]

    async def run_batch(self, mode: GenerationMode) -> BatchReport:
        """Generate media for every eligible scene.

        Returns immediately with an empty report when nothing is eligible,
        which includes a repeated call while the same batch is still running.

        Raises:
            GenerationBusyError: If a batch of the other class is running.
            CredentialsError: If video credentials are missing.
        """
        mode = GenerationMode(mode)
        generation_class = GenerationClass.for_mode(mode)
        report = BatchReport(mode=mode)

        if self._lock.busy and self._lock.holder is not generation_class:
            raise GenerationBusyError(
                f"Cannot start {mode.value} batch: {self._lock.holder.value} in progress"
            )

        eligible = self.store.eligible(mode)
        if not eligible:
            logger.info(f"No scenes need {mode.value} generation")
            return report

        if mode is GenerationMode.VIDEO:
            self._check_video_credentials()

        with self._lock.hold(generation_class):
            self.store.mark_generating([scene.id for scene in eligible], mode)
            chunks = chunked(eligible, self.batch_size(mode))
            logger.info(
                f"Generating {len(eligible)} {mode.value}s in {len(chunks)} chunks "
                f"(max {self.batch_size(mode)} concurrent)"
            )

            for index, chunk in enumerate(chunks, 1):
                logger.info(f"Chunk {index}/{len(chunks)}: {', '.join(s.id for s in chunk)}")
                results = await asyncio.gather(
                    *(self._generate(scene, mode) for scene in chunk),
                    return_exceptions=True,
                )
                completed = sum(1 for ok in results if ok is True)
                report.chunks += 1
                report.dispatched += len(chunk)
                report.completed += completed
                report.failed += len(chunk) - completed

        logger.info(
            f"{mode.value.capitalize()} batch done: {report.completed} completed, "
            f"{report.failed} failed"
        )
        return report

    async def generate_one(
        self,
        scene_id: str,
        mode: GenerationMode,
        prompt: Optional[str] = None,
    ) -> Scene:
        """Generate media for one scene, optionally with an edited prompt.

        Image generation is allowed while a batch runs; video generation is
        not.

        Raises:
            InputValidationError: If the scene does not exist.
            GenerationBusyError: If the scene is already generating, or a
                batch is running and ``mode`` is video.
            CredentialsError: If video credentials are missing.
        """
        mode = GenerationMode(mode)
        scene = self.store.get(scene_id)

        if scene.status.in_flight:
            raise GenerationBusyError(f"Scene {scene_id} is already {scene.status.value}")
        if mode is GenerationMode.VIDEO:
            if self._lock.busy:
                raise GenerationBusyError(
                    f"Cannot generate video: {self._lock.holder.value} in progress"
                )
            self._check_video_credentials()

        if prompt is not None:
            self.store.update_prompt(scene_id, prompt)
        self.store.mark_generating([scene_id], mode)

        await self._generate(self.store.get(scene_id), mode)
        return self.store.get(scene_id)

    async def _generate(self, scene: Scene, mode: GenerationMode) -> bool:
        """Run one scene's generation call and write its terminal state."""
        try:
            if mode is GenerationMode.IMAGE:
                url = await self._gateway.generate_image(
                    scene.visual_prompt,
                    self.style.prompt_modifier,
                    self.aspect_ratio,
                    scene_id=scene.id,
                )
            else:
                url = await self._poller.run(
                    scene.visual_prompt,
                    self.style.prompt_modifier,
                    self.aspect_ratio,
                    scene_id=scene.id,
                )
            if not url:
                raise GenerationError(f"{mode.value} call returned no media reference")
            recorded = self.store.complete(scene.id, mode, url)
        except Exception as e:
            logger.error(f"Error generating {mode.value} for scene {scene.id}: {e}")
            self._record_failure(scene.id, mode, scene_error_message(e, mode))
            return False

        if recorded is not None:
            logger.info(f"Scene {scene.id}: {mode.value} ready at {url}")
        return True

    def _record_failure(self, scene_id: str, mode: GenerationMode, message: str) -> None:
        try:
            self.store.fail(scene_id, mode, message)
        except Exception as e:
            logger.error(f"Could not record {mode.value} failure for scene {scene_id}: {e}")

    async def analyze(self, source: AnalysisSource) -> Session:
        """Break a source down into scenes and make them the live collection.

        Raises:
            InputValidationError: If the source is empty or invalid.
            GenerationBusyError: If a batch is running.
            AnalysisError: If the analysis call fails; the store is unchanged.
        """
        source.validate()
        if self._lock.busy:
            raise GenerationBusyError("Cannot analyze while a batch is running")

        try:
            scenes = await self._gateway.analyze(source)
        except Exception as e:
            logger.error(f"Error analyzing {source.type.value}: {e}")
            raise AnalysisError(f"Failed to analyze content: {e}") from e

        if not scenes:
            raise AnalysisError("Failed to analyze content: no scenes returned")

        now = int(time.time() * 1000)
        session = Session(
            id=str(now),
            timestamp=now,
            type=source.type,
            name=source.display_name,
            scenes=scenes,
        )
        self.store.load(scenes)
        logger.info(f"Analyzed {session.name}: {len(scenes)} scenes")

        if self._history is not None:
            self._history.add(session)
        return session

    def load_session(self, session: Session) -> None:
        """Replace the live scenes with a session from history."""
        if self._lock.busy:
            raise GenerationBusyError("Cannot load a session while a batch is running")
        self.store.load(session.scenes)

    def update_prompt(self, scene_id: str, visual_prompt: str) -> Scene:
        """Store a hand-edited visual prompt."""
        return self.store.update_prompt(scene_id, visual_prompt)

    async def regenerate_prompt(self, scene_id: str, text: str) -> Scene:
        """Replace a scene's source text and derive a fresh visual prompt.

        The scene returns to ``pending`` with its media and error cleared.
        """
        self.store.get(scene_id)
        if not text.strip():
            raise InputValidationError("Scene text cannot be empty")

        visual_prompt = await self._gateway.regenerate_prompt(text)
        return self.store.reset_content(scene_id, text, visual_prompt)
