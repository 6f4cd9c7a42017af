"""Boundary between the pipeline and the external generation services."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .agents import ScriptBreakdownAgent, VideoBreakdownAgent, VisualPromptAgent
from .assets import AssetStore
from .models import AnalysisSource, AspectRatio, Scene, ScriptSource
from .prompts import flatten_prompt
from .services import ImagenClient, JobStatus, VeoClient, VideoJob

logger = logging.getLogger(__name__)


class GenerationGateway(ABC):
    """Async contract of the external generation services.

    Calls are single attempts: no retries happen at this boundary. Failures
    are raised as ``GenerationError`` subclasses where the service response
    allows a classification, and as any other exception otherwise.
    """

    @abstractmethod
    async def analyze(self, source: AnalysisSource) -> list[Scene]:
        """Break a script or video down into pending scenes, in order."""

    @abstractmethod
    async def regenerate_prompt(self, text: str) -> str:
        """Fill the visual template for one edited source excerpt."""

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        style_modifier: str,
        aspect_ratio: AspectRatio,
        scene_id: str = "image",
    ) -> str:
        """Generate one still and return its local reference."""

    @abstractmethod
    async def submit_video(
        self,
        prompt: str,
        style_modifier: str,
        aspect_ratio: str,
    ) -> VideoJob:
        """Start a video job; ``aspect_ratio`` is '16:9' or '9:16'."""

    @abstractmethod
    async def poll_video(self, job: VideoJob) -> JobStatus:
        """Read a video job's state once."""

    @abstractmethod
    async def fetch_video(self, status: JobStatus, scene_id: str = "video") -> str:
        """Fetch a finished job's clip and return its local reference."""


class GoogleGenerationGateway(GenerationGateway):
    """Gateway backed by Claude/Gemini analysis and Vertex AI Imagen/Veo.

    Service clients are created on first use so that commands which never
    touch a service do not need its credentials. Blocking client calls run in
    worker threads.
    """

    def __init__(
        self,
        script_agent: Optional[ScriptBreakdownAgent] = None,
        video_agent: Optional[VideoBreakdownAgent] = None,
        prompt_agent: Optional[VisualPromptAgent] = None,
        imagen: Optional[ImagenClient] = None,
        veo: Optional[VeoClient] = None,
        assets: Optional[AssetStore] = None,
    ) -> None:
        self._script_agent = script_agent
        self._video_agent = video_agent
        self._prompt_agent = prompt_agent
        self._imagen = imagen
        self._veo = veo
        self._assets = assets or AssetStore()

    @property
    def imagen(self) -> ImagenClient:
        if self._imagen is None:
            self._imagen = ImagenClient()
        return self._imagen

    @property
    def veo(self) -> VeoClient:
        if self._veo is None:
            self._veo = VeoClient()
        return self._veo

    async def analyze(self, source: AnalysisSource) -> list[Scene]:
        if isinstance(source, ScriptSource):
            if self._script_agent is None:
                self._script_agent = ScriptBreakdownAgent()
            return await asyncio.to_thread(self._script_agent.run, source.text)

        if self._video_agent is None:
            self._video_agent = VideoBreakdownAgent()
        return await asyncio.to_thread(self._video_agent.run, source)

    async def regenerate_prompt(self, text: str) -> str:
        if self._prompt_agent is None:
            self._prompt_agent = VisualPromptAgent()
        return await asyncio.to_thread(self._prompt_agent.run, text)

    async def generate_image(
        self,
        prompt: str,
        style_modifier: str,
        aspect_ratio: AspectRatio,
        scene_id: str = "image",
    ) -> str:
        full_prompt = flatten_prompt(prompt, style_modifier)
        result = await asyncio.to_thread(self.imagen.generate_image, full_prompt, aspect_ratio)
        return await asyncio.to_thread(self._assets.save, scene_id, result.data, result.mime_type)

    async def submit_video(
        self,
        prompt: str,
        style_modifier: str,
        aspect_ratio: str,
    ) -> VideoJob:
        full_prompt = flatten_prompt(prompt, style_modifier)
        logger.debug(f"Generating video with prompt: {full_prompt}")
        return await asyncio.to_thread(self.veo.submit, full_prompt, aspect_ratio)

    async def poll_video(self, job: VideoJob) -> JobStatus:
        return await asyncio.to_thread(self.veo.get_operation, job)

    async def fetch_video(self, status: JobStatus, scene_id: str = "video") -> str:
        data = await asyncio.to_thread(self.veo.download, status)
        return await asyncio.to_thread(self._assets.save, scene_id, data, status.mime_type)
