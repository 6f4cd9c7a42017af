"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import asyncio
from typing import Optional

import pytest

from broll.gateway import GenerationGateway
from broll.models import Scene, SceneStatus
from broll.services import JobStatus, VideoJob
from broll.store import SceneStore


class FakeGateway(GenerationGateway):
    """In-memory gateway that records calls and tracks concurrency.

    Failures are keyed by the visual prompt of the scene being generated.
    Video jobs report ``done`` after ``polls_until_done`` polls.
    """

    def __init__(
        self,
        scenes: Optional[list[Scene]] = None,
        analyze_error: Optional[Exception] = None,
        image_errors: Optional[dict[str, Exception]] = None,
        video_errors: Optional[dict[str, Exception]] = None,
        video_statuses: Optional[dict[str, JobStatus]] = None,
        polls_until_done: int = 2,
        delay: float = 0.01,
    ) -> None:
        self.scenes = scenes or []
        self.analyze_error = analyze_error
        self.image_errors = image_errors or {}
        self.video_errors = video_errors or {}
        self.video_statuses = video_statuses or {}
        self.polls_until_done = polls_until_done
        self.delay = delay

        self.image_calls: list[dict] = []
        self.video_calls: list[dict] = []
        self.regenerated: list[str] = []
        self.polls: dict[str, int] = {}
        self.active_images = 0
        self.max_active_images = 0
        self.active_videos = 0
        self.max_active_videos = 0
        self._prompts: dict[str, str] = {}

    async def analyze(self, source):
        await asyncio.sleep(0)
        if self.analyze_error is not None:
            raise self.analyze_error
        return list(self.scenes)

    async def regenerate_prompt(self, text: str) -> str:
        await asyncio.sleep(0)
        self.regenerated.append(text)
        return f'{{"scene": "{text}"}}'

    async def generate_image(self, prompt, style_modifier, aspect_ratio, scene_id="image"):
        self.image_calls.append({
            "prompt": prompt,
            "style_modifier": style_modifier,
            "aspect_ratio": aspect_ratio,
            "scene_id": scene_id,
        })
        self.active_images += 1
        self.max_active_images = max(self.max_active_images, self.active_images)
        try:
            await asyncio.sleep(self.delay)
            if prompt in self.image_errors:
                raise self.image_errors[prompt]
            return f"/assets/{scene_id}.jpg"
        finally:
            self.active_images -= 1

    async def submit_video(self, prompt, style_modifier, aspect_ratio):
        self.video_calls.append({
            "prompt": prompt,
            "style_modifier": style_modifier,
            "aspect_ratio": aspect_ratio,
        })
        await asyncio.sleep(0)
        if prompt in self.video_errors:
            raise self.video_errors[prompt]

        name = f"operations/op-{len(self.video_calls)}"
        self._prompts[name] = prompt
        self.polls[name] = 0
        self.active_videos += 1
        self.max_active_videos = max(self.max_active_videos, self.active_videos)
        return VideoJob(operation_name=name)

    async def poll_video(self, job: VideoJob) -> JobStatus:
        await asyncio.sleep(self.delay)
        self.polls[job.operation_name] += 1
        if self.polls[job.operation_name] < self.polls_until_done:
            return JobStatus(done=False)

        self.active_videos -= 1
        prompt = self._prompts[job.operation_name]
        if prompt in self.video_statuses:
            return self.video_statuses[prompt]
        return JobStatus(done=True, video_uri=f"gs://bucket/{job.operation_name}.mp4")

    async def fetch_video(self, status: JobStatus, scene_id: str = "video") -> str:
        await asyncio.sleep(0)
        return f"/assets/{scene_id}.mp4"


def make_scene(index: int, **fields) -> Scene:
    """Pending scene ``scene-<index>`` with a prompt ``prompt-<index>``."""
    data = {
        "id": f"scene-{index}",
        "original_text": f"Line {index}.",
        "visual_prompt": f"prompt-{index}",
    }
    data.update(fields)
    return Scene(**data)


@pytest.fixture
def scenes() -> list[Scene]:
    """Three pending scenes."""
    return [make_scene(i) for i in range(3)]


@pytest.fixture
def store(scenes) -> SceneStore:
    return SceneStore(scenes)


@pytest.fixture
def gateway(scenes) -> FakeGateway:
    return FakeGateway(scenes=scenes)


@pytest.fixture
def completed_scene() -> Scene:
    return make_scene(9, status=SceneStatus.COMPLETED, image_url="/assets/scene-9.jpg")


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Point config paths and credentials at test values."""
    from broll.config import config

    monkeypatch.setattr(config, "workspace", tmp_path)
    monkeypatch.setattr(config, "history_file", tmp_path / "history.yaml")
    monkeypatch.setattr(config, "google_cloud_project", "test-project")
    monkeypatch.setattr(config, "google_application_credentials", "")
    monkeypatch.setattr(config, "veo_output_bucket", "")
    monkeypatch.setattr(config, "anthropic_api_key", "test-key")
    monkeypatch.setattr(config, "video_poll_interval", 0.0)
    monkeypatch.setattr(config, "video_poll_timeout", None)
    return tmp_path
