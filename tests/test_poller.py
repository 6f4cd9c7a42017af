"""
Tests for the video operation poller.

Tests for broll/poller.py
"""

import pytest

from broll.errors import (
    ContentFilteredError,
    JobFailedError,
    JobTimeoutError,
    TransportError,
    VideoGenerationError,
)
from broll.models import AspectRatio
from broll.poller import (
    NO_VIDEO_MESSAGE,
    OperationPoller,
    classify_terminal,
    video_aspect_ratio,
)
from broll.services import JobStatus

from conftest import FakeGateway


class TestVideoAspectRatio:
    """Tests for aspect ratio bucketing."""

    @pytest.mark.parametrize("ratio,expected", [
        (AspectRatio.LANDSCAPE, "16:9"),
        (AspectRatio.WIDE, "16:9"),
        (AspectRatio.PORTRAIT, "9:16"),
        (AspectRatio.TALL, "9:16"),
        (AspectRatio.SQUARE, "9:16"),
        ("4:3", "16:9"),
    ])
    def test_buckets(self, ratio, expected):
        assert video_aspect_ratio(ratio) == expected


class TestClassifyTerminal:
    """Tests for terminal status classification."""

    def test_success(self):
        classify_terminal(JobStatus(done=True, video_uri="gs://b/v.mp4"))

    def test_safety_error(self):
        with pytest.raises(ContentFilteredError) as exc_info:
            classify_terminal(JobStatus(done=True, error_message="Blocked by Responsible AI practices"))

        assert "Responsible AI" in exc_info.value.scene_message

    def test_generic_error(self):
        with pytest.raises(JobFailedError) as exc_info:
            classify_terminal(JobStatus(done=True, error_message="Deadline exceeded"))

        assert exc_info.value.stage == "poll"
        assert exc_info.value.scene_message == "Video generation failed: Deadline exceeded"

    def test_no_video(self):
        with pytest.raises(ContentFilteredError) as exc_info:
            classify_terminal(JobStatus(done=True, filtered_count=1))

        assert exc_info.value.scene_message == NO_VIDEO_MESSAGE

    def test_no_video_with_reasons(self):
        with pytest.raises(ContentFilteredError) as exc_info:
            classify_terminal(JobStatus(done=True, filtered_count=1, filtered_reasons=["Contains a child"]))

        assert exc_info.value.scene_message == "Contains a child"


class TestOperationPoller:
    """Tests for the submit-then-poll loop."""

    async def test_polls_until_done(self):
        gateway = FakeGateway(polls_until_done=4)
        poller = OperationPoller(gateway, poll_interval=0)

        url = await poller.run("prompt", "style", AspectRatio.PORTRAIT, scene_id="scene-1")

        assert url == "/assets/scene-1.mp4"
        assert gateway.polls == {"operations/op-1": 4}
        assert gateway.video_calls[0]["aspect_ratio"] == "9:16"

    async def test_submit_failure_tagged(self):
        gateway = FakeGateway(video_errors={"prompt": TransportError("HTTP 400")})
        poller = OperationPoller(gateway, poll_interval=0)

        with pytest.raises(VideoGenerationError) as exc_info:
            await poller.run("prompt", "style", AspectRatio.LANDSCAPE)

        assert exc_info.value.stage == "submit"
        assert exc_info.value.scene_message == "Failed to submit video job"
        assert gateway.polls == {}

    async def test_poll_failure_tagged(self):
        class FailingPoll(FakeGateway):
            async def poll_video(self, job):
                raise TransportError("HTTP 502")

        poller = OperationPoller(FailingPoll(), poll_interval=0)

        with pytest.raises(VideoGenerationError) as exc_info:
            await poller.run("prompt", "style", AspectRatio.LANDSCAPE)

        assert exc_info.value.stage == "poll"
        assert isinstance(exc_info.value.__cause__, TransportError)

    async def test_fetch_failure_tagged(self):
        class FailingFetch(FakeGateway):
            async def fetch_video(self, status, scene_id="video"):
                raise TransportError("404 object not found")

        poller = OperationPoller(FailingFetch(polls_until_done=1), poll_interval=0)

        with pytest.raises(VideoGenerationError) as exc_info:
            await poller.run("prompt", "style", AspectRatio.LANDSCAPE)

        assert exc_info.value.stage == "fetch"
        assert exc_info.value.scene_message == "Failed to fetch generated video"

    async def test_terminal_error_not_fetched(self):
        class NoFetch(FakeGateway):
            async def fetch_video(self, status, scene_id="video"):
                raise AssertionError("should not fetch")

        gateway = NoFetch(
            polls_until_done=1,
            video_statuses={"prompt": JobStatus(done=True, error_message="quota")},
        )

        with pytest.raises(JobFailedError):
            await OperationPoller(gateway, poll_interval=0).run("prompt", "style", "16:9")

    async def test_timeout(self):
        gateway = FakeGateway(polls_until_done=10_000, delay=0.001)
        poller = OperationPoller(gateway, poll_interval=0.005, timeout=0.05)

        with pytest.raises(JobTimeoutError) as exc_info:
            await poller.run("prompt", "style", AspectRatio.LANDSCAPE)

        assert exc_info.value.stage == "poll"
        assert "timed out" in exc_info.value.scene_message

    async def test_uses_configured_interval(self):
        from broll.config import config

        poller = OperationPoller(FakeGateway())

        assert poller._poll_interval == config.video_poll_interval
        assert poller._timeout is None
