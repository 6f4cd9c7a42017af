"""Submit-then-poll protocol for long-running video jobs."""

import asyncio
import logging
from typing import Optional

from .config import config
from .errors import (
    ContentFilteredError,
    GenerationError,
    JobFailedError,
    JobTimeoutError,
    VideoGenerationError,
)
from .gateway import GenerationGateway
from .models import AspectRatio
from .services import JobStatus

logger = logging.getLogger(__name__)

# Veo renders only two physical aspect ratios
LANDSCAPE_BUCKET = "16:9"
PORTRAIT_BUCKET = "9:16"

_SAFETY_KEYWORDS = ("violat", "usage guidelines", "safety", "content polic", "responsible ai")

_STAGE_MESSAGES = {
    "submit": "Failed to submit video job",
    "poll": "Failed to check video job status",
    "fetch": "Failed to fetch generated video",
}

NO_VIDEO_MESSAGE = "No video generated. The content may have been filtered by safety guidelines."


def video_aspect_ratio(aspect_ratio) -> str:
    """Map any supported aspect ratio to the nearest Veo bucket.

    Wide ratios become landscape; tall and square ratios become portrait.
    """
    ratio = AspectRatio(aspect_ratio)
    if ratio in (AspectRatio.PORTRAIT, AspectRatio.TALL, AspectRatio.SQUARE):
        return PORTRAIT_BUCKET
    return LANDSCAPE_BUCKET


def _is_safety_message(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in _SAFETY_KEYWORDS)


def classify_terminal(status: JobStatus) -> None:
    """Raise the domain error a finished job reports, if any."""
    if status.error_message:
        if _is_safety_message(status.error_message):
            raise ContentFilteredError(status.error_message, f"Video rejected: {status.error_message}")
        raise JobFailedError(status.error_message)

    if not status.has_video:
        reasons = "; ".join(status.filtered_reasons)
        raise ContentFilteredError(
            f"Operation finished without a video (filtered: {status.filtered_count})",
            reasons or NO_VIDEO_MESSAGE,
        )


class OperationPoller:
    """Drives one video job from submission to a fetched local asset.

    Polls at a fixed interval with no backoff. Without a timeout a job that
    never finishes keeps its scene in flight indefinitely.
    """

    def __init__(
        self,
        gateway: GenerationGateway,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._gateway = gateway
        self._poll_interval = config.video_poll_interval if poll_interval is None else poll_interval
        self._timeout = config.video_poll_timeout if timeout is None else timeout

    async def run(
        self,
        prompt: str,
        style_modifier: str,
        aspect_ratio,
        scene_id: str = "video",
    ) -> str:
        """Generate one clip and return its local reference.

        Raises:
            VideoGenerationError: On a failure at any stage, tagged with the stage.
            ContentFilteredError: If the job finished without a usable video.
        """
        bucket = video_aspect_ratio(aspect_ratio)

        try:
            job = await self._gateway.submit_video(prompt, style_modifier, bucket)
        except (VideoGenerationError, ContentFilteredError):
            raise
        except Exception as e:
            raise _stage_error("submit", e) from e

        loop = asyncio.get_running_loop()
        started = loop.time()
        polls = 0

        while True:
            if self._timeout is not None and loop.time() - started >= self._timeout:
                logger.warning(f"Operation {job.operation_name} timed out after {polls} polls")
                raise JobTimeoutError(self._timeout)

            await asyncio.sleep(self._poll_interval)

            polls += 1
            logger.debug(f"Polling operation (attempt {polls}): {job.operation_name}")
            try:
                status = await self._gateway.poll_video(job)
            except (VideoGenerationError, ContentFilteredError):
                raise
            except Exception as e:
                raise _stage_error("poll", e) from e

            if status.done:
                break

        logger.info(f"Operation {job.operation_name} finished after {polls} polls")
        classify_terminal(status)

        try:
            return await self._gateway.fetch_video(status, scene_id)
        except (VideoGenerationError, ContentFilteredError):
            raise
        except Exception as e:
            raise _stage_error("fetch", e) from e


def _stage_error(stage: str, error: Exception) -> GenerationError:
    """Tag an unclassified failure with the stage it happened in."""
    logger.error(f"Video {stage} failed: {error}")
    return VideoGenerationError(stage, str(error), _STAGE_MESSAGES[stage])
