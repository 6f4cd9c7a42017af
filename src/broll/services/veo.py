"""Google Veo API client wrapper via Vertex AI."""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import requests
from google.api_core import exceptions as google_exceptions
from google.cloud import storage

from ..config import config
from ..errors import TransportError
from .vertex import VertexRestClient

logger = logging.getLogger(__name__)

VEO_ASPECT_RATIOS = ("16:9", "9:16")


@dataclass
class VideoJob:
    """Handle for a submitted Veo long-running operation."""

    operation_name: str
    submitted_at: datetime = field(default_factory=datetime.now)
    metadata: dict = field(default_factory=dict)


@dataclass
class JobStatus:
    """Snapshot of a Veo operation as reported by one poll."""

    done: bool
    video_uri: Optional[str] = None
    video_bytes: Optional[bytes] = None
    mime_type: str = "video/mp4"
    error_message: Optional[str] = None
    error_code: Optional[int] = None
    filtered_count: int = 0
    filtered_reasons: list[str] = field(default_factory=list)

    @property
    def has_video(self) -> bool:
        return bool(self.video_uri or self.video_bytes)


class VeoClient(VertexRestClient):
    """Client wrapper for Google Veo video generation via Vertex AI.

    This client handles:
    - Submitting video generation requests as long-running operations
    - Reading the state of a submitted operation (one request per call)
    - Downloading generated videos, inline or from GCS

    Polling cadence belongs to the caller.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        model: Optional[str] = None,
        output_bucket: Optional[str] = None,
        session: Optional[requests.Session] = None,
        storage_client: Optional[storage.Client] = None,
    ) -> None:
        """Initialize the Veo client.

        Args:
            project_id: Google Cloud project ID. Defaults to GOOGLE_CLOUD_PROJECT env var.
            location: GCP region for Vertex AI.
            model: Veo model name.
            output_bucket: Optional GCS prefix for output videos. When unset the
                service returns video bytes inline.
            session: HTTP session to reuse.
            storage_client: GCS client, created on first download if omitted.
        """
        super().__init__(
            model=model or config.veo_model,
            project_id=project_id,
            location=location,
            session=session,
        )
        self._output_bucket = output_bucket if output_bucket is not None else config.veo_output_bucket
        self._storage_client = storage_client

    @property
    def output_bucket(self) -> str:
        """Return the output GCS bucket."""
        return self._output_bucket

    def submit(self, prompt: str, aspect_ratio: str = "16:9") -> VideoJob:
        """Submit a video generation request.

        Args:
            prompt: Flattened text prompt.
            aspect_ratio: '16:9' or '9:16'.

        Returns:
            VideoJob handle to poll.

        Raises:
            ValueError: If prompt is empty or aspect ratio unsupported.
            TransportError: If the API call fails.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        if aspect_ratio not in VEO_ASPECT_RATIOS:
            raise ValueError(f"Invalid aspect_ratio: {aspect_ratio}. Must be '16:9' or '9:16'")

        parameters = {
            "sampleCount": 1,
            "aspectRatio": aspect_ratio,
            "resolution": "1080p",
        }
        if self._output_bucket:
            parameters["storageUri"] = self._output_bucket.rstrip("/") + "/"

        logger.info(f"Starting Veo generation ({aspect_ratio})")
        logger.debug(f"Prompt: {prompt[:100]}...")

        data = self.post_json(
            "predictLongRunning",
            {"instances": [{"prompt": prompt}], "parameters": parameters},
            what="Veo submit",
        )

        operation_name = data.get("name")
        if not operation_name:
            raise TransportError("Veo submit response has no operation name")

        logger.info(f"Submitted Veo operation: {operation_name}")
        return VideoJob(
            operation_name=operation_name,
            metadata={"prompt": prompt, "aspect_ratio": aspect_ratio},
        )

    def get_operation(self, job: VideoJob) -> JobStatus:
        """Fetch the current state of a submitted operation.

        Raises:
            TransportError: If the API call fails.
        """
        data = self.post_json(
            "fetchPredictOperation",
            {"operationName": job.operation_name},
            what="Veo poll",
        )
        return parse_operation(data)

    def download(self, status: JobStatus) -> bytes:
        """Return the bytes of a finished operation's first video.

        Raises:
            TransportError: If the download fails.
            ValueError: If the status carries no video.
        """
        if status.video_bytes:
            return status.video_bytes
        if not status.video_uri:
            raise ValueError("Operation has no video to download")
        return self._download_from_gcs(status.video_uri)

    def _download_from_gcs(self, gcs_uri: str) -> bytes:
        """Download a file from GCS.

        Args:
            gcs_uri: GCS URI (gs://bucket/path/to/file).
        """
        # Parse GCS URI
        if not gcs_uri.startswith("gs://"):
            raise ValueError(f"Invalid GCS URI: {gcs_uri}")

        uri_parts = gcs_uri[5:].split("/", 1)
        if len(uri_parts) != 2:
            raise ValueError(f"Invalid GCS URI format: {gcs_uri}")

        bucket_name, blob_name = uri_parts

        if self._storage_client is None:
            self._storage_client = storage.Client(project=self._project_id)

        try:
            blob = self._storage_client.bucket(bucket_name).blob(blob_name)
            content = blob.download_as_bytes()
        except google_exceptions.NotFound as e:
            logger.error(f"File not found in GCS: {gcs_uri}")
            raise TransportError(f"Video not found in GCS: {gcs_uri}") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"GCS download failed for {gcs_uri}: {e}")
            raise TransportError(f"Failed to fetch video: {e}") from e

        logger.debug(f"Downloaded {gcs_uri} ({len(content)} bytes)")
        return content


def parse_operation(data: dict) -> JobStatus:
    """Build a JobStatus from a ``fetchPredictOperation`` response body."""
    if not data.get("done"):
        return JobStatus(done=False)

    error = data.get("error")
    if error:
        return JobStatus(
            done=True,
            error_message=error.get("message") or str(error),
            error_code=error.get("code"),
        )

    # Some responses surface the payload as "result" rather than "response"
    response = data.get("response") or data.get("result") or {}
    videos = response.get("videos") or response.get("generatedSamples") or []
    status = JobStatus(
        done=True,
        filtered_count=int(response.get("raiMediaFilteredCount") or 0),
        filtered_reasons=list(response.get("raiMediaFilteredReasons") or []),
    )
    if not videos:
        return status

    video = videos[0].get("video", videos[0])
    status.video_uri = video.get("gcsUri") or video.get("uri")
    status.mime_type = video.get("mimeType", status.mime_type)
    encoded = video.get("bytesBase64Encoded")
    if encoded:
        try:
            status.video_bytes = base64.b64decode(encoded)
        except (binascii.Error, ValueError):
            logger.warning("Veo returned undecodable inline video bytes")
    return status
