"""Configuration management."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .errors import CredentialsError

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key (script breakdown)"
    )
    google_application_credentials: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_APPLICATION_CREDENTIALS", ""),
        description="Path to Google Cloud service account JSON"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID"
    )
    google_cloud_location: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        description="Vertex AI region"
    )
    veo_output_bucket: str = Field(
        default_factory=lambda: os.getenv("VEO_OUTPUT_BUCKET", ""),
        description="Optional GCS bucket for Veo output"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("BROLL_WORKSPACE", ".")),
        description="Workspace directory"
    )
    history_file: Optional[Path] = Field(
        default_factory=lambda: Path(os.environ["HISTORY_FILE"]) if os.getenv("HISTORY_FILE") else None,
        description="Session history file (defaults to <workspace>/.broll/history.yaml)"
    )

    # Model settings
    default_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Default Claude model"
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for video analysis"
    )
    imagen_model: str = Field(
        default="imagen-4.0-generate-001",
        description="Imagen model used for stills"
    )
    veo_model: str = Field(
        default="veo-3.1-fast-generate-preview",
        description="Veo model used for clips"
    )

    # Generation settings
    image_batch_size: int = Field(
        default_factory=lambda: _env_int("IMAGE_BATCH_SIZE", 3),
        description="Scenes dispatched concurrently per image chunk",
        gt=0,
    )
    video_batch_size: int = Field(
        default_factory=lambda: _env_int("VIDEO_BATCH_SIZE", 2),
        description="Scenes dispatched concurrently per video chunk",
        gt=0,
    )
    video_poll_interval: float = Field(
        default_factory=lambda: _env_float("VIDEO_POLL_INTERVAL", 10.0),
        description="Seconds between video operation polls",
        ge=0,
    )
    video_poll_timeout: Optional[float] = Field(
        default_factory=lambda: _env_float("VIDEO_POLL_TIMEOUT", None),
        description="Give up on a video job after this many seconds (unset waits forever)"
    )
    max_upload_mb: int = Field(
        default_factory=lambda: _env_int("MAX_UPLOAD_MB", 200),
        description="Largest video accepted for analysis, in megabytes",
        gt=0,
    )

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def assets_dir(self) -> Path:
        return self.workspace / ".broll" / "assets"

    @property
    def resolved_history_file(self) -> Path:
        return self.history_file or self.workspace / ".broll" / "history.yaml"

    def validate_required(self) -> None:
        """Validate that script-analysis credentials are set."""
        if not self.anthropic_api_key:
            raise CredentialsError("ANTHROPIC_API_KEY not set")

    def validate_google_required(self) -> None:
        """Validate that Vertex AI credentials are set (Imagen and Gemini)."""
        if not self.google_cloud_project:
            raise CredentialsError("GOOGLE_CLOUD_PROJECT not set")

    def validate_veo_required(self) -> None:
        """Validate that Veo / Google Cloud credentials are set.

        Checked once before a video submission or a video batch, never per
        poll.

        Raises:
            CredentialsError: If any required Veo configuration is missing.
        """
        missing: list[str] = []

        if not self.google_cloud_project:
            missing.append("GOOGLE_CLOUD_PROJECT")
        if self.google_application_credentials and not Path(
            self.google_application_credentials
        ).exists():
            missing.append("GOOGLE_APPLICATION_CREDENTIALS (file not found)")

        if missing:
            raise CredentialsError(
                f"Missing required Veo configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )

        # Validate bucket format
        if self.veo_output_bucket and not self.veo_output_bucket.startswith("gs://"):
            raise CredentialsError(
                f"VEO_OUTPUT_BUCKET must be a GCS URI starting with 'gs://'. "
                f"Got: {self.veo_output_bucket}"
            )


# Global config instance
config = Config()
