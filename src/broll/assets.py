"""Local storage for generated media."""

import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

from .config import config

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "video/mp4": ".mp4",
}


class AssetStore:
    """Writes generated media under a workspace directory.

    The returned path string is what scenes store as ``image_url`` or
    ``video_url``.
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = Path(root) if root is not None else config.assets_dir

    @property
    def root(self) -> Path:
        return self._root

    def save(self, scene_id: str, data: bytes, mime_type: str) -> str:
        """Store ``data`` for ``scene_id`` and return its local path.

        Each call writes a new file so an earlier result is never
        overwritten while it may still be referenced.
        """
        if not data:
            raise ValueError(f"Refusing to store empty media for scene {scene_id}")

        extension = _EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"
        path = self._root / f"{scene_id}-{uuid.uuid4().hex[:8]}{extension}"
        path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temporary name first so a reader never sees a partial file
        tmp_path = path.with_suffix(path.suffix + ".part")
        with open(tmp_path, "wb") as f:
            f.write(data)
        tmp_path.replace(path)

        logger.debug(f"Saved {len(data)} bytes for {scene_id} to {path}")
        return str(path)
