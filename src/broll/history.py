"""Persistent session history."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
import yaml

from .config import config
from .models import Session

logger = logging.getLogger(__name__)


class HistoryStore:
    """Sessions saved newest first in a YAML file.

    Media references are stripped before saving. Persistence failures are
    logged and never interrupt the caller.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else config.resolved_history_file

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Session]:
        """All saved sessions, newest first; empty if none can be read."""
        if not self._path.exists():
            return []

        try:
            with open(self._path, "r") as f:
                data = yaml.safe_load(f) or []
            return [Session.model_validate(item) for item in data]
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            logger.warning(f"Failed to load history from {self._path}: {e}")
            return []

    def get(self, index: int) -> Session:
        """Session at ``index`` (0 is the newest).

        Raises:
            IndexError: If there is no such session.
        """
        sessions = self.load()
        if index < 0 or index >= len(sessions):
            raise IndexError(f"No session #{index} (history has {len(sessions)})")
        return sessions[index]

    def add(self, session: Session) -> list[Session]:
        """Prepend ``session`` without its media and save."""
        sessions = [session.stripped()] + self.load()
        self._save(sessions)
        return sessions

    def clear(self) -> None:
        self._save([])

    def _save(self, sessions: list[Session]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                yaml.safe_dump(
                    [session.model_dump(mode="json") for session in sessions],
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                )
            logger.debug(f"Saved {len(sessions)} sessions to {self._path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to save history to {self._path}: {e}")
