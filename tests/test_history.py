"""
Tests for session history.

Tests for broll/history.py
"""

import pytest

from broll.history import HistoryStore
from broll.models import SceneStatus, Session, SourceType

from conftest import make_scene


def _session(index: int, scenes=None) -> Session:
    return Session(
        id=str(index),
        timestamp=1_700_000_000_000 + index,
        type=SourceType.SCRIPT,
        name=f"Script: session {index}",
        scenes=scenes or [make_scene(0)],
    )


class TestHistoryStore:
    """Tests for HistoryStore."""

    def test_missing_file(self, tmp_path):
        assert HistoryStore(tmp_path / "none.yaml").load() == []

    def test_newest_first(self, tmp_path):
        history = HistoryStore(tmp_path / "history.yaml")

        history.add(_session(1))
        history.add(_session(2))

        assert [s.id for s in history.load()] == ["2", "1"]
        assert history.get(0).id == "2"

    def test_media_stripped(self, tmp_path, completed_scene):
        path = tmp_path / "history.yaml"
        history = HistoryStore(path)

        history.add(_session(1, scenes=[completed_scene]))

        saved = history.load()[0].scenes[0]
        assert saved.image_url is None
        assert saved.video_url is None
        assert saved.status == SceneStatus.PENDING
        assert "/assets/" not in path.read_text()

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "history.yaml"
        path.write_text("- {id: [unclosed")

        assert HistoryStore(path).load() == []

    def test_invalid_entries(self, tmp_path):
        path = tmp_path / "history.yaml"
        path.write_text("- just a string\n")

        assert HistoryStore(path).load() == []

    def test_write_failure_is_logged(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        history = HistoryStore(blocker / "history.yaml")

        sessions = history.add(_session(1))

        assert [s.id for s in sessions] == ["1"]
        assert "Failed to save history" in caplog.text

    def test_get_out_of_range(self, tmp_path):
        history = HistoryStore(tmp_path / "history.yaml")
        history.add(_session(1))

        with pytest.raises(IndexError):
            history.get(3)

    def test_default_path_from_config(self, isolated_workspace):
        assert HistoryStore().path == isolated_workspace / "history.yaml"
