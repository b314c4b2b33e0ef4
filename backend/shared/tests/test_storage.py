"""Tests for engine snapshot storage."""

import os
import stat
from unittest.mock import patch

import pytest

from shared.storage import LocalSnapshotStorage


class TestLocalSnapshotStorage:
    def test_creates_directory_on_first_write(self, tmp_path):
        snapshot_dir = tmp_path / "snapshots"
        storage = LocalSnapshotStorage(snapshot_dir)

        path = storage.save_snapshot("week_2900", '{"players":[]}')

        assert snapshot_dir.is_dir()
        assert path == snapshot_dir / "week_2900.json"

    def test_load_returns_saved_content(self, tmp_path):
        storage = LocalSnapshotStorage(str(tmp_path))
        content = '{"sessions":[],"players":[{"player":"プレイヤー"}],"leaderboards":[]}'

        storage.save_snapshot("latest", content)

        assert storage.load_snapshot("latest") == content

    def test_load_missing_returns_none(self, tmp_path):
        storage = LocalSnapshotStorage(tmp_path / "never_written")
        assert storage.load_snapshot("latest") is None

    def test_overwrites_existing_file(self, tmp_path):
        storage = LocalSnapshotStorage(tmp_path)

        storage.save_snapshot("latest", "original")
        storage.save_snapshot("latest", "updated")

        assert storage.load_snapshot("latest") == "updated"

    @pytest.mark.parametrize("name", ["../escape", "../../etc/passwd"])
    def test_rejects_path_traversal(self, tmp_path, name):
        storage = LocalSnapshotStorage(tmp_path / "snapshots")

        with pytest.raises(ValueError, match="Path traversal rejected"):
            storage.save_snapshot(name, "malicious")
        with pytest.raises(ValueError, match="Path traversal rejected"):
            storage.load_snapshot(name)

        assert not (tmp_path / "snapshots").exists()


class TestLocalSnapshotStorageErrorHandling:
    def test_cleans_up_temp_on_fdopen_failure(self, tmp_path):
        storage = LocalSnapshotStorage(tmp_path)

        with (
            patch("os.fdopen", side_effect=OSError("fdopen failure")) as mock_fdopen,
            patch("os.close", wraps=os.close) as mock_close,
            pytest.raises(OSError, match="fdopen failure"),
        ):
            storage.save_snapshot("latest", "content")

        mock_close.assert_called_once_with(mock_fdopen.call_args[0][0])
        assert not (tmp_path / "latest.json").exists()
        assert list(tmp_path.glob(".snapshot_*.tmp")) == []

    def test_fsync_failure_keeps_previous_snapshot(self, tmp_path):
        storage = LocalSnapshotStorage(tmp_path)
        storage.save_snapshot("latest", "previous")

        with (
            patch("os.fsync", side_effect=OSError("fsync failure")),
            patch("os.close") as mock_close,
            pytest.raises(OSError, match="fsync failure"),
        ):
            storage.save_snapshot("latest", "next")

        mock_close.assert_not_called()
        assert storage.load_snapshot("latest") == "previous"
        assert list(tmp_path.glob(".snapshot_*.tmp")) == []


class TestLocalSnapshotStoragePermissions:
    def test_owner_only_permissions(self, tmp_path):
        snapshot_dir = tmp_path / "snapshots"
        storage = LocalSnapshotStorage(snapshot_dir)

        path = storage.save_snapshot("latest", "content")

        assert stat.S_IMODE(snapshot_dir.stat().st_mode) == 0o700
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_overwritten_file_retains_permissions(self, tmp_path):
        storage = LocalSnapshotStorage(tmp_path)

        storage.save_snapshot("latest", "first")
        path = storage.save_snapshot("latest", "second")

        file_mode = path.stat().st_mode
        assert not file_mode & (stat.S_IRGRP | stat.S_IWGRP | stat.S_IROTH | stat.S_IWOTH)
