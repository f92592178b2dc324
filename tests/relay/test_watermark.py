"""Tests for FileWatermarkStore and InMemoryWatermarkStore.

Uses tmp_path fixture for filesystem isolation.
"""

from unittest.mock import patch

import pytest

from hubrelay.core.errors import WatermarkPersistenceError
from hubrelay.relay.watermark import UNSET, FileWatermarkStore, InMemoryWatermarkStore


class TestFileWatermarkStoreLoad:
    def test_missing_file_is_unset(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")

        assert store.load() == UNSET

    def test_empty_file_is_unset(self, tmp_path):
        path = tmp_path / ".last"
        path.write_text("")

        assert FileWatermarkStore(path).load() == UNSET

    def test_malformed_file_is_unset(self, tmp_path):
        path = tmp_path / ".last"
        path.write_text("not-a-number")

        assert FileWatermarkStore(path).load() == UNSET

    def test_reads_stored_value(self, tmp_path):
        path = tmp_path / ".last"
        path.write_text("1736942400123\n")

        assert FileWatermarkStore(path).load() == 1736942400123

    def test_unreadable_path_is_unset(self, tmp_path):
        # A directory where the file should be
        path = tmp_path / ".last"
        path.mkdir()

        assert FileWatermarkStore(path).load() == UNSET


class TestFileWatermarkStoreSave:
    def test_save_then_load(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")

        store.save(5000)

        assert store.load() == 5000
        assert (tmp_path / ".last").read_text() == "5000"

    def test_save_overwrites_previous_value(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")

        store.save(5000)
        store.save(7000)

        assert FileWatermarkStore(tmp_path / ".last").load() == 7000

    def test_save_creates_parent_directories(self, tmp_path):
        store = FileWatermarkStore(tmp_path / "state" / "relay" / ".last")

        store.save(42)

        assert store.load() == 42

    def test_save_leaves_no_temp_file(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")

        store.save(42)

        assert [p.name for p in tmp_path.iterdir()] == [".last"]

    def test_failed_replace_raises_persistence_error(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")
        store.save(1000)

        with patch("hubrelay.relay.watermark.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(WatermarkPersistenceError) as exc_info:
                store.save(2000)

        assert exc_info.value.value == 2000
        assert exc_info.value.path == str(tmp_path / ".last")
        assert "disk full" in str(exc_info.value)
        # Previous value is intact
        assert store.load() == 1000

    def test_permission_error_is_retried(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")

        with (
            patch(
                "hubrelay.relay.watermark.os.replace",
                side_effect=[PermissionError("locked"), None],
            ) as mock_replace,
            patch("hubrelay.relay.watermark.time.sleep") as mock_sleep,
        ):
            store.save(3000)

        assert mock_replace.call_count == 2
        mock_sleep.assert_called_once()

    def test_permission_error_gives_up_after_retries(self, tmp_path):
        store = FileWatermarkStore(tmp_path / ".last")

        with (
            patch(
                "hubrelay.relay.watermark.os.replace",
                side_effect=PermissionError("locked"),
            ) as mock_replace,
            patch("hubrelay.relay.watermark.time.sleep"),
        ):
            with pytest.raises(WatermarkPersistenceError):
                store.save(3000)

        assert mock_replace.call_count == 5


class TestInMemoryWatermarkStore:
    def test_defaults_to_unset(self):
        assert InMemoryWatermarkStore().load() == UNSET

    def test_records_saves(self):
        store = InMemoryWatermarkStore(initial=10)

        store.save(20)
        store.save(30)

        assert store.load() == 30
        assert store.saves == [20, 30]
