"""Tests for the favorites store."""

import json
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from pullapod.storage.favorites import RESET_COMMAND, FavoritesStore
from pullapod.storage.lock import FileLock
from pullapod.storage.models import FavoriteFeed, FavoritesDocument
from pullapod.utils.errors import (
    ErrorCode,
    FavoritesCorruptedError,
    FileReadError,
    FileWriteError,
    InvalidInputError,
)


def make_feed(name: str, feed_id: int, url: str | None = None, days_ago: int = 0) -> FavoriteFeed:
    added = datetime(2024, 6, 1, tzinfo=timezone.utc) - timedelta(days=days_ago)
    return FavoriteFeed.create(
        name=name,
        url=url or f"https://example.com/{feed_id}.xml",
        feed_id=feed_id,
        added=added,
    )


@pytest.fixture
def store(settings) -> FavoritesStore:
    return FavoritesStore(settings)


def backups(store: FavoritesStore) -> list[Path]:
    return sorted(store.path.parent.glob("favorites.json.backup.*"))


class TestLoadAndSave:
    """Tests for reading and writing the favorites file."""

    def test_default_path_from_settings(self, store: FavoritesStore, tmp_path: Path) -> None:
        assert store.path == tmp_path / "xdg" / "pullapod" / "favorites.json"

    def test_missing_file_is_empty(self, store: FavoritesStore) -> None:
        document = store.load()

        assert document.version == 1
        assert document.feeds == []
        assert not store.path.exists()

    def test_round_trip(self, store: FavoritesStore) -> None:
        document = FavoritesDocument(feeds=[make_feed("A", 1), make_feed("B", 2)])

        store.save(document)

        assert store.load() == document

    def test_file_format(self, store: FavoritesStore) -> None:
        store.save(FavoritesDocument(feeds=[make_feed("A", 1)]))

        data = json.loads(store.path.read_text())
        assert data["version"] == 1
        assert set(data["feeds"][0]) == {"name", "url", "feedId", "dateAdded"}
        assert store.path.read_text().startswith('{\n  "version": 1')

    def test_permissions(self, store: FavoritesStore) -> None:
        store.save(FavoritesDocument.empty())

        assert store.path.stat().st_mode & 0o777 == 0o600
        assert store.path.parent.stat().st_mode & 0o777 == 0o700

    def test_no_temp_or_lock_left_behind(self, store: FavoritesStore) -> None:
        store.save(FavoritesDocument(feeds=[make_feed("A", 1)]))

        assert not store.temp_path.exists()
        assert not store.path.with_name("favorites.json.lock").exists()

    def test_failed_write_keeps_old_file(self, store: FavoritesStore, monkeypatch) -> None:
        store.save(FavoritesDocument(feeds=[make_feed("A", 1)]))
        original = store.path.read_bytes()

        def failing_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", failing_replace)

        with pytest.raises(FileWriteError) as exc_info:
            store.save(FavoritesDocument.empty())

        assert exc_info.value.code == ErrorCode.FILE_WRITE_ERROR
        assert store.path.read_bytes() == original
        assert not store.temp_path.exists()

    def test_unwritable_directory_is_a_write_error(self, settings, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = FavoritesStore(settings, path=blocker / "favorites.json")

        with pytest.raises(FileWriteError) as exc_info:
            store.save(FavoritesDocument.empty())

        assert exc_info.value.code == ErrorCode.FILE_WRITE_ERROR
        assert exc_info.value.path == store.path

        with pytest.raises(FileWriteError):
            store.add(make_feed("A", 1))

    def test_unreadable_file_is_a_read_error(self, settings, tmp_path: Path) -> None:
        target = tmp_path / "favorites.json"
        target.mkdir()
        store = FavoritesStore(settings, path=target)

        with pytest.raises(FileReadError) as exc_info:
            store.load()

        assert exc_info.value.code == ErrorCode.FILE_READ_ERROR
        assert not isinstance(exc_info.value, FavoritesCorruptedError)

    def test_explicit_path_is_validated(self, settings, tmp_path: Path) -> None:
        with pytest.raises(InvalidInputError):
            FavoritesStore(settings, path=tmp_path / ".." / "favorites.json")

    def test_explicit_path_in_test_mode(self, settings, tmp_path: Path) -> None:
        store = FavoritesStore(settings, path=tmp_path / "custom" / "favorites.json")
        store.save(FavoritesDocument.empty())

        assert (tmp_path / "custom" / "favorites.json").exists()


class TestCorruption:
    """Tests for corrupted file handling."""

    def write_raw(self, store: FavoritesStore, content: str) -> None:
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text(content)

    def test_invalid_json_creates_backup(self, store: FavoritesStore) -> None:
        self.write_raw(store, "{broken")

        with pytest.raises(FavoritesCorruptedError) as exc_info:
            store.load()

        error = exc_info.value
        assert "Invalid JSON format" in error.message
        assert RESET_COMMAND in error.message
        assert error.code == ErrorCode.FILE_READ_ERROR
        assert error.backup_path is not None
        assert error.backup_path.read_text() == "{broken"
        assert f"A backup has been created at: {error.backup_path}" in error.message
        # Original is left in place
        assert store.path.read_text() == "{broken"

    def test_invalid_structure_message(self, store: FavoritesStore) -> None:
        self.write_raw(store, json.dumps({"version": 1, "feeds": "nope"}))

        with pytest.raises(FavoritesCorruptedError) as exc_info:
            store.load()

        assert "The file structure is invalid" in exc_info.value.message

    def test_invalid_values_message(self, store: FavoritesStore) -> None:
        bad = {"name": "X", "url": "u", "feedId": -1, "dateAdded": "2024-01-01T00:00:00Z"}
        self.write_raw(store, json.dumps({"version": 1, "feeds": [bad]}))

        with pytest.raises(FavoritesCorruptedError) as exc_info:
            store.load()

        assert "The file contains invalid values" in exc_info.value.message

    def test_every_operation_reports_corruption(self, store: FavoritesStore) -> None:
        self.write_raw(store, "[]")

        with pytest.raises(FavoritesCorruptedError):
            store.list_favorites()
        with pytest.raises(FavoritesCorruptedError):
            store.add(make_feed("A", 1))
        with pytest.raises(FavoritesCorruptedError):
            store.clear()

        assert len(backups(store)) >= 1
        # Lock was released despite the failure
        assert not store.path.with_name("favorites.json.lock").exists()

    def test_reset_recovers(self, store: FavoritesStore) -> None:
        self.write_raw(store, "garbage")

        store.reset()

        assert store.count() == 0


class TestAdd:
    """Tests for adding favorites."""

    def test_add_appends(self, store: FavoritesStore) -> None:
        result = store.add(make_feed("A", 1))

        assert result.success
        assert result.message == "Feed added to favorites"
        assert store.count() == 1

    def test_duplicate_url_is_case_insensitive(self, store: FavoritesStore) -> None:
        store.add(make_feed("A", 1, url="https://Example.com/Feed.xml"))

        result = store.add(make_feed("B", 2, url="https://example.com/feed.XML"))

        assert not result.success
        assert result.conflict == "url"
        assert result.message == "Feed URL already exists in favorites"
        assert result.existing_feed is not None
        assert result.existing_feed.name == "A"
        assert store.count() == 1

    def test_duplicate_feed_id(self, store: FavoritesStore) -> None:
        store.add(make_feed("A", 42, url="https://a.example.com/feed"))

        result = store.add(make_feed("B", 42, url="https://b.example.com/feed"))

        assert not result.success
        assert result.conflict == "feed_id"
        assert "same feed ID" in result.message

    def test_url_conflict_checked_before_feed_id(self, store: FavoritesStore) -> None:
        store.add(make_feed("A", 1, url="https://a.example.com/feed"))
        store.add(make_feed("B", 2, url="https://b.example.com/feed"))

        result = store.add(make_feed("C", 2, url="https://a.example.com/feed"))

        assert result.conflict == "url"
        assert result.existing_feed.name == "A"

    def test_unchanged_file_on_duplicate(self, store: FavoritesStore) -> None:
        store.add(make_feed("A", 1))
        before = store.path.read_bytes()

        store.add(make_feed("A again", 1))

        assert store.path.read_bytes() == before


class TestFindAndRemove:
    """Tests for matching and removing favorites."""

    @pytest.fixture
    def populated(self, store: FavoritesStore) -> FavoritesStore:
        store.add(make_feed("Tech Talk", 1, url="https://tech.example.com/feed"))
        store.add(make_feed("Tech Weekly", 2, url="https://weekly.example.com/feed"))
        store.add(make_feed("History Hour", 3, url="https://history.example.com/feed"))
        return store

    def test_exact_url_match(self, populated: FavoritesStore) -> None:
        matches = populated.find_matches("HTTPS://TECH.example.com/feed")

        assert [m.feed_id for m in matches] == [1]

    def test_exact_name_beats_partial(self, populated: FavoritesStore) -> None:
        matches = populated.find_matches("tech talk")

        assert [m.feed_id for m in matches] == [1]

    def test_partial_name_matches_all(self, populated: FavoritesStore) -> None:
        matches = populated.find_matches("tech")

        assert {m.feed_id for m in matches} == {1, 2}

    def test_no_match(self, populated: FavoritesStore) -> None:
        assert populated.find_matches("cooking") == []

    def test_remove(self, populated: FavoritesStore) -> None:
        target = populated.find_matches("History Hour")[0]

        result = populated.remove(target)

        assert result.success
        assert result.remaining_count == 2
        assert populated.find_matches("history") == []

    def test_remove_missing(self, populated: FavoritesStore) -> None:
        result = populated.remove(make_feed("Ghost", 99))

        assert not result.success
        assert result.remaining_count == 3


class TestClearAndList:
    """Tests for clear, list and count."""

    def test_clear(self, store: FavoritesStore) -> None:
        store.add(make_feed("A", 1))
        store.add(make_feed("B", 2))

        result = store.clear()

        assert result.removed_count == 2
        assert store.count() == 0

    def test_clear_is_idempotent(self, store: FavoritesStore) -> None:
        store.add(make_feed("A", 1))
        store.clear()
        mtime = store.path.stat().st_mtime_ns

        result = store.clear()

        assert result.removed_count == 0
        assert store.path.stat().st_mtime_ns == mtime

    def test_clear_missing_file_does_not_create_it(self, store: FavoritesStore) -> None:
        result = store.clear()

        assert result.removed_count == 0
        assert not store.path.exists()

    def test_list_newest_first(self, store: FavoritesStore) -> None:
        store.add(make_feed("Old", 1, days_ago=10))
        store.add(make_feed("New", 2, days_ago=0))
        store.add(make_feed("Middle", 3, days_ago=5))

        names = [f.name for f in store.list_favorites()]

        assert names == ["New", "Middle", "Old"]


class TestConcurrency:
    """Tests for concurrent writers sharing one file."""

    def test_concurrent_adds_are_not_lost(self, settings) -> None:
        """Each thread uses its own store; the lock serializes read-modify-write."""

        def add(feed_id: int) -> bool:
            store = FavoritesStore(settings)
            return store.add(make_feed(f"Show {feed_id}", feed_id)).success

        with ThreadPoolExecutor(max_workers=6) as pool:
            outcomes = list(pool.map(add, range(1, 13)))

        assert all(outcomes)
        store = FavoritesStore(settings)
        assert sorted(f.feed_id for f in store.load().feeds) == list(range(1, 13))
        assert not store.path.with_name("favorites.json.lock").exists()

    def test_foreign_lock_blocks_writes(self, store: FavoritesStore, monkeypatch) -> None:
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.with_name("favorites.json.lock").write_text(
            json.dumps({"pid": os.getpid() + 1, "time": 0})
        )
        monkeypatch.setattr(FavoritesStore, "_lock", lambda self: FileLock(self.path, timeout=0.2))

        with pytest.raises(FileWriteError) as exc_info:
            store.add(make_feed("A", 1))

        assert "Unable to acquire lock" in exc_info.value.message
        assert not store.path.exists()


class TestScenario:
    """End-to-end store behavior."""

    def test_add_list_remove_clear(self, store: FavoritesStore) -> None:
        assert store.add(make_feed("Tech Talk", 100, url="https://tech.example.com/rss")).success
        assert store.add(make_feed("News Daily", 200, url="https://news.example.com/rss")).success
        assert not store.add(make_feed("Tech Again", 300, url="https://TECH.example.com/rss")).success

        assert store.count() == 2

        target = store.find_matches("news")[0]
        assert store.remove(target).remaining_count == 1

        assert store.clear().removed_count == 1
        assert store.list_favorites() == []
