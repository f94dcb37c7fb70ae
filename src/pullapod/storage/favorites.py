"""Local favorites store backed by a single JSON file.

Every operation reads the whole file from disk and every change rewrites the
whole file. Writes go to a temporary sibling which is fsynced and atomically
renamed over the target, all while holding the lock file, so readers only
ever observe a complete old or complete new document.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from pullapod.config.settings import Settings
from pullapod.storage.lock import FileLock
from pullapod.storage.models import (
    CorruptionKind,
    DocumentDecodeError,
    FavoriteFeed,
    FavoritesDocument,
    decode_favorites,
)
from pullapod.storage.paths import get_favorites_path, validate_favorites_path
from pullapod.utils.datetime import now_millis
from pullapod.utils.errors import FavoritesCorruptedError, FileReadError, FileWriteError

logger = logging.getLogger(__name__)

RESET_COMMAND = "pullapod favorite clear --force"

_CORRUPTION_REASONS = {
    CorruptionKind.INVALID_JSON: "Invalid JSON format.",
    CorruptionKind.INVALID_STRUCTURE: "The file structure is invalid.",
    CorruptionKind.INVALID_VALUES: "The file contains invalid values.",
}


@dataclass
class AddResult:
    """Outcome of adding a favorite."""

    success: bool
    existing_feed: FavoriteFeed | None = None
    conflict: str | None = None  # "url" or "feed_id"

    @property
    def message(self) -> str:
        if self.success:
            return "Feed added to favorites"
        if self.conflict == "url":
            return "Feed URL already exists in favorites"
        return "Feed already exists in favorites (same feed ID)"


@dataclass
class RemoveResult:
    """Outcome of removing a favorite."""

    success: bool
    remaining_count: int


@dataclass
class ClearResult:
    """Outcome of clearing all favorites."""

    removed_count: int


class FavoritesStore:
    """Reads and writes the favorites file.

    Args:
        settings: Runtime settings used for path resolution and validation
        path: Explicit file path; validated against the allowed directories
    """

    def __init__(self, settings: Settings | None = None, path: Path | None = None) -> None:
        self.settings = settings or Settings()
        if path is None:
            self.path = get_favorites_path(self.settings)
        else:
            self.path = Path(validate_favorites_path(Path(path), self.settings))
        self.temp_path = self.path.with_name(self.path.name + ".tmp")

    def _lock(self) -> FileLock:
        return FileLock(self.path)

    # Persistence

    def load(self) -> FavoritesDocument:
        """Load the favorites document.

        A missing file is an empty document, not an error. No lock is taken.

        Raises:
            FavoritesCorruptedError: If the file is not a valid document
                (a backup copy is written first)
            FileReadError: If the file exists but cannot be read
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return FavoritesDocument.empty()
        except OSError as e:
            raise FileReadError(
                f"Failed to read favorites file: {e}",
                path=self.path,
            ) from e

        try:
            return decode_favorites(raw)
        except DocumentDecodeError as e:
            logger.debug(f"Rejected {self.path} ({e.kind.value}): {e.reason}")
            raise self._corrupted(e.kind) from e

    def _corrupted(self, kind: CorruptionKind) -> FavoritesCorruptedError:
        backup_path = self._backup_corrupted_file()
        message = f"Favorites file is corrupted. {_CORRUPTION_REASONS[kind]}"
        if backup_path is not None:
            message += f"\nA backup has been created at: {backup_path}"
        message += f"\n\nTo reset your favorites, run:\n  {RESET_COMMAND}"
        return FavoritesCorruptedError(message, path=self.path, backup_path=backup_path)

    def _backup_corrupted_file(self) -> Path | None:
        backup_path = self.path.with_name(f"{self.path.name}.backup.{now_millis()}")
        try:
            shutil.copyfile(self.path, backup_path)
        except OSError as e:
            logger.warning(f"Could not back up corrupted favorites file: {e}")
            return None
        return backup_path

    def save(self, document: FavoritesDocument) -> None:
        """Atomically replace the favorites file while holding the lock.

        Raises:
            FileWriteError: If the lock cannot be acquired or the write fails
        """
        with self._lock():
            self._write(document)

    def _write(self, document: FavoritesDocument) -> None:
        content = document.to_json()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            fd = os.open(self.temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            self.temp_path.replace(self.path)
        except OSError as e:
            self._cleanup_temp()
            raise FileWriteError(
                f"Failed to save favorites file: {e}",
                path=self.path,
            ) from e

    def _cleanup_temp(self) -> None:
        try:
            self.temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to clean up temporary file {self.temp_path}: {e}")

    def reset(self) -> None:
        """Overwrite the file with an empty document (corruption recovery)."""
        self.save(FavoritesDocument.empty())

    # Operations

    def add(self, feed: FavoriteFeed) -> AddResult:
        """Append a favorite unless its URL or feed id is already present.

        URL duplicates are checked first, case-insensitively.
        """
        with self._lock():
            document = self.load()

            url = feed.url.lower()
            for existing in document.feeds:
                if existing.url.lower() == url:
                    return AddResult(success=False, existing_feed=existing, conflict="url")

            for existing in document.feeds:
                if existing.feed_id == feed.feed_id:
                    return AddResult(success=False, existing_feed=existing, conflict="feed_id")

            document.feeds.append(feed)
            self._write(document)

        logger.debug(f"Added favorite {feed.name} ({feed.feed_id})")
        return AddResult(success=True)

    def find_matches(self, query: str) -> list[FavoriteFeed]:
        """Find favorites by URL or name (case-insensitive).

        An exact URL match wins, then an exact name match, otherwise every
        entry whose name contains the query.
        """
        feeds = self.load().feeds
        needle = query.strip().lower()

        for feed in feeds:
            if feed.url.lower() == needle:
                return [feed]

        for feed in feeds:
            if feed.name.lower() == needle:
                return [feed]

        return [feed for feed in feeds if needle in feed.name.lower()]

    def remove(self, feed: FavoriteFeed) -> RemoveResult:
        """Remove every entry sharing ``feed.feed_id``."""
        with self._lock():
            document = self.load()
            before = len(document.feeds)
            document.feeds = [f for f in document.feeds if f.feed_id != feed.feed_id]

            if len(document.feeds) == before:
                return RemoveResult(success=False, remaining_count=before)

            self._write(document)

        return RemoveResult(success=True, remaining_count=len(document.feeds))

    def clear(self) -> ClearResult:
        """Remove all favorites. The file is only rewritten when it had entries."""
        with self._lock():
            removed = len(self.load().feeds)
            if removed > 0:
                self._write(FavoritesDocument.empty())

        return ClearResult(removed_count=removed)

    def list_favorites(self) -> list[FavoriteFeed]:
        """All favorites, newest first by date added."""
        return sorted(self.load().feeds, key=lambda f: f.added_at, reverse=True)

    def count(self) -> int:
        return len(self.load().feeds)
