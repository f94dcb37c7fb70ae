"""Local favorites storage."""

from pullapod.storage.favorites import AddResult, ClearResult, FavoritesStore, RemoveResult
from pullapod.storage.lock import FileLock
from pullapod.storage.models import FavoriteFeed, FavoritesDocument
from pullapod.storage.paths import get_favorites_path, validate_favorites_path

__all__ = [
    "AddResult",
    "ClearResult",
    "FavoriteFeed",
    "FavoritesDocument",
    "FavoritesStore",
    "FileLock",
    "RemoveResult",
    "get_favorites_path",
    "validate_favorites_path",
]
