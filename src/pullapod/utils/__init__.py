"""Utility functions and helpers for pullapod."""

from pullapod.utils.errors import (
    APIError,
    AuthenticationError,
    ConfigError,
    DownloadError,
    ErrorCode,
    FavoritesCorruptedError,
    FeedParseError,
    FileReadError,
    FileWriteError,
    InvalidConfigError,
    InvalidInputError,
    LockTimeoutError,
    MissingCredentialsError,
    NetworkConnectionError,
    NetworkError,
    NetworkTimeoutError,
    NotFoundError,
    PullapodError,
    RateLimitError,
    ServerError,
    StorageError,
    ValidationError,
)

__all__ = [
    "ErrorCode",
    "PullapodError",
    "ConfigError",
    "InvalidConfigError",
    "MissingCredentialsError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "FileReadError",
    "FavoritesCorruptedError",
    "FileWriteError",
    "LockTimeoutError",
    "InvalidInputError",
    "NetworkError",
    "NetworkConnectionError",
    "NetworkTimeoutError",
    "APIError",
    "RateLimitError",
    "AuthenticationError",
    "ServerError",
    "FeedParseError",
    "DownloadError",
]
