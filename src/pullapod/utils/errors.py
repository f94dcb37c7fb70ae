"""Custom exceptions for pullapod."""

from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCode(str, Enum):
    """Stable tags attached to every pullapod error."""

    FILE_READ_ERROR = "FILE_READ_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    CONFIG_ERROR = "CONFIG_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    API_ERROR = "API_ERROR"
    API_RATE_LIMIT = "API_RATE_LIMIT"
    DOWNLOAD_ERROR = "DOWNLOAD_ERROR"
    FEED_PARSE_ERROR = "FEED_PARSE_ERROR"


class PullapodError(Exception):
    """Base exception for all pullapod errors.

    Args:
        message: Human readable description
        suggestion: Optional hint telling the user how to recover
        details: Extra context for logs and debugging
    """

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}


# Configuration


class ConfigError(PullapodError):
    """Configuration-related errors."""

    code = ErrorCode.CONFIG_ERROR


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class MissingCredentialsError(ConfigError):
    """Podcast Index API credentials are not configured."""

    pass


# Input


class ValidationError(PullapodError):
    """User input failed validation."""

    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(PullapodError):
    """Requested resource does not exist."""

    code = ErrorCode.NOT_FOUND


# Storage


class StorageError(PullapodError):
    """Errors raised by the local favorites store."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, suggestion=suggestion, details={"path": str(path)})
        self.path = path


class FileReadError(StorageError):
    """Store file could not be read."""

    code = ErrorCode.FILE_READ_ERROR


class FavoritesCorruptedError(FileReadError):
    """Store file exists but does not hold a valid favorites document."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        backup_path: Path | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, path=path, suggestion=suggestion)
        self.backup_path = backup_path


class FileWriteError(StorageError):
    """Store file could not be written."""

    code = ErrorCode.FILE_WRITE_ERROR


class LockTimeoutError(FileWriteError):
    """Store lock could not be acquired in time."""

    pass


class InvalidInputError(StorageError):
    """Rejected store path (traversal or outside allowed directories)."""

    code = ErrorCode.INVALID_INPUT


# Network and remote API


class NetworkError(PullapodError):
    """Network-related errors."""

    code = ErrorCode.NETWORK_ERROR


class NetworkConnectionError(NetworkError):
    """Connection failures."""

    pass


class NetworkTimeoutError(NetworkError):
    """Request timeout."""

    pass


class APIError(PullapodError):
    """Remote API returned an error response."""

    code = ErrorCode.API_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, suggestion=suggestion, details={"status_code": status_code})
        self.status_code = status_code


class RateLimitError(APIError):
    """API rate limit exceeded."""

    code = ErrorCode.API_RATE_LIMIT


class AuthenticationError(APIError):
    """Invalid API key or authentication failed."""

    pass


class ServerError(APIError):
    """Server-side error (5xx)."""

    pass


# Feeds and downloads


class FeedParseError(PullapodError):
    """RSS feed parsing errors."""

    code = ErrorCode.FEED_PARSE_ERROR


class DownloadError(PullapodError):
    """Audio or artwork download failures."""

    code = ErrorCode.DOWNLOAD_ERROR
