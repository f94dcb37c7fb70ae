"""Favorites document models and the strict decoder for ``favorites.json``."""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from pullapod.utils.datetime import now_utc, parse_iso_datetime, to_iso_timestamp

CURRENT_VERSION = 1

# Pydantic error types meaning "right shape, bad value"
_VALUE_ERROR_TYPES = frozenset({"value_error", "greater_than", "greater_than_equal"})


class FavoriteFeed(BaseModel):
    """A single favorite podcast feed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: StrictStr
    url: StrictStr
    feed_id: StrictInt = Field(alias="feedId", gt=0)
    date_added: StrictStr = Field(alias="dateAdded")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @field_validator("date_added")
    @classmethod
    def _date_parses(cls, value: str) -> str:
        try:
            parse_iso_datetime(value)
        except ValueError as e:
            raise ValueError(f"dateAdded is not an ISO 8601 timestamp: {value!r}") from e
        return value

    @property
    def added_at(self) -> datetime:
        """``date_added`` as an aware datetime (naive values treated as UTC)."""
        return parse_iso_datetime(self.date_added)

    @classmethod
    def create(cls, name: str, url: str, feed_id: int, added: datetime | None = None) -> "FavoriteFeed":
        """Build a new entry stamped with the current UTC time."""
        return cls(
            name=name,
            url=url,
            feed_id=feed_id,
            date_added=to_iso_timestamp(added or now_utc()),
        )


class FavoritesDocument(BaseModel):
    """Top-level structure of ``favorites.json``."""

    model_config = ConfigDict(extra="ignore")

    version: StrictInt = Field(default=CURRENT_VERSION, ge=1)
    feeds: list[FavoriteFeed] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "FavoritesDocument":
        return cls(version=CURRENT_VERSION, feeds=[])

    def to_json(self) -> str:
        """Serialize as 2-space indented JSON with camelCase keys."""
        return json.dumps(self.model_dump(by_alias=True), indent=2, ensure_ascii=False)


class CorruptionKind(str, Enum):
    """Why a favorites file was rejected."""

    INVALID_JSON = "invalid_json"
    INVALID_STRUCTURE = "invalid_structure"
    INVALID_VALUES = "invalid_values"


class DocumentDecodeError(ValueError):
    """Raw favorites content could not be decoded."""

    def __init__(self, kind: CorruptionKind, reason: str) -> None:
        super().__init__(reason)
        self.kind = kind
        self.reason = reason


def _classify(error: PydanticValidationError) -> CorruptionKind:
    types = {item["type"] for item in error.errors()}
    if types and types <= _VALUE_ERROR_TYPES:
        return CorruptionKind.INVALID_VALUES
    return CorruptionKind.INVALID_STRUCTURE


def decode_favorites(raw: bytes) -> FavoritesDocument:
    """Decode and validate the bytes of a favorites file.

    Raises:
        DocumentDecodeError: With the failure classified as invalid JSON,
            invalid structure or invalid values
    """
    try:
        data: Any = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        # Covers JSONDecodeError and UnicodeDecodeError
        raise DocumentDecodeError(CorruptionKind.INVALID_JSON, str(e)) from e

    try:
        return FavoritesDocument.model_validate(data)
    except PydanticValidationError as e:
        raise DocumentDecodeError(_classify(e), str(e)) from e
