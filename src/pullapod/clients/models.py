"""Response models for the Podcast Index API.

Models are lenient: unknown fields are ignored and nearly everything is
optional, since the API omits or nulls fields freely.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pullapod.utils.datetime import from_unix, now_unix

ACTIVE_WINDOW_SECONDS = 90 * 24 * 60 * 60


class ApiModel(BaseModel):
    """Base for API payloads (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FeedStatus(str, Enum):
    """Health of a feed as shown by ``info``."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DEAD = "dead"


class PodcastFeed(ApiModel):
    """Podcast feed information."""

    id: int
    title: str = ""
    url: str = ""
    original_url: str | None = None
    link: str | None = None
    description: str | None = None
    author: str | None = None
    owner_name: str | None = None
    image: str | None = None
    artwork: str | None = None
    last_update_time: int | None = None
    last_crawl_time: int | None = None
    newest_item_publish_time: int | None = None
    language: str | None = None
    dead: int = 0
    explicit: bool | int | None = None
    categories: dict[str, str] | None = None
    itunes_id: int | None = None
    podcast_guid: str | None = None
    medium: str | None = None
    episode_count: int | None = None

    @field_validator("categories", mode="before")
    @classmethod
    def _empty_categories(cls, value: Any) -> Any:
        # The API sends [] or null instead of {} for uncategorized feeds
        if not value:
            return None
        return value

    def status(self, now: int | None = None) -> FeedStatus:
        """Dead when flagged, active when something was published in 90 days."""
        if self.dead == 1:
            return FeedStatus.DEAD

        last_publish = self.newest_item_publish_time or self.last_update_time
        if not last_publish:
            return FeedStatus.INACTIVE

        current = now if now is not None else now_unix()
        if current - last_publish <= ACTIVE_WINDOW_SECONDS:
            return FeedStatus.ACTIVE
        return FeedStatus.INACTIVE

    @property
    def category_names(self) -> list[str]:
        return list(self.categories.values()) if self.categories else []


class PodcastEpisode(ApiModel):
    """Podcast episode information."""

    id: int
    title: str = ""
    link: str | None = None
    description: str | None = None
    guid: str | None = None
    date_published: int = 0
    date_published_pretty: str | None = None
    enclosure_url: str = ""
    enclosure_type: str | None = None
    enclosure_length: int | None = None
    duration: int | None = None
    explicit: int | None = None
    episode: int | None = None
    season: int | None = None
    image: str | None = None
    feed_image: str | None = None
    feed_id: int | None = None
    feed_title: str | None = None
    feed_language: str | None = None

    @property
    def published(self) -> datetime:
        return from_unix(self.date_published)


class PodcastIndexResponse(ApiModel):
    """Common response envelope."""

    status: str | bool | None = None
    feeds: list[PodcastFeed] = Field(default_factory=list)
    items: list[PodcastEpisode] = Field(default_factory=list)
    feed: PodcastFeed | None = None
    episode: PodcastEpisode | None = None
    count: int | None = None
    query: Any = None
    description: str | None = None

    @field_validator("feed", "episode", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        # Lookups that miss return [] in place of the object
        if isinstance(value, list) or not value:
            return None
        return value

    @field_validator("feeds", "items", mode="before")
    @classmethod
    def _null_to_list(cls, value: Any) -> Any:
        return value or []

    @property
    def first_feed(self) -> PodcastFeed | None:
        return self.feed or (self.feeds[0] if self.feeds else None)


class PodcastIndexStats(ApiModel):
    """Index-wide statistics from ``/stats/current``."""

    feed_count_total: int = 0
    episode_count_total: int = 0
    feeds_with_new_episodes3days: int = 0
    feeds_with_new_episodes10days: int = 0
    feeds_with_new_episodes30days: int = 0
    feeds_with_new_episodes90days: int = 0
    feeds_with_value_blocks: int = 0


class Category(ApiModel):
    """A Podcast Index category."""

    id: int
    name: str
