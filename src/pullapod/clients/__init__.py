"""Remote API clients."""

from pullapod.clients.models import (
    Category,
    FeedStatus,
    PodcastEpisode,
    PodcastFeed,
    PodcastIndexResponse,
    PodcastIndexStats,
)
from pullapod.clients.podcast_index import PodcastIndexClient

__all__ = [
    "Category",
    "FeedStatus",
    "PodcastEpisode",
    "PodcastFeed",
    "PodcastIndexClient",
    "PodcastIndexResponse",
    "PodcastIndexStats",
]
