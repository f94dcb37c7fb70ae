"""Batch fetch of recent episodes across favorite feeds.

Feeds are fetched in sequential batches of at most ``MAX_CONCURRENT_REQUESTS``.
Every fetch in a batch runs concurrently and the whole batch is awaited before
the next one starts, with a short pause in between. A failing feed never
aborts the run: its failure is recorded in that feed's result slot. Results
keep the order of the input feeds.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from pullapod.clients.models import PodcastEpisode
from pullapod.storage.models import FavoriteFeed
from pullapod.utils.datetime import now_unix
from pullapod.utils.errors import NetworkError, PullapodError, RateLimitError

logger = logging.getLogger(__name__)

MAX_CONCURRENT_REQUESTS = 5
BATCH_DELAY_SECONDS = 0.1
PROGRESS_THRESHOLD = 10
LARGE_FAVORITES_THRESHOLD = 20

DEFAULT_MAX_EPISODES = 5
MAX_EPISODES_RANGE = (1, 20)
DEFAULT_DAYS = 7
DAYS_RANGE = (1, 90)

SECONDS_PER_DAY = 86400


class EpisodeSource(Protocol):
    """Anything that can list recent episodes for a feed id."""

    async def fetch_episodes_for_feed(self, feed_id: int, max_count: int, since: int): ...


class FetchErrorKind(str, Enum):
    """Classification of a per-feed failure."""

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


@dataclass
class FeedFetchResult:
    """Outcome of fetching one feed."""

    feed: FavoriteFeed
    episodes: list[PodcastEpisode] = field(default_factory=list)
    error: str | None = None
    error_kind: FetchErrorKind | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class PodcastGroup:
    """Episodes of one podcast, newest first."""

    feed_name: str
    feed_url: str
    episodes: list[PodcastEpisode]

    @property
    def latest_published(self) -> int:
        return self.episodes[0].date_published if self.episodes else 0


ProgressCallback = Callable[[int, int], None]


async def fetch_feed_episodes(
    source: EpisodeSource,
    feed: FavoriteFeed,
    max_episodes: int,
    since: int,
) -> FeedFetchResult:
    """Fetch one feed, turning any failure into a labelled result."""
    try:
        response = await source.fetch_episodes_for_feed(feed.feed_id, max_episodes, since)
    except NetworkError as e:
        logger.debug(f"Network error fetching {feed.name}: {e}")
        return FeedFetchResult(feed=feed, error="Network error", error_kind=FetchErrorKind.NETWORK)
    except RateLimitError as e:
        logger.debug(f"Rate limited fetching {feed.name}: {e}")
        return FeedFetchResult(
            feed=feed, error="Rate limited", error_kind=FetchErrorKind.RATE_LIMITED
        )
    except PullapodError as e:
        logger.debug(f"Error fetching {feed.name}: {e}")
        return FeedFetchResult(feed=feed, error=e.message, error_kind=FetchErrorKind.OTHER)
    except Exception as e:
        logger.debug(f"Unexpected error fetching {feed.name}", exc_info=True)
        return FeedFetchResult(
            feed=feed,
            error=str(e) or type(e).__name__,
            error_kind=FetchErrorKind.OTHER,
        )

    return FeedFetchResult(feed=feed, episodes=list(response.items or []))


async def fetch_recent_episodes(
    source: EpisodeSource,
    feeds: Sequence[FavoriteFeed],
    max_episodes: int,
    since: int,
    *,
    on_progress: ProgressCallback | None = None,
    max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    batch_delay: float = BATCH_DELAY_SECONDS,
) -> list[FeedFetchResult]:
    """Fetch recent episodes for every feed with bounded concurrency.

    Args:
        source: Episode source (normally a PodcastIndexClient)
        feeds: Feeds to fetch, in display order
        max_episodes: Episodes requested per feed
        since: Unix timestamp; only newer episodes are requested
        on_progress: Called with ``(completed, total)`` after every batch
        max_concurrent: Maximum requests in flight at once
        batch_delay: Seconds to pause between batches

    Returns:
        One result per feed, in the same order as ``feeds``
    """
    results: list[FeedFetchResult] = []
    total = len(feeds)

    for start in range(0, total, max_concurrent):
        batch = feeds[start : start + max_concurrent]
        batch_results = await asyncio.gather(
            *(fetch_feed_episodes(source, feed, max_episodes, since) for feed in batch)
        )
        results.extend(batch_results)

        if on_progress is not None:
            on_progress(len(results), total)

        if len(results) < total:
            await asyncio.sleep(batch_delay)

    failed = sum(1 for r in results if not r.success)
    logger.debug(f"Fetched {total} feeds, {failed} failed")
    return results


def all_feeds_failed(results: Sequence[FeedFetchResult]) -> bool:
    """True only when there were results and every one of them failed."""
    return bool(results) and all(not r.success for r in results)


def compute_since_timestamp(days: int, now: int | None = None) -> int:
    """Unix timestamp ``days`` days before ``now``."""
    current = now if now is not None else now_unix()
    return current - days * SECONDS_PER_DAY


def match_feeds_by_name(feeds: Sequence[FavoriteFeed], query: str) -> list[FavoriteFeed]:
    """Exact (case-insensitive) name match, else every partial match."""
    needle = query.strip().lower()
    for feed in feeds:
        if feed.name.lower() == needle:
            return [feed]
    return [feed for feed in feeds if needle in feed.name.lower()]


def group_episodes_by_podcast(results: Sequence[FeedFetchResult]) -> list[PodcastGroup]:
    """Group successful results, newest episode first, newest podcast first."""
    groups = [
        PodcastGroup(
            feed_name=result.feed.name,
            feed_url=result.feed.url,
            episodes=sorted(result.episodes, key=lambda e: e.date_published, reverse=True),
        )
        for result in results
        if result.episodes
    ]
    groups.sort(key=lambda g: g.latest_published, reverse=True)
    return groups
