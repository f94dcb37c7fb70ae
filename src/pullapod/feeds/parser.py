"""RSS feed parser using httpx and feedparser."""

import calendar
import logging
from datetime import datetime, timezone
from typing import Any

import feedparser
import httpx

from pullapod.feeds.models import Episode
from pullapod.utils.datetime import now_utc
from pullapod.utils.errors import FeedParseError, NetworkConnectionError, NetworkTimeoutError
from pullapod.utils.retry import classify_http_error, with_network_retry

logger = logging.getLogger(__name__)

USER_AGENT = "pullapod/0.1.0"
ACCEPT = "application/rss+xml, application/xml, text/xml, */*"


class RSSParser:
    """Fetches RSS feeds and extracts downloadable episodes."""

    def __init__(
        self,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the RSS parser.

        Args:
            timeout: HTTP request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        self.timeout = timeout
        self._transport = transport

    @with_network_retry()
    async def fetch_feed(self, url: str) -> feedparser.FeedParserDict:
        """Download and parse a feed.

        Raises:
            NetworkError: Connection problems (retried first)
            APIError: Non-2xx response
            FeedParseError: Content is not a usable feed
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            try:
                response = await client.get(url)
            except httpx.TimeoutException as e:
                raise NetworkTimeoutError(f"Timed out fetching feed: {url}") from e
            except httpx.TransportError as e:
                raise NetworkConnectionError(f"Could not fetch feed {url}: {e}") from e

        if response.is_error:
            raise classify_http_error(response.status_code, response.reason_phrase)

        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries and not feed.feed:
            raise FeedParseError(
                f"Failed to parse RSS feed: {feed.get('bozo_exception', 'invalid XML')}",
                suggestion="Check that the URL points to an RSS feed.",
            )
        return feed

    def parse_episodes(self, feed: feedparser.FeedParserDict) -> list[Episode]:
        """Extract episodes that carry an audio enclosure.

        Items without an enclosure are skipped. Episode artwork falls back to
        the channel artwork; a missing publish date becomes "now".
        """
        channel = feed.feed
        podcast_title = channel.get("title") or "Unknown Podcast"
        podcast_artwork = _image_href(channel)

        episodes = []
        for entry in feed.entries:
            enclosure_url = _enclosure_url(entry)
            if not enclosure_url:
                continue

            episodes.append(
                Episode(
                    title=entry.get("title") or "Untitled Episode",
                    enclosure_url=enclosure_url,
                    published=_published(entry),
                    podcast_title=podcast_title,
                    description=entry.get("summary") or None,
                    artwork=_image_href(entry) or podcast_artwork,
                    duration=entry.get("itunes_duration") or None,
                )
            )

        logger.debug(f"Parsed {len(episodes)} episodes from {podcast_title}")
        return episodes

    async def get_episodes(self, url: str) -> list[Episode]:
        """Fetch a feed and return its downloadable episodes."""
        return self.parse_episodes(await self.fetch_feed(url))


def _enclosure_url(entry: Any) -> str | None:
    for enclosure in entry.get("enclosures") or []:
        href = enclosure.get("href") or enclosure.get("url")
        if href:
            return href
    return None


def _image_href(node: Any) -> str | None:
    image = node.get("image")
    if isinstance(image, dict):
        return image.get("href") or image.get("url")
    if isinstance(image, str) and image:
        return image
    return None


def _published(entry: Any) -> datetime:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return now_utc()
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
