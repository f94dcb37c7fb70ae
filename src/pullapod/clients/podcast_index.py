"""Podcast Index API client.

Documentation: https://podcastindex-org.github.io/docs-api/

Every request is signed with the API key, the current unix time and a SHA-1
of ``key + secret + time`` (Amazon-style request authorization).
"""

import hashlib
import logging
from collections.abc import Callable
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pullapod.clients.base import DEFAULT_TIMEOUT_SECONDS, BaseHttpClient, QueryValue
from pullapod.clients.models import Category, PodcastIndexResponse, PodcastIndexStats
from pullapod.config.settings import DEFAULT_BASE_URL, Settings
from pullapod.utils.datetime import now_unix
from pullapod.utils.errors import APIError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "pullapod/1.0"

ModelT = TypeVar("ModelT", bound=BaseModel)


class PodcastIndexClient(BaseHttpClient):
    """Async client for the Podcast Index API.

    Usage:
        async with PodcastIndexClient.from_settings(settings) as client:
            response = await client.search_by_term("python")

    Args:
        api_key: Podcast Index API key
        api_secret: Podcast Index API secret
        base_url: API root
        user_agent: User-Agent header value
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests)
        clock: Source of unix seconds for the auth headers
    """

    service_name = "Podcast Index"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], int] = now_unix,
    ) -> None:
        super().__init__(
            base_url=base_url,
            headers={"User-Agent": user_agent},
            timeout=timeout,
            transport=transport,
        )
        self.api_key = api_key
        self.api_secret = api_secret
        self.user_agent = user_agent
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "PodcastIndexClient":
        """Build a client from settings.

        Raises:
            MissingCredentialsError: If key or secret is not configured
        """
        api_key, api_secret = settings.require_credentials()
        return cls(
            api_key=api_key,
            api_secret=api_secret,
            base_url=settings.podcast_index_base_url,
            timeout=timeout,
            transport=transport,
        )

    def auth_headers(self) -> dict[str, str]:
        """Headers authenticating a single request."""
        timestamp = str(self._clock())
        digest = hashlib.sha1(
            (self.api_key + self.api_secret + timestamp).encode("utf-8")
        ).hexdigest()
        return {
            "User-Agent": self.user_agent,
            "X-Auth-Key": self.api_key,
            "X-Auth-Date": timestamp,
            "Authorization": digest,
        }

    async def _get(self, path: str, params: dict[str, QueryValue] | None = None) -> dict:
        logger.debug(f"GET {path} {params or {}}")
        data = await self.get_json(path, params=params, headers=self.auth_headers())
        if not isinstance(data, dict):
            raise APIError(f"Unexpected response from {self.service_name}")
        return data

    def _validate(self, model: type[ModelT], data: object) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Rejected {model.__name__} payload: {e}")
            raise APIError(f"Unexpected response from {self.service_name}") from e

    async def _get_response(
        self, path: str, params: dict[str, QueryValue] | None = None
    ) -> PodcastIndexResponse:
        return self._validate(PodcastIndexResponse, await self._get(path, params))

    # Search

    async def search_by_term(
        self,
        query: str,
        max_results: int | None = None,
        clean: bool | None = None,
        fulltext: bool | None = None,
    ) -> PodcastIndexResponse:
        """Search podcasts by term (title, author, owner)."""
        return await self._get_response(
            "/search/byterm",
            {"q": query, "max": max_results, "clean": clean, "fulltext": fulltext},
        )

    async def search_by_title(
        self,
        query: str,
        max_results: int | None = None,
        similar: bool | None = None,
        clean: bool | None = None,
        fulltext: bool | None = None,
    ) -> PodcastIndexResponse:
        """Search podcasts by title only."""
        return await self._get_response(
            "/search/bytitle",
            {
                "q": query,
                "max": max_results,
                "similar": similar,
                "clean": clean,
                "fulltext": fulltext,
            },
        )

    # Podcasts

    async def get_podcast_by_id(self, feed_id: int) -> PodcastIndexResponse:
        return await self._get_response("/podcasts/byfeedid", {"id": feed_id})

    async def get_podcast_by_url(self, url: str) -> PodcastIndexResponse:
        return await self._get_response("/podcasts/byfeedurl", {"url": url})

    async def get_podcast_by_itunes_id(self, itunes_id: int) -> PodcastIndexResponse:
        return await self._get_response("/podcasts/byitunesid", {"id": itunes_id})

    async def get_podcast_by_guid(self, guid: str) -> PodcastIndexResponse:
        return await self._get_response("/podcasts/byguid", {"guid": guid})

    async def get_trending(
        self,
        max_results: int | None = None,
        since: int | None = None,
        language: str | None = None,
        category: str | None = None,
        exclude_category: str | None = None,
    ) -> PodcastIndexResponse:
        """Currently trending podcasts."""
        return await self._get_response(
            "/podcasts/trending",
            {
                "max": max_results,
                "since": since,
                "lang": language,
                "cat": category,
                "notcat": exclude_category,
            },
        )

    # Episodes

    async def get_episodes_by_feed_id(
        self,
        feed_id: int,
        max_results: int | None = None,
        since: int | None = None,
        fulltext: bool | None = None,
    ) -> PodcastIndexResponse:
        return await self._get_response(
            "/episodes/byfeedid",
            {"id": feed_id, "max": max_results, "since": since, "fulltext": fulltext},
        )

    async def get_episodes_by_feed_url(
        self,
        url: str,
        max_results: int | None = None,
        since: int | None = None,
        fulltext: bool | None = None,
    ) -> PodcastIndexResponse:
        return await self._get_response(
            "/episodes/byfeedurl",
            {"url": url, "max": max_results, "since": since, "fulltext": fulltext},
        )

    async def get_episode_by_id(self, episode_id: int) -> PodcastIndexResponse:
        return await self._get_response("/episodes/byid", {"id": episode_id})

    async def get_episode_by_guid(
        self, guid: str, feed_url: str | None = None
    ) -> PodcastIndexResponse:
        return await self._get_response("/episodes/byguid", {"guid": guid, "feedurl": feed_url})

    async def get_random_episodes(
        self,
        max_results: int = 1,
        language: str | None = None,
        category: str | None = None,
    ) -> PodcastIndexResponse:
        return await self._get_response(
            "/episodes/random",
            {"max": max_results, "lang": language, "cat": category},
        )

    async def fetch_episodes_for_feed(
        self, feed_id: int, max_count: int, since: int
    ) -> PodcastIndexResponse:
        """Recent episodes of one feed, as used by the ``recent`` batch fetch."""
        return await self.get_episodes_by_feed_id(feed_id, max_results=max_count, since=since)

    # Recent

    async def get_recent_episodes(
        self,
        max_results: int | None = None,
        exclude: str | None = None,
        before: int | None = None,
        fulltext: bool | None = None,
    ) -> PodcastIndexResponse:
        return await self._get_response(
            "/recent/episodes",
            {"max": max_results, "excludeString": exclude, "before": before, "fulltext": fulltext},
        )

    async def get_recent_feeds(
        self,
        max_results: int | None = None,
        since: int | None = None,
        language: str | None = None,
        category: str | None = None,
    ) -> PodcastIndexResponse:
        return await self._get_response(
            "/recent/feeds",
            {"max": max_results, "since": since, "lang": language, "cat": category},
        )

    async def get_new_feeds(
        self,
        max_results: int | None = None,
        since: int | None = None,
    ) -> PodcastIndexResponse:
        return await self._get_response("/recent/newfeeds", {"max": max_results, "since": since})

    # Stats and categories

    async def get_stats(self) -> PodcastIndexStats:
        data = await self._get("/stats/current")
        return self._validate(PodcastIndexStats, data.get("stats") or {})

    async def get_categories(self) -> list[Category]:
        data = await self._get("/categories/list")
        return [self._validate(Category, item) for item in data.get("feeds") or []]
