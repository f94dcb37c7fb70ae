"""Shared async HTTP plumbing for remote API clients."""

import logging
from typing import Any

import httpx

from pullapod.utils.errors import APIError, NetworkConnectionError, NetworkTimeoutError
from pullapod.utils.retry import classify_http_error

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

QueryValue = str | int | float | bool | None


def clean_params(params: dict[str, QueryValue] | None) -> dict[str, str | int | float]:
    """Drop ``None`` values and render booleans as ``true``/``false``."""
    if not params:
        return {}
    cleaned: dict[str, str | int | float] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = value
    return cleaned


class BaseHttpClient:
    """Thin wrapper around ``httpx.AsyncClient`` with error classification.

    Subclasses set ``service_name`` for error messages.

    Args:
        base_url: API root; a trailing slash is ignored
        headers: Headers sent with every request
        timeout: Request timeout in seconds
        transport: Optional transport (``httpx.MockTransport`` in tests)
    """

    service_name = "server"

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_headers = headers or {}
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.default_headers,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_json(
        self,
        path: str,
        params: dict[str, QueryValue] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET ``path`` and decode the JSON body.

        Raises:
            NetworkTimeoutError: Request timed out
            NetworkConnectionError: Connection could not be established
            APIError: Non-2xx response (RateLimitError, AuthenticationError
                and ServerError for their status codes), or a body that is not JSON
        """
        url = self.build_url(path)
        try:
            response = await self.client.get(url, params=clean_params(params), headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(
                f"Request timeout after {self.timeout:g}s",
                suggestion="Check your internet connection and try again.",
            ) from e
        except httpx.TransportError as e:
            raise NetworkConnectionError(
                f"Request failed: {e}",
                suggestion="Check your internet connection and try again.",
            ) from e

        if response.is_error:
            logger.debug(f"GET {url} -> {response.status_code}")
            raise classify_http_error(response.status_code, response.reason_phrase)

        try:
            return response.json()
        except ValueError as e:
            logger.debug(f"GET {url} returned a non-JSON body")
            raise APIError(
                f"Unexpected response from {self.service_name}",
                status_code=response.status_code,
                suggestion="Try again later.",
            ) from e
