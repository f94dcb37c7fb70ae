"""Episode audio and artwork downloader using httpx streaming."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import httpx
from pydantic import BaseModel, Field

from pullapod.feeds.models import Episode
from pullapod.utils.display import get_file_extension, sanitize_for_filesystem
from pullapod.utils.errors import DownloadError, NetworkConnectionError, NetworkTimeoutError
from pullapod.utils.retry import with_network_retry

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
USER_AGENT = "pullapod/0.1.0"


class DownloadProgress(BaseModel):
    """Progress information for a download."""

    status: str = Field(..., description="downloading or finished")
    downloaded_bytes: int = Field(default=0, ge=0, description="Bytes downloaded so far")
    total_bytes: int | None = Field(
        default=None, ge=0, description="Total bytes to download (if known)"
    )

    @property
    def percentage(self) -> float | None:
        """Calculate download percentage if total is known."""
        if self.total_bytes and self.total_bytes > 0:
            return (self.downloaded_bytes / self.total_bytes) * 100
        return None


@dataclass
class DownloadResult:
    """Files produced by downloading one episode."""

    audio_path: Path
    artwork_path: Path | None
    size_bytes: int


class AudioDownloader:
    """Download episodes into ``<output>/<podcast>/<title>.<ext>``.

    Args:
        output_dir: Root directory for downloads
        progress_callback: Optional callback for audio progress updates
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests)
    """

    def __init__(
        self,
        output_dir: Path,
        progress_callback: Callable[[DownloadProgress], None] | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.output_dir = output_dir
        self.progress_callback = progress_callback
        self.timeout = timeout
        self._transport = transport

    def episode_paths(self, episode: Episode) -> tuple[Path, Path | None]:
        """Target audio and artwork paths for an episode."""
        podcast_dir = self.output_dir / sanitize_for_filesystem(episode.podcast_title)
        safe_title = sanitize_for_filesystem(episode.title)
        audio_path = podcast_dir / f"{safe_title}.{get_file_extension(episode.enclosure_url)}"

        artwork_path = None
        if episode.artwork:
            artwork_ext = get_file_extension(episode.artwork, default="jpg")
            artwork_path = podcast_dir / f"{safe_title}.{artwork_ext}"
        return audio_path, artwork_path

    async def download_episode(self, episode: Episode) -> DownloadResult:
        """Download an episode's audio, then its artwork when available.

        Artwork failures are logged and ignored.

        Raises:
            DownloadError: If the audio download fails
        """
        audio_path, artwork_path = self.episode_paths(episode)
        audio_path.parent.mkdir(parents=True, exist_ok=True)

        size = await self.download_file(episode.enclosure_url, audio_path, report=True)

        if artwork_path is not None and artwork_path != audio_path:
            try:
                await self.download_file(episode.artwork, artwork_path)
            except DownloadError as e:
                logger.warning(f"Failed to download artwork: {e}")
                artwork_path = None
        else:
            artwork_path = None

        return DownloadResult(audio_path=audio_path, artwork_path=artwork_path, size_bytes=size)

    @with_network_retry()
    async def download_file(self, url: str, output_path: Path, report: bool = False) -> int:
        """Stream ``url`` to ``output_path``. A partial file is removed on failure.

        Returns:
            Number of bytes written
        """
        downloaded = 0
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.is_error:
                        raise DownloadError(
                            f"Failed to download {url}: HTTP {response.status_code} "
                            f"{response.reason_phrase}"
                        )

                    total = response.headers.get("content-length")
                    total_bytes = int(total) if total and total.isdigit() else None

                    async with aiofiles.open(output_path, "wb") as f:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            await f.write(chunk)
                            downloaded += len(chunk)
                            if report:
                                self._report("downloading", downloaded, total_bytes)

            if report:
                self._report("finished", downloaded, total_bytes)
            return downloaded

        except httpx.TimeoutException as e:
            self._remove_partial(output_path)
            raise NetworkTimeoutError(f"Timed out downloading {url}") from e
        except httpx.TransportError as e:
            self._remove_partial(output_path)
            raise NetworkConnectionError(f"Connection failed downloading {url}: {e}") from e
        except (DownloadError, OSError) as e:
            self._remove_partial(output_path)
            if isinstance(e, DownloadError):
                raise
            raise DownloadError(f"Failed to write {output_path}: {e}") from e

    def _report(self, status: str, downloaded: int, total: int | None) -> None:
        if self.progress_callback:
            self.progress_callback(
                DownloadProgress(status=status, downloaded_bytes=downloaded, total_bytes=total)
            )

    @staticmethod
    def _remove_partial(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial download {path}: {e}")
