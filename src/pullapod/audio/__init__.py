"""Audio download and tagging."""

from pullapod.audio.downloader import AudioDownloader, DownloadProgress, DownloadResult
from pullapod.audio.metadata import MetadataEmbedder

__all__ = [
    "AudioDownloader",
    "DownloadProgress",
    "DownloadResult",
    "MetadataEmbedder",
]
