"""ID3 metadata embedding for downloaded MP3 files."""

import logging
from pathlib import Path

from mutagen import MutagenError
from mutagen.id3 import APIC, COMM, ID3, TALB, TIT2, ID3NoHeaderError

from pullapod.feeds.models import Episode

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


def get_mime_type(path: Path) -> str:
    """Image MIME type from the file extension (JPEG when unknown)."""
    return MIME_TYPES.get(path.suffix.lower().lstrip("."), "image/jpeg")


class MetadataEmbedder:
    """Writes title, album, comment and cover art into MP3 files."""

    def embed(self, audio_path: Path, artwork_path: Path | None, episode: Episode) -> bool:
        """Embed episode metadata.

        Only MP3 files are tagged; other formats are skipped. Tagging failures
        are logged and reported as False rather than raised.

        Returns:
            True when tags were written
        """
        if audio_path.suffix.lower() != ".mp3":
            logger.info(f"Skipping metadata for {audio_path.suffix or 'unknown'} file (MP3 only)")
            return False

        try:
            try:
                tags = ID3(audio_path)
            except ID3NoHeaderError:
                tags = ID3()

            tags.delall("TIT2")
            tags.delall("TALB")
            tags.delall("COMM")
            tags.add(TIT2(encoding=3, text=episode.title))
            tags.add(TALB(encoding=3, text=episode.podcast_title))
            tags.add(COMM(encoding=3, lang="eng", desc="", text=episode.description or ""))

            if artwork_path is not None and artwork_path.exists():
                tags.delall("APIC")
                tags.add(
                    APIC(
                        encoding=3,
                        mime=get_mime_type(artwork_path),
                        type=3,  # Cover (front)
                        desc="Cover",
                        data=artwork_path.read_bytes(),
                    )
                )

            tags.save(audio_path)
        except (MutagenError, OSError) as e:
            logger.warning(f"Failed to embed metadata into {audio_path}: {e}")
            return False

        return True
