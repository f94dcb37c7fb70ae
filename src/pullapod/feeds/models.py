"""Data models for episodes parsed from RSS feeds."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Episode(BaseModel):
    """Represents a single downloadable podcast episode."""

    title: str
    enclosure_url: str  # Direct audio URL
    published: datetime
    podcast_title: str
    description: Optional[str] = None
    artwork: Optional[str] = None
    duration: Optional[str] = None

    @property
    def published_date(self) -> str:
        """Publish date as ``YYYY-MM-DD`` in local time."""
        return self.published.astimezone().strftime("%Y-%m-%d")
