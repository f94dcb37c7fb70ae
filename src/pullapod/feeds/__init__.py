"""Feed parsing, filtering and the recent-episodes batch fetch."""

from pullapod.feeds.filter import EpisodeFilter, FilterOptions
from pullapod.feeds.models import Episode
from pullapod.feeds.parser import RSSParser

__all__ = ["Episode", "EpisodeFilter", "FilterOptions", "RSSParser"]
