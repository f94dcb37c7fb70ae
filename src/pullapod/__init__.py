"""pullapod - discover, track and download podcasts."""

__version__ = "0.1.0"
