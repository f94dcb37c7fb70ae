"""Configuration: environment settings, preferences and logging."""
