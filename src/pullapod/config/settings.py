"""Runtime settings read once from the environment.

``Settings`` is built a single time by the CLI callback and handed to the
components that need it. Nothing below the CLI reads environment variables
directly, which keeps tests free to construct settings explicitly.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pullapod.utils.errors import MissingCredentialsError

DEFAULT_BASE_URL = "https://api.podcastindex.org/api/1.0"
CREDENTIALS_URL = "https://api.podcastindex.org/"


class Settings(BaseSettings):
    """Environment-backed settings (also read from a local ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    podcast_index_api_key: str | None = Field(
        default=None, validation_alias="PODCAST_INDEX_API_KEY"
    )
    podcast_index_api_secret: str | None = Field(
        default=None, validation_alias="PODCAST_INDEX_API_SECRET"
    )
    podcast_index_base_url: str = Field(
        default=DEFAULT_BASE_URL, validation_alias="PODCAST_INDEX_BASE_URL"
    )
    xdg_config_home: Path | None = Field(default=None, validation_alias="XDG_CONFIG_HOME")
    home_dir: Path = Field(default_factory=Path.home, validation_alias="HOME")
    test_mode: bool = Field(default=False, validation_alias="PULLAPOD_TEST_MODE")

    @field_validator(
        "podcast_index_api_key",
        "podcast_index_api_secret",
        "xdg_config_home",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("podcast_index_base_url", mode="before")
    @classmethod
    def _default_base_url(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_BASE_URL
        return value.rstrip("/") if isinstance(value, str) else value

    @property
    def has_credentials(self) -> bool:
        """Whether both API key and secret are configured."""
        return bool(self.podcast_index_api_key and self.podcast_index_api_secret)

    def require_credentials(self) -> tuple[str, str]:
        """Return ``(api_key, api_secret)`` or raise MissingCredentialsError."""
        if not self.podcast_index_api_key or not self.podcast_index_api_secret:
            raise MissingCredentialsError(
                "Podcast Index API credentials not configured. "
                "Please set PODCAST_INDEX_API_KEY and PODCAST_INDEX_API_SECRET "
                "environment variables.",
                suggestion=f"Get free API keys at {CREDENTIALS_URL}",
            )
        return self.podcast_index_api_key, self.podcast_index_api_secret
