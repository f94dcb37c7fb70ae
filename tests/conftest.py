"""Shared fixtures for pullapod tests."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from pullapod.clients.podcast_index import PodcastIndexClient
from pullapod.config.settings import Settings
from pullapod.ui.console import console
from pullapod.utils.retry import TEST_RETRY_CONFIG

ENV_VARS = (
    "PODCAST_INDEX_API_KEY",
    "PODCAST_INDEX_API_SECRET",
    "PODCAST_INDEX_BASE_URL",
    "XDG_CONFIG_HOME",
    "PULLAPOD_TEST_MODE",
)


@pytest.fixture(autouse=True)
def fast_retry_config(monkeypatch):
    """Use fast retry configuration for all tests to avoid long delays."""
    monkeypatch.setattr("pullapod.utils.retry.DEFAULT_RETRY_CONFIG", TEST_RETRY_CONFIG)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory for isolated settings rooted in ``tmp_path``.

    Keyword arguments use the environment variable names.
    """

    def factory(**overrides) -> Settings:
        values = {
            "HOME": tmp_path / "home",
            "XDG_CONFIG_HOME": tmp_path / "xdg",
            "PULLAPOD_TEST_MODE": True,
            "PODCAST_INDEX_API_KEY": "test-key",
            "PODCAST_INDEX_API_SECRET": "test-secret",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch) -> Path:
    """Point the CLI at a temporary home and config directory.

    Returns:
        The pullapod config directory used by the CLI
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("PODCAST_INDEX_API_KEY", "test-key")
    monkeypatch.setenv("PODCAST_INDEX_API_SECRET", "test-secret")
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    # Wide enough that table rows never wrap
    monkeypatch.setattr(console, "width", 200)
    return tmp_path / "xdg" / "pullapod"


@pytest.fixture
def mock_api(monkeypatch) -> Callable[[Callable[[httpx.Request], httpx.Response]], None]:
    """Route every PodcastIndexClient built from settings through a handler."""

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        transport = httpx.MockTransport(handler)

        def from_settings(cls, settings, timeout=30.0, transport_=None):
            api_key, api_secret = settings.require_credentials()
            return cls(
                api_key=api_key,
                api_secret=api_secret,
                base_url="https://api.test/api/1.0",
                transport=transport,
            )

        monkeypatch.setattr(PodcastIndexClient, "from_settings", classmethod(from_settings))

    return install
