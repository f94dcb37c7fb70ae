"""Integration tests for top-level CLI commands."""

import functools
from pathlib import Path

import httpx
import pytest
import yaml
from mutagen.id3 import ID3
from typer.testing import CliRunner

from pullapod.audio.downloader import AudioDownloader
from pullapod.cli import app
from pullapod.feeds.parser import RSSParser

runner = CliRunner()

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Podcast</title>
    <item>
      <title>Morning Interview</title>
      <pubDate>Mon, 15 Jan 2024 12:00:00 GMT</pubDate>
      <enclosure url="https://cdn.test/morning.mp3" type="audio/mpeg"/>
    </item>
    <item>
      <title>Weekly News</title>
      <pubDate>Sat, 20 Jan 2024 12:00:00 GMT</pubDate>
      <enclosure url="https://cdn.test/news.mp3" type="audio/mpeg"/>
    </item>
  </channel>
</rss>
"""

FEED = {
    "id": 920666,
    "title": "Podcasting 2.0",
    "url": "https://feeds.test/pc20.xml",
    "author": "Adam and Dave",
    "language": "en",
    "categories": {"9": "Technology"},
    "newestItemPublishTime": 1_700_000_000,
    "episodeCount": 150,
    "description": "<p>The official podcast of the <b>podcast namespace</b></p>",
}


def text(result) -> str:
    """CLI output with whitespace collapsed (Rich wraps at the terminal width)."""
    return " ".join(result.output.split())


class TestVersion:
    def test_version_command(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "pullapod" in result.output
        assert "0.1.0" in result.output

    def test_no_args_shows_help(self, cli_env: Path) -> None:
        result = runner.invoke(app, [])

        assert "favorite" in result.output
        assert "recent" in result.output


class TestConfigCommand:
    """Tests for `pullapod config`."""

    def test_show(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "favorites.json" in text(result)
        assert "Embed metadata" in text(result)

    def test_set_then_show(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config", "set", "embed_metadata", "false"])

        assert result.exit_code == 0
        data = yaml.safe_load((cli_env / "config.yaml").read_text())
        assert data["embed_metadata"] is False

    def test_set_unknown_key(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config", "set", "colour", "blue"])

        assert result.exit_code == 1
        assert "Unknown config key: colour" in text(result)

    def test_set_missing_value(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config", "set", "log_level"])

        assert result.exit_code == 1
        assert "Usage: pullapod config set" in text(result)

    def test_unknown_action(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config", "delete"])

        assert result.exit_code == 1
        assert "Unknown action: delete" in text(result)


class TestSearchCommand:
    """Tests for `pullapod search`."""

    def test_search(self, cli_env: Path, mock_api) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "feeds": [FEED]})

        mock_api(handler)

        result = runner.invoke(app, ["search", "podcasting", "--max", "5"])

        assert result.exit_code == 0
        assert "Podcasting 2.0" in text(result)
        assert seen[0].url.path.endswith("/search/byterm")
        assert seen[0].url.params["max"] == "5"

    def test_title_only_with_language_filter(self, cli_env: Path, mock_api) -> None:
        spanish = {**FEED, "id": 2, "title": "Podcast en Español", "language": "es"}
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "feeds": [FEED, spanish]})

        mock_api(handler)

        result = runner.invoke(app, ["search", "podcast", "--title-only", "--language", "es"])

        assert result.exit_code == 0
        assert seen[0].url.path.endswith("/search/bytitle")
        assert "Podcast en Español" in text(result)
        assert "Podcasting 2.0" not in text(result)

    def test_no_results(self, cli_env: Path, mock_api) -> None:
        mock_api(lambda r: httpx.Response(200, json={"status": "true", "feeds": []}))

        result = runner.invoke(app, ["search", "zzz"])

        assert result.exit_code == 0
        assert 'No podcasts found for "zzz"' in text(result)

    def test_invalid_language(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["search", "x", "--language", "english"])

        assert result.exit_code == 1
        assert "Invalid language code" in text(result)

    def test_max_out_of_range(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["search", "x", "--max", "500"])

        assert result.exit_code != 0

    def test_missing_credentials(self, cli_env: Path, monkeypatch) -> None:
        monkeypatch.delenv("PODCAST_INDEX_API_KEY")

        result = runner.invoke(app, ["search", "python"])

        assert result.exit_code == 1
        assert "credentials not configured" in text(result)
        assert "https://api.podcastindex.org/" in text(result)

    def test_rate_limited(self, cli_env: Path, mock_api) -> None:
        mock_api(lambda r: httpx.Response(429))

        result = runner.invoke(app, ["search", "python"])

        assert result.exit_code == 1
        assert "Rate limit exceeded" in text(result)

    def test_unexpected_response(self, cli_env: Path, mock_api) -> None:
        mock_api(lambda r: httpx.Response(200, text="<html>maintenance</html>"))

        result = runner.invoke(app, ["search", "python"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Unexpected response from Podcast Index" in text(result)


class TestInfoCommand:
    """Tests for `pullapod info`."""

    def test_info_by_id(self, cli_env: Path, mock_api) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "feed": FEED})

        mock_api(handler)

        result = runner.invoke(app, ["info", "920666"])

        assert result.exit_code == 0
        assert seen[0].url.path.endswith("/podcasts/byfeedid")
        assert "Podcasting 2.0" in text(result)
        assert "English (en)" in text(result)
        assert "Technology" in text(result)
        assert "podcast namespace" in text(result)
        assert "<b>" not in result.output

    def test_info_by_url(self, cli_env: Path, mock_api) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "feed": FEED})

        mock_api(handler)

        result = runner.invoke(app, ["info", "https://feeds.test/pc20.xml"])

        assert result.exit_code == 0
        assert seen[0].url.path.endswith("/podcasts/byfeedurl")

    def test_info_not_found(self, cli_env: Path, mock_api) -> None:
        mock_api(lambda r: httpx.Response(200, json={"status": "true", "feed": []}))

        result = runner.invoke(app, ["info", "1"])

        assert result.exit_code == 1
        assert "Feed not found" in text(result)


class TestEpisodesCommand:
    """Tests for `pullapod episodes`."""

    ITEMS = [
        {
            "id": 1,
            "title": "Episode 150",
            "datePublished": 1_700_000_000,
            "duration": 3900,
            "feedTitle": "Podcasting 2.0",
            "description": "<p>" + "Long show notes. " * 30 + "</p>",
        },
        {"id": 2, "title": "Episode 149", "datePublished": 1_699_000_000},
    ]

    def test_episodes(self, cli_env: Path, mock_api) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "items": self.ITEMS})

        mock_api(handler)

        result = runner.invoke(app, ["episodes", "920666", "--since", "2024-01-01", "--max", "2"])

        assert result.exit_code == 0
        params = seen[0].url.params
        assert params["since"] == "1704067200"
        assert params["max"] == "2"
        assert params["fulltext"] == "true"
        assert "Episode 150" in text(result)
        assert "1h 5m" in text(result)
        assert "..." in text(result)

    def test_full_descriptions(self, cli_env: Path, mock_api) -> None:
        mock_api(lambda r: httpx.Response(200, json={"status": "true", "items": self.ITEMS}))

        result = runner.invoke(app, ["episodes", "920666", "--full"])

        assert text(result).count("Long show notes.") == 30

    def test_invalid_since(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["episodes", "1", "--since", "last week"])

        assert result.exit_code == 1
        assert "Invalid date format" in text(result)

    def test_no_episodes(self, cli_env: Path, mock_api) -> None:
        mock_api(lambda r: httpx.Response(200, json={"status": "true", "items": []}))

        result = runner.invoke(app, ["episodes", "https://feeds.test/x.xml"])

        assert result.exit_code == 0
        assert "No episodes found" in text(result)


class TestTrendingCommand:
    def test_trending(self, cli_env: Path, mock_api) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "true", "feeds": [FEED]})

        mock_api(handler)

        result = runner.invoke(app, ["trending", "--language", "en", "--category", "News"])

        assert result.exit_code == 0
        assert seen[0].url.params["lang"] == "en"
        assert seen[0].url.params["cat"] == "News"
        assert "Podcasting 2.0" in text(result)


class TestDownloadCommand:
    """Tests for `pullapod download`."""

    @pytest.fixture
    def feed_server(self, monkeypatch) -> list[str]:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.url.host == "feeds.test":
                return httpx.Response(200, text=RSS)
            return httpx.Response(200, content=b"\x00" * 512)

        transport = httpx.MockTransport(handler)
        monkeypatch.setattr("pullapod.cli.RSSParser", functools.partial(RSSParser, transport=transport))
        monkeypatch.setattr(
            "pullapod.cli.AudioDownloader", functools.partial(AudioDownloader, transport=transport)
        )
        return requested

    def test_download_by_date(self, cli_env: Path, tmp_path: Path, feed_server: list[str]) -> None:
        out = tmp_path / "out"

        result = runner.invoke(
            app,
            ["download", "--feed", "https://feeds.test/rss", "--date", "2024-01-15", "-o", str(out)],
        )

        assert result.exit_code == 0, result.output
        audio = out / "Test Podcast" / "Morning Interview.mp3"
        assert audio.exists()
        assert not (out / "Test Podcast" / "Weekly News.mp3").exists()
        assert str(ID3(audio)["TIT2"]) == "Morning Interview"
        assert "All downloads completed" in text(result)

    def test_download_by_name_without_metadata(
        self, cli_env: Path, tmp_path: Path, feed_server: list[str]
    ) -> None:
        out = tmp_path / "out"

        result = runner.invoke(
            app,
            ["download", "-f", "https://feeds.test/rss", "-n", "news", "-o", str(out), "--no-metadata"],
        )

        assert result.exit_code == 0, result.output
        audio = out / "Test Podcast" / "Weekly News.mp3"
        assert audio.read_bytes() == b"\x00" * 512

    def test_default_output_from_config(
        self, cli_env: Path, tmp_path: Path, feed_server: list[str]
    ) -> None:
        configured = tmp_path / "configured"
        runner.invoke(app, ["config", "set", "default_output_dir", str(configured)])

        result = runner.invoke(app, ["download", "-f", "https://feeds.test/rss", "-s", "2024-01-01"])

        assert result.exit_code == 0, result.output
        assert len(list((configured / "Test Podcast").glob("*.mp3"))) == 2

    def test_requires_a_filter(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["download", "--feed", "https://feeds.test/rss"])

        assert result.exit_code == 1
        assert "at least one filter" in text(result)

    def test_date_excludes_range(self, cli_env: Path) -> None:
        result = runner.invoke(
            app,
            ["download", "-f", "https://feeds.test/rss", "-d", "2024-01-15", "-s", "2024-01-01"],
        )

        assert result.exit_code == 1
        assert "Cannot use --date with --start or --end" in text(result)

    def test_invalid_url(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["download", "-f", "feeds.test/rss", "-n", "x"])

        assert result.exit_code == 1
        assert "Invalid URL" in text(result)

    def test_no_matching_episodes(self, cli_env: Path, tmp_path: Path, feed_server: list[str]) -> None:
        result = runner.invoke(
            app, ["download", "-f", "https://feeds.test/rss", "-d", "2020-01-01", "-o", str(tmp_path)]
        )

        assert result.exit_code == 1
        assert "No episodes found matching the criteria" in text(result)
