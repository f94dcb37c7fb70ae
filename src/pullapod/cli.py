"""CLI entry point for pullapod."""

import asyncio
import sys
from pathlib import Path

import typer
from rich.markup import escape
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn
from rich.table import Table

from pullapod.audio.downloader import AudioDownloader, DownloadProgress
from pullapod.audio.metadata import MetadataEmbedder
from pullapod.cli_favorite import app as favorite_app
from pullapod.cli_favorite import get_settings
from pullapod.cli_recent import recent_command
from pullapod.clients.models import FeedStatus, PodcastFeed
from pullapod.clients.podcast_index import PodcastIndexClient
from pullapod.config.logging import setup_logging
from pullapod.config.manager import ConfigManager
from pullapod.config.settings import Settings
from pullapod.feeds.filter import EpisodeFilter, FilterOptions
from pullapod.feeds.parser import RSSParser
from pullapod.storage.paths import get_config_dir, get_favorites_path
from pullapod.ui.console import console, print_error
from pullapod.utils.datetime import (
    date_to_unix,
    format_relative_time,
    format_short_date,
    parse_date,
)
from pullapod.utils.display import (
    format_bytes,
    format_duration,
    format_number,
    pluralize,
    strip_html,
    truncate_text,
)
from pullapod.utils.errors import NotFoundError, PullapodError, ValidationError
from pullapod.utils.language import format_language
from pullapod.utils.validation import (
    detect_feed_id_or_url,
    require_valid_url,
    sanitize_search_query,
    validate_language_code,
)

app = typer.Typer(
    name="pullapod",
    help="Discover, track and download podcast episodes",
    no_args_is_help=True,
)
app.add_typer(favorite_app, name="favorite")
app.command("recent")(recent_command)

STATUS_LABELS = {
    FeedStatus.ACTIVE: "[green]Active ✓[/green]",
    FeedStatus.INACTIVE: "[yellow]Inactive ⚠[/yellow]",
    FeedStatus.DEAD: "[red]Dead ✗[/red]",
}


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
) -> None:
    """pullapod - discover, track and download podcasts."""
    # Initialize logging before any command runs
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.obj = Settings()


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from pullapod import __version__

    console.print(f"[bold cyan]pullapod[/bold cyan] v{__version__}")


@app.command("download")
def download_command(
    ctx: typer.Context,
    feed: str = typer.Option(..., "--feed", "-f", help="RSS feed URL"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output directory (defaults to config or current directory)"
    ),
    date: str | None = typer.Option(None, "--date", "-d", help="Episode date (YYYY-MM-DD)"),
    start: str | None = typer.Option(None, "--start", "-s", help="Range start (YYYY-MM-DD)"),
    end: str | None = typer.Option(None, "--end", "-e", help="Range end (YYYY-MM-DD)"),
    name: str | None = typer.Option(None, "--name", "-n", help="Episode title contains"),
    no_metadata: bool = typer.Option(
        False, "--no-metadata", help="Skip embedding artwork and metadata"
    ),
) -> None:
    """Download episodes straight from an RSS feed.

    At least one of --date, --start/--end or --name is required.

    Examples:
        pullapod download --feed https://example.com/feed.xml --date 2024-03-01

        pullapod download -f https://example.com/feed.xml -s 2024-01-01 -e 2024-01-31

        pullapod download -f https://example.com/feed.xml --name "interview"
    """

    async def run_download() -> None:
        try:
            filters = FilterOptions(date=date, start_date=start, end_date=end, name=name)
            if filters.is_empty:
                raise ValidationError(
                    "Please specify at least one filter: --date, --start/--end, or --name"
                )
            if date and (start or end):
                raise ValidationError("Cannot use --date with --start or --end")

            feed_url = require_valid_url(feed)
            settings = get_settings(ctx)
            preferences = ConfigManager(get_config_dir(settings)).load_config()
            output_dir = (output or preferences.default_output_dir).expanduser()
            embed = preferences.embed_metadata and not no_metadata

            console.print(f"Fetching feed: [blue]{escape(feed_url)}[/blue]")
            parser = RSSParser(timeout=preferences.request_timeout_seconds)
            episodes = await parser.get_episodes(feed_url)
            console.print(f"Found {len(episodes)} {pluralize(len(episodes), 'episode')}")

            episode_filter = EpisodeFilter()
            selected = episode_filter.sort_by_date(episode_filter.filter(episodes, filters))
            if not selected:
                raise NotFoundError(
                    "No episodes found matching the criteria",
                    suggestion="Check the date or try a broader --start/--end range.",
                )

            console.print(
                f"Downloading {len(selected)} {pluralize(len(selected), 'episode')}...\n"
            )

            embedder = MetadataEmbedder()
            for episode in selected:
                console.print(f"[bold]{escape(episode.title)}[/bold]")
                console.print(f"[dim]Published: {episode.published_date}[/dim]")

                with Progress(
                    TextColumn("  "),
                    BarColumn(),
                    DownloadColumn(),
                    TransferSpeedColumn(),
                    console=console,
                    transient=True,
                ) as progress:
                    task = progress.add_task("download", total=None)

                    def on_progress(update: DownloadProgress) -> None:
                        progress.update(
                            task, completed=update.downloaded_bytes, total=update.total_bytes
                        )

                    downloader = AudioDownloader(
                        output_dir,
                        progress_callback=on_progress,
                        timeout=preferences.request_timeout_seconds,
                    )
                    result = await downloader.download_episode(episode)

                console.print(
                    f"[green]✓[/green] Downloaded: {escape(result.audio_path.name)} "
                    f"({format_bytes(result.size_bytes)})"
                )
                if embed:
                    if embedder.embed(result.audio_path, result.artwork_path, episode):
                        console.print("[green]✓[/green] Embedded artwork and metadata")

            console.print(f"\n[green]✓[/green] All downloads completed in {escape(str(output_dir))}")

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_download())


def _feed_table(feeds: list[PodcastFeed], title: str) -> Table:
    table = Table(title=title, show_lines=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Podcast", style="cyan")
    table.add_column("ID", style="magenta", no_wrap=True)
    table.add_column("Language", style="green")
    table.add_column("Feed URL", style="blue", overflow="fold")

    for index, feed in enumerate(feeds, 1):
        author = f"\n[dim]{escape(feed.author)}[/dim]" if feed.author else ""
        table.add_row(
            str(index),
            escape(feed.title or "Untitled") + author,
            str(feed.id),
            format_language(feed.language),
            escape(feed.url),
        )
    return table


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search terms"),
    max_results: int = typer.Option(
        10, "--max", "-m", help="Maximum results (1-100)", min=1, max=100
    ),
    title_only: bool = typer.Option(False, "--title-only", help="Search titles only"),
    similar: bool = typer.Option(
        False, "--similar", help="Include similar titles (with --title-only)"
    ),
    language: str | None = typer.Option(
        None, "--language", "-l", help="Only podcasts in this language (e.g. en)"
    ),
) -> None:
    """Search Podcast Index for podcasts.

    Examples:
        pullapod search "python"

        pullapod search "history" --title-only --language en
    """

    async def run_search() -> None:
        try:
            terms = sanitize_search_query(query)
            if not terms:
                raise ValidationError("Search query cannot be empty")
            if language and not validate_language_code(language):
                raise ValidationError(
                    f"Invalid language code: {language}",
                    suggestion="Use a two-letter ISO 639-1 code such as en or es",
                )

            async with PodcastIndexClient.from_settings(get_settings(ctx)) as client:
                if title_only:
                    response = await client.search_by_title(
                        terms, max_results=max_results, similar=similar or None
                    )
                else:
                    response = await client.search_by_term(terms, max_results=max_results)

            feeds = response.feeds
            if language:
                prefix = language.lower()
                feeds = [
                    f for f in feeds
                    if (f.language or "").lower().replace("_", "-").split("-")[0] == prefix
                ]

            if not feeds:
                console.print(f'[yellow]No podcasts found for "{escape(terms)}"[/yellow]')
                return

            console.print(_feed_table(feeds[:max_results], f'Results for "{escape(terms)}"'))
            console.print(
                f"\n[dim]{len(feeds[:max_results])} {pluralize(len(feeds), 'result')}. "
                "Add one with: pullapod favorite add <feed-url>[/dim]"
            )

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_search())


@app.command("info")
def info_command(
    ctx: typer.Context,
    feed: str = typer.Argument(..., help="Feed URL or Podcast Index feed ID"),
) -> None:
    """Show details about a podcast feed."""

    async def run_info() -> None:
        try:
            reference = detect_feed_id_or_url(feed)
            label = "feed ID" if reference.kind == "id" else "feed URL"
            console.print(f"Fetching podcast info from {label}...")

            async with PodcastIndexClient.from_settings(get_settings(ctx)) as client:
                if reference.kind == "id":
                    response = await client.get_podcast_by_id(reference.value)
                else:
                    response = await client.get_podcast_by_url(reference.value)

            podcast = response.first_feed
            if podcast is None:
                raise NotFoundError(
                    "Feed not found",
                    suggestion="Please check the feed URL or ID and try again.",
                )

            table = Table(show_header=False, box=None)
            table.add_column("Key", style="cyan")
            table.add_column("Value", style="white", overflow="fold")

            table.add_row("Title", f"[bold]{escape(podcast.title)}[/bold]")
            table.add_row("Author", escape(podcast.author or "Unknown"))
            table.add_row("Feed ID", str(podcast.id))
            table.add_row("Feed URL", escape(podcast.url))
            if podcast.link:
                table.add_row("Website", escape(podcast.link))
            table.add_row("Status", STATUS_LABELS[podcast.status()])
            table.add_row("Language", format_language(podcast.language))
            table.add_row(
                "Categories", escape(", ".join(podcast.category_names) or "Uncategorized")
            )
            if podcast.episode_count is not None:
                table.add_row("Episodes", format_number(podcast.episode_count))
            last_publish = podcast.newest_item_publish_time or podcast.last_update_time
            if last_publish:
                table.add_row(
                    "Last update",
                    f"{format_short_date(last_publish)} ({format_relative_time(last_publish)})",
                )
            explicit = "Yes" if podcast.explicit else "No"
            table.add_row("Explicit", explicit)
            if podcast.medium:
                table.add_row("Medium", podcast.medium.capitalize())

            console.print()
            console.print(table)
            if podcast.description:
                console.print(f"\n{escape(truncate_text(strip_html(podcast.description), 500))}")

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_info())


@app.command("episodes")
def episodes_command(
    ctx: typer.Context,
    feed: str = typer.Argument(..., help="Feed URL or Podcast Index feed ID"),
    max_results: int = typer.Option(
        20, "--max", "-m", help="Maximum episodes (1-100)", min=1, max=100
    ),
    since: str | None = typer.Option(
        None, "--since", "-s", help="Only episodes published since (YYYY-MM-DD)"
    ),
    full: bool = typer.Option(False, "--full", help="Show full descriptions"),
) -> None:
    """List episodes of a podcast from Podcast Index.

    Examples:
        pullapod episodes 920666

        pullapod episodes https://example.com/feed.xml --since 2024-01-01 --full
    """

    async def run_episodes() -> None:
        try:
            since_timestamp = None
            if since:
                since_date = parse_date(since)
                if since_date is None:
                    raise ValidationError(
                        f"Invalid date format: {since}",
                        suggestion="Use YYYY-MM-DD, for example 2024-01-31",
                    )
                since_timestamp = date_to_unix(since_date)

            reference = detect_feed_id_or_url(feed)
            async with PodcastIndexClient.from_settings(get_settings(ctx)) as client:
                if reference.kind == "id":
                    response = await client.get_episodes_by_feed_id(
                        reference.value, max_results=max_results, since=since_timestamp,
                        fulltext=True,
                    )
                else:
                    response = await client.get_episodes_by_feed_url(
                        reference.value, max_results=max_results, since=since_timestamp,
                        fulltext=True,
                    )

            episodes = response.items
            if not episodes:
                console.print("[yellow]No episodes found.[/yellow]")
                return

            podcast_title = episodes[0].feed_title or "Episodes"
            console.print(f"\n[bold]{escape(podcast_title)}[/bold] ({len(episodes)} {pluralize(len(episodes), 'episode')})\n")

            for index, episode in enumerate(episodes, 1):
                duration = format_duration(episode.duration)
                console.print(
                    f"{index}. [cyan]{escape(episode.title)}[/cyan]\n"
                    f"   [dim]{format_short_date(episode.date_published)} · {duration}[/dim]"
                )
                if episode.description:
                    text = strip_html(episode.description)
                    if not full:
                        text = truncate_text(text, 200)
                    console.print(f"   {escape(text)}")
                console.print()

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_episodes())


@app.command("trending")
def trending_command(
    ctx: typer.Context,
    max_results: int = typer.Option(
        10, "--max", "-m", help="Maximum podcasts (1-100)", min=1, max=100
    ),
    language: str | None = typer.Option(None, "--language", "-l", help="Language code"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category name or ID"),
) -> None:
    """Show trending podcasts."""

    async def run_trending() -> None:
        try:
            if language and not validate_language_code(language):
                raise ValidationError(f"Invalid language code: {language}")

            async with PodcastIndexClient.from_settings(get_settings(ctx)) as client:
                response = await client.get_trending(
                    max_results=max_results, language=language, category=category
                )

            if not response.feeds:
                console.print("[yellow]No trending podcasts found.[/yellow]")
                return

            console.print(_feed_table(response.feeds, "Trending podcasts"))

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_trending())


@app.command("config")
def config_command(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action: show or set <key> <value>"),
    key: str | None = typer.Argument(None, help="Config key (for 'set' action)"),
    value: str | None = typer.Argument(None, help="Config value (for 'set' action)"),
) -> None:
    """Manage pullapod preferences.

    Actions:
        show: Display current configuration
        set:  Set a configuration value

    Examples:
        pullapod config show

        pullapod config set default_output_dir ~/Podcasts
    """
    try:
        settings = get_settings(ctx)
        config_dir = get_config_dir(settings)
        manager = ConfigManager(config_dir)

        if action == "show":
            config = manager.load_config()

            console.print("\n[bold]pullapod Configuration[/bold]\n")

            table = Table(show_header=False, box=None)
            table.add_column("Key", style="cyan")
            table.add_column("Value", style="white")

            table.add_row("Config file", str(manager.config_file))
            table.add_row("Favorites file", str(get_favorites_path(settings)))
            table.add_row("", "")
            table.add_row("Output directory", str(config.default_output_dir))
            table.add_row("Log level", config.log_level)
            table.add_row("Embed metadata", "✓" if config.embed_metadata else "✗")
            table.add_row("Request timeout", f"{config.request_timeout_seconds:g}s")
            table.add_row("API credentials", "✓" if settings.has_credentials else "✗ not set")

            console.print(table)

        elif action == "set":
            if not key or value is None:
                console.print("[red]✗[/red] Usage: pullapod config set <key> <value>")
                sys.exit(1)

            manager.set_value(key, value)
            console.print(
                f"[green]✓[/green] Set [cyan]{escape(key)}[/cyan] = [yellow]{escape(value)}[/yellow]"
            )

        else:
            console.print(f"[red]✗[/red] Unknown action: {escape(action)}")
            console.print("Valid actions: show, set")
            sys.exit(1)

    except PullapodError as e:
        print_error(e)
        sys.exit(1)


if __name__ == "__main__":
    app()
