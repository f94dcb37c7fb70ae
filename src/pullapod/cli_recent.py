"""The `pullapod recent` command: new episodes across favorite podcasts."""

import asyncio
import sys

import typer
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from pullapod.cli_favorite import get_settings
from pullapod.clients.podcast_index import PodcastIndexClient
from pullapod.feeds.recent import (
    DAYS_RANGE,
    DEFAULT_DAYS,
    DEFAULT_MAX_EPISODES,
    LARGE_FAVORITES_THRESHOLD,
    MAX_EPISODES_RANGE,
    PROGRESS_THRESHOLD,
    FeedFetchResult,
    all_feeds_failed,
    compute_since_timestamp,
    fetch_recent_episodes,
    group_episodes_by_podcast,
    match_feeds_by_name,
)
from pullapod.storage.favorites import FavoritesStore
from pullapod.ui.console import console, print_error
from pullapod.utils.datetime import format_short_date
from pullapod.utils.display import pluralize, truncate_text
from pullapod.utils.errors import PullapodError

TITLE_MAX_LENGTH = 60


def recent_command(
    ctx: typer.Context,
    max_episodes: int = typer.Option(
        DEFAULT_MAX_EPISODES,
        "--max",
        "-m",
        help="Episodes per podcast (1-20)",
        min=MAX_EPISODES_RANGE[0],
        max=MAX_EPISODES_RANGE[1],
    ),
    days: int = typer.Option(
        DEFAULT_DAYS,
        "--days",
        "-d",
        help="Look back this many days (1-90)",
        min=DAYS_RANGE[0],
        max=DAYS_RANGE[1],
    ),
    feed_name: str | None = typer.Option(
        None, "--feed", "-f", help="Only this favorite (name or part of it)"
    ),
) -> None:
    """Show recent episodes from your saved podcasts.

    Examples:
        pullapod recent

        pullapod recent --days 30 --max 3

        pullapod recent --feed "tech talk"
    """

    async def run_recent() -> None:
        try:
            settings = get_settings(ctx)
            favorites = FavoritesStore(settings).list_favorites()

            if not favorites:
                console.print("[yellow]No saved podcasts found.[/yellow]")
                console.print("\nAdd favorites with: [cyan]pullapod favorite add <feed-url>[/cyan]")
                console.print("List favorites with: [cyan]pullapod favorite list[/cyan]")
                sys.exit(1)

            feeds = favorites
            if feed_name:
                matches = match_feeds_by_name(favorites, feed_name)
                if not matches:
                    console.print(f'[red]✗[/red] No saved podcast matches "{escape(feed_name)}".')
                    console.print("\nAvailable feeds:")
                    for feed in favorites:
                        console.print(f"  • {escape(feed.name)}")
                    sys.exit(1)
                if len(matches) > 1:
                    console.print(f'[red]✗[/red] Multiple feeds match "{escape(feed_name)}":')
                    for feed in matches:
                        console.print(f"  • {escape(feed.name)}")
                    console.print("\nPlease be more specific.")
                    sys.exit(1)
                feeds = matches

            if len(feeds) > LARGE_FAVORITES_THRESHOLD:
                console.print(
                    f"[dim]Note: Fetching from {len(feeds)} podcasts. This may take a moment. "
                    "Consider using --feed to filter.[/dim]"
                )

            since = compute_since_timestamp(days)
            console.print(
                f"Fetching recent episodes from {len(feeds)} "
                f"{pluralize(len(feeds), 'podcast')}..."
            )

            async with PodcastIndexClient.from_settings(settings) as client:
                if len(feeds) > PROGRESS_THRESHOLD:
                    with Progress(
                        TextColumn("[progress.description]{task.description}"),
                        BarColumn(),
                        MofNCompleteColumn(),
                        console=console,
                        transient=True,
                    ) as progress:
                        task = progress.add_task("Fetching feeds", total=len(feeds))
                        results = await fetch_recent_episodes(
                            client,
                            feeds,
                            max_episodes,
                            since,
                            on_progress=lambda done, total: progress.update(task, completed=done),
                        )
                else:
                    results = await fetch_recent_episodes(client, feeds, max_episodes, since)

            if all_feeds_failed(results):
                console.print("[red]✗[/red] Could not fetch episodes from any feeds.")
                console.print("[dim]  Please check your internet connection and try again.[/dim]")
                for result in results:
                    console.print(
                        f"[dim]  - {escape(result.feed.name)}: {escape(result.error or '')}[/dim]"
                    )
                sys.exit(1)

            _print_results(results, days, feed_name)

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_recent())


def _print_results(results: list[FeedFetchResult], days: int, feed_filter: str | None) -> None:
    groups = group_episodes_by_podcast(results)
    failures = [r for r in results if not r.success]
    total = sum(len(g.episodes) for g in groups)
    period = f"{days} {pluralize(days, 'day')}"

    if total == 0:
        source = f'"{escape(feed_filter)}"' if feed_filter else "your saved podcasts"
        console.print(f"\nNo new episodes from {source} in the last {period}.")
        console.print("\nTry: [cyan]pullapod recent --days 30[/cyan]")
    else:
        console.print(f"\n[bold]Recent episodes from your saved podcasts (last {period}):[/bold]\n")
        for group in groups:
            count = len(group.episodes)
            console.print(
                f"[cyan]{escape(group.feed_name)}[/cyan] ({count} new {pluralize(count, 'episode')})"
            )
            for episode in group.episodes:
                title = escape(truncate_text(episode.title, TITLE_MAX_LENGTH))
                console.print(f"  • {title} [dim]({format_short_date(episode.date_published)})[/dim]")
            console.print()

        console.print("---")
        console.print(
            f"Total: {total} new {pluralize(total, 'episode')} across "
            f"{len(groups)} {pluralize(len(groups), 'podcast')}"
        )
        feed_hint = f'"{escape(groups[0].feed_url)}"' if feed_filter else "<feed-url>"
        console.print(f"[dim]Download with: pullapod download --feed {feed_hint} --date YYYY-MM-DD[/dim]")

    if failures:
        console.print(
            f"\n[yellow]Warning:[/yellow] {len(failures)} {pluralize(len(failures), 'feed')} "
            "could not be fetched:"
        )
        for result in failures:
            console.print(f"  - {escape(result.feed.name)}: {escape(result.error or '')}")
