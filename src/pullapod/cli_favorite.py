"""CLI commands for managing favorite podcasts.

This module provides the `pullapod favorite` subcommand group.
"""

import asyncio
import logging
import sys

import typer
from rich.markup import escape
from rich.table import Table

from pullapod.clients.podcast_index import PodcastIndexClient
from pullapod.config.settings import Settings
from pullapod.storage.favorites import FavoritesStore
from pullapod.storage.models import FavoriteFeed
from pullapod.ui.console import console, print_error
from pullapod.utils.datetime import format_short_date
from pullapod.utils.display import pluralize, truncate_url
from pullapod.utils.errors import (
    FavoritesCorruptedError,
    NetworkError,
    PullapodError,
    RateLimitError,
)
from pullapod.utils.validation import sanitize_feed_name, validate_url

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="favorite",
    help="Manage your saved podcasts",
    no_args_is_help=True,
)


def get_settings(ctx: typer.Context) -> Settings:
    """Settings built by the root callback (or fresh ones when run standalone)."""
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    return Settings()


@app.command("add")
def add_favorite(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="RSS feed URL"),
    name: str | None = typer.Option(None, "--name", "-n", help="Custom display name"),
) -> None:
    """Add a podcast to your favorites.

    The feed is looked up in Podcast Index to get its canonical URL and ID.

    Examples:
        pullapod favorite add https://example.com/feed.xml

        pullapod favorite add https://example.com/feed.xml --name "My Show"
    """

    async def run_add() -> None:
        try:
            if not validate_url(url):
                console.print("[red]✗[/red] Invalid feed URL format")
                console.print("[dim]  Example: pullapod favorite add https://example.com/feed.xml[/dim]")
                sys.exit(1)

            settings = get_settings(ctx)
            store = FavoritesStore(settings)

            console.print("Fetching feed information...")
            try:
                async with PodcastIndexClient.from_settings(settings) as client:
                    response = await client.get_podcast_by_url(url.strip())
            except NetworkError:
                console.print("[red]✗[/red] Network Error: Unable to reach Podcast Index API")
                console.print("[dim]  Please check your internet connection and try again.[/dim]")
                sys.exit(1)
            except RateLimitError:
                console.print("[red]✗[/red] Rate Limit: Too many requests to Podcast Index API")
                console.print("[dim]  Please wait a moment and try again.[/dim]")
                sys.exit(1)

            feed = response.first_feed
            if feed is None:
                console.print("[red]✗[/red] Feed not found in Podcast Index")
                console.print("\nTry searching for the podcast first:")
                console.print("  pullapod search <podcast name>")
                sys.exit(1)

            display_name = sanitize_feed_name(name or feed.title or url)
            if not display_name:
                console.print("[red]✗[/red] Feed name cannot be empty")
                console.print("[dim]  Please provide a valid name with --name[/dim]")
                sys.exit(1)

            favorite = FavoriteFeed.create(
                name=display_name,
                url=feed.url or url.strip(),
                feed_id=feed.id,
            )
            result = store.add(favorite)

            if not result.success:
                existing = result.existing_feed
                console.print(f"[red]✗[/red] {result.message}")
                if existing is not None:
                    console.print(f'\nExisting entry: "{escape(existing.name)}"')
                    console.print(f"Feed URL: {escape(existing.url)}")
                    console.print(f"Added: {format_short_date(existing.added_at)}")
                sys.exit(1)

            console.print(
                f'[green]✓[/green] Added "[bold]{escape(favorite.name)}[/bold]" to favorites'
            )
            console.print(f"Feed URL: {escape(favorite.url)}")
            console.print(f"Feed ID: {favorite.feed_id}")
            console.print(f"Total favorites: {store.count()}")

        except PullapodError as e:
            print_error(e)
            sys.exit(1)

    asyncio.run(run_add())


@app.command("list")
def list_favorites(ctx: typer.Context) -> None:
    """List your saved podcasts, newest first."""
    try:
        feeds = FavoritesStore(get_settings(ctx)).list_favorites()

        if not feeds:
            console.print("[yellow]No saved podcasts yet.[/yellow]")
            console.print("\nAdd favorites with: [cyan]pullapod favorite add <feed-url>[/cyan]")
            return

        table = Table(
            title=f"[bold]Your saved {pluralize(len(feeds), 'podcast')} ({len(feeds)})[/bold]"
        )
        table.add_column("#", style="dim", width=3)
        table.add_column("Name", style="cyan")
        table.add_column("Feed", style="blue")
        table.add_column("Added", style="green", no_wrap=True)

        for index, feed in enumerate(feeds, 1):
            table.add_row(
                str(index),
                escape(feed.name),
                escape(truncate_url(feed.url, max_length=50)),
                format_short_date(feed.added_at),
            )

        console.print(table)

    except PullapodError as e:
        print_error(e)
        sys.exit(1)


@app.command("remove")
def remove_favorite(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Favorite name (or part of it) or feed URL"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Remove a podcast from your favorites.

    Examples:
        pullapod favorite remove "My Show"

        pullapod favorite remove https://example.com/feed.xml --force
    """
    try:
        store = FavoritesStore(get_settings(ctx))
        matches = store.find_matches(query)

        if not matches:
            console.print(f'[red]✗[/red] No favorite found matching "{escape(query)}"')
            sys.exit(1)

        if len(matches) > 1:
            console.print(
                f"[red]✗[/red] Found {len(matches)} matching favorites. Please be more specific:\n"
            )
            for index, feed in enumerate(matches, 1):
                console.print(f"{index}. {escape(feed.name)}")
                console.print(f"   [dim]{escape(feed.url)}[/dim]")
            sys.exit(1)

        target = matches[0]

        # A single remaining favorite is removed without asking
        if not force and store.count() > 1:
            confirm: bool = typer.confirm(f'Remove "{target.name}"?')
            if not confirm:
                console.print("[yellow]Removal cancelled[/yellow]")
                return

        result = store.remove(target)
        if not result.success:
            console.print("[red]✗[/red] Failed to remove favorite")
            sys.exit(1)

        console.print(f'[green]✓[/green] Removed "[bold]{escape(target.name)}[/bold]" from favorites')
        console.print(f"Remaining favorites: {result.remaining_count}")

    except PullapodError as e:
        print_error(e)
        sys.exit(1)


@app.command("clear")
def clear_favorites(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmation (also resets a corrupted file)"
    ),
) -> None:
    """Remove all saved podcasts."""
    try:
        store = FavoritesStore(get_settings(ctx))

        try:
            count = store.count()
        except FavoritesCorruptedError as e:
            if not force:
                raise
            logger.debug(f"Resetting corrupted favorites file: {e.message}")
            store.reset()
            console.print("[green]✓[/green] Favorites file was corrupted and has been reset")
            if e.backup_path is not None:
                console.print(f"[dim]  Backup: {escape(str(e.backup_path))}[/dim]")
            return

        if count == 0:
            console.print("Favorites list is already empty")
            return

        if not force:
            console.print(
                f"Remove all {count} {pluralize(count, 'favorite')}? This cannot be undone."
            )
            answer: str = typer.prompt("Type 'yes' to confirm", default="", show_default=False)
            if answer.strip().lower() != "yes":
                console.print("[yellow]Clear cancelled[/yellow]")
                return

        result = store.clear()
        console.print(
            f"[green]✓[/green] Removed {result.removed_count} "
            f"{pluralize(result.removed_count, 'favorite')}"
        )
        console.print("Favorites list is now empty")

    except PullapodError as e:
        print_error(e)
        sys.exit(1)
