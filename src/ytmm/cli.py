"""Command-line interface for ytmm."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from ytmm import Manager, create_manager
from ytmm.db import SQLStore, create_db_engine, init_db
from ytmm.exceptions import YTMMError
from ytmm.models import (
    DownloadProgress,
    DownloadStatus,
    PlaylistDownloadResult,
    SyncPreview,
)
from ytmm.services.scheduler import SYNC_INTERVAL_HOURS
from ytmm.settings import Settings, get_settings
from ytmm.utils.formatters import format_duration, format_file_size

logger = logging.getLogger("ytmm")

T = TypeVar("T")

PROGRESS_COLUMNS = (
    SpinnerColumn(),
    TextColumn("[progress.description]{task.description}"),
    BarColumn(),
    TaskProgressColumn(),
    TimeElapsedColumn(),
)

STATUS_STYLES = {
    "pending": "dim",
    "idle": "dim",
    "syncing": "cyan",
    "downloading": "cyan",
    "completed": "green",
    "error": "red",
}


def setup_logging(level: str = "WARNING", console: Console | None = None) -> None:
    """Configure logging with Rich handler.

    Clears existing handlers first, so it can be called again to switch to
    a console shared with a progress bar.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        console=console,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def build_manager(settings: Settings) -> Manager:
    """Wire a manager backed by the SQLite store named in settings."""
    engine = create_db_engine(settings.db_path)
    init_db(engine)
    return create_manager(
        settings.download_config(),
        settings.api_config(),
        SQLStore(engine),
        metadata_source=settings.metadata_source,
        cookies_path=settings.cookies_file,
    )


@asynccontextmanager
async def open_manager(settings: Settings) -> AsyncIterator[Manager]:
    manager = build_manager(settings)
    try:
        yield manager
    finally:
        await manager.close()


def run(ctx: click.Context, action: Callable[[Manager], Awaitable[T]]) -> T:
    """Run an async action against a fresh manager, mapping errors to exit 1."""
    settings: Settings = ctx.obj["settings"]

    async def _main() -> T:
        async with open_manager(settings) as manager:
            return await action(manager)

    try:
        return asyncio.run(_main())
    except YTMMError as e:
        logger.error(e.message)
        raise click.ClickException(e.message) from e


def _styled(status: str) -> str:
    style = STATUS_STYLES.get(str(status), "red")
    return f"[{style}]{status}[/{style}]"


def print_preview(console: Console, preview: SyncPreview, *, dry_run: bool) -> None:
    verb = "Would" if dry_run else "Did"
    if not preview.has_changes:
        console.print("[green]Already in sync[/green]")
        return
    console.print(
        f"{verb} add [green]{len(preview.tracks_to_add)}[/green], "
        f"remove [red]{len(preview.tracks_to_remove)}[/red] tracks"
    )
    for track in preview.tracks_to_add:
        console.print(f"  [green]+ {track.display_name}[/green]")
    for track in preview.tracks_to_remove:
        console.print(f"  [red]- {track.display_name}[/red]")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Keep YouTube playlists synced to local audio files."""
    ctx.ensure_object(dict)
    try:
        settings = get_settings()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    ctx.obj["settings"] = settings
    setup_logging("DEBUG" if verbose else settings.log_level)


@main.command(name="add")
@click.argument("url", metavar="URL")
@click.pass_context
def add_cmd(ctx: click.Context, url: str) -> None:
    """Add a playlist by URL or ID.

    \b
    Examples:
      ytmm add "https://www.youtube.com/playlist?list=PLxxxxxxxxxx"
      ytmm add PLxxxxxxxxxx
    """
    console = Console()
    playlist = run(ctx, lambda m: m.library.add_playlist(url))
    console.print(
        f"[green]Added[/green] {playlist.name} "
        f"[dim]({playlist.id}, {playlist.track_count} tracks)[/dim]"
    )


@main.command(name="list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List tracked playlists."""
    console = Console()
    playlists = run(ctx, lambda m: m.library.list_playlists())
    if not playlists:
        console.print("[yellow]No playlists added yet[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Tracks", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Last synced", style="dim")
    for p in playlists:
        synced = (
            p.last_synced_at.strftime("%Y-%m-%d %H:%M") if p.last_synced_at else "-"
        )
        table.add_row(
            p.id,
            p.name,
            str(p.track_count),
            format_file_size(p.total_size),
            _styled(p.sync_status),
            synced,
        )
    console.print(table)


@main.command(name="tracks")
@click.argument("playlist_id", metavar="PLAYLIST_ID")
@click.pass_context
def tracks_cmd(ctx: click.Context, playlist_id: str) -> None:
    """Show the tracks of a playlist."""
    console = Console()
    tracks = run(ctx, lambda m: m.library.list_tracks(playlist_id))

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Track")
    table.add_column("Duration", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    for t in tracks:
        table.add_row(
            str(t.position + 1),
            t.display_name,
            format_duration(t.duration_seconds),
            format_file_size(t.file_size) if t.file_size else "-",
            _styled(t.download_status),
        )
    console.print(table)


@main.command(name="sync")
@click.argument("playlist_id", metavar="PLAYLIST_ID")
@click.option(
    "--dry-run", is_flag=True, help="Show what would change without applying it."
)
@click.pass_context
def sync_cmd(ctx: click.Context, playlist_id: str, dry_run: bool) -> None:
    """Reconcile a playlist with its remote contents."""
    console = Console()
    preview = run(ctx, lambda m: m.reconciler.sync(playlist_id, dry_run=dry_run))
    print_preview(console, preview, dry_run=dry_run)


@main.command(name="download")
@click.argument("playlist_id", metavar="PLAYLIST_ID")
@click.pass_context
def download_cmd(ctx: click.Context, playlist_id: str) -> None:
    """Download every track of a playlist that is not yet completed."""
    console = Console()
    settings: Settings = ctx.obj["settings"]
    # Logs share the progress bar's console so they print above it
    setup_logging(settings.log_level, console=console)

    with Progress(*PROGRESS_COLUMNS, console=console) as progress:
        task = progress.add_task("Downloading", total=None)
        finished: set[str] = set()

        def on_progress(event: DownloadProgress) -> None:
            if event.status in (DownloadStatus.COMPLETED, DownloadStatus.ERROR):
                finished.add(event.track_id)
                progress.update(task, completed=len(finished))

        async def action(manager: Manager) -> PlaylistDownloadResult:
            tracks = await manager.library.list_tracks(playlist_id)
            progress.update(task, total=sum(1 for t in tracks if not t.is_completed))
            return await manager.orchestrator.download_playlist(
                playlist_id, on_progress
            )

        result = run(ctx, action)

    console.print()
    console.print(
        f"  [green]Downloaded: {result.success_count}[/green]  "
        f"[red]Failed: {result.failed_count}[/red]  "
        f"[cyan]Size: {format_file_size(result.total_size)}[/cyan]"
    )
    if result.manifest_path:
        console.print(f"  [cyan]Manifest:[/cyan] {result.manifest_path}")


@main.command(name="remove")
@click.argument("playlist_id", metavar="PLAYLIST_ID")
@click.option(
    "--delete-files", is_flag=True, help="Also delete downloaded audio files."
)
@click.pass_context
def remove_cmd(ctx: click.Context, playlist_id: str, delete_files: bool) -> None:
    """Stop tracking a playlist."""
    console = Console()
    run(
        ctx,
        lambda m: m.library.remove_playlist(playlist_id, delete_files=delete_files),
    )
    console.print(f"[green]Removed[/green] {playlist_id}")


@main.command(name="watch")
@click.option(
    "--interval",
    type=click.Choice([str(h) for h in SYNC_INTERVAL_HOURS]),
    default=None,
    help="Hours between syncs (defaults to YTMM_AUTO_SYNC_INTERVAL_HOURS).",
)
@click.option("--now", is_flag=True, help="Run one sync cycle before waiting.")
@click.pass_context
def watch_cmd(ctx: click.Context, interval: str | None, now: bool) -> None:
    """Sync and download every playlist periodically until interrupted."""
    console = Console()
    settings: Settings = ctx.obj["settings"]
    hours = int(interval) if interval else settings.auto_sync_interval_hours

    async def action(manager: Manager) -> None:
        scheduler = manager.create_scheduler(hours)
        if now:
            await scheduler.run_once()
        scheduler.start()
        console.print(
            f"[cyan]Watching playlists every {hours}h (Ctrl+C to stop)[/cyan]"
        )
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()

    try:
        run(ctx, action)
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")
